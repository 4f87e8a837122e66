"""
AI 判定结果解析

视觉模型返回的是自由文本：理想情况下是 {"object": ..., "comment": ...}，
但也可能夹杂解释文字、被 markdown 代码块包裹、JSON 残缺，或者干脆是上游
的错误响应。parse_verdict 按固定优先级逐步尝试，第一个成功的步骤生效：

1. 上游错误响应（error.message）-> {"object": "unknown", "comment": "API Error: <message>"}
2. 文本中第一个同时含 object 与 comment 键的完整 JSON 对象
3. 两个键名都出现但 JSON 不完整时，取各键之后的第一个引号值
4. 都不匹配时取文本前 100 个字符作为评论，object 为 "unknown"

任何步骤抛出的异常都不会外泄，统一降级为 "Parsing error occurred"。
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

UNKNOWN_OBJECT = "unknown"
FALLBACK_COMMENT_LEN = 100
PARSE_ERROR_COMMENT = "Parsing error occurred"

_decoder = json.JSONDecoder()
# 引号值：支持双引号或单引号，允许转义字符；反斜杠只走转义分支，两个分支互斥
_QUOTED_RE = re.compile(r"""(["'])((?:\\.|(?!\1)[^\\])*)\1""", re.S)
# 无法整体解析时的错误响应兜底匹配
_ERROR_RE = re.compile(r'"error"\s*:\s*\{[^{}]*?"message"\s*:\s*"((?:[^"\\]|\\.)*)"', re.S)


def normalize_object(name: str) -> str:
    """物体名比较前的归一化：去首尾空白并转小写。"""
    return (name or "").strip().lower()


@dataclass(frozen=True)
class Verdict:
    """一次判定的结构化结果。

    won 由服务器在比对目标后填入（with_outcome），解析阶段恒为 False。
    """

    identified_object: str
    comment: str
    won: bool = False

    @classmethod
    def unknown(cls, comment: str) -> "Verdict":
        return cls(UNKNOWN_OBJECT, comment)

    def matches(self, target: str) -> bool:
        return normalize_object(self.identified_object) == normalize_object(target)

    def with_outcome(self, target: str) -> "Verdict":
        return replace(self, won=self.matches(target))

    def to_dict(self) -> Dict[str, str]:
        return {"object": self.identified_object, "comment": self.comment}

    def to_json(self) -> str:
        # 紧凑且不含换行，可以直接放进一行协议消息
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


def _iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """依次产出文本中可解析的顶层 JSON 对象。"""
    idx = text.find("{")
    while idx != -1:
        try:
            obj, end = _decoder.raw_decode(text, idx)
        except ValueError:
            idx = text.find("{", idx + 1)
            continue
        if isinstance(obj, dict):
            yield obj
        idx = text.find("{", end)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _make(obj: Any, comment: Any) -> Verdict:
    name = normalize_object(_as_text(obj)) or UNKNOWN_OBJECT
    return Verdict(name, _as_text(comment))


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return (
            raw.replace('\\"', '"')
            .replace("\\'", "'")
            .replace("\\n", "\n")
            .replace("\\t", "\t")
            .replace("\\\\", "\\")
        )


def _scrape_value(text: str, key: str) -> Optional[str]:
    """找到键名后，取其后第一个引号包围的值。"""
    for pattern in (f'"{key}"', f"'{key}'", key):
        idx = text.find(pattern)
        if idx == -1:
            continue
        m = _QUOTED_RE.search(text, idx + len(pattern))
        return _unescape(m.group(2)) if m else None
    return None


def _error_verdict(obj: Dict[str, Any]) -> Optional[Verdict]:
    err = obj.get("error")
    if err is None:
        return None
    if isinstance(err, dict) and err.get("message"):
        return Verdict.unknown(f"API Error: {_as_text(err['message'])}")
    return Verdict.unknown("API Error occurred")


def _parse(text: str) -> Verdict:
    objects = list(_iter_json_objects(text))

    # 1. 上游错误响应
    for obj in objects:
        found = _error_verdict(obj)
        if found is not None:
            return found
    m = _ERROR_RE.search(text)
    if m:
        return Verdict.unknown(f"API Error: {_unescape(m.group(1))}")

    # 2. 完整 JSON 对象
    for obj in objects:
        if "object" in obj and "comment" in obj:
            return _make(obj["object"], obj["comment"])

    # 3. 键值抓取
    if "object" in text and "comment" in text:
        obj_value = _scrape_value(text, "object")
        comment_value = _scrape_value(text, "comment")
        return _make(
            obj_value if obj_value is not None else UNKNOWN_OBJECT,
            comment_value if comment_value is not None else text,
        )

    # 4. 原文截断
    return Verdict.unknown(text.strip()[:FALLBACK_COMMENT_LEN])


def parse_verdict(text: str) -> Verdict:
    """把模型原始输出解析为 Verdict，永不抛异常。"""
    try:
        return _parse(text)
    except Exception:
        logger.exception("Failed to parse verdict text")
        return Verdict.unknown(PARSE_ERROR_COMMENT)


__all__ = ["Verdict", "parse_verdict", "normalize_object", "UNKNOWN_OBJECT"]
