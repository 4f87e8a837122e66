"""
消息协议

客户端与服务器之间的线协议：UTF-8 文本，每条消息一行（以 "\\n" 结尾），
通过前缀区分类型：

    客户端 -> 服务器:  <username>（仅首条）, DRAWING:<base64-png>, NEWGAME, GAMEEND:<0|1>
    服务器 -> 客户端:  STATS:Games: <n> | Score: <m>, PROMPT:<text>, RESULT:<json>|WON:<true|false>

首条消息（用户名握手）没有前缀，由服务器会话自行处理。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple

from ai_pictionary.shared.constants import (
    MAX_LINE_BYTES,
    MAX_NAME_LEN,
    MSG_DRAWING,
    MSG_GAMEEND,
    MSG_NEWGAME,
    MSG_PROMPT,
    MSG_RESULT,
    MSG_STATS,
    UNKNOWN_USER,
    WON_SEPARATOR,
)

STATS = "STATS"
PROMPT = "PROMPT"
DRAWING = "DRAWING"
RESULT = "RESULT"
NEWGAME = "NEWGAME"
GAMEEND = "GAMEEND"
UNKNOWN = "UNKNOWN"

# 前缀 -> 消息类型（NEWGAME 没有消息体，单独匹配）
_PREFIXES = (
    (MSG_STATS, STATS),
    (MSG_PROMPT, PROMPT),
    (MSG_DRAWING, DRAWING),
    (MSG_RESULT, RESULT),
    (MSG_GAMEEND, GAMEEND),
)

_STATS_RE = re.compile(r"Games:\s*(-?\d+)\s*\|\s*Score:\s*(-?\d+)")


class ProtocolError(ValueError):
    """消息格式不合法或帧超长。"""


@dataclass(frozen=True)
class Message:
    """一条协议消息：类型 + 消息体（不含前缀）。"""

    type: str
    body: str = ""

    def encode(self) -> str:
        """编码为一行文本（不含换行符）。"""
        if self.type == NEWGAME:
            return MSG_NEWGAME
        for prefix, kind in _PREFIXES:
            if kind == self.type:
                return prefix + self.body
        raise ProtocolError(f"cannot encode message type: {self.type}")

    @classmethod
    def decode(cls, line: str) -> "Message":
        """解析一行文本；无法识别的前缀返回 UNKNOWN 类型而不是抛异常。"""
        if line == MSG_NEWGAME:
            return cls(NEWGAME)
        for prefix, kind in _PREFIXES:
            if line.startswith(prefix):
                return cls(kind, line[len(prefix):])
        return cls(UNKNOWN, line)


class LineBuffer:
    """按换行符切分字节流的接收缓冲。"""

    def __init__(self, max_line: int = MAX_LINE_BYTES) -> None:
        self.max_line = max_line
        self._buf = bytearray()

    def feed(self, data: bytes) -> List[str]:
        """追加收到的字节，返回本次凑齐的完整行。"""
        self._buf.extend(data)
        lines: List[str] = []
        while True:
            try:
                idx = self._buf.index(ord("\n"))
            except ValueError:
                break
            raw = self._buf[:idx]
            del self._buf[: idx + 1]
            if len(raw) > self.max_line:
                raise ProtocolError("line too long")
            lines.append(raw.decode("utf-8", errors="replace").rstrip("\r"))
        if len(self._buf) > self.max_line:
            raise ProtocolError("line too long")
        return lines


def frame(line: str) -> bytes:
    """一行文本 -> 线上字节（追加换行符）。"""
    if "\n" in line:
        raise ProtocolError("message must not contain a newline")
    return (line + "\n").encode("utf-8")


VOWELS = ("a", "e", "i", "o", "u")


def generate_prompt(target: str) -> str:
    """按首字母是否为元音生成 "Draw a ..." / "Draw an ..."。"""
    if target.strip().lower().startswith(VOWELS):
        return f"Draw an {target}"
    return f"Draw a {target}"


def target_from_prompt(prompt: str) -> str:
    """'Draw an elephant' -> 'elephant'"""
    text = prompt.strip()
    for prefix in ("Draw an ", "Draw a "):
        if text.startswith(prefix):
            text = text[len(prefix):]
            break
    return text.strip().lower()


# 构造辅助
def normalize_username(raw: str) -> str:
    name = raw.strip()[:MAX_NAME_LEN]
    return name or UNKNOWN_USER


def format_stats(games: int, score: int) -> str:
    return f"Games: {games} | Score: {score}"


def stats_message(games: int, score: int) -> Message:
    return Message(STATS, format_stats(games, score))


def prompt_message(prompt: str) -> Message:
    return Message(PROMPT, prompt)


def drawing_message(image_b64: str) -> Message:
    return Message(DRAWING, image_b64)


def new_game_message() -> Message:
    return Message(NEWGAME)


def game_end_message(won: bool) -> Message:
    return Message(GAMEEND, "1" if won else "0")


def result_message(verdict_json: str, won: bool) -> Message:
    return Message(RESULT, f"{verdict_json}{WON_SEPARATOR}{'true' if won else 'false'}")


# 解析辅助
def parse_stats(body: str) -> Tuple[int, int]:
    """'Games: 3 | Score: 1' -> (3, 1)"""
    m = _STATS_RE.search(body)
    if not m:
        raise ProtocolError(f"bad stats body: {body!r}")
    return int(m.group(1)), int(m.group(2))


def parse_result(body: str) -> Tuple[str, bool]:
    """拆分 RESULT 消息体为 (verdict_json, won)。

    以最后一个 "|WON:" 为准，避免评论文本中出现同样字样时误判；
    缺少 WON 字段时视为 False。
    """
    head, sep, tail = body.rpartition(WON_SEPARATOR)
    if not sep:
        return body, False
    return head, tail.strip().lower() == "true"


def parse_game_end(body: str) -> bool:
    value = body.strip()
    if value not in ("0", "1"):
        raise ProtocolError(f"bad GAMEEND value: {body!r}")
    return value == "1"


__all__ = [
    "Message",
    "LineBuffer",
    "ProtocolError",
    "frame",
    "normalize_username",
    "generate_prompt",
    "target_from_prompt",
    "format_stats",
    "stats_message",
    "prompt_message",
    "drawing_message",
    "new_game_message",
    "game_end_message",
    "result_message",
    "parse_stats",
    "parse_result",
    "parse_game_end",
    "STATS",
    "PROMPT",
    "DRAWING",
    "RESULT",
    "NEWGAME",
    "GAMEEND",
    "UNKNOWN",
]
