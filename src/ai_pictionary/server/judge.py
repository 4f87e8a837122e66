"""
AI 判定分发

把一次视觉模型调用放到后台线程池执行，会话的读循环不必等待网络返回。
所有失败（网络异常、未配置密钥、解析异常）都被吸收为 object="unknown"
的判定结果，对玩家而言就是一次普通的猜错。
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Protocol

from ai_pictionary.shared.verdict import Verdict, parse_verdict

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
FAILURE_COMMENT = "Error occurred. Please try again."

JudgeCallback = Callable[[Verdict], None]


class VisionBackend(Protocol):
    def analyze_drawing(self, image_b64: str, prompt: str) -> str: ...


class JudgementDispatcher:
    """有界线程池上的判定调度器，由所有会话共享。"""

    def __init__(self, vision: VisionBackend, max_workers: int = DEFAULT_WORKERS) -> None:
        self.vision = vision
        self._pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="judge")

    def judge(self, image_b64: str, prompt: str, target: str) -> Verdict:
        """同步执行一次判定并与目标比对，永不抛异常。"""
        try:
            raw = self.vision.analyze_drawing(image_b64, prompt)
        except Exception as e:
            logger.warning(f"Vision call failed: {e}")
            return Verdict.unknown(FAILURE_COMMENT)
        return parse_verdict(raw).with_outcome(target)

    def submit(self, image_b64: str, prompt: str, target: str, callback: JudgeCallback) -> Future:
        """后台判定；完成后在工作线程中调用 callback(verdict)。"""

        def _run() -> Verdict:
            verdict = self.judge(image_b64, prompt, target)
            try:
                callback(verdict)
            except Exception:
                logger.exception("Judgement callback failed")
            return verdict

        return self._pool.submit(_run)

    def shutdown(self, wait: bool = False) -> None:
        self._pool.shutdown(wait=wait)


__all__ = ["JudgementDispatcher", "VisionBackend", "FAILURE_COMMENT"]
