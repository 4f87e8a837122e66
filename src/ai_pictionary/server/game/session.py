"""
单连接游戏会话

每个连接对应一个 GameSession，保存当前目标物体与本局是否已猜中（赢局锁存）。
会话不直接接触 socket：所有出站消息都通过构造时注入的 send 回调发出，
网络层只负责把收到的每一行交给 handle_line。

状态流转：
    AWAITING_HANDSHAKE -> TARGET_ASSIGNED <-> JUDGING
    任意状态 -> CLOSED（断开连接）

判定策略：
- 同一会话同时最多一个待完成的判定；判定进行中再收到 DRAWING 直接拒绝（记录日志，不回复）。
  正常情况下客户端的提交闸门已经保证这一点。
- 每局有递增的 game_id；旧局的判定结果在新局开始后才返回时直接丢弃，
  不会锁存新局的赢局标记，也不会推进新局的回合。
- 计分只由客户端的 GAMEEND 触发，会话本身猜中时不会写库。
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from functools import partial
from typing import Callable, Optional

from ai_pictionary.server.game.catalog import RandomTargetSelector, generate_prompt
from ai_pictionary.server.judge import JudgementDispatcher
from ai_pictionary.server.stats import StatsStore
from ai_pictionary.shared import protocols
from ai_pictionary.shared.protocols import Message, ProtocolError
from ai_pictionary.shared.verdict import Verdict

logger = logging.getLogger(__name__)


class SessionState(Enum):
    AWAITING_HANDSHAKE = "awaiting_handshake"
    TARGET_ASSIGNED = "target_assigned"
    JUDGING = "judging"
    CLOSED = "closed"


class GameSession:
    """服务器端单连接状态机"""

    def __init__(
        self,
        send: Callable[[Message], None],
        stats: StatsStore,
        dispatcher: JudgementDispatcher,
        selector: Optional[RandomTargetSelector] = None,
        peer: str = "",
    ) -> None:
        self._send = send
        self.stats = stats
        self.dispatcher = dispatcher
        self.selector = selector or RandomTargetSelector()
        self.peer = peer
        self.state = SessionState.AWAITING_HANDSHAKE
        self.username: Optional[str] = None
        self.current_target: Optional[str] = None
        self.game_won = False
        self.game_id = 0
        # 判定回调来自线程池，与读循环并发
        self._lock = threading.RLock()

    @property
    def judging(self) -> bool:
        return self.state == SessionState.JUDGING

    # 入站消息
    def handle_line(self, line: str) -> None:
        """处理读循环收到的一行。"""
        if self.state == SessionState.CLOSED:
            return
        if self.state == SessionState.AWAITING_HANDSHAKE:
            self.handshake(line)
            return

        msg = Message.decode(line)
        if msg.type == protocols.DRAWING:
            self.submit_drawing(msg.body)
        elif msg.type == protocols.NEWGAME:
            self.start_game()
        elif msg.type == protocols.GAMEEND:
            try:
                won = protocols.parse_game_end(msg.body)
            except ProtocolError as e:
                logger.warning(f"Ignoring malformed message from {self.username}: {e}")
                return
            self.end_game(won)
        else:
            logger.warning(f"Ignoring unexpected message from {self.username}: {line[:80]!r}")

    def handshake(self, raw_username: str) -> None:
        """首条消息即用户名：先下发战绩，再开第一局。"""
        with self._lock:
            self.username = protocols.normalize_username(raw_username)
            logger.info(f"Client connected: {self.username} ({self.peer})")
            games, score = self.stats.get_stats(self.username)
            self._send(protocols.stats_message(games, score))
            self.start_game()

    def start_game(self) -> str:
        """随机选一个新目标（允许与上一局相同），重置赢局标记并下发提示。"""
        with self._lock:
            self.game_id += 1
            self.current_target = self.selector.choose()
            self.game_won = False
            self.state = SessionState.TARGET_ASSIGNED
            prompt = generate_prompt(self.current_target)
            self._send(protocols.prompt_message(prompt))
            logger.info(f"Sent prompt to {self.username}: {prompt}")
            return prompt

    def end_game(self, won: bool) -> None:
        """记录一局结果（每次调用都算一局）并回传最新战绩。"""
        with self._lock:
            if self.username is None:
                return
            self.stats.record_game(self.username, won)
            games, score = self.stats.get_stats(self.username)
            self._send(protocols.stats_message(games, score))
            logger.info(f"Game ended for {self.username}: {'Won (1 point)' if won else 'Lost (0 points)'}")

    def submit_drawing(self, image_b64: str) -> bool:
        """把一幅画交给判定线程池，立即返回；判定中再次提交会被拒绝。"""
        with self._lock:
            if self.state != SessionState.TARGET_ASSIGNED or self.current_target is None:
                logger.warning(f"Rejected drawing from {self.username}: state={self.state.value}")
                return False
            self.state = SessionState.JUDGING
            target = self.current_target
            game_id = self.game_id
        self.dispatcher.submit(
            image_b64,
            generate_prompt(target),
            target,
            partial(self._on_verdict, game_id),
        )
        return True

    def _on_verdict(self, game_id: int, verdict: Verdict) -> None:
        with self._lock:
            if self.state == SessionState.CLOSED:
                return
            if game_id != self.game_id:
                logger.info(f"Dropping stale verdict for {self.username} (game {game_id}, now {self.game_id})")
                return
            # 锁存：本局一旦猜中，后续结果都带 WON:true
            self.game_won = self.game_won or verdict.won
            self.state = SessionState.TARGET_ASSIGNED
            logger.info(
                f"Judged {self.username}: saw {verdict.identified_object!r}, "
                f"target {self.current_target!r}, game won={self.game_won}"
            )
            self._send(protocols.result_message(verdict.to_json(), self.game_won))

    def close(self) -> None:
        with self._lock:
            if self.state != SessionState.CLOSED:
                logger.info(f"Client {self.username or self.peer} disconnected")
            self.state = SessionState.CLOSED


__all__ = ["GameSession", "SessionState"]
