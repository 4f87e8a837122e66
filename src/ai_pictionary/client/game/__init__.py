"""
客户端游戏逻辑模块

绘画方的回合/计时状态机：
- 维护回合序号、倒计时、提交闸门和本局赢局标记（只读镜像，来自服务器 WON 字段）
- 手动提交与倒计时到零的自动提交走同一个入口，同一回合只会发出一次 DRAWING
- 每局恰好上报一次 GAMEEND：猜中后点"新游戏"报 1，五轮用完未猜中报 0，
  中途开新局或收到新提示时补报 0

该模块无 UI 依赖，界面层只需把网络事件交给 handle_message，
并在需要时调用 submit / request_new_game。
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from ai_pictionary.shared import protocols
from ai_pictionary.shared.constants import (
	FIRST_ROUND_TIME,
	LAST_ROUND_INDEX,
	NEXT_ROUND_TIME,
	ROUNDS_PER_GAME,
	TICK_INTERVAL,
)
from ai_pictionary.shared.protocols import Message, ProtocolError, target_from_prompt
from ai_pictionary.shared.verdict import Verdict, normalize_object, parse_verdict

logger = logging.getLogger(__name__)


class RoundPhase(Enum):
	IDLE = "idle"  # 未连接或尚未收到提示
	ROUND_ACTIVE = "round_active"
	JUDGING = "judging"
	WON_PAUSED = "won_paused"
	EXHAUSTED = "exhausted"


class Ticker(Protocol):
	def start(self, generation: int) -> None: ...

	def stop(self) -> None: ...


def deadline_for(round_index: int) -> int:
	"""第一轮 60 秒，之后每轮 15 秒"""
	return FIRST_ROUND_TIME if round_index == 0 else NEXT_ROUND_TIME


def format_clock(seconds: int) -> str:
	seconds = max(0, int(seconds))
	return f"{seconds // 60:02d}:{seconds % 60:02d}"


class RoundTimer:
	"""后台倒计时线程：每隔 interval 秒调用一次 on_tick(generation)，start() 会重新计时"""

	def __init__(self, on_tick: Callable[[int], None], interval: float = TICK_INTERVAL):
		self.on_tick = on_tick
		self.interval = interval
		self._stop_event: Optional[threading.Event] = None
		self._thread: Optional[threading.Thread] = None

	@property
	def active(self) -> bool:
		return self._stop_event is not None and not self._stop_event.is_set()

	def start(self, generation: int = 0) -> None:
		self.stop()
		stop_event = threading.Event()
		self._stop_event = stop_event
		self._thread = threading.Thread(target=self._run, args=(stop_event, generation), name="round-timer", daemon=True)
		self._thread.start()

	def stop(self) -> None:
		if self._stop_event is not None:
			self._stop_event.set()

	def _run(self, stop_event: threading.Event, generation: int) -> None:
		while not stop_event.wait(self.interval):
			try:
				self.on_tick(generation)
			except Exception:
				logger.exception("Round timer tick failed")


class RoundController:
	"""绘画方回合控制器。

	Args:
		send: 发送一条协议消息（通常是 NetworkClient.send）
		capture: 返回当前画布的 base64 PNG；失败时返回 None，按空白画提交
		notify: 可选，接收人类可读的状态文本（界面状态栏）
		timer_factory: 以 tick 回调构造计时器；默认使用 RoundTimer 线程，
			传入 None 时不启动计时器（由调用方手动 tick）
	"""

	def __init__(
		self,
		send: Callable[[Message], None],
		capture: Callable[[], Optional[str]],
		notify: Optional[Callable[[str], None]] = None,
		timer_factory: Optional[Callable[[Callable[[int], None]], Ticker]] = RoundTimer,
	):
		self._send = send
		self._capture = capture
		self._notify = notify
		self._lock = threading.RLock()
		self._timer: Optional[Ticker] = timer_factory(self.tick) if timer_factory else None

		self.phase = RoundPhase.IDLE
		self.current_prompt = ""
		self.round_index = 0
		self.is_first_round = True
		self.remaining_seconds = 0
		self.game_won = False
		self.games_played = 0
		self.total_score = 0
		# 每开一轮加一；旧一轮遗留的 tick 带着旧编号，直接丢弃
		self._round_generation = 0
		# 当前这一局是否已经上报过 GAMEEND
		self._outcome_reported = True

	# 只读视图
	@property
	def target(self) -> str:
		return target_from_prompt(self.current_prompt)

	@property
	def can_submit(self) -> bool:
		return self.phase == RoundPhase.ROUND_ACTIVE

	@property
	def can_start_new_game(self) -> bool:
		return self.phase != RoundPhase.IDLE

	@property
	def round_label(self) -> str:
		if self.phase == RoundPhase.IDLE:
			return "Round: -"
		return f"Round: {self.round_index + 1}/{ROUNDS_PER_GAME}"

	@property
	def clock(self) -> str:
		return format_clock(self.remaining_seconds)

	@property
	def stats_label(self) -> str:
		return protocols.format_stats(self.games_played, self.total_score)

	# 入站消息（界面线程调用）
	def handle_message(self, msg: Message) -> None:
		if msg.type == protocols.PROMPT:
			self.handle_prompt(msg.body)
		elif msg.type == protocols.RESULT:
			verdict_json, won = protocols.parse_result(msg.body)
			self.handle_result(parse_verdict(verdict_json), won)
		elif msg.type == protocols.STATS:
			try:
				self.games_played, self.total_score = protocols.parse_stats(msg.body)
			except ProtocolError as e:
				logger.warning(f"Ignoring stats message: {e}")
		else:
			self._say(f"Server: {msg.body}")

	def handle_prompt(self, prompt: str) -> None:
		"""新目标：补报上一局（未上报则记输），然后从第一轮开始"""
		with self._lock:
			self._finalize(False)
			self.current_prompt = prompt
			self.round_index = 0
			self.is_first_round = True
			self.game_won = False
			self._outcome_reported = False
			self._start_round()
			self._say(f"New game started! Prompt: {prompt}")

	def handle_result(self, verdict: Verdict, won: bool) -> None:
		"""判定结果；won 是服务器推送的本局累计赢局标记"""
		with self._lock:
			if self.phase != RoundPhase.JUDGING:
				logger.info(f"Ignoring result outside of judging: {verdict.identified_object!r}")
				return
			self._stop_timer()
			self.game_won = won
			target = self.target
			tag = "CORRECT" if normalize_object(verdict.identified_object) == target else "INCORRECT"
			self._say(f"[{tag}] The AI identified it as: {verdict.identified_object} (target: {target})")
			self._say(f"AI Comment: {verdict.comment}")

			if won:
				self.phase = RoundPhase.WON_PAUSED
				self._say("Congratulations! You got it right! Click 'New Game' to play again.")
			elif self.round_index < LAST_ROUND_INDEX:
				self.round_index += 1
				self.is_first_round = False
				self._start_round()
			else:
				self.phase = RoundPhase.EXHAUSTED
				self._finalize(False)
				self._say(f"Game over! You have completed all {ROUNDS_PER_GAME} rounds of drawing.")

	def handle_disconnect(self) -> None:
		with self._lock:
			self._stop_timer()
			self.phase = RoundPhase.IDLE
			self.remaining_seconds = 0
			self._outcome_reported = True
			self._say("Disconnected from server.")

	# 玩家操作 / 计时器
	def tick(self, generation: Optional[int] = None) -> None:
		"""每秒一次：倒计时减一，到零自动提交。

		generation 为计时器启动时拿到的轮次编号；不传时视为当前轮（手动驱动）。
		"""
		with self._lock:
			if self.phase != RoundPhase.ROUND_ACTIVE:
				return
			if generation is not None and generation != self._round_generation:
				logger.debug(f"Dropping stale tick from round generation {generation}")
				return
			self.remaining_seconds = max(0, self.remaining_seconds - 1)
			if self.remaining_seconds <= 0:
				self.submit(auto=True)

	def submit(self, auto: bool = False) -> bool:
		"""提交当前画作；闸门保证同一回合只发出一次 DRAWING"""
		with self._lock:
			if self.phase != RoundPhase.ROUND_ACTIVE:
				return False
			# 先关闸再发送
			self.phase = RoundPhase.JUDGING
			self._stop_timer()
			try:
				image = self._capture()
			except Exception:
				logger.exception("Failed to capture drawing")
				image = None
			if image is None:
				self._say("Failed to get image data! Submitting a blank drawing.")
				image = ""
			self._send(protocols.drawing_message(image))
			how = "Time's up! Auto-submitted" if auto else "Submitted"
			self._say(f"{how} round {self.round_index + 1} drawing, waiting for AI judgment...")
			return True

	def request_new_game(self) -> bool:
		"""开新局：先上报当前局结果（赢 1 / 否则 0），再请求新目标"""
		with self._lock:
			if self.phase == RoundPhase.IDLE:
				return False
			self._stop_timer()
			self._finalize(self.game_won)
			# 等待新提示期间不再接受旧局的判定结果
			self.phase = RoundPhase.IDLE
			self._send(protocols.new_game_message())
			self._say("Requesting new game...")
			return True

	# 内部方法
	def _start_round(self) -> None:
		self._round_generation += 1
		self.remaining_seconds = deadline_for(self.round_index)
		self.phase = RoundPhase.ROUND_ACTIVE
		if self._timer is not None:
			self._timer.start(self._round_generation)

	def _stop_timer(self) -> None:
		if self._timer is not None:
			self._timer.stop()

	def _finalize(self, won: bool) -> None:
		if self._outcome_reported:
			return
		self._outcome_reported = True
		self._send(protocols.game_end_message(won))

	def _say(self, text: str) -> None:
		logger.info(text)
		if self._notify:
			self._notify(text)


__all__ = ["RoundController", "RoundPhase", "RoundTimer", "deadline_for", "format_clock"]
