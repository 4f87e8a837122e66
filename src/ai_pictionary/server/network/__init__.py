"""
判定服务器网络层

处理 Socket 连接、按行分帧与消息路由：每个连接一个读线程，
读到的每一行交给该连接的 GameSession。
"""

from __future__ import annotations

import logging
import socket
import threading
from functools import partial
from typing import Dict, Optional, Tuple

from ai_pictionary.shared.constants import DEFAULT_HOST, DEFAULT_PORT, BUFFER_SIZE
from ai_pictionary.shared.protocols import LineBuffer, Message, ProtocolError, frame
from ai_pictionary.server.game import GameSession, RandomTargetSelector
from ai_pictionary.server.judge import JudgementDispatcher
from ai_pictionary.server.stats import StatsStore

logger = logging.getLogger(__name__)


class ClientSession:
	"""客户端连接，封装 socket、接收缓冲与游戏会话"""

	def __init__(self, conn: socket.socket, addr: Tuple[str, int]):
		self.conn = conn
		self.addr = addr
		self.key = conn.fileno()
		self.buffer = LineBuffer()
		self.game: Optional[GameSession] = None
		# // 读线程与判定线程都会发送，保证整行写出
		self._send_lock = threading.Lock()

	@property
	def peer(self) -> str:
		return f"{self.addr[0]}:{self.addr[1]}"

	def send(self, msg: Message) -> None:
		data = frame(msg.encode())
		with self._send_lock:
			self.conn.sendall(data)

	def close(self) -> None:
		# // 先 shutdown，唤醒阻塞在 recv 上的读线程
		try:
			self.conn.shutdown(socket.SHUT_RDWR)
		except OSError:
			pass
		try:
			self.conn.close()
		except OSError:
			pass


class NetworkServer:
	"""网络服务器，负责连接管理与消息路由"""

	def __init__(
		self,
		host: str = DEFAULT_HOST,
		port: int = DEFAULT_PORT,
		stats: Optional[StatsStore] = None,
		dispatcher: Optional[JudgementDispatcher] = None,
		selector: Optional[RandomTargetSelector] = None,
	):
		if stats is None or dispatcher is None:
			raise ValueError("NetworkServer needs a stats store and a judgement dispatcher")
		self.host = host
		self.port = port
		self.stats = stats
		self.dispatcher = dispatcher
		self.selector = selector or RandomTargetSelector()
		self._sock: Optional[socket.socket] = None
		self._accept_thread: Optional[threading.Thread] = None
		self._running = threading.Event()
		self._lock = threading.Lock()
		self.sessions: Dict[int, ClientSession] = {}

	# 服务器生命周期
	def start(self) -> None:
		"""绑定端口并启动 Accept 线程；port=0 时绑定后回写实际端口"""
		self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		# // 允许快速重启服务
		self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		self._sock.bind((self.host, self.port))
		self._sock.listen(32)
		self.port = self._sock.getsockname()[1]
		self._running.set()
		self._accept_thread = threading.Thread(target=self._accept_loop, name="accept-loop", daemon=True)
		self._accept_thread.start()
		logger.info(f"Listening on {self.host}:{self.port}")

	def stop(self) -> None:
		"""停止服务器并关闭所有会话"""
		self._running.clear()
		try:
			if self._sock:
				# // 触发 accept 退出
				try:
					self._sock.shutdown(socket.SHUT_RDWR)
				except OSError:
					pass
				self._sock.close()
		finally:
			self._sock = None
		with self._lock:
			sessions = list(self.sessions.values())
		for sess in sessions:
			self._on_disconnect(sess)

	# 接入与会话线程
	def _accept_loop(self) -> None:
		"""Accept 新连接并为其创建会话线程"""
		while self._running.is_set():
			try:
				conn, addr = self._sock.accept()  # type: ignore[union-attr]
			except OSError:
				# // 套接字已关闭或出错，退出循环
				break
			sess = ClientSession(conn, addr)
			sess.game = GameSession(
				send=partial(self._send, sess),
				stats=self.stats,
				dispatcher=self.dispatcher,
				selector=self.selector,
				peer=sess.peer,
			)
			with self._lock:
				self.sessions[sess.key] = sess
			logger.info(f"New client connected: {sess.peer}")
			t = threading.Thread(target=self._session_loop, args=(sess,), name=f"session-{sess.peer}", daemon=True)
			t.start()

	def _session_loop(self, sess: ClientSession) -> None:
		"""单会话读循环：按行切分并交给 GameSession，断开即结束"""
		conn = sess.conn
		try:
			while self._running.is_set():
				data = conn.recv(BUFFER_SIZE)
				if not data:
					break
				for line in sess.buffer.feed(data):
					self._handle_line(sess, line)
		except ProtocolError as e:
			logger.warning(f"Framing error from {sess.peer}: {e}")
		except OSError:
			pass
		finally:
			self._on_disconnect(sess)

	def _handle_line(self, sess: ClientSession, line: str) -> None:
		if sess.game is None:
			return
		try:
			sess.game.handle_line(line)
		except Exception:
			# // 单条消息处理失败不影响连接
			logger.exception(f"Error handling message from {sess.peer}")

	# 发送
	def _send(self, sess: ClientSession, msg: Message) -> None:
		try:
			sess.send(msg)
		except OSError as e:
			logger.warning(f"Failed to send message to {sess.peer}: {e}")
			self._on_disconnect(sess)

	# 断开清理
	def _on_disconnect(self, sess: ClientSession) -> None:
		try:
			if sess.game is not None:
				sess.game.close()
			sess.close()
		finally:
			with self._lock:
				# // fd 可能已被新连接复用
				if self.sessions.get(sess.key) is sess:
					del self.sessions[sess.key]


__all__ = [
	"ClientSession",
	"NetworkServer",
]
