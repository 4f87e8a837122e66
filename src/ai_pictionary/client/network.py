"""
绘画方网络连接：连接判定服务器并发送用户名握手，
接收线程把服务器下发的 STATS / PROMPT / RESULT 放入事件队列，由界面线程取出交给回合控制器。
"""
from __future__ import annotations

import logging
import socket
import threading
from queue import SimpleQueue, Empty
from typing import List, Optional

from ai_pictionary.shared.constants import (
    BUFFER_SIZE,
    CONNECT_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PORT,
)
from ai_pictionary.shared.protocols import LineBuffer, Message, ProtocolError, frame

logger = logging.getLogger(__name__)

# 接收线程退出时放入队列的本地事件（不会出现在线上）
DISCONNECTED = "DISCONNECTED"


class NetworkClient:
    """线程驱动的轻量客户端：接收线程只负责入队，由界面线程统一取出处理。"""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.host = host
        self.port = port
        self.sock: Optional[socket.socket] = None
        self._recv_thread: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._send_lock = threading.Lock()
        self._buf = LineBuffer()
        self.events: SimpleQueue[Message] = SimpleQueue()
        self.username: Optional[str] = None

    @property
    def connected(self) -> bool:
        return bool(self.sock) and self._running.is_set()

    def connect(self, username: str) -> bool:
        """连接服务器并发送用户名握手。"""
        if self.connected:
            return True
        self.username = username.strip()
        if not self.username:
            raise ValueError("username must not be empty")
        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            # 设置连接超时
            self.sock.settimeout(CONNECT_TIMEOUT)
            self.sock.connect((self.host, self.port))
            # 连接成功后取消超时，接收线程阻塞读取
            self.sock.settimeout(None)
            self._buf = LineBuffer()
            self._running.set()
            self._recv_thread = threading.Thread(target=self._recv_loop, name="client-recv", daemon=True)
            self._recv_thread.start()
            self._send_line(self.username)
            return self.connected
        except (OSError, socket.timeout) as e:
            logger.warning(f"连接失败: {e}")
            self.close()
            return False

    def send(self, msg: Message) -> None:
        self._send_line(msg.encode())

    def drain_events(self) -> List[Message]:
        items: List[Message] = []
        while True:
            try:
                items.append(self.events.get_nowait())
            except Empty:
                break
        return items

    def close(self) -> None:
        self._running.clear()
        try:
            if self.sock:
                try:
                    self.sock.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
                self.sock.close()
        finally:
            self.sock = None

    # 内部方法
    def _send_line(self, line: str) -> None:
        if not self.sock:
            return
        try:
            data = frame(line)
            with self._send_lock:
                self.sock.sendall(data)
        except OSError as e:
            logger.warning(f"发送失败: {e}")
            self.close()

    def _recv_loop(self) -> None:
        sock = self.sock
        try:
            while self._running.is_set() and sock is not None:
                data = sock.recv(BUFFER_SIZE)
                if not data:
                    break
                for line in self._buf.feed(data):
                    self.events.put(Message.decode(line))
        except ProtocolError as e:
            logger.warning(f"帧错误: {e}")
        except OSError:
            pass
        finally:
            # 已经重连到新 socket 时不要误关新连接
            if self.sock is None or self.sock is sock:
                self.close()
                self.events.put(Message(DISCONNECTED))


__all__ = ["NetworkClient", "DISCONNECTED"]
