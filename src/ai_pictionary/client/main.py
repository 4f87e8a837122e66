"""
客户端主程序入口

启动 Pygame 客户端：输入用户名连接服务器，在画布上作画并按回合提交。
"""

import argparse
import json
import logging
import time
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

import pygame

from ai_pictionary.client.game import RoundController
from ai_pictionary.client.network import DISCONNECTED, NetworkClient
from ai_pictionary.client.ui import Button, Canvas, TextInput
from ai_pictionary.shared import protocols
from ai_pictionary.shared.constants import (
    ACCENT,
    BACKGROUND,
    BRUSH_COLORS,
    BRUSH_SIZES,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_HOST,
    DEFAULT_PORT,
    FPS,
    TICK_INTERVAL,
    WINDOW_HEIGHT,
    WINDOW_TITLE,
    WINDOW_WIDTH,
)

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path.cwd() / "settings.json"
TICK_EVENT = pygame.USEREVENT + 1
STATUS_LINES = 8

DEFAULT_SETTINGS: Dict[str, Any] = {
    "player_name": "",
    "server_host": DEFAULT_HOST,
    "server_port": DEFAULT_PORT,
}


def load_settings(path: Path = SETTINGS_PATH) -> Dict[str, Any]:
    """从 JSON 文件加载设置（如果存在）。"""
    settings = dict(DEFAULT_SETTINGS)
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                for k in DEFAULT_SETTINGS:
                    if k in data:
                        settings[k] = data[k]
    except (OSError, ValueError) as exc:
        logger.warning("加载设置失败: %s", exc)
    return settings


def save_settings(settings: Dict[str, Any], path: Path = SETTINGS_PATH) -> None:
    try:
        path.write_text(json.dumps(settings, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.warning("保存设置失败: %s", exc)


class PygameTicker:
    """用 pygame 定时事件驱动倒计时，tick 与其他界面事件在同一线程处理。

    每个定时事件带上轮次编号，重启后队列里残留的旧事件会被控制器丢弃。
    """

    def start(self, generation: int) -> None:
        pygame.time.set_timer(pygame.event.Event(TICK_EVENT, generation=generation), int(TICK_INTERVAL * 1000))

    def stop(self) -> None:
        pygame.time.set_timer(TICK_EVENT, 0)


class App:
    def __init__(self, settings: Dict[str, Any]):
        self.settings = settings
        pygame.init()
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont(None, 24)
        self.small_font = pygame.font.SysFont(None, 20)

        self.net = NetworkClient(settings["server_host"], int(settings["server_port"]))
        self.canvas = Canvas(20, 110, CANVAS_WIDTH, CANVAS_HEIGHT)
        self.status: Deque[str] = deque(maxlen=STATUS_LINES)
        self.controller = RoundController(
            send=self.net.send,
            capture=self.canvas.to_base64,
            notify=self.show_message,
            timer_factory=lambda _tick: PygameTicker(),
        )

        self.username_input = TextInput(pygame.Rect(20, 20, 260, 36))
        self.username_input.text = str(settings.get("player_name") or "")
        self.username_input.on_submit = lambda _name: self.connect()
        panel_x = CANVAS_WIDTH + 50
        self.connect_button = Button(300, 20, 200, 36, "Connect to Server", (50, 100, 150), on_click=self.connect)
        self.clear_button = Button(panel_x, 380, 200, 44, "Clear Canvas", (220, 120, 120), on_click=self.canvas.clear)
        self.submit_button = Button(panel_x, 440, 200, 44, "Submit Drawing", (120, 200, 120), on_click=self.submit)
        self.new_game_button = Button(panel_x, 500, 200, 44, "New Game", (255, 170, 80), on_click=self.new_game)
        self.tool_buttons: List[Button] = []
        for i, size in enumerate(BRUSH_SIZES):
            self.tool_buttons.append(
                Button(panel_x + i * 40, 140, 36, 36, str(size), on_click=lambda s=size: self._set_brush(s))
            )
        for i, color in enumerate(BRUSH_COLORS):
            self.tool_buttons.append(
                Button(panel_x + i * 66, 230, 60, 36, "", bg_color=color, on_click=lambda c=color: self._set_color(c))
            )
        self._refresh_controls()

    # 状态栏
    def show_message(self, text: str) -> None:
        self.status.append(f"[{time.strftime('%H:%M:%S')}] {text}")

    # 按钮回调
    def connect(self) -> None:
        username = self.username_input.text.strip()
        if not username:
            self.show_message("Please enter a username!")
            return
        if self.net.connected:
            self.show_message("Already connected to server!")
            return
        if self.net.connect(username):
            self.show_message("Successfully connected to server!")
            self.settings["player_name"] = username
            save_settings(self.settings)
        else:
            self.show_message(f"Connection failed: {self.net.host}:{self.net.port}")
        self._refresh_controls()

    def submit(self) -> None:
        if not self.net.connected:
            self.show_message("Not connected to server!")
            return
        self.controller.submit()

    def new_game(self) -> None:
        if not self.net.connected:
            self.show_message("Not connected to server!")
            return
        self.controller.request_new_game()

    def _set_brush(self, size: int) -> None:
        self.canvas.brush_size = size

    def _set_color(self, color) -> None:
        self.canvas.color = color

    # 主循环
    def process_network(self) -> None:
        for msg in self.net.drain_events():
            if msg.type == DISCONNECTED:
                self.controller.handle_disconnect()
            elif msg.type == protocols.PROMPT:
                self.canvas.clear()
                self.controller.handle_message(msg)
            else:
                self.controller.handle_message(msg)

    def _refresh_controls(self) -> None:
        connected = self.net.connected
        self.connect_button.enabled = not connected
        self.username_input.enabled = not connected
        self.submit_button.enabled = connected and self.controller.can_submit
        self.new_game_button.enabled = connected and self.controller.can_start_new_game

    def _widgets(self) -> List[Any]:
        return [self.connect_button, self.clear_button, self.submit_button, self.new_game_button] + self.tool_buttons

    def draw(self) -> None:
        self.screen.fill(BACKGROUND)
        self.username_input.draw(self.screen)
        for w in self._widgets():
            w.draw(self.screen)
        self.canvas.draw(self.screen)

        prompt = self.controller.current_prompt or "Waiting for connection..."
        labels = [
            (f"Prompt: {prompt}", 20, 70),
            (self.controller.round_label, 420, 70),
            (f"Time: {self.controller.clock}", 560, 70),
            (f"Stats: {self.controller.stats_label}", 700, 70),
            ("Brush Size:", CANVAS_WIDTH + 50, 115),
            ("Color:", CANVAS_WIDTH + 50, 205),
        ]
        for text, x, y in labels:
            self.screen.blit(self.font.render(text, True, (50, 50, 50)), (x, y))

        y = 730
        pygame.draw.line(self.screen, ACCENT, (20, y - 8), (WINDOW_WIDTH - 20, y - 8), 2)
        for line in self.status:
            self.screen.blit(self.small_font.render(line, True, (50, 50, 50)), (20, y))
            y += 14
        pygame.display.flip()

    def run(self) -> None:
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == TICK_EVENT:
                    self.controller.tick(getattr(event, "generation", None))
                else:
                    self.username_input.handle_event(event)
                    if self.net.connected:
                        self.canvas.handle_event(event)
                    for w in self._widgets():
                        w.handle_event(event)
            self.process_network()
            self._refresh_controls()
            self.draw()
            self.clock.tick(FPS)
        self.net.close()
        pygame.quit()


def main(argv: Optional[List[str]] = None) -> None:
    """客户端入口"""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    settings = load_settings()
    ap = argparse.ArgumentParser(description="AI-Pictionary drawing client")
    ap.add_argument("--host", default=settings["server_host"])
    ap.add_argument("--port", type=int, default=settings["server_port"])
    args = ap.parse_args(argv)
    settings["server_host"] = args.host
    settings["server_port"] = args.port
    App(settings).run()


if __name__ == "__main__":
    main()
