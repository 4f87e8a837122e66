"""
用户界面模块

提供绘画方客户端的基础 UI 组件：
- 画布 Canvas：本地自由绘图，并导出为 base64 PNG 供提交
- 按钮 Button、文本输入框 TextInput（用户名）

该模块与 Pygame 紧耦合用于渲染，但不负责网络与回合逻辑；
回合逻辑由 `ai_pictionary.client.game.RoundController` 提供，通过回调进行联动。
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import pygame

from ai_pictionary.shared.constants import BLACK, DEFAULT_BRUSH_SIZE, GRAY, WHITE

from .button import Button
from .text_input import TextInput

logger = logging.getLogger(__name__)


@dataclass
class Stroke:
	"""一条绘图笔划（由多个点组成，画布坐标）"""

	color: Tuple[int, int, int]
	size: int
	points: List[Tuple[int, int]] = field(default_factory=list)


class Canvas:
	"""画布组件：在离屏 Surface 上绘制，提交时导出 PNG"""

	def __init__(self, x: int, y: int, width: int, height: int):
		self.rect = pygame.Rect(x, y, width, height)
		self.surface = pygame.Surface((width, height))
		self.surface.fill(WHITE)
		self.color: Tuple[int, int, int] = BLACK
		self.brush_size = DEFAULT_BRUSH_SIZE
		self._strokes: List[Stroke] = []
		self._current: Optional[Stroke] = None

	@property
	def is_blank(self) -> bool:
		return not self._strokes

	# 绘图流程（画布坐标）
	def begin_stroke(self, pos: Tuple[int, int]) -> None:
		self._current = Stroke(color=self.color, size=max(1, int(self.brush_size)))
		self._strokes.append(self._current)
		self.add_point(pos)

	def add_point(self, pos: Tuple[int, int]) -> None:
		if not self._current:
			return
		p = (int(pos[0]), int(pos[1]))
		pts = self._current.points
		if pts:
			pygame.draw.line(self.surface, self._current.color, pts[-1], p, self._current.size)
		# // 圆形笔头，避免折线拐角出现缺口
		pygame.draw.circle(self.surface, self._current.color, p, max(1, self._current.size // 2))
		pts.append(p)

	def end_stroke(self) -> None:
		self._current = None

	def clear(self) -> None:
		self._strokes.clear()
		self._current = None
		self.surface.fill(WHITE)

	def handle_event(self, event: pygame.event.Event) -> None:
		if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and self.rect.collidepoint(event.pos):
			self.begin_stroke(self._local(event.pos))
		elif event.type == pygame.MOUSEMOTION and self._current is not None:
			self.add_point(self._local(event.pos))
		elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
			self.end_stroke()

	def draw(self, screen: pygame.Surface) -> None:
		screen.blit(self.surface, self.rect.topleft)
		pygame.draw.rect(screen, GRAY, self.rect, 2)

	# 导出
	def to_png_bytes(self) -> bytes:
		buf = io.BytesIO()
		pygame.image.save(self.surface, buf, "drawing.png")
		return buf.getvalue()

	def to_base64(self) -> Optional[str]:
		"""当前画面的 base64 PNG；编码失败返回 None"""
		try:
			return base64.b64encode(self.to_png_bytes()).decode("ascii")
		except (pygame.error, OSError) as e:
			logger.warning(f"Failed to encode canvas: {e}")
			return None

	def _local(self, pos: Tuple[int, int]) -> Tuple[int, int]:
		return pos[0] - self.rect.x, pos[1] - self.rect.y


__all__ = ["Canvas", "Stroke", "Button", "TextInput"]
