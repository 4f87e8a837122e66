import pygame
from typing import Callable, Optional, Tuple

from ai_pictionary.shared.constants import MAX_NAME_LEN


class TextInput:
    """
    简易文本输入框：用于输入用户名。

    - 点击激活；Enter 提交内容；Esc 取消激活；Backspace 删除字符
    - 长度上限与服务器的用户名上限一致
    - 禁用时（已连接）不响应输入
    """

    def __init__(
        self,
        rect: pygame.Rect,
        font_size: int = 22,
        text_color: Tuple[int, int, int] = (0, 0, 0),
        bg_color: Tuple[int, int, int] = (250, 250, 255),
        placeholder: str = "Username",
        max_length: int = MAX_NAME_LEN,
    ) -> None:
        self.rect = rect
        self.text = ""
        self.placeholder = placeholder
        self.text_color = text_color
        self.bg_color = bg_color
        self.max_length = max_length
        self.active = False
        self.enabled = True
        self.font = pygame.font.SysFont(None, font_size)
        # 提交回调：Enter 时以当前文本调用
        self.on_submit: Optional[Callable[[str], None]] = None

    def handle_event(self, event: pygame.event.Event) -> None:
        if not self.enabled:
            self.active = False
            return
        if event.type == pygame.MOUSEBUTTONDOWN:
            was_active = self.active
            self.active = self.rect.collidepoint(event.pos)
            if self.active and not was_active:
                pygame.key.start_text_input()
            elif was_active and not self.active:
                pygame.key.stop_text_input()
        elif event.type == pygame.KEYDOWN and self.active:
            if event.key == pygame.K_RETURN:
                if self.on_submit and self.text.strip():
                    self.on_submit(self.text.strip())
            elif event.key == pygame.K_ESCAPE:
                self.active = False
                pygame.key.stop_text_input()
            elif event.key == pygame.K_BACKSPACE:
                self.text = self.text[:-1]
        elif event.type == pygame.TEXTINPUT and self.active:
            remaining = self.max_length - len(self.text)
            if remaining > 0:
                self.text += event.text[:remaining]

    def draw(self, screen: pygame.Surface) -> None:
        bg = self.bg_color if self.enabled else (225, 225, 225)
        pygame.draw.rect(screen, bg, self.rect, border_radius=6)
        # 激活时蓝色高亮边框
        border_color = (80, 120, 200) if self.active else (180, 180, 180)
        pygame.draw.rect(screen, border_color, self.rect, 2, border_radius=6)

        txt = self.text if (self.text or self.active) else self.placeholder
        color = self.text_color if (self.text or self.active) else (130, 130, 130)
        surf = self.font.render(txt, True, color)
        screen.blit(surf, (self.rect.x + 8, self.rect.y + (self.rect.height - surf.get_height()) // 2))
