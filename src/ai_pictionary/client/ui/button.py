import pygame
from typing import Callable, Optional, Tuple


class Button:
    """
    A clickable button with an enabled flag.

    Disabled buttons are drawn greyed out and ignore clicks, which is how the
    client shows that submission is gated while a drawing is being judged.
    """

    def __init__(
        self,
        x,
        y,
        width,
        height,
        text,
        bg_color: Tuple[int, int, int] = (200, 200, 200),
        fg_color: Tuple[int, int, int] = (0, 0, 0),
        font_size=22,
        on_click: Optional[Callable[[], None]] = None,
    ):
        self.rect = pygame.Rect(x, y, width, height)
        self.text = text
        self.bg_color = bg_color
        self.fg_color = fg_color
        self.enabled = True
        # 按钮状态
        self.pressed = False
        self.hovered = False
        self.on_click = on_click
        self.font = pygame.font.SysFont(None, font_size)

    def handle_event(self, event: pygame.event.Event) -> bool:
        """Returns True when the event completed a click."""
        if event.type == pygame.MOUSEMOTION:
            self.hovered = self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.pressed = self.enabled and self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            was_pressed, self.pressed = self.pressed, False
            if was_pressed and self.enabled and self.rect.collidepoint(event.pos):
                if self.on_click:
                    self.on_click()
                return True
        return False

    def draw(self, screen):
        """Draw the button with a shadow; greyed out when disabled."""
        if not self.enabled:
            bg = (210, 210, 210)
        elif self.hovered:
            bg = tuple(min(255, c + 25) for c in self.bg_color)
        else:
            bg = self.bg_color
        offset = 2 if self.pressed else 4
        shadow = self.rect.move(offset, offset)
        pygame.draw.rect(screen, (150, 150, 150), shadow, border_radius=8)
        pygame.draw.rect(screen, bg, self.rect, border_radius=8)
        pygame.draw.rect(screen, (100, 100, 100), self.rect, 2, border_radius=8)  # 边框

        color = self.fg_color if self.enabled else (130, 130, 130)
        surf = self.font.render(self.text, True, color)
        screen.blit(surf, surf.get_rect(center=self.rect.center))
