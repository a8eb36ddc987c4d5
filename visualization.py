# visualization.py
"""
Handles drawing particle canvases with Pygame.

A Window plays the part of the hosting page: canvases are appended to it and
composited onto the display every frame. Each CanvasSurface is an alpha
surface that the particle pool draws lines, squares and labels onto.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import pygame

from configuration import CanvasConfig
from constants import (
    MARKER_FONT_SIZE, WINDOW_BACKGROUND_COLOR, WINDOW_SIZE, WINDOW_TITLE
)
from geometry import Point

# --- Data Contracts ---
#
# class CanvasSurface:
#   - __init__(self, config: CanvasConfig):
#     - Side Effects: Creates an SRCALPHA surface of the configured size.
#   - fill / line / rect / text: draw with any color accepted by
#     parse_color. Fully transparent colors draw nothing.
#   - bounds: the pygame.Rect the canvas covers on the window.
#
# class Window:
#   - append(canvas) / remove(canvas): manage the composited canvases.
#   - present() -> None: paints the window and flips the display.
#   - canvas_at(pos) -> Optional[CanvasSurface]: topmost canvas under pos.
#     main.dispatch_event uses it to route clicks to a single engine.

TRANSPARENT = pygame.Color(0, 0, 0, 0)

_color_cache: Dict[Any, pygame.Color] = {}


def parse_color(value: Any) -> pygame.Color:
    """
    Converts a configured color to a pygame Color.

    Accepts CSS-like names, "transparent", "#rgb", "#rgba", "#rrggbb",
    "#rrggbbaa" and RGB(A) sequences. Unknown values fall back to white.
    """
    key = tuple(value) if isinstance(value, list) else value
    try:
        cached = _color_cache.get(key)
    except TypeError:
        # Unhashable values are parsed every time.
        key = None
        cached = None
    if cached is not None:
        return cached

    try:
        if isinstance(value, str):
            text = value.strip().lower()
            if text == "transparent":
                color = pygame.Color(TRANSPARENT)
            elif text.startswith("#") and len(text) in (4, 5):
                color = pygame.Color("#" + "".join(c * 2 for c in text[1:]))
            else:
                color = pygame.Color(text)
        else:
            color = pygame.Color(*value)
    except (ValueError, TypeError) as e:
        logging.error(f"Could not parse color {value!r}: {e}. Falling back to white.")
        color = pygame.Color(255, 255, 255)

    if key is not None:
        _color_cache[key] = color
    return color


class CanvasSurface:
    """
    The drawing surface of one particle canvas.
    """
    def __init__(self, config: CanvasConfig, offset: Tuple[int, int] = (0, 0)):
        self.id = config.id
        self.width = config.width
        self.height = config.height
        self.smoothing = config.smoothing
        self.offset = offset
        self.surface = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        self._font: Optional[pygame.font.Font] = None
        logging.info(
            f"Canvas '{self.id}' initialized ({self.width}x{self.height}, "
            f"smoothing={self.smoothing})."
        )

    @property
    def bounds(self) -> pygame.Rect:
        """Area the canvas covers on the window."""
        return pygame.Rect(self.offset, (self.width, self.height))

    def _get_font(self) -> pygame.font.Font:
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, MARKER_FONT_SIZE)
        return self._font

    def fill(self, color: Any) -> None:
        self.surface.fill(parse_color(color))

    def line(self, color: Any, start: Point, end: Point, width: float) -> None:
        c = parse_color(color)
        if c.a == 0:
            return
        line_width = max(1, int(round(width)))
        if line_width == 1 and self.smoothing in ("medium", "high"):
            pygame.draw.aaline(self.surface, c, start, end)
        else:
            pygame.draw.line(self.surface, c, start, end, line_width)

    def rect(self, color: Any, x: float, y: float, size: float) -> None:
        c = parse_color(color)
        if c.a == 0 or size <= 0:
            return
        pygame.draw.rect(self.surface, c, pygame.Rect(int(x), int(y), int(round(size)), int(round(size))))

    def text(self, color: Any, text: str, x: float, y: float) -> None:
        c = parse_color(color)
        if c.a == 0:
            return
        label = self._get_font().render(text, True, (c.r, c.g, c.b))
        label.set_alpha(c.a)
        # Anchored at the baseline-left corner, like a canvas fillText.
        self.surface.blit(label, label.get_rect(bottomleft=(int(x), int(y))))

    def to_canvas(self, pos: Tuple[int, int]) -> Point:
        return Point(pos[0] - self.offset[0], pos[1] - self.offset[1])


class Window:
    """
    The display window that hosts one or more particle canvases.
    """
    def __init__(
        self,
        size: Tuple[int, int] = WINDOW_SIZE,
        background_color: Any = WINDOW_BACKGROUND_COLOR,
        title: str = WINDOW_TITLE,
        fullscreen: bool = False,
    ):
        pygame.init()
        pygame.font.init()

        if fullscreen:
            display_info = pygame.display.Info()
            size = (display_info.current_w, display_info.current_h)
            self.screen = pygame.display.set_mode(size, pygame.FULLSCREEN)
        else:
            self.screen = pygame.display.set_mode(size)

        pygame.display.set_caption(title)
        self.size = size
        self.background_color = parse_color(background_color)
        self.clock = pygame.time.Clock()
        self.canvases: List[CanvasSurface] = []

        logging.info(f"Window initialized with Pygame display ({size[0]}x{size[1]}).")

    def append(self, canvas: CanvasSurface) -> None:
        self.canvases.append(canvas)

    def remove(self, canvas: CanvasSurface) -> None:
        if canvas in self.canvases:
            self.canvases.remove(canvas)

    def __contains__(self, canvas: CanvasSurface) -> bool:
        return canvas in self.canvases

    def canvas_at(self, pos: Tuple[int, int]) -> Optional[CanvasSurface]:
        for canvas in reversed(self.canvases):
            if canvas.bounds.collidepoint(pos):
                return canvas
        return None

    def present(self) -> None:
        self.screen.fill(self.background_color)
        for canvas in self.canvases:
            self.screen.blit(canvas.surface, canvas.offset)
        pygame.display.flip()

    def close(self) -> None:
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
