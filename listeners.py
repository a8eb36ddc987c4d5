# listeners.py
"""
Keyboard and pointer handling for a particle canvas.

Holding a configured trigger key arms a placement mode; a left click while a
mode is armed adds a target or spawner at the click position. Two more keys
reset every stored position and export the current registries as JSON.
"""
import logging
from typing import Callable, List, Optional, Protocol

import pygame

from configuration import ListenersConfig
from constants import EXPORT_FILENAME
from geometry import Point
from registry import CHANNEL_LISTENER, PointRegistry

# --- Data Contracts ---
#
# class InputAdapter:
#   - key_down(key: str) / key_up(key: str) / click(x, y):
#     platform-neutral entry points, keys named like pygame.key.name().
#   - handle_event(event: pygame.event.Event) -> None:
#     translates KEYDOWN, KEYUP and left MOUSEBUTTONDOWN events.
#   - Invariants:
#     - A click only mutates the registry while a mode is armed.
#     - With both modes armed, the click adds a target.

TARGET_MODE = "target"
SPAWNER_MODE = "spawner"

# Web-style modifier names mapped onto the names pygame reports.
_KEY_ALIASES = {
    "shift": {"shift", "left shift", "right shift"},
    "control": {"control", "ctrl", "left ctrl", "right ctrl"},
    "ctrl": {"control", "ctrl", "left ctrl", "right ctrl"},
    "alt": {"alt", "left alt", "right alt"},
    "meta": {"meta", "left meta", "right meta", "left super", "right super"},
    "enter": {"enter", "return"},
    "escape": {"escape"},
    " ": {"space"},
}


def key_matches(trigger: Optional[str], key: str) -> bool:
    """True when a configured trigger names the pressed key."""
    if not trigger:
        return False
    trigger = trigger.lower()
    key = key.lower()
    return key == trigger or key in _KEY_ALIASES.get(trigger, ())


class DownloadSink(Protocol):
    def offer(self, filename: str, content: str) -> str: ...


class InputAdapter:
    """
    Turns key and pointer input into registry mutations.

    Args:
        registry: The registry clicks add points to.
        listeners: Trigger keys of the canvas.
        on_reset: Called after stored positions were cleared, to reload the
            engine the adapter belongs to.
        download_sink: Receives exported position files.
        surface: Canvas used to translate window clicks into canvas
            coordinates. Without one, event positions are used as they are.
    """
    def __init__(
        self,
        registry: PointRegistry,
        listeners: ListenersConfig,
        on_reset: Callable[[], None],
        download_sink: Optional[DownloadSink] = None,
        surface=None,
    ):
        self.registry = registry
        self.listeners = listeners
        self.on_reset = on_reset
        self.download_sink = download_sink
        self.surface = surface
        self.pressed: List[str] = []

    def key_down(self, key: str) -> None:
        if key_matches(self.listeners.targets.keyboard_trigger, key):
            self.pressed.append(TARGET_MODE)
        elif key_matches(self.listeners.spawners.keyboard_trigger, key):
            self.pressed.append(SPAWNER_MODE)
        elif key_matches(self.listeners.reset_positions, key):
            self.reset_positions()
        elif key_matches(self.listeners.download_positions, key):
            self.download_positions()

    def key_up(self, key: str) -> None:
        if key_matches(self.listeners.targets.keyboard_trigger, key):
            released = TARGET_MODE
        elif key_matches(self.listeners.spawners.keyboard_trigger, key):
            released = SPAWNER_MODE
        else:
            return
        self.pressed = [mode for mode in self.pressed if mode != released]

    def click(self, x: float, y: float) -> None:
        point = Point(float(x), float(y))
        if TARGET_MODE in self.pressed:
            self.registry.add_target(point, CHANNEL_LISTENER)
            logging.info(f"Target added at ({point.x:.0f}, {point.y:.0f}).")
        elif SPAWNER_MODE in self.pressed:
            self.registry.add_spawner(point, CHANNEL_LISTENER)
            logging.info(f"Spawner added at ({point.x:.0f}, {point.y:.0f}).")

    def reset_positions(self) -> None:
        self.registry.reset_storage()
        self.pressed.clear()
        self.on_reset()

    def download_positions(self) -> Optional[str]:
        if self.download_sink is None:
            logging.warning("Export requested but no download sink is configured.")
            return None
        return self.download_sink.offer(EXPORT_FILENAME, self.registry.export())

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            self.key_down(pygame.key.name(event.key))
        elif event.type == pygame.KEYUP:
            self.key_up(pygame.key.name(event.key))
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.surface is None:
                self.click(*event.pos)
            elif self.surface.bounds.collidepoint(event.pos):
                self.click(*self.surface.to_canvas(event.pos))
