import json

import pygame
import pytest

from configuration import ListenerConfig, ListenersConfig
from geometry import Point
from listeners import SPAWNER_MODE, TARGET_MODE, InputAdapter, key_matches
from registry import PointRegistry
from visualization import CanvasSurface

from conftest import RecordingSink, make_canvas


@pytest.fixture(autouse=True)
def pygame_session():
    pygame.init()
    yield
    pygame.quit()


def make_adapter(sink=None, surface=None, on_reset=None):
    registry = PointRegistry('test')
    listeners = ListenersConfig(
        reset_positions='r',
        download_positions='d',
        spawners=ListenerConfig(keyboard_trigger='Control'),
        targets=ListenerConfig(keyboard_trigger='Shift'),
    )
    resets = []
    adapter = InputAdapter(
        registry, listeners, on_reset or (lambda: resets.append(True)), sink, surface
    )
    return adapter, registry, resets


@pytest.mark.parametrize("trigger, key, expected", [
    ('Shift', 'left shift', True),
    ('Shift', 'right shift', True),
    ('Control', 'left ctrl', True),
    ('Alt', 'right alt', True),
    ('Enter', 'return', True),
    (' ', 'space', True),
    ('r', 'r', True),
    ('R', 'r', True),
    ('Shift', 'left ctrl', False),
    (None, 'r', False),
])
def test_key_matches(trigger, key, expected):
    assert key_matches(trigger, key) is expected


def test_click_without_a_mode_does_nothing():
    adapter, registry, _ = make_adapter()
    adapter.click(10, 20)
    assert registry.targets == ()
    assert registry.spawners == ()


def test_held_trigger_arms_placement():
    adapter, registry, _ = make_adapter()
    adapter.key_down('left shift')
    adapter.click(10, 20)
    adapter.key_up('left shift')
    adapter.key_down('left ctrl')
    adapter.click(30, 40)
    adapter.key_up('left ctrl')
    adapter.click(50, 60)
    assert registry.targets == (Point(10, 20),)
    assert registry.spawners == (Point(30, 40),)


def test_target_mode_wins_when_both_are_held():
    adapter, registry, _ = make_adapter()
    adapter.key_down('left ctrl')
    adapter.key_down('left shift')
    adapter.click(1, 2)
    assert registry.targets == (Point(1, 2),)
    assert registry.spawners == ()


def test_key_up_releases_only_its_own_mode():
    adapter, registry, _ = make_adapter()
    adapter.key_down('left shift')
    adapter.key_down('right shift')
    adapter.key_down('left ctrl')
    adapter.key_up('left shift')
    assert adapter.pressed == [SPAWNER_MODE]
    adapter.click(1, 2)
    assert registry.spawners == (Point(1, 2),)


def test_unrelated_key_up_keeps_modes():
    adapter, _, _ = make_adapter()
    adapter.key_down('left shift')
    adapter.key_up('a')
    assert adapter.pressed == [TARGET_MODE]


def test_reset_key_clears_modes_and_reloads():
    adapter, _, resets = make_adapter()
    adapter.key_down('left shift')
    adapter.key_down('r')
    assert adapter.pressed == []
    assert resets == [True]


def test_download_key_offers_the_export():
    sink = RecordingSink()
    adapter, registry, _ = make_adapter(sink=sink)
    registry.load([Point(1, 2)], [Point(3, 4)])
    adapter.key_down('d')
    exported = json.loads(sink.files['entropy-particles.json'])
    assert exported['spawners'] == [{'x': 1, 'y': 2}]
    assert exported['targets'] == [{'x': 3, 'y': 4}]


def test_download_without_a_sink_is_skipped():
    adapter, _, _ = make_adapter()
    assert adapter.download_positions() is None


def test_pygame_events_drive_the_adapter():
    adapter, registry, _ = make_adapter()
    adapter.handle_event(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_LSHIFT))
    adapter.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=3, pos=(5, 5)))
    adapter.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(7, 8)))
    adapter.handle_event(pygame.event.Event(pygame.KEYUP, key=pygame.K_LSHIFT))
    adapter.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(9, 9)))
    assert registry.targets == (Point(7, 8),)


def test_window_clicks_are_translated_to_canvas_coordinates():
    surface = CanvasSurface(make_canvas(width=100, height=100), offset=(200, 50))
    adapter, registry, _ = make_adapter(surface=surface)
    adapter.key_down('left shift')
    adapter.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(210, 70)))
    adapter.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(10, 10)))
    assert registry.targets == (Point(10, 20),)
