import os

# Pygame must never open a real window or audio device during tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest

from configuration import CanvasConfig, ParticleSpec


class RecordingSurface:
    """Drawing surface that records every call instead of drawing."""

    def __init__(self, config=None):
        self.config = config
        self.calls = []

    def fill(self, color):
        self.calls.append(('fill', color))

    def line(self, color, start, end, width):
        self.calls.append(('line', color, start, end, width))

    def rect(self, color, x, y, size):
        self.calls.append(('rect', color, x, y, size))

    def text(self, color, text, x, y):
        self.calls.append(('text', color, text, x, y))

    def of(self, kind):
        return [call for call in self.calls if call[0] == kind]


class RecordingSink:
    def __init__(self):
        self.files = {}

    def offer(self, filename, content):
        self.files[filename] = content
        return filename


def make_config(**sections):
    """A valid engine configuration; keyword sections replace the defaults."""
    config = {
        'canvas': {
            'id': 'test',
            'appendTo': [],
            'backgroundColor': '#000000',
            'size': {'width': 400, 'height': 300},
        },
    }
    canvas = sections.pop('canvas', None)
    if canvas:
        config['canvas'].update(canvas)
    config.update(sections)
    return config


def make_canvas(width=400, height=300, threshold=100):
    return CanvasConfig(
        id='test', append_to=[], background_color='#000000',
        width=width, height=height, threshold=threshold,
    )


def make_spec(**fields):
    return ParticleSpec(**fields)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def fixed_clock():
    return lambda: 0.0
