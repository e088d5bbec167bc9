"""
Shared fixtures: fake mouse backend, fake model client, fake screen.

Nothing here touches the network, the real display or the real cursor.
"""

import pytest
from PIL import Image

from bluebutton.geometry.models import Point, ScreenBounds
from bluebutton.input.mouse import MouseController
from bluebutton.vision.ollama_client import ModelResponse


class FakeMouseBackend:
    """Records commands; position follows moves unless drift is set."""

    def __init__(self, drift=(0, 0)):
        self.pos = Point(0, 0)
        self.drift = drift
        self.calls = []

    def move_to(self, x, y):
        self.calls.append(('move_to', x, y))
        self.pos = Point(x + self.drift[0], y + self.drift[1])

    def position(self):
        return self.pos

    def mouse_down(self):
        self.calls.append(('mouse_down',))

    def mouse_up(self):
        self.calls.append(('mouse_up',))

    @property
    def clicks(self):
        return sum(1 for call in self.calls if call[0] == 'mouse_up')


class FakeClient:
    """Stands in for OllamaClient; replies in order, or raises."""

    model = "fake-vl"
    ollama_host = "http://ollama.test:11434"

    def __init__(self, replies=None, error=None, available=True):
        self.replies = list(replies or [])
        self.error = error
        self.available = available
        self.requests = []

    def is_available(self, check_model=False):
        return self.available

    def generate(self, prompt, image=None, options=None):
        self.requests.append({'prompt': prompt, 'image': image, 'options': options})
        if self.error is not None:
            raise self.error
        text = self.replies.pop(0) if self.replies else ""
        return ModelResponse(text=text, done=True, eval_count=42, eval_duration=1_500_000_000)


class FakeCapturer:
    """Returns blank images and remembers the rectangles it was asked for."""

    def __init__(self, bounds=ScreenBounds(1920, 1080)):
        self.bounds = bounds
        self.captured = []

    def get_screen_bounds(self):
        return self.bounds

    def capture_full(self):
        self.captured.append(None)
        return Image.new('RGB', (self.bounds.width // 10, self.bounds.height // 10))

    def capture_region(self, region):
        self.captured.append(region)
        return Image.new('RGB', (region.width, region.height), (0, 90, 200))

    def close(self):
        pass


@pytest.fixture
def mouse_backend():
    return FakeMouseBackend()


@pytest.fixture
def mouse(mouse_backend):
    return MouseController(backend=mouse_backend, press_release_gap=0)


@pytest.fixture
def screen():
    return ScreenBounds(1920, 1080)


@pytest.fixture
def capturer(screen):
    return FakeCapturer(screen)
