"""
Pytest configuration and shared fixtures for AI Pictionary.
"""

import os
import sys
import threading
import time

import pytest

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from ai_pictionary.server.game import RandomTargetSelector  # noqa: E402
from ai_pictionary.server.judge import JudgementDispatcher  # noqa: E402
from ai_pictionary.server.stats import StatsStore  # noqa: E402


class FakeVision:
    """Vision backend returning canned replies in order (last one repeats)."""

    def __init__(self, *replies):
        self.replies = list(replies) or ['{"object":"unknown","comment":"?"}']
        self.calls = []
        self.gate = None

    def analyze_drawing(self, image_b64, prompt):
        self.calls.append((image_b64, prompt))
        if self.gate is not None:
            self.gate.wait(5)
        reply = self.replies[0] if len(self.replies) == 1 else self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FixedSelector(RandomTargetSelector):
    """Selector that hands out targets from a fixed list (last one repeats)."""

    def __init__(self, *targets):
        super().__init__(objects=targets)
        self._queue = list(targets)

    def choose(self):
        return self._queue[0] if len(self._queue) == 1 else self._queue.pop(0)


class Outbox:
    """Collects messages sent by a session or controller."""

    def __init__(self):
        self.messages = []
        self.event = threading.Event()

    def __call__(self, msg):
        self.messages.append(msg)
        self.event.set()

    def lines(self):
        return [m.encode() for m in self.messages]

    def of_type(self, kind):
        return [m for m in self.messages if m.type == kind]


@pytest.fixture
def stats_store(tmp_path):
    return StatsStore(tmp_path / "stats.db")


@pytest.fixture
def fake_vision():
    return FakeVision()


@pytest.fixture
def dispatcher(fake_vision):
    d = JudgementDispatcher(fake_vision, max_workers=2)
    yield d
    d.shutdown(wait=True)


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def make_selector():
    return FixedSelector


@pytest.fixture
def make_vision():
    return FakeVision


@pytest.fixture
def wait_until():
    def _wait(predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()

    return _wait
