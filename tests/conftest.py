"""Fake collaborators for the detection loop."""

import numpy as np
import pytest


class FakeSource:
    def __init__(self, width: int = 640, height: int = 480) -> None:
        self.width = width
        self.height = height
        self.reads = 0

    def read(self):
        self.reads += 1
        return np.zeros((self.height, self.width, 3), dtype=np.uint8)


class ScriptedDetector:
    """Returns queued per-frame results; an Exception entry is raised instead."""

    def __init__(self, frames=None) -> None:
        self.frames = list(frames or [])
        self.calls = 0

    def push(self, *hands) -> None:
        self.frames.append(list(hands))

    def detect(self, frame):
        self.calls += 1
        if not self.frames:
            return []
        item = self.frames.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeCue:
    def __init__(self) -> None:
        self.plays = 0
        self.starts = 0

    def start(self) -> bool:
        self.starts += 1
        return True

    def play(self) -> None:
        self.plays += 1


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def detector() -> ScriptedDetector:
    return ScriptedDetector()


@pytest.fixture
def cue() -> FakeCue:
    return FakeCue()
