"""Tests for landmark conversion; no model is loaded."""

from types import SimpleNamespace

import pytest

from gesturecue.detector import HandLandmarkDetector, to_pixel_landmarks
from gesturecue.types import Handedness


def lm(x, y, z=0.0):
    return SimpleNamespace(x=x, y=y, z=z)


def test_to_pixel_landmarks_scales_xy():
    out = to_pixel_landmarks([lm(0.5, 0.25, -0.1), lm(1.0, 1.0)], 640, 480)
    assert out[0] == pytest.approx((320.0, 120.0, -0.1))
    assert out[1] == pytest.approx((640.0, 480.0, 0.0))


def test_missing_z_defaults_to_zero():
    out = to_pixel_landmarks([SimpleNamespace(x=0.1, y=0.1)], 100, 100)
    assert out[0][2] == 0.0


@pytest.mark.parametrize(
    "label, expected",
    [("Right", Handedness.RIGHT), ("Left", Handedness.LEFT), (None, None), ("?", None)],
)
def test_build_hand_keeps_detector_handedness(label, expected):
    det = HandLandmarkDetector.__new__(HandLandmarkDetector)
    hand = det._build_hand([lm(0.5, 0.5)] * 21, label, 0.8, 200, 100)
    assert hand.handedness is expected
    assert hand.handedness_score == 0.8
    assert len(hand.landmarks) == 21
    assert hand.landmarks[0] == pytest.approx((100.0, 50.0, 0.0))
