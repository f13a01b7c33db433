from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple


Landmark = Tuple[float, float, float]  # (x_px, y_px, z_rel)
Hand = Sequence[Landmark]  # length 21

HAND_LANDMARK_COUNT = 21

WRIST = 0
THUMB_TIP = 4
INDEX_MCP, INDEX_PIP, INDEX_TIP = 5, 6, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP = 9, 10, 12
RING_MCP, RING_PIP, RING_TIP = 13, 14, 16
PINKY_MCP, PINKY_PIP, PINKY_TIP = 17, 18, 20


class Handedness(Enum):
    """Physical hand as reported by the detector (before mirroring)."""

    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def parse(cls, label: Optional[str]) -> Optional["Handedness"]:
        lab = (label or "").strip().lower()
        if lab == "left":
            return cls.LEFT
        if lab == "right":
            return cls.RIGHT
        return None


class GestureLabel(Enum):
    NONE = "none"
    POINT = "point"
    FIST = "fist"
    OK_SIGN = "ok_sign"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: Dict[GestureLabel, str] = {
    GestureLabel.NONE: "Detected",
    GestureLabel.POINT: "Point",
    GestureLabel.FIST: "Fist",
    GestureLabel.OK_SIGN: "OK Sign",
}

# Status shown for a slot with no hand assigned this frame.
ABSENT_STATUS = "None"
DEFAULT_ACTIVE = "default"


class HandSlot(Enum):
    """On-screen role of a hand (after mirroring)."""

    LEFT = "left"
    RIGHT = "right"


def is_well_formed(hand: Optional[Hand]) -> bool:
    return hand is not None and len(hand) == HAND_LANDMARK_COUNT


@dataclass(frozen=True)
class DetectedHand:
    """One hand returned by the detector for a single frame."""

    handedness: Optional[Handedness]
    handedness_score: Optional[float]
    landmarks: List[Landmark]  # frame pixel space


@dataclass(frozen=True)
class FrameResult:
    """Aggregate output of one loop tick."""

    statuses: Dict[HandSlot, str]
    edges: Dict[HandSlot, FrozenSet[GestureLabel]]
    active_gesture: GestureLabel = GestureLabel.NONE
    hands: List[DetectedHand] = field(default_factory=list)

    @property
    def active_name(self) -> str:
        if self.active_gesture is GestureLabel.NONE:
            return DEFAULT_ACTIVE
        return self.active_gesture.value


@dataclass(frozen=True)
class TrackerSnapshot:
    """Read-only view of the loop state for display."""

    tracking: bool
    model_ready: bool
    left_status: str = ABSENT_STATUS
    right_status: str = ABSENT_STATUS
    active_gesture: GestureLabel = GestureLabel.NONE
