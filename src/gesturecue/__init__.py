from .classifier import GestureClassifier, classify
from .loop import DetectionLoop
from .slots import HandSlotState, SlotBank
from .types import DetectedHand, FrameResult, GestureLabel, HandSlot, Handedness, TrackerSnapshot

__all__ = [
    "DetectedHand",
    "DetectionLoop",
    "FrameResult",
    "GestureClassifier",
    "GestureLabel",
    "HandSlot",
    "HandSlotState",
    "Handedness",
    "SlotBank",
    "TrackerSnapshot",
    "classify",
]
