from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, Optional

from .classifier import GestureClassifier
from .types import (
    ABSENT_STATUS,
    DetectedHand,
    GestureLabel,
    Hand,
    HandSlot,
    Handedness,
    is_well_formed,
)

logger = logging.getLogger(__name__)

_NO_EVENTS: FrozenSet[GestureLabel] = frozenset()


@dataclass(frozen=True)
class HandSlotState:
    """
    Debouncing state for one on-screen hand slot.

    `last_edge_gesture` is the gesture whose edge already fired during the
    current unbroken hold; it blocks re-firing while the pose is held.
    """

    last_edge_gesture: Optional[GestureLabel] = None
    present: bool = False
    status: str = ABSENT_STATUS


@dataclass(frozen=True)
class SlotUpdate:
    state: HandSlotState
    events: FrozenSet[GestureLabel]
    status: str


def update(state: HandSlotState, hand: Optional[Hand], classifier: GestureClassifier) -> SlotUpdate:
    if not is_well_formed(hand):
        if hand is not None:
            logger.debug("dropping hand with %d landmarks", len(hand))
        new_state = HandSlotState()
        return SlotUpdate(state=new_state, events=_NO_EVENTS, status=new_state.status)

    label = classifier.classify(hand)
    status = label.display_name

    if label is GestureLabel.NONE:
        new_state = replace(state, last_edge_gesture=None, present=True, status=status)
        return SlotUpdate(state=new_state, events=_NO_EVENTS, status=status)

    events = _NO_EVENTS
    if state.last_edge_gesture is not label:
        events = frozenset({label})
    new_state = replace(state, last_edge_gesture=label, present=True, status=status)
    return SlotUpdate(state=new_state, events=events, status=status)


def slot_for_handedness(handedness: Optional[Handedness]) -> Optional[HandSlot]:
    # The feed is mirrored for a selfie view, so the detector's right hand
    # shows up on the left of the screen.
    if handedness is Handedness.RIGHT:
        return HandSlot.LEFT
    if handedness is Handedness.LEFT:
        return HandSlot.RIGHT
    return None


def assign_slots(hands: Iterable[DetectedHand]) -> Dict[HandSlot, DetectedHand]:
    """Pick at most one hand per slot; the first hand seen for a slot wins."""
    out: Dict[HandSlot, DetectedHand] = {}
    for hand in hands:
        slot = slot_for_handedness(hand.handedness)
        if slot is None:
            continue
        if slot in out:
            logger.warning("detector returned more than one %s hand; ignoring extra", hand.handedness.value)
            continue
        out[slot] = hand
    return out


class SlotBank:
    """Fixed mapping of the two on-screen slots to their debouncing state."""

    def __init__(self, classifier: Optional[GestureClassifier] = None) -> None:
        self.classifier = classifier or GestureClassifier()
        self._states: Dict[HandSlot, HandSlotState] = {slot: HandSlotState() for slot in HandSlot}

    def __getitem__(self, slot: HandSlot) -> HandSlotState:
        return self._states[slot]

    def update(self, assigned: Dict[HandSlot, DetectedHand]) -> Dict[HandSlot, SlotUpdate]:
        results: Dict[HandSlot, SlotUpdate] = {}
        for slot in HandSlot:
            hand = assigned.get(slot)
            res = update(self._states[slot], hand.landmarks if hand is not None else None, self.classifier)
            self._states[slot] = res.state
            results[slot] = res
        return results

    def reset(self) -> None:
        for slot in HandSlot:
            self._states[slot] = HandSlotState()

    def statuses(self) -> Dict[HandSlot, str]:
        return {slot: st.status for slot, st in self._states.items()}
