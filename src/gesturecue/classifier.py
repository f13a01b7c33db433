from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .geometry import curled, extended, pinch_distance, thumb_curled
from .types import (
    INDEX_PIP,
    INDEX_TIP,
    MIDDLE_PIP,
    MIDDLE_TIP,
    PINKY_PIP,
    PINKY_TIP,
    RING_PIP,
    RING_TIP,
    GestureLabel,
    Hand,
    is_well_formed,
)

logger = logging.getLogger(__name__)

# Pixel units at the frame's native resolution; scale it with the capture size.
DEFAULT_PINCH_THRESHOLD_PX = 40.0

Predicate = Callable[[Hand], bool]


@dataclass(frozen=True)
class GestureRule:
    label: GestureLabel
    predicate: Predicate


def _lower_three_extended(hand: Hand) -> bool:
    return (
        extended(hand, MIDDLE_TIP, MIDDLE_PIP)
        and extended(hand, RING_TIP, RING_PIP)
        and extended(hand, PINKY_TIP, PINKY_PIP)
    )


def _lower_three_curled(hand: Hand) -> bool:
    return (
        curled(hand, MIDDLE_TIP, MIDDLE_PIP)
        and curled(hand, RING_TIP, RING_PIP)
        and curled(hand, PINKY_TIP, PINKY_PIP)
    )


def is_point(hand: Hand) -> bool:
    return thumb_curled(hand) and extended(hand, INDEX_TIP, INDEX_PIP) and _lower_three_curled(hand)


def is_fist(hand: Hand) -> bool:
    return thumb_curled(hand) and curled(hand, INDEX_TIP, INDEX_PIP) and _lower_three_curled(hand)


def ok_sign_predicate(pinch_threshold_px: float) -> Predicate:
    def is_ok_sign(hand: Hand) -> bool:
        return (
            _lower_three_extended(hand)
            and not extended(hand, INDEX_TIP, INDEX_PIP)
            and pinch_distance(hand) < pinch_threshold_px
        )

    return is_ok_sign


def default_rules(pinch_threshold_px: float = DEFAULT_PINCH_THRESHOLD_PX) -> List[GestureRule]:
    """Rules in priority order; the first match wins."""
    return [
        GestureRule(GestureLabel.OK_SIGN, ok_sign_predicate(pinch_threshold_px)),
        GestureRule(GestureLabel.POINT, is_point),
        GestureRule(GestureLabel.FIST, is_fist),
    ]


class GestureClassifier:
    """
    Frame-local static pose classifier.

    No history is kept: the same landmarks always give the same label.
    """

    def __init__(
        self,
        pinch_threshold_px: float = DEFAULT_PINCH_THRESHOLD_PX,
        rules: Optional[Sequence[GestureRule]] = None,
    ) -> None:
        if pinch_threshold_px <= 0:
            raise ValueError(f"pinch_threshold_px must be positive, got {pinch_threshold_px}")
        self.pinch_threshold_px = float(pinch_threshold_px)
        self.rules: List[GestureRule] = list(rules) if rules is not None else default_rules(self.pinch_threshold_px)

    def classify(self, hand: Optional[Hand]) -> GestureLabel:
        if not is_well_formed(hand):
            return GestureLabel.NONE
        try:
            for rule in self.rules:
                if rule.predicate(hand):
                    return rule.label
        except (IndexError, TypeError, ValueError) as e:
            logger.debug("classification failed, treating as none: %s", e)
        return GestureLabel.NONE

    __call__ = classify


_default_classifier = GestureClassifier()


def classify(hand: Optional[Hand]) -> GestureLabel:
    return _default_classifier.classify(hand)
