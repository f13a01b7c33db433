"""Pure geometric predicates over a single hand's landmarks.

All coordinates are in frame pixel space: smaller y is higher on screen.
"""

from __future__ import annotations

import math

from .types import INDEX_MCP, INDEX_TIP, THUMB_TIP, Hand


def extended(hand: Hand, tip_idx: int, pip_idx: int) -> bool:
    return hand[tip_idx][1] < hand[pip_idx][1]


def curled(hand: Hand, tip_idx: int, pip_idx: int) -> bool:
    return hand[tip_idx][1] > hand[pip_idx][1]


def thumb_curled(hand: Hand) -> bool:
    # Thumb folds sideways, so compare x against the index knuckle.
    return hand[THUMB_TIP][0] > hand[INDEX_MCP][0]


def pinch_distance(hand: Hand) -> float:
    """Distance between index tip and thumb tip, in the landmarks' units."""
    ix, iy = hand[INDEX_TIP][0], hand[INDEX_TIP][1]
    tx, ty = hand[THUMB_TIP][0], hand[THUMB_TIP][1]
    return math.hypot(ix - tx, iy - ty)
