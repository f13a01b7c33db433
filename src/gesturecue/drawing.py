from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .types import (
    INDEX_MCP,
    INDEX_PIP,
    INDEX_TIP,
    MIDDLE_MCP,
    MIDDLE_PIP,
    MIDDLE_TIP,
    PINKY_MCP,
    PINKY_PIP,
    PINKY_TIP,
    RING_MCP,
    RING_PIP,
    RING_TIP,
    THUMB_TIP,
    WRIST,
    Hand,
    is_well_formed,
)

# Joint chains of the skeleton; consecutive ids are joined by a bone.
_THUMB = (WRIST, 1, 2, 3, THUMB_TIP)
_FINGERS = [
    (mcp, pip, tip - 1, tip)
    for mcp, pip, tip in (
        (INDEX_MCP, INDEX_PIP, INDEX_TIP),
        (MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP),
        (RING_MCP, RING_PIP, RING_TIP),
        (PINKY_MCP, PINKY_PIP, PINKY_TIP),
    )
]
_PALM = (WRIST, INDEX_MCP, MIDDLE_MCP, RING_MCP, PINKY_MCP, WRIST)

HAND_CONNECTIONS: List[Tuple[int, int]] = [
    (a, b) for chain in (_THUMB, *_FINGERS, _PALM) for a, b in zip(chain, chain[1:])
]

BONE_COLOR = (0, 255, 0)  # BGR
JOINT_FILL = (255, 0, 255)
JOINT_OUTLINE = (255, 255, 255)
JOINT_RADIUS = 5


class RenderError(RuntimeError):
    """Drawing failed on a surface; treated as a configuration error."""


def new_surface(width: int, height: int) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError(f"surface size must be positive, got {width}x{height}")
    return np.zeros((int(height), int(width), 3), dtype=np.uint8)


def surface_matches(surface: Optional[np.ndarray], width: int, height: int) -> bool:
    return surface is not None and surface.shape[0] == height and surface.shape[1] == width


def clear(surface: np.ndarray) -> np.ndarray:
    surface[:] = 0
    return surface


def _pt(lm) -> Tuple[int, int]:
    return (int(round(float(lm[0]))), int(round(float(lm[1]))))


def render(surface: np.ndarray, hands: Iterable[Hand]) -> np.ndarray:
    """Clear `surface` and draw the joint graph of every hand onto it."""
    clear(surface)
    try:
        for hand in hands:
            if not is_well_formed(hand):
                continue
            pts = [_pt(lm) for lm in hand]
            for a, b in HAND_CONNECTIONS:
                cv2.line(surface, pts[a], pts[b], BONE_COLOR, 2, cv2.LINE_AA)
            for pt in pts:
                cv2.circle(surface, pt, JOINT_RADIUS, JOINT_FILL, -1, lineType=cv2.LINE_AA)
                cv2.circle(surface, pt, JOINT_RADIUS, JOINT_OUTLINE, 1, lineType=cv2.LINE_AA)
    except (cv2.error, TypeError, ValueError) as e:
        raise RenderError(f"could not draw hand skeleton on {surface.shape} surface: {e}") from e
    return surface


def overlay(frame, surface: np.ndarray):
    """Copy every non-black surface pixel onto `frame` (same size)."""
    if frame.shape[:2] != surface.shape[:2]:
        surface = cv2.resize(surface, (frame.shape[1], frame.shape[0]), interpolation=cv2.INTER_NEAREST)
    mask = surface.any(axis=2)
    frame[mask] = surface[mask]
    return frame


HUD_FONT = cv2.FONT_HERSHEY_SIMPLEX
HUD_SCALE = 0.6
HUD_TEXT = (255, 255, 255)
HUD_BACKDROP = (32, 32, 32)


def draw_label(frame, text: str, org: Tuple[int, int], color=HUD_TEXT, pad: int = 4):
    """Write `text` with its baseline at `org` on a dark box so it stays legible over video."""
    (tw, th), base = cv2.getTextSize(text, HUD_FONT, HUD_SCALE, 1)
    x, y = org
    cv2.rectangle(frame, (x - pad, y - th - pad), (x + tw + pad, y + base + pad), HUD_BACKDROP, -1)
    cv2.putText(frame, text, org, HUD_FONT, HUD_SCALE, color, 1, cv2.LINE_AA)
    return frame


def draw_status_panel(frame, lines: Sequence[str], origin: Tuple[int, int] = (12, 28), line_h: int = 26):
    x, y = origin
    for i, line in enumerate(lines):
        draw_label(frame, line, (x, y + i * line_h))
    return frame
