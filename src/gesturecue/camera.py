"""Thin wrapper around OpenCV VideoCapture."""

from __future__ import annotations

import logging
import platform
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig

logger = logging.getLogger(__name__)


class VideoSource:
    """
    Camera frame source for the detection loop.

    Frames are raw BGR camera frames. They are never flipped here: the
    detector must see the unmirrored image, only the display is a selfie view
    (see `CameraConfig.mirror`). The most recent frame is kept in
    `last_frame` for display.
    """

    def __init__(self, cfg: Optional[CameraConfig] = None) -> None:
        self.cfg = cfg or CameraConfig()
        self._cap = None
        self.last_frame: Optional[np.ndarray] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        if self._cap is not None:
            return

        if platform.system() == "Darwin":
            cap = cv2.VideoCapture(self.cfg.index, cv2.CAP_AVFOUNDATION)
        else:
            cap = cv2.VideoCapture(self.cfg.index)
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(
                f"Could not open camera index {self.cfg.index}. "
                "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
            )

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.height)
        self._cap = cap
        logger.info("camera %d opened", self.cfg.index)

    def read(self) -> Optional[np.ndarray]:
        """Grab the next frame, or None if the camera has nothing to give."""
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            logger.debug("camera read failed")
            return None
        self.last_frame = frame
        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "VideoSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
