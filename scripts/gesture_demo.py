#!/usr/bin/env python3
"""
Webcam demo: classify hand signs for both hands and react to them.

- Point / Fist set the active gesture shown in the HUD.
- OK sign plays a short chime (restarted on every new OK sign).

Press 't' to start/stop tracking, 'q' or ESC to quit.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from gesturecue import drawing  # noqa: E402
from gesturecue.camera import VideoSource  # noqa: E402
from gesturecue.classifier import GestureClassifier  # noqa: E402
from gesturecue.config import load_config  # noqa: E402
from gesturecue.detector import HandLandmarkDetector  # noqa: E402
from gesturecue.loop import DetectionLoop  # noqa: E402
from gesturecue.types import GestureLabel  # noqa: E402

WINDOW_NAME = "gesturecue - hand signs"


def _hud_lines(tracker: DetectionLoop) -> list:
    snap = tracker.snapshot()
    active = "default" if snap.active_gesture is GestureLabel.NONE else snap.active_gesture.display_name
    return [
        f"Tracking: {'ON' if snap.tracking else 'OFF'}  (t = start/stop, q = quit)",
        f"Left Hand: {snap.left_status}",
        f"Right Hand: {snap.right_status}",
        f"Active: {active}",
    ]


def _compose(frame, tracker: DetectionLoop, mirror: bool):
    out = frame.copy()
    if tracker.tracking and tracker.surface is not None:
        drawing.overlay(out, tracker.surface)
    if mirror:
        out = cv2.flip(out, 1)
    return drawing.draw_status_panel(out, _hud_lines(tracker))


async def run_ui(source: VideoSource, tracker: DetectionLoop, mirror: bool, fps: float) -> None:
    delay_s = 1.0 / fps
    while True:
        frame = source.last_frame if tracker.tracking else source.read()
        if frame is not None:
            cv2.imshow(WINDOW_NAME, _compose(frame, tracker, mirror))

        key = cv2.waitKey(1) & 0xFF
        if key in (ord("q"), 27):
            break
        if key == ord("t"):
            if tracker.tracking:
                tracker.stop_tracking()
            else:
                tracker.start_tracking()

        if tracker.fatal_error is not None:
            await tracker.wait_stopped()  # re-raises the render error
        await asyncio.sleep(delay_s)


async def amain(args) -> int:
    cfg = load_config(args.config)
    mirror = cfg.camera.mirror and not args.no_mirror

    cue = None
    if cfg.audio.enabled and not args.no_audio:
        from gesturecue.audio import CuePlayer, synth_chime

        cue = CuePlayer(synth_chime(sample_rate=cfg.audio.sample_rate, volume=cfg.audio.volume), cfg.audio.sample_rate)

    classifier = GestureClassifier(pinch_threshold_px=args.pinch_threshold or cfg.classifier.pinch_threshold_px)

    with VideoSource(cfg.camera) as source, HandLandmarkDetector(cfg.detector) as detector:
        tracker = DetectionLoop(
            source,
            detector,
            classifier=classifier,
            cue=cue,
            fps=cfg.loop.fps,
        )
        print("Show a hand sign: point, fist, or OK sign")
        print("Press 't' to start/stop tracking, 'q' or ESC to quit")
        if args.autostart:
            tracker.start_tracking()
        try:
            await run_ui(source, tracker, mirror, cfg.loop.fps)
        finally:
            tracker.close()
            if cue is not None:
                cue.close()
            cv2.destroyAllWindows()
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Webcam hand sign classifier with audio cue.")
    ap.add_argument("--config", default=None, help="YAML config file (default: built-in defaults)")
    ap.add_argument("--pinch-threshold", type=float, default=None, help="OK sign pinch distance in frame pixels")
    ap.add_argument("--no-mirror", action="store_true", help="Disable the mirrored/selfie display")
    ap.add_argument("--no-audio", action="store_true", help="Disable the OK sign chime")
    ap.add_argument("--autostart", action="store_true", help="Start tracking immediately")
    ap.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(amain(args))


if __name__ == "__main__":
    raise SystemExit(main())
