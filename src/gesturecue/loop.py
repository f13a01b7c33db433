"""
Frame-paced detection loop.

Each tick reads a frame, awaits the hand detector, debounces the per-hand
classification through the two on-screen slots, renders the skeletons and
fires the side effects (audio cue, status snapshot). Ticks run one at a time
on the asyncio event loop; the detector call is the only suspension point and
runs in a worker thread unless the detector is itself a coroutine.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from concurrent.futures import Executor
from typing import Callable, Dict, FrozenSet, List, Optional, Protocol, Sequence

import numpy as np

from . import drawing
from .classifier import GestureClassifier
from .drawing import RenderError
from .slots import SlotBank, SlotUpdate, assign_slots
from .types import (
    ABSENT_STATUS,
    DetectedHand,
    FrameResult,
    GestureLabel,
    HandSlot,
    TrackerSnapshot,
)

logger = logging.getLogger(__name__)

# Gestures that drive the aggregate "active gesture" shown by the UI.
ACTIVE_GESTURES = (GestureLabel.POINT, GestureLabel.FIST)


class FrameSource(Protocol):
    def read(self) -> Optional[np.ndarray]: ...


class Detector(Protocol):
    def detect(self, frame_bgr) -> Sequence[DetectedHand]: ...


class Cue(Protocol):
    def play(self) -> None: ...


class DetectionLoop:
    """
    Continuously rescheduled gesture tracking loop.

    `tracking` is the user's intent to run; `model_ready` is detector
    availability. With tracking off nothing is scheduled; with tracking on
    but the model not ready, ticks are scheduled and do nothing.

    `start_tracking()` must be called from inside a running event loop.
    """

    def __init__(
        self,
        source: FrameSource,
        detector: Detector,
        *,
        classifier: Optional[GestureClassifier] = None,
        cue: Optional[Cue] = None,
        fps: float = 30.0,
        model_ready: bool = True,
        on_frame: Optional[Callable[[FrameResult], None]] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self._source = source
        self._detector = detector
        self._cue = cue
        self._executor = executor
        self.on_frame = on_frame
        self.slots = SlotBank(classifier)
        self.interval_s = 1.0 / fps

        self.tracking = False
        self.model_ready = model_ready
        self.surface: Optional[np.ndarray] = None
        self.last_result: Optional[FrameResult] = None
        self.fatal_error: Optional[RenderError] = None
        self.tick_count = 0

        self._active = GestureLabel.NONE
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        # Bumped on every stop so results requested before it are discarded.
        self._generation = 0
        self._stopped = asyncio.Event()
        self._stopped.set()

    # -- lifecycle -------------------------------------------------------

    def start_tracking(self) -> None:
        if self.tracking:
            return
        self._loop = asyncio.get_running_loop()
        self.fatal_error = None
        self.tracking = True
        self._stopped.clear()
        self._prime_cue()
        logger.info("tracking started")
        if self._task is None:
            self._schedule(0.0)
        # else: the in-flight tick reschedules when it completes

    def stop_tracking(self) -> None:
        if not self.tracking:
            return
        self.tracking = False
        self._generation += 1
        self._cancel_timer()
        self._reset()
        if self._task is None:
            self._stopped.set()
        logger.info("tracking stopped")

    def close(self) -> None:
        """Tear down: cancel the pending tick and any in-flight detection."""
        self.tracking = False
        self._generation += 1
        self._cancel_timer()
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._reset()
        self._stopped.set()

    def set_model_ready(self, ready: bool) -> None:
        self.model_ready = bool(ready)

    async def wait_stopped(self) -> None:
        """Wait until tracking has fully stopped; re-raises a fatal render error once."""
        await self._stopped.wait()
        if self.fatal_error is not None:
            err, self.fatal_error = self.fatal_error, None
            raise err

    def snapshot(self) -> TrackerSnapshot:
        statuses = self.slots.statuses()
        return TrackerSnapshot(
            tracking=self.tracking,
            model_ready=self.model_ready,
            left_status=statuses[HandSlot.LEFT],
            right_status=statuses[HandSlot.RIGHT],
            active_gesture=self._active,
        )

    # -- scheduling ------------------------------------------------------

    def _event_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("start_tracking() was not called from a running event loop")
        return self._loop

    def _schedule(self, delay_s: float) -> None:
        self._timer = self._event_loop().call_later(delay_s, self._launch_tick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _launch_tick(self) -> None:
        self._timer = None
        if not self.tracking:
            self._stopped.set()
            return
        self._task = self._event_loop().create_task(self._run_tick())

    async def _run_tick(self) -> None:
        try:
            await self.tick()
        except RenderError as e:
            logger.error("rendering failed, tracking halted: %s", e)
            self.fatal_error = e
            self.tracking = False
            self._generation += 1
            self._reset()
        except Exception:
            logger.exception("tick failed; treating frame as empty")
            self.slots.reset()
            self._active = GestureLabel.NONE
            self._clear_surface()
        finally:
            self._task = None

        if self.tracking:
            self._schedule(self.interval_s)
        else:
            self._clear_surface()
            self._stopped.set()

    # -- one iteration ---------------------------------------------------

    async def tick(self) -> Optional[FrameResult]:
        """
        Run one loop iteration.

        Returns the frame result, or None when the tick was idle (not
        tracking, model not ready, no frame) or its detection was discarded
        because tracking stopped while it was in flight.
        """
        if not (self.tracking and self.model_ready):
            return None
        frame = self._source.read()
        if frame is None or frame.size == 0:
            return None

        h, w = frame.shape[:2]
        if not drawing.surface_matches(self.surface, w, h):
            self.surface = drawing.new_surface(w, h)

        generation = self._generation
        try:
            hands = list(await self._detect(frame))
            failed = False
        except Exception:
            logger.exception("hand detection failed; treating frame as empty")
            hands, failed = [], True

        if generation != self._generation or not self.tracking:
            logger.debug("discarding detection result requested before stop")
            return None

        if not failed:
            try:
                result = self._process(hands)
            except RenderError:
                raise
            except Exception:
                logger.exception("gesture processing failed; treating frame as empty")
                failed = True
        if failed:
            result = self._empty_frame()

        self.tick_count += 1
        self._publish(result)
        return result

    async def _detect(self, frame) -> Sequence[DetectedHand]:
        detect = self._detector.detect
        if inspect.iscoroutinefunction(detect):
            return await detect(frame)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, detect, frame)

    def _process(self, hands: List[DetectedHand]) -> FrameResult:
        updates = self.slots.update(assign_slots(hands))
        self._render([h.landmarks for h in hands])

        edges: Dict[HandSlot, FrozenSet[GestureLabel]] = {slot: u.events for slot, u in updates.items()}
        for slot in HandSlot:
            if GestureLabel.OK_SIGN in edges[slot]:
                logger.info("OK sign on %s slot", slot.value)
                self._play_cue()

        self._active = self._aggregate(updates)
        return FrameResult(
            statuses={slot: u.status for slot, u in updates.items()},
            edges=edges,
            active_gesture=self._active,
            hands=hands,
        )

    def _aggregate(self, updates: Dict[HandSlot, SlotUpdate]) -> GestureLabel:
        # Only a gesture entered this tick counts; a held pose reverts to default.
        for slot in HandSlot:
            for label in ACTIVE_GESTURES:
                if label in updates[slot].events:
                    return label
        return GestureLabel.NONE

    def _empty_frame(self) -> FrameResult:
        self.slots.reset()
        self._active = GestureLabel.NONE
        self._render([])
        return FrameResult(
            statuses={slot: ABSENT_STATUS for slot in HandSlot},
            edges={slot: frozenset() for slot in HandSlot},
        )

    # -- side effects ----------------------------------------------------

    def _render(self, hands) -> None:
        if self.surface is not None:
            drawing.render(self.surface, hands)

    def _clear_surface(self) -> None:
        if self.surface is not None:
            drawing.clear(self.surface)

    def _reset(self) -> None:
        self.slots.reset()
        self._active = GestureLabel.NONE
        self.last_result = None
        self._clear_surface()

    def _publish(self, result: FrameResult) -> None:
        self.last_result = result
        if self.on_frame is not None:
            self.on_frame(result)

    def _prime_cue(self) -> None:
        start = getattr(self._cue, "start", None)
        if start is None:
            return
        try:
            start()
        except Exception as e:
            logger.warning("could not prepare audio cue: %s", e)

    def _play_cue(self) -> None:
        if self._cue is None:
            return
        try:
            self._cue.play()
        except Exception as e:
            logger.warning("audio cue playback failed: %s", e)
