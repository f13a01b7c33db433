from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)


def midi_to_freq(midi_note: int) -> float:
    """Convert MIDI note number to frequency in Hz."""
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))


def synth_chime(
    sample_rate: int = 44100,
    notes: Sequence[int] = (76, 83),
    note_ms: float = 140.0,
    decay_s: float = 0.09,
    volume: float = 0.3,
) -> np.ndarray:
    """
    Build a short rising two-note chime as mono float32 samples.

    Each note is a sine with an exponential decay envelope.
    """

    n = max(1, int(sample_rate * note_ms / 1000.0))
    t = np.arange(n, dtype=np.float32) / float(sample_rate)
    env = np.exp(-t / decay_s).astype(np.float32)
    attack = np.clip(t / 0.004, 0.0, 1.0).astype(np.float32)
    parts = [np.sin(2.0 * np.pi * midi_to_freq(m) * t) * env * attack for m in notes]
    wave = np.concatenate(parts) * float(np.clip(volume, 0.0, 1.0))
    return wave.astype(np.float32)


class CuePlayer:
    """
    One preloaded, restartable audio cue.

    `play()` always rewinds to the first sample, so a retrigger preempts the
    current playback instead of overlapping it.
    """

    def __init__(self, samples: Optional[np.ndarray] = None, sample_rate: int = 44100) -> None:
        if samples is None:
            samples = synth_chime(sample_rate=sample_rate)
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim != 1 or samples.size == 0:
            raise ValueError("cue samples must be a non-empty mono array")
        self.samples = samples
        self.sample_rate = sample_rate

        self._stream: Optional[sd.OutputStream] = None
        self._lock = threading.Lock()
        self._pos = samples.size  # past the end = silent
        self.play_count = 0

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._pos < self.samples.size

    def start(self) -> bool:
        """Open the output stream. Returns False if no audio device is usable."""
        if self._stream is not None:
            return True
        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                callback=self._audio_callback,
                blocksize=512,
            )
            stream.start()
        except (sd.PortAudioError, OSError) as e:
            logger.warning("audio output unavailable, cue disabled: %s", e)
            return False
        self._stream = stream
        return True

    def play(self) -> None:
        with self._lock:
            self._pos = 0
        self.play_count += 1
        if self._stream is None and not self.start():
            return
        logger.debug("cue restarted (play #%d)", self.play_count)

    def stop(self) -> None:
        """Silence the cue and rewind it."""
        with self._lock:
            self._pos = self.samples.size

    def close(self) -> None:
        self.stop()
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except sd.PortAudioError as e:
                logger.warning("error closing audio stream: %s", e)
            finally:
                self._stream = None

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("audio stream status: %s", status)
        with self._lock:
            start = self._pos
            end = min(start + frames, self.samples.size)
            self._pos = max(start, end)
        n = max(0, end - start)
        outdata[:] = 0
        if n:
            outdata[:n, 0] = self.samples[start:end]

    def __enter__(self) -> "CuePlayer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
