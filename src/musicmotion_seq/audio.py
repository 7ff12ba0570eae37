from __future__ import annotations

import logging
import math
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
import sounddevice as sd

from .types import STRINGS_ID, Track

logger = logging.getLogger(__name__)

# --- Synth knobs ---
KICK_VOLUME = 0.22
KICK_DRIVE = 1.6
SNARE_VOLUME = 0.16
SNARE_TONE_HZ = 190.0
CLOSED_HAT_VOLUME = 0.08
CLOSED_HAT_DECAY_S = 0.05
OPEN_HAT_VOLUME = 0.07
OPEN_HAT_DECAY_S = 0.2
PLUCK_VOLUME = 0.18
PLUCK_HARMONICS = 8
PLUCK_DECAY_S = 0.35


def midi_to_freq(midi_note: float) -> float:
    """Convert MIDI note number to frequency in Hz."""
    return 440.0 * (2.0 ** ((float(midi_note) - 69.0) / 12.0))


@dataclass
class _Voice:
    length: int
    sample_rate: int
    pos: int = 0
    done: bool = field(default=False, init=False)

    def render(self, n: int) -> np.ndarray:
        out = np.zeros((n,), dtype=np.float64)
        if self.done:
            return out
        m = int(min(n, self.length - self.pos))
        if m <= 0:
            self.done = True
            return out
        tt = (self.pos + np.arange(m, dtype=np.float64)) / float(self.sample_rate)
        out[:m] = self._samples(tt)
        self.pos += m
        if self.pos >= self.length:
            self.done = True
        return out

    def _samples(self, tt: np.ndarray) -> np.ndarray:
        raise NotImplementedError


@dataclass
class _KickVoice(_Voice):
    f0: float = 85.0

    def _samples(self, tt: np.ndarray) -> np.ndarray:
        f1 = self.f0 * 0.4
        f = f1 + (self.f0 - f1) * np.exp(-tt / 0.05)
        # Phase from the closed-form integral of f so block boundaries stay continuous.
        phase = 2.0 * np.pi * (f1 * tt + (self.f0 - f1) * 0.05 * (1.0 - np.exp(-tt / 0.05)))
        env = np.exp(-tt / 0.24) * np.clip(tt / 0.004, 0.0, 1.0)
        y = np.sin(phase) * env + np.sin(phase * 0.5) * env * 0.35
        return np.tanh(y * KICK_DRIVE) * KICK_VOLUME


@dataclass
class _SnareVoice(_Voice):
    def _samples(self, tt: np.ndarray) -> np.ndarray:
        env = np.exp(-tt / 0.14)
        noise = np.random.randn(tt.size)
        bright = np.diff(noise, prepend=0.0)  # crude high-pass
        tone = np.sin(2.0 * np.pi * SNARE_TONE_HZ * tt)
        y = (0.6 * bright + 0.3 * tone) * env
        return np.tanh(y * 1.2) * SNARE_VOLUME


@dataclass
class _HatVoice(_Voice):
    decay_s: float = CLOSED_HAT_DECAY_S
    volume: float = CLOSED_HAT_VOLUME

    def _samples(self, tt: np.ndarray) -> np.ndarray:
        noise = np.diff(np.random.randn(tt.size), prepend=0.0)
        return noise * np.exp(-tt / self.decay_s) * self.volume


@dataclass
class _PluckVoice(_Voice):
    freq: float = 261.63

    def _samples(self, tt: np.ndarray) -> np.ndarray:
        phase = 2.0 * np.pi * self.freq * tt
        wave = np.zeros_like(tt)
        for k in range(1, PLUCK_HARMONICS + 1):
            # Upper harmonics die faster, like a plucked string.
            wave += np.sin(phase * k) * np.exp(-tt * k / PLUCK_DECAY_S) / k
        attack = np.clip(tt / 0.003, 0.0, 1.0)
        return wave * attack * PLUCK_VOLUME


def make_voice(track_id: str, pitch: Optional[int], duration: float, sample_rate: int) -> _Voice:
    """Build the voice for one trigger; raises ValueError for unknown tracks."""

    def samples(seconds: float) -> int:
        return max(1, int(sample_rate * seconds))

    if track_id == Track.KICK.value:
        f0 = midi_to_freq(pitch) * 2.6 if pitch is not None else 85.0
        return _KickVoice(length=samples(0.28), sample_rate=sample_rate, f0=f0)
    if track_id == Track.SNARE.value:
        return _SnareVoice(length=samples(0.22), sample_rate=sample_rate)
    if track_id == Track.CLOSED_HAT.value:
        return _HatVoice(length=samples(max(duration, 0.08)), sample_rate=sample_rate)
    if track_id == Track.OPEN_HAT.value:
        return _HatVoice(
            length=samples(max(duration, 0.45)),
            sample_rate=sample_rate,
            decay_s=OPEN_HAT_DECAY_S,
            volume=OPEN_HAT_VOLUME,
        )
    if track_id == STRINGS_ID:
        if pitch is None:
            raise ValueError("strings trigger needs a pitch")
        return _PluckVoice(length=samples(max(duration, 0.2) + PLUCK_DECAY_S), sample_rate=sample_rate, freq=midi_to_freq(pitch))
    raise ValueError(f"Unknown track id {track_id!r}")


class SynthSink:
    """
    Audio sink for scheduled triggers.

    `trigger()` is called from the control thread; voices are rendered in the
    sounddevice callback at their offset relative to `time_fn()`, which must
    share the sequencer clock's timeline.
    """

    def __init__(
        self,
        time_fn: Callable[[], float],
        sample_rate: int = 48000,
        channels: int = 2,
        volume: float = 0.9,
    ) -> None:
        self.time_fn = time_fn
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.volume = max(0.0, min(1.0, volume))
        self._events: "queue.SimpleQueue[Tuple[float, str, Optional[int], float]]" = queue.SimpleQueue()
        self._pending: List[Tuple[float, str, Optional[int], float]] = []
        self._voices: List[Tuple[int, _Voice]] = []  # (start offset within next block, voice)
        self._stream: Optional[sd.OutputStream] = None
        self._lock = threading.Lock()

    def trigger(self, track_id: str, pitch: Optional[int], duration: float, timestamp: float) -> None:
        t = float(timestamp)
        if not math.isfinite(t) or t < 0:
            raise ValueError(f"Value must be within [0, Infinity], got {timestamp!r}")
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration!r}")
        self._events.put((t, str(track_id), pitch, float(duration)))

    def start(self) -> None:
        if self._stream is not None:
            return
        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            callback=self._callback,
            blocksize=0,
        )
        self._stream.start()

    def stop(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        finally:
            self._stream = None

    def __enter__(self) -> "SynthSink":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def active_voices(self) -> int:
        return len(self._voices)

    def render(self, frames: int) -> np.ndarray:
        """Mix the next `frames` samples; returns a (frames, channels) float32 block."""
        with self._lock:
            block_start = float(self.time_fn())
            try:
                while True:
                    self._pending.append(self._events.get_nowait())
            except queue.Empty:
                pass

            keep: List[Tuple[float, str, Optional[int], float]] = []
            for ev in self._pending:
                t, track_id, pitch, duration = ev
                off = int(round((t - block_start) * self.sample_rate))
                if off >= frames:
                    keep.append(ev)
                    continue
                try:
                    voice = make_voice(track_id, pitch, duration, self.sample_rate)
                except ValueError as e:
                    logger.debug("Skipping trigger: %s", e)
                    continue
                self._voices.append((max(0, off), voice))
            self._pending = keep

            mono = np.zeros((frames,), dtype=np.float64)
            alive: List[Tuple[int, _Voice]] = []
            for off, voice in self._voices:
                mono[off:] += voice.render(frames - off)
                if not voice.done:
                    alive.append((0, voice))
            self._voices = alive

        out = (np.tanh(mono) * self.volume).astype(np.float32)
        return np.repeat(out.reshape(-1, 1), self.channels, axis=1)

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("Audio stream status: %s", status)
        outdata[:] = self.render(frames)
