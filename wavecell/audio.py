import os
import time
import logging
import threading
from enum import Enum, auto
from urllib.parse import urlparse, unquote

import numpy as np
import pygame
from scipy.signal import get_window

from .config import (
    FFT_SIZE, SMOOTHING, MIN_DB, MAX_DB, BYTE_MAX,
    MIXER_FREQUENCY, MIXER_BUFFER,
)
from .errors import NotReady, TransientAnalysisFailure
from .params import clamp

log = logging.getLogger(__name__)


def uri_to_path(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    if parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"unsupported audio URI scheme: {parsed.scheme}")
    # bare paths, including windows drive letters ("C:\...")
    return uri


def _librosa_load(path):
    import librosa
    y, sr = librosa.load(path, sr=None, mono=True)
    return y, sr


# =========================
# AUDIO SOURCE
# =========================
class LoadStatus(Enum):
    PENDING = auto()
    LOADING = auto()
    READY = auto()
    FAILED = auto()
    ABORTED = auto()


class AudioSource:
    """A track to visualise, decoded off the render thread.

    `load()` decodes on a daemon thread; the render thread only ever looks at
    `status`, which flips to READY (or FAILED) once the samples are in place.
    """

    def __init__(self, uri: str, loader=None):
        self.uri = uri
        self.path = uri_to_path(uri)
        self._loader = loader or _librosa_load
        self._lock = threading.Lock()
        self._thread = None

        self.status = LoadStatus.PENDING
        self.error = None
        self.samples = None
        self.sample_rate = 0

    @property
    def is_ready(self) -> bool:
        return self.status is LoadStatus.READY and self.samples is not None

    @property
    def duration(self) -> float:
        if self.samples is None or not self.sample_rate:
            return 0.0
        return len(self.samples) / float(self.sample_rate)

    def load(self, background: bool = True):
        with self._lock:
            if self.status is not LoadStatus.PENDING:
                return
            self.status = LoadStatus.LOADING

        if background:
            self._thread = threading.Thread(
                target=self._decode, name=f"decode:{os.path.basename(self.path)}", daemon=True
            )
            self._thread.start()
        else:
            self._decode()

    def _decode(self):
        log.info("Decoding audio: %s", self.path)
        try:
            y, sr = self._loader(self.path)
        except Exception as e:
            with self._lock:
                if self.status is LoadStatus.LOADING:
                    self.status = LoadStatus.FAILED
                    self.error = e
            log.warning("Could not decode %s: %s", self.path, e)
            return

        samples = np.asarray(y, dtype=np.float32).reshape(-1)
        with self._lock:
            if self.status is not LoadStatus.LOADING:
                # aborted while decoding
                return
            self.samples = samples
            self.sample_rate = int(sr)
            self.status = LoadStatus.READY
        log.info("Audio ready: %.2fs, %d Hz", self.duration, self.sample_rate)

    def abort(self):
        with self._lock:
            if self.status in (LoadStatus.PENDING, LoadStatus.LOADING):
                self.status = LoadStatus.ABORTED

    def release(self):
        self.abort()
        with self._lock:
            self.samples = None

    def wait(self, timeout=None) -> bool:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.is_ready


# =========================
# PLAYBACK
# =========================
_MIXER_SETTINGS = (
    dict(frequency=MIXER_FREQUENCY, size=-16, channels=2, buffer=MIXER_BUFFER),
    dict(frequency=22050, size=-16, channels=2, buffer=1024),
    dict(),
)


def init_mixer() -> bool:
    if pygame.mixer.get_init() is not None:
        return True
    for settings in _MIXER_SETTINGS:
        try:
            pygame.mixer.init(**settings)
            return True
        except pygame.error as e:
            log.debug("Mixer init %s failed: %s", settings, e)
    log.warning("Audio mixer not available - playing without sound")
    return False


class Player:
    """Plays a decoded source through pygame's music stream.

    Without a mixer the player keeps a wall-clock position so analysis still
    follows the track silently. Once the stream runs out the position keeps
    counting past the end of the track, so the analysis window slides into
    silence instead of freezing on the last loud block.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._mixer = False
        self._started_at = None
        self._paused_at = None
        self._ended_at = None
        self._offset = 0.0
        self._duration = 0.0
        self.volume = 1.0
        self.muted = False
        self.playing = False

    @property
    def paused(self) -> bool:
        return self._paused_at is not None

    def play(self, source: AudioSource):
        self._mixer = init_mixer()
        if self._mixer:
            pygame.mixer.music.load(source.path)
            pygame.mixer.music.set_volume(self._effective_volume())
            pygame.mixer.music.play()
        self._started_at = self._clock()
        self._paused_at = None
        self._ended_at = None
        self._offset = 0.0
        self._duration = source.duration
        self.playing = True
        log.info("Playback started: %s", os.path.basename(source.path))

    def position(self) -> float:
        if not self.playing:
            raise TransientAnalysisFailure("player is not playing")
        if self._mixer:
            ms = pygame.mixer.music.get_pos()
            if ms >= 0 and self._ended_at is None:
                return self._offset + ms / 1000.0
            # stream finished: keep moving past the last sample
            if self._ended_at is None:
                self._ended_at = self._clock()
                log.info("Track finished")
            return self._duration + (self._clock() - self._ended_at)
        now = self._paused_at if self._paused_at is not None else self._clock()
        return now - self._started_at

    def pause(self):
        if not self.playing or self._paused_at is not None:
            return
        if self._mixer:
            pygame.mixer.music.pause()
        self._paused_at = self._clock()

    def resume(self):
        if self._paused_at is None:
            return
        if self._mixer:
            pygame.mixer.music.unpause()
        self._started_at += self._clock() - self._paused_at
        self._paused_at = None

    def seek(self, delta: float) -> float:
        """Move the play head by `delta` seconds, within the track."""
        if not self.playing:
            return 0.0
        current = self.position()
        target = max(current + float(delta), 0.0)
        if self._duration:
            target = min(target, self._duration)

        if self._mixer:
            try:
                if self._ended_at is not None:
                    pygame.mixer.music.play(start=target)
                    if self._paused_at is not None:
                        pygame.mixer.music.pause()
                    self._offset = target
                    self._ended_at = None
                else:
                    # get_pos() keeps counting from play(), set_pos does not reset it
                    pygame.mixer.music.set_pos(target)
                    self._offset += target - current
            except pygame.error as e:
                log.warning("Cannot seek in this track: %s", e)
                return current
        else:
            self._started_at -= target - current
        log.debug("Seek %.2fs -> %.2fs", current, target)
        return target

    def _effective_volume(self) -> float:
        return 0.0 if self.muted else self.volume

    def _apply_volume(self):
        if self._mixer and self.playing:
            pygame.mixer.music.set_volume(self._effective_volume())

    def set_volume(self, volume: float):
        self.volume = clamp(float(volume), 0.0, 1.0)
        self.muted = self.volume == 0.0
        self._apply_volume()

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        self._apply_volume()
        return self.muted

    def stop(self):
        if not self.playing:
            return
        self.playing = False
        self._paused_at = None
        self._ended_at = None
        self._offset = 0.0
        if self._mixer:
            pygame.mixer.music.stop()
            pygame.mixer.music.unload()
        log.info("Playback stopped")


# =========================
# AUDIO ANALYZER
# =========================
def reduce_intensity(frame, max_value=BYTE_MAX) -> float:
    """Mean bin energy scaled to [0, 1]."""
    frame = np.asarray(frame, dtype=np.float64)
    if frame.size == 0:
        return 0.0
    return float(np.clip(frame.mean() / float(max_value), 0.0, 1.0))


class AudioAnalyzer:
    """Byte frequency data of the window under the play head.

    Each call takes the last `fft_size` samples before the player position,
    applies a Blackman window and a real FFT, smooths against the previous
    window and maps decibels onto 0..255, one byte per bin.
    """

    def __init__(self, source: AudioSource, player, fft_size=FFT_SIZE,
                 smoothing=SMOOTHING, min_db=MIN_DB, max_db=MAX_DB):
        if not source.is_ready:
            raise NotReady(f"audio source {source.uri!r} is not decoded yet ({source.status.name})")

        self._source = source
        self._player = player
        self.fft_size = int(fft_size)
        self.smoothing = float(smoothing)
        self.min_db = float(min_db)
        self.max_db = float(max_db)

        self._window = get_window("blackman", self.fft_size).astype(np.float32)
        self._smoothed = np.zeros(self.bin_count, dtype=np.float32)
        self._last_end = None
        self._last_frame = np.zeros(self.bin_count, dtype=np.uint8)
        self._last_intensity = 0.0
        self._last_token = None

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    @property
    def last_intensity(self) -> float:
        return self._last_intensity

    def _block(self, samples, end):
        # anything before the start or past the end of the track is silence
        block = np.zeros(self.fft_size, dtype=np.float32)
        start = end - self.fft_size
        lo, hi = max(start, 0), min(end, len(samples))
        if hi > lo:
            block[lo - start:hi - start] = samples[lo:hi]
        return block

    def frequency_data(self) -> np.ndarray:
        samples = self._source.samples
        if samples is None:
            raise TransientAnalysisFailure("audio source was released")
        pos = self._player.position()
        end = int(pos * self._source.sample_rate)

        # same play head -> same buffer state, no second smoothing step
        if end == self._last_end:
            return self._last_frame.copy()

        spectrum = np.abs(np.fft.rfft(self._block(samples, end) * self._window))
        spectrum = spectrum[:self.bin_count] / self.fft_size
        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * spectrum

        db = 20.0 * np.log10(np.maximum(self._smoothed, 1e-12))
        scaled = (db - self.min_db) / (self.max_db - self.min_db) * BYTE_MAX
        frame = np.clip(np.floor(scaled), 0, BYTE_MAX).astype(np.uint8)

        self._last_end = end
        self._last_frame = frame
        return frame.copy()

    def sample_intensity(self, frame_token=None) -> float:
        """Intensity for one render frame.

        Calls that pass the same `frame_token` get the value computed by the
        first one, whatever the play head did in between.
        """
        if frame_token is not None and frame_token == self._last_token:
            return self._last_intensity
        self._last_token = frame_token
        try:
            frame = self.frequency_data()
        except Exception as e:
            log.debug("Frequency read failed, holding %.3f: %s", self._last_intensity, e)
            return self._last_intensity
        self._last_intensity = reduce_intensity(frame)
        return self._last_intensity


def shutdown_mixer():
    if pygame.mixer.get_init() is not None:
        pygame.mixer.quit()
