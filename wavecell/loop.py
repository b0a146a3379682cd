import logging
import itertools

from .config import TIME_STEP
from .shaders import Uniform

log = logging.getLogger(__name__)


class FrameScheduler:
    """requestAnimationFrame-style queue.

    Callbacks requested while a batch runs land in the next batch. The window
    runs one batch per buffer swap, so with vsync on that is one per refresh.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._callbacks = {}
        self._batch = {}

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def request_frame(self, callback):
        handle = next(self._ids)
        self._callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle):
        self._callbacks.pop(handle, None)
        self._batch.pop(handle, None)

    def run_pending(self):
        self._batch, self._callbacks = self._callbacks, {}
        while self._batch:
            handle = next(iter(self._batch))
            callback = self._batch.pop(handle)
            callback()


class RenderLoop:
    """One tick per display frame.

    A tick advances simulated time by a fixed step, samples the analyzer (if
    one is attached), the pointer and the palette, writes everything into the
    render context and draws. The next frame is requested only after the draw
    and only if the loop has not been cancelled in the meantime.

    `scheduler` is anything with `request_frame(callback) -> handle` and
    `cancel_frame(handle)`.
    """

    def __init__(self, render, params, pointer, scheduler, time_step=TIME_STEP):
        self.render = render
        self.params = params
        self.pointer = pointer
        self.scheduler = scheduler
        self.time_step = float(time_step)

        self.elapsed = 0.0
        self.frames = 0
        self.ticks = 0
        self.running = False
        self.cancelled = False

        self._analyzer = None
        self._handle = None
        self._pre_tick = []

    @property
    def analyzer(self):
        return self._analyzer

    def add_pre_tick(self, fn):
        self._pre_tick.append(fn)

    def attach_analyzer(self, analyzer):
        self._analyzer = analyzer

    def detach_analyzer(self):
        self._analyzer = None

    def start(self):
        if self.cancelled:
            raise RuntimeError("render loop was cancelled")
        if self.running:
            return
        self.running = True
        self._schedule()

    def _schedule(self):
        if self.cancelled or not self.running:
            return
        self._handle = self.scheduler.request_frame(self.tick)

    def tick(self):
        self._handle = None
        if self.cancelled:
            return

        for hook in list(self._pre_tick):
            hook()
        # a hook may have torn the session down
        if self.cancelled:
            return

        self.ticks += 1
        self.elapsed += self.time_step
        values = {Uniform.TIME: self.elapsed}
        if self._analyzer is not None:
            values[Uniform.AUDIO_INTENSITY] = self._analyzer.sample_intensity(self.ticks)
        values.update(self.pointer.state.uniforms())
        values.update(self.params.config.uniforms())

        for key, value in values.items():
            if self.render.accepts(key):
                self.render.set_uniform(key, value)

        self.render.draw_frame()
        self.frames += 1
        self._schedule()

    def cancel(self):
        if self.cancelled:
            return
        self.cancelled = True
        self.running = False
        if self._handle is not None:
            self.scheduler.cancel_frame(self._handle)
            self._handle = None
        log.debug("Render loop cancelled after %d frames", self.frames)
