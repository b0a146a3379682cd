import logging
from enum import Enum, auto
from contextlib import ExitStack

from .audio import AudioAnalyzer, LoadStatus, Player
from .config import TIME_STEP, REACTIVE_DEFAULTS
from .errors import CompileError
from .loop import RenderLoop
from .shaders import AMBIENT_PROGRAM, REACTIVE_PROGRAM

log = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = auto()
    LOADING = auto()
    ACTIVE = auto()
    DISPOSED = auto()

    @property
    def mode(self) -> str:
        return "reactive" if self is SessionState.ACTIVE else "ambient"


class VisualizationSession:
    """Owns the render context, the analyzer and playback for one visualisation.

    Idle      ambient program, pointer and palette only
    Loading   a source is decoding, still ambient
    Active    reactive program, analyzer attached to the loop, track playing
    Disposed  terminal, every resource released

    Use it as a context manager so the teardown runs on every exit path.
    """

    def __init__(self, render, params, pointer, scheduler, player=None,
                 time_step=TIME_STEP, ambient=AMBIENT_PROGRAM, reactive=REACTIVE_PROGRAM,
                 analyzer_factory=AudioAnalyzer, reactive_defaults=REACTIVE_DEFAULTS):
        self.render = render
        self.params = params
        self.pointer = pointer
        self.player = player if player is not None else Player()
        self.ambient = ambient
        self.reactive = reactive
        self.reactive_defaults = reactive_defaults
        self._analyzer_factory = analyzer_factory

        self.loop = RenderLoop(render, params, pointer, scheduler, time_step=time_step)
        self.loop.add_pre_tick(self.poll)

        self.state = SessionState.IDLE
        self.source = None
        self.analyzer = None
        self.transitions = []

        self._listeners = []
        self._opened = False
        self._disposing = False

    @property
    def mode(self) -> str:
        return self.state.mode

    def on_transition(self, callback):
        self._listeners.append(callback)

    def _transition(self, new):
        old = self.state
        if old is new:
            return
        self.state = new
        self.transitions.append((old, new))
        log.info("Session %s -> %s", old.name, new.name)
        for callback in list(self._listeners):
            callback(old, new)

    def _check_live(self):
        if self.state is SessionState.DISPOSED or self._disposing:
            raise RuntimeError("session is disposed; create a new one")

    # ----------------------------------------------------------------
    # lifecycle
    # ----------------------------------------------------------------
    def open(self):
        self._check_live()
        if self._opened:
            return self
        with ExitStack() as stack:
            # nothing stays acquired if compile or the first schedule fails
            stack.callback(self.dispose)
            self.render.initialize(self.ambient)
            self.loop.start()
            stack.pop_all()
        self._opened = True
        return self

    def bind_source(self, source):
        self._check_live()
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"cannot bind an audio source while {self.state.name}")
        self.source = source
        self._transition(SessionState.LOADING)
        source.load()

    def poll(self):
        if self.state is not SessionState.LOADING:
            return
        status = self.source.status
        if status is LoadStatus.READY:
            self._activate()
        elif status in (LoadStatus.FAILED, LoadStatus.ABORTED):
            log.warning("Audio source %s did not load: %s", self.source.uri,
                        self.source.error or status.name.lower())
            self._revert_to_idle()

    def _activate(self):
        try:
            analyzer = self._analyzer_factory(self.source, self.player)
            self.render.switch_program(self.reactive)
        except CompileError:
            log.error("Reactive program failed to build, tearing session down")
            self.dispose()
            raise

        try:
            self.player.play(self.source)
        except Exception as e:
            log.warning("Could not start playback of %s: %s", self.source.uri, e)
            self.render.switch_program(self.ambient)
            self._revert_to_idle()
            return

        if self.reactive_defaults:
            self.params.update(**self.reactive_defaults)
        self.analyzer = analyzer
        self.loop.attach_analyzer(analyzer)
        self._transition(SessionState.ACTIVE)

    def _revert_to_idle(self):
        source, self.source = self.source, None
        if source is not None:
            source.release()
        self._transition(SessionState.IDLE)

    def abort_loading(self):
        if self.state is not SessionState.LOADING:
            return
        self.source.abort()
        self._revert_to_idle()

    def stop(self):
        self.dispose()

    def dispose(self):
        if self.state is SessionState.DISPOSED or self._disposing:
            return
        self._disposing = True
        with ExitStack() as stack:
            # unwinds last-in first-out: loop, playback, source, GPU, state
            stack.callback(self._transition, SessionState.DISPOSED)
            stack.callback(self.render.dispose)
            if self.source is not None:
                stack.callback(self.source.release)
            stack.callback(self.player.stop)
            self.loop.cancel()
            self.loop.detach_analyzer()
            self.analyzer = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False
