import re

import numpy as np
import moderngl
import pytest

from wavecell.audio import LoadStatus
from wavecell.errors import TransientAnalysisFailure
from wavecell.loop import FrameScheduler
from wavecell.params import ParameterStore
from wavecell.pointer import PointerTracker
from wavecell.render import RenderContext

UNIFORM_RE = re.compile(r"uniform\s+\w+\s+(\w+)\s*;")


# =========================
# moderngl stand-ins
# =========================
class FakeUniform:
    def __init__(self, name):
        self.name = name
        self.value = 0.0


class FakeAttribute:
    def __init__(self, name):
        self.name = name


class FakeProgram:
    def __init__(self, vertex_shader, fragment_shader, drop=()):
        self.vertex_shader = vertex_shader
        self.fragment_shader = fragment_shader
        self.members = {"in_pos": FakeAttribute("in_pos")}
        for name in UNIFORM_RE.findall(fragment_shader):
            if name not in drop:
                self.members[name] = FakeUniform(name)
        self.released = 0

    def __iter__(self):
        return iter(self.members)

    def __getitem__(self, name):
        return self.members[name]

    def snapshot(self):
        return {n: m.value for n, m in self.members.items() if isinstance(m, FakeUniform)}

    def release(self):
        self.released += 1


class FakeBuffer:
    def __init__(self, data):
        self.data = data
        self.released = 0

    def release(self):
        self.released += 1


class FakeVertexArray:
    def __init__(self, ctx, program):
        self.ctx = ctx
        self.program = program
        self.released = 0

    def render(self, mode):
        assert not self.program.released
        self.ctx.draws.append({
            "mode": mode,
            "viewport": self.ctx.viewport,
            "uniforms": self.program.snapshot(),
        })

    def release(self):
        self.released += 1


class FakeContext:
    def __init__(self, fail_compile=(), drop_uniforms=(), fail_buffer=False):
        self.fail_compile = set(fail_compile)
        self.drop_uniforms = drop_uniforms
        self.fail_buffer = fail_buffer
        self.viewport = None
        self.programs = []
        self.buffers = []
        self.vertex_arrays = []
        self.draws = []

    def program(self, vertex_shader, fragment_shader):
        for marker in self.fail_compile:
            if marker in fragment_shader:
                raise moderngl.Error("0:1(1): error: syntax error")
        prog = FakeProgram(vertex_shader, fragment_shader, drop=self.drop_uniforms)
        self.programs.append(prog)
        return prog

    def buffer(self, data):
        if self.fail_buffer:
            raise moderngl.Error("out of memory")
        buf = FakeBuffer(data)
        self.buffers.append(buf)
        return buf

    def vertex_array(self, program, content):
        vao = FakeVertexArray(self, program)
        self.vertex_arrays.append(vao)
        return vao

    def clear(self, *color):
        pass


class FakeSurface:
    def __init__(self, width=800, height=600, left=0.0, top=0.0):
        self.left, self.top = left, top
        self.width, self.height = width, height
        self.closed = 0

    def bounds(self):
        return self.left, self.top, self.width, self.height

    def close(self):
        self.closed += 1


# =========================
# audio stand-ins
# =========================
class FakePlayer:
    def __init__(self, fail_play=False, events=None):
        self.fail_play = fail_play
        self.events = events if events is not None else []
        self.playing = False
        self.paused = False
        self.pos = 0.0
        self.broken = False
        self.played = []
        self.stops = 0
        self.volume = 1.0
        self.muted = False
        self.seeks = []

    def play(self, source):
        if self.fail_play:
            raise RuntimeError("unsupported format")
        self.played.append(source)
        self.playing = True

    def position(self):
        if self.broken or not self.playing:
            raise TransientAnalysisFailure("no stream")
        return self.pos

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def seek(self, delta):
        self.seeks.append(delta)
        self.pos = max(self.pos + delta, 0.0)
        return self.pos

    def set_volume(self, volume):
        self.volume = min(max(volume, 0.0), 1.0)

    def toggle_mute(self):
        self.muted = not self.muted
        return self.muted

    def stop(self):
        self.events.append("player.stop")
        self.stops += 1
        self.playing = False


class StubSource:
    """AudioSource whose readiness the test flips by hand."""

    def __init__(self, uri="track.wav", events=None):
        self.uri = uri
        self.path = uri
        self.status = LoadStatus.PENDING
        self.error = None
        self.samples = None
        self.sample_rate = 0
        self.loads = 0
        self.releases = 0
        self.events = events if events is not None else []

    @property
    def is_ready(self):
        return self.status is LoadStatus.READY and self.samples is not None

    @property
    def duration(self):
        if self.samples is None or not self.sample_rate:
            return 0.0
        return len(self.samples) / float(self.sample_rate)

    def load(self):
        self.loads += 1
        self.status = LoadStatus.LOADING

    def finish(self, samples=None, sample_rate=8000):
        if samples is None:
            samples = tone(sample_rate)
        self.samples = np.asarray(samples, dtype=np.float32)
        self.sample_rate = sample_rate
        self.status = LoadStatus.READY

    def fail(self, error=None):
        self.error = error or OSError("cannot decode")
        self.status = LoadStatus.FAILED

    def abort(self):
        if self.status in (LoadStatus.PENDING, LoadStatus.LOADING):
            self.status = LoadStatus.ABORTED

    def release(self):
        self.events.append("source.release")
        self.releases += 1
        self.abort()
        self.samples = None


def tone(sample_rate=8000, seconds=1.0, freq=440.0, amp=0.8):
    t = np.arange(int(sample_rate * seconds)) / float(sample_rate)
    return (amp * np.sin(2.0 * np.pi * freq * t)).astype(np.float32)


# =========================
# fixtures
# =========================
@pytest.fixture(autouse=True)
def fake_uniform_type(monkeypatch):
    monkeypatch.setattr(moderngl, "Uniform", FakeUniform)


@pytest.fixture
def ctx():
    return FakeContext()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def render(ctx, surface):
    return RenderContext(ctx, size=(surface.width, surface.height))


@pytest.fixture
def params():
    return ParameterStore()


@pytest.fixture
def pointer(surface):
    return PointerTracker(surface.bounds)


@pytest.fixture
def scheduler():
    return FrameScheduler()


@pytest.fixture
def player():
    return FakePlayer()
