import pytest

glfw = pytest.importorskip("glfw")

from wavecell.app import Controls, Visualizer, build_parser  # noqa: E402
from wavecell.config import AMBIENT_DEFAULTS, SEEK_STEP  # noqa: E402
from wavecell.render import RenderContext  # noqa: E402
from wavecell.session import SessionState  # noqa: E402
from wavecell.shaders import AMBIENT_PROGRAM  # noqa: E402

from conftest import FakePlayer, StubSource  # noqa: E402


def frames(scheduler, n):
    for _ in range(n):
        scheduler.run_pending()


@pytest.fixture
def sources():
    return {}


@pytest.fixture
def visualizer(ctx, params, pointer, scheduler, sources):
    def make_source(uri):
        sources[uri] = StubSource(uri)
        return sources[uri]

    v = Visualizer(lambda: RenderContext(ctx), params, pointer, scheduler,
                   player=FakePlayer(), source_factory=make_source)
    return v.open()


@pytest.fixture
def controls(params, visualizer, surface):
    return Controls(params, visualizer, surface)


# =========================
# palette keys
# =========================
def test_keys_select_and_adjust(controls, params):
    controls.on_key(glfw.KEY_6)
    assert controls.selected == "scale"
    for _ in range(100):
        controls.on_key(glfw.KEY_UP)
    assert params.config.scale == 5.0
    controls.on_key(glfw.KEY_4)
    for _ in range(300):
        controls.on_key(glfw.KEY_DOWN)
    assert params.config.intensity == 0.0


def test_reset_key(controls, params):
    params.update(r=0.9, speed=2.0)
    controls.on_key(glfw.KEY_R)
    assert params.as_dict() == AMBIENT_DEFAULTS


# =========================
# player keys
# =========================
def test_space_toggles_pause(controls, visualizer):
    controls.on_key(glfw.KEY_SPACE)
    assert visualizer.player.paused
    controls.on_key(glfw.KEY_SPACE)
    assert not visualizer.player.paused


def test_left_right_seek(controls, visualizer):
    visualizer.player.pos = 20.0
    controls.on_key(glfw.KEY_RIGHT)
    controls.on_key(glfw.KEY_LEFT)
    controls.on_key(glfw.KEY_LEFT)
    assert visualizer.player.seeks == [SEEK_STEP, -SEEK_STEP, -SEEK_STEP]
    assert visualizer.player.pos == 20.0 - SEEK_STEP


def test_volume_and_mute_keys(controls, visualizer):
    player = visualizer.player
    controls.on_key(glfw.KEY_MINUS)
    controls.on_key(glfw.KEY_MINUS)
    assert player.volume == pytest.approx(0.8)
    controls.on_key(glfw.KEY_EQUAL)
    assert player.volume == pytest.approx(0.9)
    controls.on_key(glfw.KEY_M)
    assert player.muted
    controls.on_key(glfw.KEY_M)
    assert not player.muted


# =========================
# dropping tracks
# =========================
def test_drop_while_idle_binds_to_the_running_session(controls, visualizer, sources):
    first = visualizer.session
    controls.on_drop(["/music/a.wav"])
    assert visualizer.session is first
    assert first.state is SessionState.LOADING
    assert first.source is sources["/music/a.wav"]
    assert visualizer.sessions == 1


def test_drop_while_active_replaces_the_session(ctx, controls, visualizer, scheduler, sources, surface):
    controls.on_drop(["/music/a.wav"])
    sources["/music/a.wav"].finish()
    frames(scheduler, 3)
    old = visualizer.session
    assert old.state is SessionState.ACTIVE

    controls.on_drop(["/music/b.wav"])
    new = visualizer.session
    assert new is not old
    assert old.state is SessionState.DISPOSED
    assert old.render.is_disposed
    assert sources["/music/a.wav"].releases == 1
    assert new.state is SessionState.LOADING
    assert new.source is sources["/music/b.wav"]
    assert new.render.program is AMBIENT_PROGRAM
    assert surface.closed == 0

    frozen = old.render.draw_count
    frames(scheduler, 5)
    assert old.render.draw_count == frozen
    assert new.render.draw_count == 5
    assert scheduler.pending == 1

    sources["/music/b.wav"].finish()
    frames(scheduler, 1)
    assert new.state is SessionState.ACTIVE
    assert visualizer.player.played[-1] is sources["/music/b.wav"]


def test_drop_while_loading_replaces_the_session(controls, visualizer, sources):
    controls.on_drop(["/music/a.wav"])
    old = visualizer.session
    controls.on_drop(["/music/b.wav"])
    assert old.state is SessionState.DISPOSED
    assert sources["/music/a.wav"].status.name == "ABORTED"
    assert visualizer.session.source is sources["/music/b.wav"]
    assert visualizer.sessions == 2


def test_empty_drop_is_ignored(controls, visualizer):
    controls.on_drop([])
    assert visualizer.session.state is SessionState.IDLE


def test_resize_goes_to_the_current_render_context(controls, visualizer, scheduler, sources):
    controls.on_drop(["/music/a.wav"])
    controls.on_drop(["/music/b.wav"])
    visualizer.resize(640, 360)
    assert visualizer.session.render.size == (640, 360)


def test_close_disposes_the_current_session(visualizer):
    with visualizer:
        session = visualizer.session
    assert session.state is SessionState.DISPOSED


def test_parser_palette_flags():
    args = build_parser().parse_args(["track.wav", "--speed", "1.5", "--scale", "9"])
    assert args.audio == "track.wav"
    assert args.speed == 1.5
    assert args.scale == 9.0
    assert args.r is None
