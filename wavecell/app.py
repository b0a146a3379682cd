# Usage:
#   wavecell                          ambient mode, drop an audio file on the window to switch
#   wavecell music/track.wav          start loading the track right away
#   python -m wavecell music/track.wav --speed 1.4 --scale 2
#
# Dropping another file while a track loads or plays replaces it.
#
# Keys:
#   1..6        select red / green / blue / intensity / speed / scale
#   UP/DOWN     adjust the selected parameter
#   R           reset the palette
#   SPACE       pause / resume the track
#   LEFT/RIGHT  seek back / forward
#   + / -       volume up / down
#   M           mute / unmute
#   ESC         quit

import os
import sys
import logging
import argparse

import glfw

from .audio import AudioSource, Player, shutdown_mixer, uri_to_path
from .config import (
    PARAM_RANGES, PARAM_STEPS, AMBIENT_DEFAULTS, REACTIVE_DEFAULTS, RenderSettings,
    WIDTH, HEIGHT, TIME_STEP, SEEK_STEP, VOLUME_STEP,
)
from .errors import WavecellError
from .params import ParameterStore
from .pointer import PointerTracker
from .render import RenderContext
from .session import VisualizationSession, SessionState
from .loop import FrameScheduler
from .window import WindowSurface

log = logging.getLogger(__name__)

KEY_PARAMS = {
    glfw.KEY_1: "r",
    glfw.KEY_2: "g",
    glfw.KEY_3: "b",
    glfw.KEY_4: "intensity",
    glfw.KEY_5: "speed",
    glfw.KEY_6: "scale",
}


# =========================
# SESSIONS ON ONE WINDOW
# =========================
class Visualizer:
    """One visualization session at a time on a window owned by the caller.

    A new track while another one is loading or playing tears the running
    session down and starts a fresh one (new render context, same window,
    same palette, pointer and player).
    """

    def __init__(self, render_factory, params, pointer, scheduler, player=None,
                 time_step=TIME_STEP, reactive_defaults=REACTIVE_DEFAULTS,
                 source_factory=AudioSource):
        self.render_factory = render_factory
        self.params = params
        self.pointer = pointer
        self.scheduler = scheduler
        self.player = player if player is not None else Player()
        self.time_step = time_step
        self.reactive_defaults = reactive_defaults
        self.source_factory = source_factory

        self.session = None
        self.sessions = 0

    def _new_session(self):
        session = VisualizationSession(
            self.render_factory(), self.params, self.pointer, self.scheduler,
            player=self.player, time_step=self.time_step,
            reactive_defaults=self.reactive_defaults,
        )
        self.session = session
        self.sessions += 1
        return session.open()

    def open(self):
        if self.session is None:
            self._new_session()
        return self

    def play(self, uri):
        """Visualize `uri`, replacing whatever is loading or playing."""
        source = self.source_factory(uri)
        session = self.session
        if session is None or session.state is not SessionState.IDLE:
            if session is not None:
                log.info("Replacing %s session with %s", session.state.name, uri)
                session.dispose()
            session = self._new_session()
        session.bind_source(source)
        return session

    def resize(self, width, height):
        if self.session is not None:
            self.session.render.resize(width, height)

    def close(self):
        if self.session is not None:
            self.session.dispose()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# =========================
# KEYBOARD / DROP
# =========================
class Controls:
    """Keyboard stand-in for the palette sliders and the player buttons."""

    def __init__(self, params, visualizer, surface=None):
        self.params = params
        self.visualizer = visualizer
        self.surface = surface
        self.selected = "intensity"

    @property
    def session(self):
        return self.visualizer.session

    @property
    def player(self):
        return self.visualizer.player

    def _report(self):
        print(f"[PALETTE] {self.selected} = {self.params.get(self.selected):.3f}")

    def on_key(self, key):
        player = self.player
        if key in KEY_PARAMS:
            self.selected = KEY_PARAMS[key]
            self._report()
        elif key == glfw.KEY_UP:
            self.params.nudge(self.selected, PARAM_STEPS[self.selected])
            self._report()
        elif key == glfw.KEY_DOWN:
            self.params.nudge(self.selected, -PARAM_STEPS[self.selected])
            self._report()
        elif key == glfw.KEY_R:
            defaults = REACTIVE_DEFAULTS if self.session.state is SessionState.ACTIVE else AMBIENT_DEFAULTS
            self.params.reset(defaults)
            print("[PALETTE] reset")
        elif key == glfw.KEY_SPACE:
            if player.paused:
                player.resume()
            else:
                player.pause()
        elif key in (glfw.KEY_LEFT, glfw.KEY_RIGHT):
            step = SEEK_STEP if key == glfw.KEY_RIGHT else -SEEK_STEP
            print(f"[PLAYER] position = {player.seek(step):.1f}s")
        elif key in (glfw.KEY_EQUAL, glfw.KEY_KP_ADD, glfw.KEY_MINUS, glfw.KEY_KP_SUBTRACT):
            step = VOLUME_STEP if key in (glfw.KEY_EQUAL, glfw.KEY_KP_ADD) else -VOLUME_STEP
            player.set_volume(player.volume + step)
            print(f"[PLAYER] volume = {player.volume:.2f}")
        elif key == glfw.KEY_M:
            print("[PLAYER] muted" if player.toggle_mute() else "[PLAYER] unmuted")
        elif key == glfw.KEY_ESCAPE and self.surface is not None:
            self.surface.request_close()

    def on_drop(self, paths):
        if not paths:
            return
        self.visualizer.play(paths[0])


def build_parser():
    parser = argparse.ArgumentParser(
        prog="wavecell",
        description="GPU shader visualizer reacting to the pointer and to a playing track.",
    )
    parser.add_argument("audio", nargs="?", help="audio file path or file:// URI")
    parser.add_argument("--width", type=int, default=WIDTH)
    parser.add_argument("--height", type=int, default=HEIGHT)
    parser.add_argument("--no-vsync", action="store_true", help="do not lock ticks to the display refresh")
    for name in PARAM_RANGES:
        lo, hi = PARAM_RANGES[name]
        parser.add_argument(f"--{name}", type=float, default=None, help=f"palette {name} ({lo}..{hi})")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s - %(levelname)s - %(message)s")

    if args.audio:
        try:
            path = uri_to_path(args.audio)
        except ValueError as e:
            log.error("%s", e)
            return 1
        if not os.path.isfile(path):
            log.error("Audio file not found: %s", path)
            return 1

    overrides = {name: getattr(args, name) for name in PARAM_RANGES if getattr(args, name) is not None}
    params = ParameterStore(**{**AMBIENT_DEFAULTS, **overrides})
    settings = RenderSettings(width=args.width, height=args.height, vsync=not args.no_vsync)

    surface = None
    try:
        surface = WindowSurface(settings)
        pointer = PointerTracker(surface.bounds)
        scheduler = FrameScheduler()
        visualizer = Visualizer(
            lambda: RenderContext(surface.ctx, surface.framebuffer_size()),
            params, pointer, scheduler,
            time_step=settings.time_step,
            reactive_defaults={**REACTIVE_DEFAULTS, **overrides},
        )
        controls = Controls(params, visualizer, surface)

        surface.bind_pointer(pointer)
        surface.bind_resize(visualizer.resize)
        surface.bind_keys(controls.on_key)
        surface.bind_drop(controls.on_drop)

        with visualizer:
            if args.audio:
                visualizer.play(args.audio)
            print("Keys: 1-6 select, UP/DOWN adjust, R reset, SPACE pause, "
                  "LEFT/RIGHT seek, +/- volume, M mute, ESC quit")
            surface.run(scheduler)
    except WavecellError as e:
        log.error("Visualization halted: %s", e)
        return 1
    finally:
        if surface is not None:
            surface.close()
        glfw.terminate()
        shutdown_mixer()
    return 0


if __name__ == "__main__":
    sys.exit(main())
