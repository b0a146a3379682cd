import sys
import logging

import glfw
import moderngl

from .config import RenderSettings
from .errors import ResourceExhausted

log = logging.getLogger(__name__)


class WindowSurface:
    """glfw window + moderngl context the visualizer draws into."""

    def __init__(self, settings: RenderSettings = None):
        settings = settings or RenderSettings()
        self.settings = settings
        self.window = None

        if not glfw.init():
            raise ResourceExhausted("GLFW init failed")

        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        if sys.platform == "darwin":
            glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, glfw.TRUE)
        glfw.window_hint(glfw.RESIZABLE, glfw.TRUE)

        window = glfw.create_window(settings.width, settings.height, settings.title, None, None)
        if not window:
            raise ResourceExhausted("Could not create GLFW window")
        self.window = window

        glfw.make_context_current(window)
        glfw.swap_interval(1 if settings.vsync else 0)

        try:
            self.ctx = moderngl.create_context()
        except Exception as e:
            self.close()
            raise ResourceExhausted(f"Could not create OpenGL context: {e}") from e

        log.info("Window %dx%d, OpenGL %s", settings.width, settings.height,
                 self.ctx.info.get("GL_VERSION", "?"))

    # --- display surface ---
    def bounds(self):
        w, h = glfw.get_window_size(self.window)
        return 0.0, 0.0, float(w), float(h)

    def framebuffer_size(self):
        return glfw.get_framebuffer_size(self.window)

    # --- input wiring ---
    def bind_pointer(self, tracker):
        def on_cursor(win, x, y):
            tracker.on_move(x, y, is_touch=False)

        def on_enter(win, entered):
            if not entered:
                tracker.on_release()

        def on_button(win, button, action, mods):
            if action == glfw.RELEASE:
                tracker.on_release()

        glfw.set_cursor_pos_callback(self.window, on_cursor)
        glfw.set_cursor_enter_callback(self.window, on_enter)
        glfw.set_mouse_button_callback(self.window, on_button)

    def bind_resize(self, fn):
        glfw.set_framebuffer_size_callback(self.window, lambda win, w, h: fn(w, h))

    def bind_keys(self, fn):
        def on_key(win, key, scancode, action, mods):
            if action in (glfw.PRESS, glfw.REPEAT):
                fn(key)

        glfw.set_key_callback(self.window, on_key)

    def bind_drop(self, fn):
        glfw.set_drop_callback(self.window, lambda win, paths: fn(list(paths)))

    # --- frame pump ---
    def should_close(self) -> bool:
        return self.window is None or glfw.window_should_close(self.window)

    def request_close(self):
        if self.window is not None:
            glfw.set_window_should_close(self.window, True)

    def run(self, scheduler):
        """Pump events and run one scheduler batch per buffer swap (vsync)."""
        while not self.should_close() and scheduler.pending:
            glfw.poll_events()
            scheduler.run_pending()
            if self.window is None:
                break
            glfw.swap_buffers(self.window)

    def close(self):
        if self.window is None:
            return
        glfw.destroy_window(self.window)
        self.window = None
