import logging

import numpy as np
import moderngl

from .config import WIDTH, HEIGHT
from .errors import CompileError
from .shaders import Uniform, ShaderProgram

log = logging.getLogger(__name__)

QUAD = np.array([-1, -1, 1, -1, -1, 1, 1, 1], dtype="f4")


class RenderContext:
    """Full-viewport quad drawn with one shader program.

    Holds the live uniform set: `set_uniform` only writes the dict, the values
    are uploaded to the GPU as one batch at the start of `draw_frame`, so a
    draw never sees a half-updated set. The window it draws into belongs to
    the caller; `dispose` releases the GPU objects only.
    """

    def __init__(self, ctx: moderngl.Context, size=(WIDTH, HEIGHT)):
        self.ctx = ctx
        self.program = None
        self.draw_count = 0

        self._size = (int(size[0]), int(size[1]))
        self._prog = None
        self._vbo = None
        self._vao = None
        self._uniforms = {}
        self._active = frozenset()
        self._disposed = False

    # ----------------------------------------------------------------
    # properties
    # ----------------------------------------------------------------
    @property
    def is_initialized(self) -> bool:
        return self._vao is not None and not self._disposed

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def size(self):
        return self._size

    @property
    def uniforms(self):
        return dict(self._uniforms)

    def accepts(self, uniform: Uniform) -> bool:
        return self.program is not None and uniform in self.program.uniforms

    # ----------------------------------------------------------------
    # program / geometry
    # ----------------------------------------------------------------
    def _compile(self, program: ShaderProgram):
        try:
            prog = self.ctx.program(
                vertex_shader=program.vertex_shader,
                fragment_shader=program.fragment_shader,
            )
        except moderngl.Error as e:
            raise CompileError(f"shader program '{program.name}' failed to build: {e}") from e

        known = {u.value for u in program.uniforms}
        members = list(prog)
        unknown = [
            name for name in members
            if isinstance(prog[name], moderngl.Uniform) and name not in known
        ]
        if unknown:
            prog.release()
            raise CompileError(
                f"shader program '{program.name}' reads uniforms outside its schema: {sorted(unknown)}"
            )
        active = frozenset(u for u in program.uniforms if u.value in members)
        return prog, active

    def _vertex_array(self, prog):
        return self.ctx.vertex_array(prog, [(self._vbo, "2f", "in_pos")])

    def initialize(self, program: ShaderProgram):
        if self._disposed:
            raise RuntimeError("render context was disposed")
        if self._vao is not None:
            raise RuntimeError("render context is already initialized")

        prog, active = self._compile(program)
        try:
            self._vbo = self.ctx.buffer(QUAD.tobytes())
            self._vao = self._vertex_array(prog)
        except Exception:
            if self._vbo is not None:
                self._vbo.release()
                self._vbo = None
            prog.release()
            raise

        self._prog = prog
        self._active = active
        self.program = program
        self._uniforms = program.default_values()
        log.info("Compiled shader program '%s' (%d uniforms)", program.name, len(active))

    def switch_program(self, program: ShaderProgram):
        if not self.is_initialized:
            raise RuntimeError("render context is not initialized")

        prog, active = self._compile(program)
        try:
            vao = self._vertex_array(prog)
        except Exception:
            prog.release()
            raise

        old_vao, old_prog = self._vao, self._prog
        self._vao, self._prog, self._active = vao, prog, active

        values = program.default_values()
        for key in values:
            if key in self._uniforms:
                values[key] = self._uniforms[key]
        self._uniforms = values
        self.program = program

        old_vao.release()
        old_prog.release()
        log.info("Switched shader program to '%s'", program.name)

    # ----------------------------------------------------------------
    # per-frame
    # ----------------------------------------------------------------
    def set_uniform(self, name, value):
        key = Uniform.coerce(name)
        if key not in self._uniforms:
            name = self.program.name if self.program else None
            raise KeyError(f"uniform '{key.value}' is not part of program '{name}'")
        self._uniforms[key] = float(value)

    def resize(self, width, height):
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            # minimised window
            return
        self._size = (width, height)
        log.debug("Surface resized to %dx%d", width, height)

    def draw_frame(self):
        if self._disposed:
            raise RuntimeError("draw on a disposed render context")
        if self._vao is None:
            raise RuntimeError("render context is not initialized")

        for key in self._active:
            self._prog[key.value].value = self._uniforms[key]

        self.ctx.viewport = (0, 0, self._size[0], self._size[1])
        self.ctx.clear(0.0, 0.0, 0.0, 1.0)
        self._vao.render(moderngl.TRIANGLE_STRIP)
        self.draw_count += 1

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        for res in (self._vao, self._vbo, self._prog):
            if res is not None:
                res.release()
        self._vao = self._vbo = self._prog = None
        log.info("Render context disposed after %d frames", self.draw_count)
