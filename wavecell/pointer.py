from dataclasses import dataclass

from .params import clamp
from .shaders import Uniform


@dataclass(frozen=True)
class PointerState:
    x: float = 0.0
    y: float = 0.0
    influence: float = 0.0
    is_touch: bool = False

    def uniforms(self):
        return {
            Uniform.MOUSE_X: self.x,
            Uniform.MOUSE_Y: self.y,
            Uniform.TOUCH_ACTIVE: self.influence,
        }


class PointerTracker:
    """Maps device coordinates onto [-1, 1] shader space.

    `bounds` is a callable returning (left, top, width, height) of the render
    surface. It is queried on every move since the surface may have been
    resized since the previous event. Mouse and touch share one pointer.
    """

    def __init__(self, bounds):
        self._bounds = bounds
        self._state = PointerState()

    @property
    def state(self) -> PointerState:
        return self._state

    def on_move(self, client_x: float, client_y: float, is_touch: bool = False):
        left, top, width, height = self._bounds()
        if width <= 0 or height <= 0:
            return
        nx = (client_x - left) / width * 2.0 - 1.0
        ny = -((client_y - top) / height * 2.0 - 1.0)
        self._state = PointerState(
            x=clamp(nx, -1.0, 1.0),
            y=clamp(ny, -1.0, 1.0),
            influence=1.0,
            is_touch=bool(is_touch),
        )

    def on_release(self):
        s = self._state
        self._state = PointerState(x=s.x, y=s.y, influence=0.0, is_touch=False)
