import math
import logging
from dataclasses import dataclass, replace, asdict

from .config import PARAM_RANGES, AMBIENT_DEFAULTS
from .shaders import Uniform

log = logging.getLogger(__name__)


def clamp(x, a, b):
    return a if x < a else (b if x > b else x)


@dataclass(frozen=True)
class PaletteConfig:
    r: float = AMBIENT_DEFAULTS["r"]
    g: float = AMBIENT_DEFAULTS["g"]
    b: float = AMBIENT_DEFAULTS["b"]
    intensity: float = AMBIENT_DEFAULTS["intensity"]
    speed: float = AMBIENT_DEFAULTS["speed"]
    scale: float = AMBIENT_DEFAULTS["scale"]

    def uniforms(self):
        return {
            Uniform.PALETTE_R: self.r,
            Uniform.PALETTE_G: self.g,
            Uniform.PALETTE_B: self.b,
            Uniform.INTENSITY: self.intensity,
            Uniform.SPEED: self.speed,
            Uniform.SCALE: self.scale,
        }


def _checked(name, value):
    if name not in PARAM_RANGES:
        raise KeyError(f"unknown palette parameter: {name}")
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"palette parameter {name} must be finite, got {value}")
    lo, hi = PARAM_RANGES[name]
    clamped = clamp(value, lo, hi)
    if clamped != value:
        log.debug("Clamped %s from %s to %s", name, value, clamped)
    return clamped


class ParameterStore:
    """Live palette values.

    Only the UI layer writes here; the render loop reads `config` once per
    frame. Every write is clamped to the documented range before it is
    stored, so nothing out of range can reach the shader.
    """

    def __init__(self, **initial):
        self._config = PaletteConfig()
        if initial:
            self.update(**initial)

    @property
    def config(self) -> PaletteConfig:
        return self._config

    def get(self, name: str) -> float:
        if name not in PARAM_RANGES:
            raise KeyError(f"unknown palette parameter: {name}")
        return getattr(self._config, name)

    def set(self, name: str, value: float) -> float:
        self.update(**{name: value})
        return self.get(name)

    def update(self, **values):
        checked = {name: _checked(name, v) for name, v in values.items()}
        self._config = replace(self._config, **checked)

    def nudge(self, name: str, delta: float) -> float:
        return self.set(name, self.get(name) + delta)

    def reset(self, defaults=None):
        self._config = PaletteConfig()
        if defaults:
            self.update(**defaults)

    def as_dict(self):
        return asdict(self._config)
