import math

import pytest

from wavecell.config import AMBIENT_DEFAULTS, REACTIVE_DEFAULTS
from wavecell.params import ParameterStore, PaletteConfig, clamp
from wavecell.shaders import Uniform


def test_defaults_match_ambient_view():
    store = ParameterStore()
    assert store.as_dict() == AMBIENT_DEFAULTS


@pytest.mark.parametrize("value, stored", [(-1, 0.0), (3, 2.0), (1.25, 1.25)])
def test_intensity_is_clamped_at_the_boundary(value, stored):
    store = ParameterStore()
    assert store.set("intensity", value) == stored
    assert store.config.intensity == stored


def test_every_range_is_enforced():
    store = ParameterStore()
    store.update(r=-0.5, g=1.5, b=0.3, speed=9, scale=0.0)
    c = store.config
    assert (c.r, c.g, c.b) == (0.0, 1.0, 0.3)
    assert c.speed == 2.0
    assert c.scale == 0.1


def test_non_finite_values_are_rejected():
    store = ParameterStore()
    with pytest.raises(ValueError):
        store.set("speed", math.nan)
    with pytest.raises(ValueError):
        store.set("r", math.inf)
    assert store.config.speed == AMBIENT_DEFAULTS["speed"]


def test_unknown_parameter():
    store = ParameterStore()
    with pytest.raises(KeyError):
        store.set("alpha", 0.5)
    with pytest.raises(KeyError):
        store.get("alpha")


def test_failed_update_leaves_config_untouched():
    store = ParameterStore(r=0.2)
    with pytest.raises(KeyError):
        store.update(r=0.9, bogus=1)
    assert store.config.r == 0.2


def test_nudge_stops_at_the_range_edge():
    store = ParameterStore(scale=4.95)
    store.nudge("scale", 0.1)
    store.nudge("scale", 0.1)
    assert store.config.scale == 5.0


def test_reset_to_reactive_defaults():
    store = ParameterStore(intensity=2.0)
    store.reset(REACTIVE_DEFAULTS)
    assert store.as_dict() == REACTIVE_DEFAULTS


def test_config_snapshot_is_immutable():
    config = ParameterStore().config
    with pytest.raises(Exception):
        config.r = 0.9


def test_palette_uniform_names():
    u = PaletteConfig(r=0.1, g=0.2, b=0.3, intensity=1.5, speed=0.7, scale=2.0).uniforms()
    assert u[Uniform.PALETTE_R] == 0.1
    assert u[Uniform.PALETTE_B] == 0.3
    assert u[Uniform.SCALE] == 2.0
    assert set(k.value for k in u) == {"paletteR", "paletteG", "paletteB", "intensity", "speed", "scale"}


def test_clamp():
    assert clamp(5, 0, 1) == 1
    assert clamp(-5, 0, 1) == 0
    assert clamp(0.5, 0, 1) == 0.5
