from enum import Enum
from dataclasses import dataclass


class Uniform(Enum):
    TIME = "time"
    AUDIO_INTENSITY = "audioIntensity"
    PALETTE_R = "paletteR"
    PALETTE_G = "paletteG"
    PALETTE_B = "paletteB"
    INTENSITY = "intensity"
    SPEED = "speed"
    SCALE = "scale"
    MOUSE_X = "mouseX"
    MOUSE_Y = "mouseY"
    TOUCH_ACTIVE = "touchActive"

    @classmethod
    def coerce(cls, key):
        if isinstance(key, cls):
            return key
        try:
            return cls(key)
        except ValueError:
            raise KeyError(f"unknown uniform: {key!r}") from None


@dataclass(frozen=True)
class ShaderProgram:
    """A fragment kernel plus the uniforms it reads.

    `uniforms` is the fixed schema of the program: the uniform set is
    allocated from it at compile time, and writes to any other key fail.
    """
    name: str
    fragment_shader: str
    uniforms: frozenset
    vertex_shader: str = None
    defaults: tuple = ()

    def __post_init__(self):
        if self.vertex_shader is None:
            object.__setattr__(self, "vertex_shader", VERTEX_SHADER)

    def default_values(self):
        values = {u: 0.0 for u in self.uniforms}
        for key, value in self.defaults:
            values[Uniform.coerce(key)] = float(value)
        return values


# =========================
# Shaders
# =========================
VERTEX_SHADER = """
#version 330
in vec2 in_pos;
out vec2 v_uv;
void main() {
    v_uv = in_pos * 0.5 + 0.5;
    gl_Position = vec4(in_pos, 0.0, 1.0);
}
"""

AMBIENT_FS = r"""
#version 330
uniform float time;
uniform float mouseX;
uniform float mouseY;
uniform float touchActive;
uniform float paletteR;
uniform float paletteG;
uniform float paletteB;
uniform float intensity;
uniform float speed;
uniform float scale;

in vec2 v_uv;
out vec4 fragColor;

// Simplex 2D noise
vec3 permute(vec3 x) { return mod(((x*34.0)+1.0)*x, 289.0); }

float snoise(vec2 v){
    const vec4 C = vec4(0.211324865405187, 0.366025403784439,
                        -0.577350269189626, 0.024390243902439);
    vec2 i  = floor(v + dot(v, C.yy));
    vec2 x0 = v - i + dot(i, C.xx);
    vec2 i1 = (x0.x > x0.y) ? vec2(1.0, 0.0) : vec2(0.0, 1.0);
    vec4 x12 = x0.xyxy + C.xxzz;
    x12.xy -= i1;
    i = mod(i, 289.0);
    vec3 p = permute(permute(i.y + vec3(0.0, i1.y, 1.0)) + i.x + vec3(0.0, i1.x, 1.0));
    vec3 m = max(0.5 - vec3(dot(x0,x0), dot(x12.xy,x12.xy), dot(x12.zw,x12.zw)), 0.0);
    m = m*m;
    m = m*m;
    vec3 x = 2.0 * fract(p * C.www) - 1.0;
    vec3 h = abs(x) - 0.5;
    vec3 ox = floor(x + 0.5);
    vec3 a0 = x - ox;
    m *= 1.79284291400159 - 0.85373472095314 * (a0*a0 + h*h);
    vec3 g;
    g.x  = a0.x  * x0.x   + h.x  * x0.y;
    g.yz = a0.yz * x12.xz + h.yz * x12.yw;
    return 130.0 * dot(m, g);
}

vec3 palette(float t) {
    vec3 a = vec3(0.5);
    vec3 b = vec3(0.5);
    vec3 c = vec3(1.0);
    vec3 d = vec3(paletteR, paletteG, paletteB);
    return a + b * cos(6.28318 * (c * t + d));
}

void main() {
    vec2 uv = v_uv * 2.0 - 1.0;

    float mouseDistance = length(uv - vec2(mouseX, mouseY));
    float mouseInfluence = touchActive * (1.0 - smoothstep(0.0, 0.5, mouseDistance));

    float t = time * speed;

    float n1 = snoise(uv * 2.0 * scale + t * 0.1);
    float n2 = snoise(uv * 4.0 * scale - t * 0.15);
    float n3 = snoise(uv * 8.0 * scale + t * 0.2);
    float noiseSum = n1 * 0.5 + n2 * 0.25 + n3 * 0.125;

    float shape = sin(noiseSum * 10.0 + t) * 0.5 + 0.5;
    shape = smoothstep(0.2, 0.8, shape);
    shape += mouseInfluence * sin(mouseDistance * 10.0 - t * 2.0) * 0.5;

    vec3 color = palette(shape + t * 0.1);
    float shadow = smoothstep(0.0, 0.5, shape) * 0.5;
    color *= 1.0 - shadow;
    color *= intensity;

    fragColor = vec4(color, 1.0);
}
"""

REACTIVE_FS = r"""
#version 330
uniform float time;
uniform float audioIntensity;
uniform float mouseX;
uniform float mouseY;
uniform float touchActive;
uniform float paletteR;
uniform float paletteG;
uniform float paletteB;
uniform float intensity;
uniform float speed;

in vec2 v_uv;
out vec4 fragColor;

vec3 palette(float t) {
    vec3 a = vec3(0.5);
    vec3 b = vec3(0.5);
    vec3 c = vec3(1.0);
    vec3 d = vec3(paletteR, paletteG, paletteB);
    return a + b * cos(6.28318 * (c * t + d));
}

void main() {
    vec2 uv = v_uv * 2.0 - 1.0;
    vec2 uv0 = uv;

    float mouseDistance = length(uv - vec2(mouseX, mouseY));
    float mouseInfluence = touchActive * (1.0 - smoothstep(0.0, 0.5, mouseDistance));

    float pulse = 1.0 + 1.5 * audioIntensity;
    vec3 finalColor = vec3(0.0);

    for (float i = 0.0; i < 4.0; i++) {
        uv = fract(uv * (1.5 + mouseInfluence + 0.5 * audioIntensity)) - 0.5;

        float d = length(uv) * exp(-length(uv0));
        vec3 col = palette(length(uv0) + i * 0.4 + time * speed);

        d = sin(d * (8.0 + mouseInfluence * 4.0) + time * speed) / 8.0;
        d = abs(d);
        d = pow(0.01 / max(d, 1e-4), 1.2);

        finalColor += col * d * intensity * pulse;
    }

    fragColor = vec4(finalColor, 1.0);
}
"""

_POINTER = frozenset({Uniform.MOUSE_X, Uniform.MOUSE_Y, Uniform.TOUCH_ACTIVE})
_PALETTE = frozenset({
    Uniform.PALETTE_R, Uniform.PALETTE_G, Uniform.PALETTE_B,
    Uniform.INTENSITY, Uniform.SPEED,
})

AMBIENT_PROGRAM = ShaderProgram(
    name="ambient",
    fragment_shader=AMBIENT_FS,
    uniforms=frozenset({Uniform.TIME, Uniform.SCALE}) | _POINTER | _PALETTE,
    defaults=(("intensity", 1.0), ("speed", 0.5), ("scale", 1.0),
              ("paletteR", 0.5), ("paletteG", 0.5), ("paletteB", 0.5)),
)

REACTIVE_PROGRAM = ShaderProgram(
    name="reactive",
    fragment_shader=REACTIVE_FS,
    uniforms=frozenset({Uniform.TIME, Uniform.AUDIO_INTENSITY}) | _POINTER | _PALETTE,
    defaults=(("intensity", 1.0), ("speed", 1.0),
              ("paletteR", 0.263), ("paletteG", 0.416), ("paletteB", 0.557)),
)
