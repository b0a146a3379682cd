from dataclasses import dataclass

# =========================
# QUALITY / TIMING KNOBS
# =========================
FPS = 60

WIDTH, HEIGHT = 1280, 720

# simulated time advanced per frame, independent of the real frame rate
TIME_STEP = 0.01

# =========================
# AUDIO ANALYSIS
# =========================
FFT_SIZE = 256          # 128 frequency bins
SMOOTHING = 0.8         # temporal smoothing between consecutive windows
MIN_DB = -100.0         # mapped to byte 0
MAX_DB = -30.0          # mapped to byte 255
BYTE_MAX = 255

MIXER_FREQUENCY = 44100
MIXER_BUFFER = 512

SEEK_STEP = 5.0         # seconds per LEFT/RIGHT press
VOLUME_STEP = 0.1

# =========================
# PALETTE
# =========================
PARAM_RANGES = {
    "r": (0.0, 1.0),
    "g": (0.0, 1.0),
    "b": (0.0, 1.0),
    "intensity": (0.0, 2.0),
    "speed": (0.0, 2.0),
    "scale": (0.1, 5.0),
}

# ambient view starts neutral grey, the audio view starts on a blue-ish palette
AMBIENT_DEFAULTS = dict(r=0.5, g=0.5, b=0.5, intensity=1.0, speed=0.5, scale=1.0)
REACTIVE_DEFAULTS = dict(r=0.263, g=0.416, b=0.557, intensity=1.0, speed=1.0, scale=1.0)

# keyboard step for each parameter
PARAM_STEPS = {
    "r": 0.01,
    "g": 0.01,
    "b": 0.01,
    "intensity": 0.01,
    "speed": 0.01,
    "scale": 0.1,
}


@dataclass
class RenderSettings:
    width: int = WIDTH
    height: int = HEIGHT
    title: str = "wavecell"
    vsync: bool = True
    time_step: float = TIME_STEP
