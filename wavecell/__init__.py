"""
wavecell
========

Shader visualizer driven by the pointer and by the spectrum of a playing
track.

    - ParameterStore:       live palette knobs, clamped on write.
    - PointerTracker:       device coordinates -> [-1, 1] shader space.
    - AudioSource/Player:   background decode (librosa), playback (pygame).
    - AudioAnalyzer:        256-point FFT of the window under the play head.
    - RenderContext:        moderngl program, quad and uniform set.
    - RenderLoop:           one tick per display frame.
    - VisualizationSession: Idle / Loading / Active / Disposed.
"""

__version__ = "0.1.0"

from .errors import (
    WavecellError, NotReady, CompileError, ResourceExhausted, TransientAnalysisFailure,
)
from .shaders import Uniform, ShaderProgram, AMBIENT_PROGRAM, REACTIVE_PROGRAM
from .params import ParameterStore, PaletteConfig
from .pointer import PointerTracker, PointerState
from .audio import AudioSource, AudioAnalyzer, LoadStatus, Player, reduce_intensity
from .render import RenderContext
from .loop import RenderLoop, FrameScheduler
from .session import VisualizationSession, SessionState

__all__ = [
    "WavecellError", "NotReady", "CompileError", "ResourceExhausted", "TransientAnalysisFailure",
    "Uniform", "ShaderProgram", "AMBIENT_PROGRAM", "REACTIVE_PROGRAM",
    "ParameterStore", "PaletteConfig",
    "PointerTracker", "PointerState",
    "AudioSource", "AudioAnalyzer", "LoadStatus", "Player", "reduce_intensity",
    "RenderContext",
    "RenderLoop", "FrameScheduler",
    "VisualizationSession", "SessionState",
]
