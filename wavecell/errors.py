class WavecellError(Exception):
    """Base class for all visualizer errors."""


class NotReady(WavecellError):
    """A prerequisite resource (decoded audio) has not finished loading."""


class CompileError(WavecellError):
    """Shader program failed to compile or link. Fatal for the session."""


class ResourceExhausted(WavecellError):
    """Window / GPU surface could not be allocated. Fatal for the session."""


class TransientAnalysisFailure(WavecellError):
    """Reading frequency data failed mid-session. Absorbed by the analyzer."""
