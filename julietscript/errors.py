"""
JulietScript host errors.

The lint engine itself never raises for bad script text; these cover
operational failures around it (engine lookup, file discovery).
"""


class JulietScriptError(Exception):
    """Operational failure in the lint host."""
    pass


class EngineError(JulietScriptError):
    """A lint engine could not be found, imported, or instantiated."""
    pass


class FileDiscoveryError(JulietScriptError):
    """Root resolution, glob expansion, or file reading failed."""
    pass
