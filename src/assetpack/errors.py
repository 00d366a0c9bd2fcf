"""Exception hierarchy for the asset packager.

All packager failures derive from PackagerError so callers (the CLI, the
watch loop) can report them uniformly. Filesystem failures are not wrapped
and surface as the built-in OSError.
"""

from typing import Optional


class PackagerError(Exception):
    """Base exception for packager errors.

    Attributes:
        path: Path of the asset involved, if known.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigurationError(PackagerError):
    """A required capability or configuration field is missing."""

    pass


class ResolutionError(PackagerError):
    """A module identifier could not be mapped to an existing file."""

    pass


class CompileError(PackagerError):
    """A compiler failed to produce a body for a source asset."""

    pass


class AnalyzeError(PackagerError):
    """An analyzer failed to extract dependencies from a source asset."""

    pass
