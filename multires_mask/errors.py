"""Error types raised across the registration lifecycle.

Context is added by wrapping: a boundary that wants to say where an error
happened raises a new exception chained to the original instead of editing
the one it caught.
"""


class MultiresMaskError(Exception):
    """Base class for all errors raised by this package."""


class MaskLoadError(MultiresMaskError):
    """A configured mask path could not be decoded.

    Carries the mask role, the path, the underlying cause, and optionally a
    ``location`` (phase identifier) and a human-readable ``description``.
    """

    def __init__(self, role, path, cause, location=None, description=None):
        self.role = role
        self.path = str(path)
        self.cause = cause
        self.location = location
        self.description = description
        super().__init__(self._render())

    def _render(self):
        parts = []
        if self.location:
            parts.append(f"[{self.location}]")
        parts.append(f"failed to load {self.role} mask from '{self.path}': "
                     f"{type(self.cause).__name__}: {self.cause}")
        if self.description:
            parts.append(self.description)
        return " ".join(parts)

    def with_context(self, location, description):
        """Return a copy of this error tagged with a phase location."""
        err = MaskLoadError(self.role, self.path, self.cause,
                            location=location, description=description)
        err.__cause__ = self
        return err


class InvalidScheduleError(MultiresMaskError):
    """Level / level-count pair outside the erosion schedule's domain."""

    def __init__(self, level, total_levels):
        self.level = level
        self.total_levels = total_levels
        super().__init__(
            f"invalid erosion schedule request: level={level}, "
            f"total_levels={total_levels} (need total_levels >= 1 and "
            f"0 <= level < total_levels)"
        )


class DelegateInitializationError(MultiresMaskError):
    """The wrapped similarity metric failed to initialize."""


class ParameterFileError(MultiresMaskError):
    """An elastix parameter file could not be parsed."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")
