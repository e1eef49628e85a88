"""Exception types raised while turning a workflow run into a trace."""

from __future__ import annotations


class RunTraceError(RuntimeError):
    """Base error type for runtrace failures."""


class ConfigurationError(RunTraceError):
    """Raised when the supplied settings cannot drive an export."""


class RetrievalError(RunTraceError):
    """Raised when the run record cannot be fetched from the CI provider."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise the error with the HTTP status when one is known."""
        super().__init__(message)
        self.status_code = status_code


class InvalidTraceIdError(RunTraceError, ValueError):
    """Raised when a trace identifier is not 32 non-zero hex digits."""


class RunDataError(RunTraceError):
    """Raised when a run record lacks a field its spans require."""

    def __init__(self, unit: str, field: str) -> None:
        """Record which unit of the run is missing which field."""
        super().__init__(f"{unit} is missing required field '{field}'")
        self.unit = unit
        self.field = field


__all__ = [
    "ConfigurationError",
    "InvalidTraceIdError",
    "RetrievalError",
    "RunDataError",
    "RunTraceError",
]
