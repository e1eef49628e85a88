"""Bind a synthesized trace to a caller-supplied trace identifier."""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from opentelemetry.sdk.trace.id_generator import IdGenerator, RandomIdGenerator
from opentelemetry.trace import INVALID_TRACE_ID
from opentelemetry.trace.span import format_trace_id
from runtrace.errors import InvalidTraceIdError


logger = logging.getLogger(__name__)

_TRACE_ID_RE = re.compile(r"^[0-9a-fA-F]{32}$")


def parse_trace_id(value: str | None) -> int | None:
    """Return the integer trace id for a 32 digit hex string.

    Empty input means no binding and yields ``None``. Anything else that is
    not exactly 32 hex digits, or is the all-zero invalid id, raises
    :class:`InvalidTraceIdError`.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if not _TRACE_ID_RE.match(text):
        msg = f"Trace id must be 32 hex digits, got {text!r}"
        raise InvalidTraceIdError(msg)
    trace_id = int(text, 16)
    if trace_id == INVALID_TRACE_ID:
        msg = "Trace id must not be all zeros"
        raise InvalidTraceIdError(msg)
    return trace_id


class _BoundIdGenerator(RandomIdGenerator):
    """Random span ids under one fixed trace id."""

    def __init__(self, trace_id: int) -> None:
        self._trace_id = trace_id

    def generate_trace_id(self) -> int:
        return self._trace_id


@dataclass(frozen=True, slots=True)
class TraceBinding:
    """A fixed trace id that every span of one synthesis belongs to."""

    trace_id: int

    @classmethod
    def from_hex(cls, value: str | None) -> TraceBinding | None:
        """Parse ``value``; malformed ids are logged and yield no binding."""
        try:
            trace_id = parse_trace_id(value)
        except InvalidTraceIdError as exc:
            logger.warning("Ignoring trace id binding: %s.", exc)
            return None
        if trace_id is None:
            return None
        return cls(trace_id)

    @property
    def hex(self) -> str:
        """Return the canonical lowercase hex form of the trace id."""
        return format_trace_id(self.trace_id)

    def id_generator(self) -> IdGenerator:
        """Return an id generator that pins new root spans to this trace."""
        return _BoundIdGenerator(self.trace_id)


__all__ = ["TraceBinding", "parse_trace_id"]
