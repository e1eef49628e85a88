"""Configuration models describing a run export."""

from __future__ import annotations
import json
import logging
from collections.abc import Mapping
from typing import Any, Literal, cast
from pydantic import BaseModel, Field, field_validator
from runtrace.config.defaults import _DEFAULTS
from runtrace.errors import ConfigurationError


OtlpProtocol = Literal["grpc", "http/protobuf"]
"""Wire protocols supported by the OTLP exporter."""

_PROTOCOL_ALIASES: dict[str, OtlpProtocol] = {
    "grpc": "grpc",
    "http": "http/protobuf",
    "http/protobuf": "http/protobuf",
}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _coerce_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    candidate = str(value).strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _to_optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_headers(value: object | None) -> dict[str, str]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(key): str(val) for key, val in value.items()}
    text = str(value).strip()
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        headers: dict[str, str] = {}
        for entry in text.split(","):
            key, _, val = entry.partition("=")
            if key.strip() and val.strip():
                headers[key.strip()] = val.strip()
        return headers
    if isinstance(parsed, Mapping):
        return {str(key): str(val) for key, val in parsed.items()}
    return {}


class GitHubSettings(BaseModel):
    """Where the workflow run lives and how to reach the GitHub API."""

    token: str | None = None
    api_url: str = Field(default=str(_DEFAULTS["GITHUB_API_URL"]))
    owner: str | None = None
    repo: str | None = None
    run_id: int | None = Field(default=None, gt=0)
    run_attempt: int | None = Field(default=None, gt=0)
    request_timeout: float = Field(
        default=float(cast(float, _DEFAULTS["REQUEST_TIMEOUT"])), gt=0.0
    )

    @field_validator("token", "owner", "repo", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> str | None:
        return _to_optional_str(value)

    @field_validator("api_url", mode="before")
    @classmethod
    def _coerce_api_url(cls, value: object) -> str:
        text = _to_optional_str(value)
        if text is None:
            return str(_DEFAULTS["GITHUB_API_URL"])
        return text.rstrip("/")

    @field_validator("run_id", "run_attempt", mode="before")
    @classmethod
    def _coerce_positive_int(cls, value: object) -> int | None:
        text = _to_optional_str(value)
        if text is None:
            return None
        try:
            return int(text)
        except ValueError as exc:
            msg = f"Run identifiers must be integers, got {text!r}."
            raise ValueError(msg) from exc

    def require_target(self) -> tuple[str, str, int]:
        """Return ``(owner, repo, run_id)`` or fail when any part is unset."""
        missing = [
            name
            for name, value in (
                ("RUNTRACE_OWNER", self.owner),
                ("RUNTRACE_REPO", self.repo),
                ("RUNTRACE_RUN_ID", self.run_id),
            )
            if value is None
        ]
        if missing:
            msg = f"Missing required settings: {', '.join(missing)}."
            raise ConfigurationError(msg)
        return cast(str, self.owner), cast(str, self.repo), cast(int, self.run_id)


class ExportSettings(BaseModel):
    """Where synthesized spans are delivered."""

    service_name: str = Field(default=str(_DEFAULTS["SERVICE_NAME"]))
    endpoint: str | None = Field(
        default=None, description="OTLP collector endpoint; unset disables OTLP."
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Additional headers for the exporter."
    )
    protocol: OtlpProtocol = Field(
        default=cast(OtlpProtocol, _DEFAULTS["OTEL_PROTOCOL"])
    )
    insecure: bool = Field(default=bool(_DEFAULTS["OTEL_INSECURE"]))
    timeout: float = Field(
        default=float(cast(float, _DEFAULTS["OTEL_TIMEOUT"])), gt=0.0
    )
    console: bool = Field(default=bool(_DEFAULTS["CONSOLE_EXPORT"]))

    @field_validator("service_name", mode="before")
    @classmethod
    def _coerce_service_name(cls, value: object) -> str:
        return _to_optional_str(value) or str(_DEFAULTS["SERVICE_NAME"])

    @field_validator("endpoint", mode="before")
    @classmethod
    def _coerce_endpoint(cls, value: object) -> str | None:
        return _to_optional_str(value)

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: object | None) -> dict[str, str]:
        return _parse_headers(value)

    @field_validator("protocol", mode="before")
    @classmethod
    def _validate_protocol(cls, value: object) -> str:
        candidate = str(value or _DEFAULTS["OTEL_PROTOCOL"]).strip().lower()
        if candidate not in _PROTOCOL_ALIASES:
            msg = "RUNTRACE_OTEL_PROTOCOL must be one of: grpc, http/protobuf."
            raise ValueError(msg)
        return _PROTOCOL_ALIASES[candidate]

    @field_validator("insecure", mode="before")
    @classmethod
    def _coerce_insecure(cls, value: object) -> bool:
        return _coerce_bool(value, bool(_DEFAULTS["OTEL_INSECURE"]))

    @field_validator("console", mode="before")
    @classmethod
    def _coerce_console(cls, value: object) -> bool:
        return _coerce_bool(value, bool(_DEFAULTS["CONSOLE_EXPORT"]))


class RunTraceSettings(BaseModel):
    """Complete configuration for exporting one workflow run as a trace."""

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    trace_id: str | None = None
    log_level: str = Field(default=str(_DEFAULTS["LOG_LEVEL"]))

    @field_validator("trace_id", mode="before")
    @classmethod
    def _coerce_trace_id(cls, value: object) -> str | None:
        return _to_optional_str(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: object) -> str:
        candidate = str(value or _DEFAULTS["LOG_LEVEL"]).strip().upper()
        if candidate not in _LOG_LEVELS:
            msg = "RUNTRACE_LOG_LEVEL must be a standard logging level name."
            raise ValueError(msg)
        return candidate

    @property
    def log_level_number(self) -> int:
        """Return the numeric :mod:`logging` level."""
        return cast(int, logging.getLevelName(self.log_level))

    @classmethod
    def from_mapping(cls, source: Mapping[str, Any]) -> RunTraceSettings:
        """Build settings from the normalized Dynaconf mapping."""
        return cls(
            github=GitHubSettings(
                token=source.get("GITHUB_TOKEN"),
                api_url=source.get("GITHUB_API_URL"),
                owner=source.get("OWNER"),
                repo=source.get("REPO"),
                run_id=source.get("RUN_ID"),
                run_attempt=source.get("RUN_ATTEMPT"),
                request_timeout=source.get(
                    "REQUEST_TIMEOUT", _DEFAULTS["REQUEST_TIMEOUT"]
                ),
            ),
            export=ExportSettings(
                service_name=source.get("SERVICE_NAME"),
                endpoint=source.get("OTEL_ENDPOINT"),
                headers=source.get("OTEL_HEADERS"),
                protocol=source.get("OTEL_PROTOCOL"),
                insecure=source.get("OTEL_INSECURE"),
                timeout=source.get("OTEL_TIMEOUT", _DEFAULTS["OTEL_TIMEOUT"]),
                console=source.get("CONSOLE_EXPORT"),
            ),
            trace_id=source.get("TRACE_ID"),
            log_level=source.get("LOG_LEVEL"),
        )


__all__ = ["ExportSettings", "GitHubSettings", "OtlpProtocol", "RunTraceSettings"]
