"""Default values for runtrace settings."""

from __future__ import annotations


_DEFAULTS: dict[str, object] = {
    "GITHUB_TOKEN": None,
    "GITHUB_API_URL": "https://api.github.com",
    "OWNER": None,
    "REPO": None,
    "RUN_ID": None,
    "RUN_ATTEMPT": None,
    "REQUEST_TIMEOUT": 30.0,
    "TRACE_ID": None,
    "SERVICE_NAME": "github-actions",
    "OTEL_ENDPOINT": None,
    "OTEL_HEADERS": None,
    "OTEL_PROTOCOL": "grpc",
    "OTEL_INSECURE": False,
    "OTEL_TIMEOUT": 10.0,
    "CONSOLE_EXPORT": True,
    "LOG_LEVEL": "INFO",
}


__all__ = ["_DEFAULTS"]
