"""Runtime configuration helpers for runtrace."""

from __future__ import annotations
import os
from collections.abc import Mapping
from functools import lru_cache
from typing import Any
from dynaconf import Dynaconf
from pydantic import ValidationError
from runtrace.config.defaults import _DEFAULTS
from runtrace.config.settings import (
    ExportSettings,
    GitHubSettings,
    OtlpProtocol,
    RunTraceSettings,
)
from runtrace.errors import ConfigurationError


def _build_loader() -> Dynaconf:
    """Create a Dynaconf loader wired to ``RUNTRACE_`` environment variables."""
    return Dynaconf(
        envvar_prefix="RUNTRACE",
        settings_files=[],  # No config files, env vars only
        load_dotenv=True,
        environments=False,
    )


def _build_actions_loader() -> Dynaconf:
    """Create a loader for the ``GITHUB_`` variables set inside Actions jobs."""
    return Dynaconf(
        envvar_prefix="GITHUB",
        settings_files=[],
        load_dotenv=False,
        environments=False,
    )


def _normalize_settings(source: Dynaconf, actions: Dynaconf) -> Dynaconf:
    """Fill defaults and Actions fallbacks on the raw Dynaconf settings."""
    normalized = Dynaconf(
        envvar_prefix="RUNTRACE",
        settings_files=[],
        load_dotenv=False,
        environments=False,
    )
    for key, default in _DEFAULTS.items():
        value = source.get(key)
        normalized.set(key, default if value is None else value)

    # Hex trace ids such as 1234e678... would otherwise be read as floats.
    raw_trace_id = os.environ.get("RUNTRACE_TRACE_ID")
    if raw_trace_id is not None:
        normalized.set("TRACE_ID", raw_trace_id)

    if normalized.get("GITHUB_TOKEN") is None:
        normalized.set("GITHUB_TOKEN", actions.get("TOKEN"))
    if source.get("GITHUB_API_URL") is None and actions.get("API_URL"):
        normalized.set("GITHUB_API_URL", str(actions.get("API_URL")))
    if normalized.get("RUN_ID") is None:
        normalized.set("RUN_ID", actions.get("RUN_ID"))

    repository = actions.get("REPOSITORY")
    if repository:
        owner, _, repo = str(repository).partition("/")
        if normalized.get("OWNER") is None and owner:
            normalized.set("OWNER", owner)
        if normalized.get("REPO") is None and repo:
            normalized.set("REPO", repo)

    return normalized


@lru_cache(maxsize=1)
def _load_settings() -> Dynaconf:
    """Load settings once and cache the normalized Dynaconf instance."""
    return _normalize_settings(_build_loader(), _build_actions_loader())


def get_settings(*, refresh: bool = False) -> Dynaconf:
    """Return the cached Dynaconf settings, reloading them if requested."""
    if refresh:
        _load_settings.cache_clear()
    return _load_settings()


def load_settings(
    *,
    refresh: bool = False,
    overrides: Mapping[str, Any] | None = None,
) -> RunTraceSettings:
    """Return validated settings, applying non-``None`` overrides by key."""
    raw: dict[str, Any] = dict(get_settings(refresh=refresh).as_dict())
    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key.upper()] = value
    try:
        return RunTraceSettings.from_mapping(raw)
    except ValidationError as exc:
        msg = f"Invalid runtrace configuration: {exc}"
        raise ConfigurationError(msg) from exc


__all__ = [
    "ExportSettings",
    "GitHubSettings",
    "OtlpProtocol",
    "RunTraceSettings",
    "get_settings",
    "load_settings",
]
