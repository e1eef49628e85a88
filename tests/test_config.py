"""Tests for environment driven settings."""

from __future__ import annotations
import pytest
from runtrace.config import get_settings, load_settings
from runtrace.errors import ConfigurationError


def test_defaults_without_environment() -> None:
    settings = load_settings(refresh=True)

    assert settings.github.api_url == "https://api.github.com"
    assert settings.github.token is None
    assert settings.github.run_id is None
    assert settings.export.service_name == "github-actions"
    assert settings.export.protocol == "grpc"
    assert settings.export.console is True
    assert settings.export.insecure is False
    assert settings.export.endpoint is None
    assert settings.trace_id is None
    assert settings.log_level == "INFO"


def test_environment_variables_are_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUNTRACE_OWNER", "acme")
    monkeypatch.setenv("RUNTRACE_REPO", "widgets")
    monkeypatch.setenv("RUNTRACE_RUN_ID", "123456")
    monkeypatch.setenv("RUNTRACE_GITHUB_TOKEN", "ghp_secret")
    monkeypatch.setenv("RUNTRACE_TRACE_ID", "4bf92f3577b34da6a3ce929d0e0e4736")
    monkeypatch.setenv("RUNTRACE_SERVICE_NAME", "ci")
    monkeypatch.setenv("RUNTRACE_OTEL_ENDPOINT", "collector:4317")
    monkeypatch.setenv("RUNTRACE_OTEL_HEADERS", "x-api-key=abc,x-team=ci")
    monkeypatch.setenv("RUNTRACE_OTEL_PROTOCOL", "HTTP")
    monkeypatch.setenv("RUNTRACE_OTEL_INSECURE", "true")
    monkeypatch.setenv("RUNTRACE_CONSOLE_EXPORT", "false")
    monkeypatch.setenv("RUNTRACE_LOG_LEVEL", "debug")

    settings = load_settings(refresh=True)

    assert settings.github.require_target() == ("acme", "widgets", 123456)
    assert settings.github.token == "ghp_secret"
    assert settings.trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert settings.export.service_name == "ci"
    assert settings.export.endpoint == "collector:4317"
    assert settings.export.headers == {"x-api-key": "abc", "x-team": "ci"}
    assert settings.export.protocol == "http/protobuf"
    assert settings.export.insecure is True
    assert settings.export.console is False
    assert settings.log_level == "DEBUG"
    assert settings.log_level_number == 10


def test_actions_variables_fill_repository_and_token(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/widgets")
    monkeypatch.setenv("GITHUB_TOKEN", "ghs_actions")
    monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3/")
    monkeypatch.setenv("RUNTRACE_RUN_ID", "7")

    settings = load_settings(refresh=True)

    assert settings.github.require_target() == ("acme", "widgets", 7)
    assert settings.github.token == "ghs_actions"
    assert settings.github.api_url == "https://ghe.example.com/api/v3"


def test_actions_run_id_fills_missing_run_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/widgets")
    monkeypatch.setenv("GITHUB_RUN_ID", "987")

    settings = load_settings(refresh=True)

    assert settings.github.require_target() == ("acme", "widgets", 987)


def test_runtrace_run_id_wins_over_actions_run_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GITHUB_RUN_ID", "987")
    monkeypatch.setenv("RUNTRACE_RUN_ID", "12")

    assert load_settings(refresh=True).github.run_id == 12


@pytest.mark.parametrize(
    "trace_id",
    [
        "1234e678901234567890123456789012",
        "12345678901234567890123456789012",
        "00000000000000000000000000000abc",
    ],
)
def test_trace_id_keeps_its_raw_text(
    monkeypatch: pytest.MonkeyPatch, trace_id: str
) -> None:
    monkeypatch.setenv("RUNTRACE_TRACE_ID", trace_id)

    assert load_settings(refresh=True).trace_id == trace_id


def test_runtrace_variables_win_over_actions_variables(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/widgets")
    monkeypatch.setenv("RUNTRACE_REPO", "gadgets")

    settings = load_settings(refresh=True)

    assert settings.github.owner == "acme"
    assert settings.github.repo == "gadgets"


def test_json_headers_are_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUNTRACE_OTEL_HEADERS", '{"authorization": "Bearer t"}')

    settings = load_settings(refresh=True)

    assert settings.export.headers == {"authorization": "Bearer t"}


def test_overrides_replace_environment_values(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("RUNTRACE_SERVICE_NAME", "from-env")

    settings = load_settings(
        refresh=True, overrides={"service_name": "from-cli", "trace_id": None}
    )

    assert settings.export.service_name == "from-cli"
    assert settings.trace_id is None


def test_missing_target_is_a_configuration_error() -> None:
    settings = load_settings(refresh=True, overrides={"OWNER": "acme"})

    with pytest.raises(ConfigurationError, match="RUNTRACE_REPO, RUNTRACE_RUN_ID"):
        settings.github.require_target()


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("RUNTRACE_OTEL_PROTOCOL", "thrift"),
        ("RUNTRACE_LOG_LEVEL", "chatty"),
        ("RUNTRACE_RUN_ID", "abc"),
        ("RUNTRACE_RUN_ID", "-3"),
    ],
)
def test_invalid_values_raise_configuration_error(
    monkeypatch: pytest.MonkeyPatch, key: str, value: str
) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError):
        load_settings(refresh=True)


def test_get_settings_is_cached_until_refreshed(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    first = get_settings(refresh=True)
    monkeypatch.setenv("RUNTRACE_SERVICE_NAME", "changed")

    assert get_settings() is first
    assert get_settings(refresh=True).get("SERVICE_NAME") == "changed"
