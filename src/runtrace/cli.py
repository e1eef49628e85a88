"""runtrace CLI entrypoint."""

from __future__ import annotations
import logging
import sys
from typing import Annotated, Any
import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from runtrace import __version__
from runtrace.config import load_settings
from runtrace.errors import RunTraceError
from runtrace.export import export_run_trace
from runtrace.tracing.synthesis import SynthesisResult


# Newer typer releases raise usage errors from a bundled copy of click.
_USAGE_ERRORS: tuple[type[Exception], ...] = tuple(
    {click.UsageError}
    | {cls for cls in typer.BadParameter.__mro__ if cls.__name__ == "UsageError"}
)

app = typer.Typer(
    help="Export finished GitHub Actions workflow runs as OpenTelemetry traces.",
    no_args_is_help=True,
)


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _render_summary(console: Console, result: SynthesisResult) -> None:
    table = Table(title="Exported trace", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Trace ID", result.trace_id)
    table.add_row("Spans", str(result.span_count))
    table.add_row("Run end", result.root_end.isoformat())
    if result.used_fallback_end:
        table.add_row("Note", "no step completion time; run end is export time")
    failed = ", ".join(result.failed_steps) if result.failed_steps else "none"
    table.add_row("Failed steps", failed)
    console.print(table)


@app.command("export")
def export(
    owner: Annotated[
        str | None,
        typer.Option("--owner", help="Repository owner."),
    ] = None,
    repo: Annotated[
        str | None,
        typer.Option("--repo", help="Repository name."),
    ] = None,
    run_id: Annotated[
        int | None,
        typer.Option("--run-id", help="Workflow run identifier."),
    ] = None,
    attempt: Annotated[
        int | None,
        typer.Option("--attempt", help="Export jobs of a specific run attempt."),
    ] = None,
    trace_id: Annotated[
        str | None,
        typer.Option(
            "--trace-id", help="32 hex digit trace id to bind the trace to."
        ),
    ] = None,
    service_name: Annotated[
        str | None,
        typer.Option("--service-name", help="service.name of the exported spans."),
    ] = None,
    endpoint: Annotated[
        str | None,
        typer.Option("--endpoint", help="OTLP collector endpoint."),
    ] = None,
    protocol: Annotated[
        str | None,
        typer.Option("--protocol", help="OTLP protocol: grpc or http/protobuf."),
    ] = None,
    insecure: Annotated[
        bool | None,
        typer.Option("--insecure/--secure", help="Disable TLS for OTLP gRPC."),
    ] = None,
    console_export: Annotated[
        bool | None,
        typer.Option(
            "--console/--no-console", help="Pretty-print spans to stdout."
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level."),
    ] = None,
) -> None:
    """Fetch a workflow run and export it as a trace."""
    overrides: dict[str, Any] = {
        "OWNER": owner,
        "REPO": repo,
        "RUN_ID": run_id,
        "RUN_ATTEMPT": attempt,
        "TRACE_ID": trace_id,
        "SERVICE_NAME": service_name,
        "OTEL_ENDPOINT": endpoint,
        "OTEL_PROTOCOL": protocol,
        "OTEL_INSECURE": insecure,
        "CONSOLE_EXPORT": console_export,
        "LOG_LEVEL": log_level,
    }
    console = Console()
    try:
        settings = load_settings(refresh=True, overrides=overrides)
        _configure_logging(settings.log_level_number)
        result = export_run_trace(settings)
    except RunTraceError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    _render_summary(console, result)


@app.command("version")
def version() -> None:
    """Print the runtrace version."""
    typer.echo(__version__)


def run() -> None:
    """Entry point used by console scripts."""
    console = Console()
    try:
        exit_code = app(standalone_mode=False)
    except _USAGE_ERRORS as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        if exc.ctx and exc.ctx.command_path:
            help_cmd = f"{exc.ctx.command_path} --help"
            console.print(f"\nRun '[cyan]{help_cmd}[/cyan]' for usage information.")
        sys.exit(1)
    if isinstance(exit_code, int) and exit_code:
        sys.exit(exit_code)


__all__ = ["app", "run"]
