"""droidcfg command-line interface (Typer + Rich)."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import typer
from rich.console import Console

from cli import doctor
from cli.ui_components import (
    build_build_types_table,
    build_config_table,
    build_defaults_table,
    build_errors_table,
    build_warnings_panel,
    print_banner,
    show_banner,
)
from core.config import AppSettings
from core.domain.errors import ConfigError
from core.logging_setup import configure_logging
from core.resources_loader import load_flutter_defaults
from core.services.config_pipeline import (
    EMIT_FORMATS,
    PipelineRequest,
    emit_config,
    get_emitter,
    load_valid_config,
    run_pipeline,
)
from core.services.validator import check_version_bump

app = typer.Typer(
    no_args_is_help=True,
    help="Load, validate and emit Android build settings for Flutter apps.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging."),
    no_banner: bool = typer.Option(False, "--no-banner", help="Do not print the banner."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    # Subcommands (doctor included) read this through their inherited ctx.obj.
    ctx.obj = {"no_banner": no_banner}


@app.command("validate")
def validate_command(
    config: Path = typer.Argument(..., help="Build settings file (.json/.yaml)."),
    platform_min_sdk: int | None = typer.Option(
        None,
        "--platform-min-sdk",
        min=1,
        help="Override the lowest accepted minSdk.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Machine-readable output."),
) -> None:
    """Check a build settings file. Exit code 1 when it is invalid."""

    settings = AppSettings()
    result = run_pipeline(
        PipelineRequest(path=config, platform_min_sdk=platform_min_sdk),
        settings=settings,
    )

    if as_json:
        payload = {
            "path": str(config),
            "valid": result.ok,
            "errors": [error.to_dict() for error in result.errors],
            "warnings": result.warnings,
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        if result.ok:
            _console.print(f"[green]OK[/green] {config} is valid")
        else:
            _console.print(build_errors_table(result.errors))
        if result.warnings:
            _console.print(build_warnings_panel(result.warnings))

    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def show(
    ctx: typer.Context,
    config: Path = typer.Argument(..., help="Build settings file (.json/.yaml)."),
) -> None:
    """Print the resolved settings and build types."""

    result = run_pipeline(PipelineRequest(path=config))
    if show_banner(ctx):
        print_banner(_console)

    if result.config is not None:
        _console.print(build_config_table(result.config))
        _console.print(build_build_types_table(result.config))
    if result.errors:
        _console.print(build_errors_table(result.errors))
    if result.warnings:
        _console.print(build_warnings_panel(result.warnings))

    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def emit(
    config: Path = typer.Argument(..., help="Build settings file (.json/.yaml)."),
    fmt: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help=f"Output format: {', '.join(EMIT_FORMATS)}.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Destination file (default: next to CONFIG, e.g. build.gradle.kts).",
    ),
    literal: bool = typer.Option(
        False,
        "--literal",
        help="Write resolved values instead of flutter.* references.",
    ),
) -> None:
    """Validate a settings file and write the build script for it."""

    settings = AppSettings()
    fmt = fmt or settings.default_emit_format
    if fmt not in EMIT_FORMATS:
        raise typer.BadParameter(f"expected one of {', '.join(EMIT_FORMATS)}", param_hint="--format")

    output = output or config.parent / get_emitter(fmt).default_filename
    if output.resolve() == config.resolve():
        raise typer.BadParameter("output would overwrite the source file", param_hint="--output")

    result = run_pipeline(PipelineRequest(path=config), settings=settings)
    if not result.ok:
        _console.print(build_errors_table(result.errors))
        raise typer.Exit(code=1)

    written = emit_config(result.valid, fmt, output, preserve_flutter_refs=not literal)
    _console.print(f"[green]Wrote[/green] {written}")


@app.command("check-bump")
def check_bump(
    previous: Path = typer.Argument(..., help="Settings of the last released build."),
    current: Path = typer.Argument(..., help="Settings about to be released."),
) -> None:
    """Fail unless CURRENT ships a higher versionCode than PREVIOUS."""

    settings = AppSettings()
    try:
        released = load_valid_config(previous, settings=settings)
        candidate = load_valid_config(current, settings=settings)
        check_version_bump(released, candidate)
    except ConfigError as exc:
        _console.print(f"[red]{exc.code}[/red] {exc}")
        raise typer.Exit(code=1)

    _console.print(
        f"[green]OK[/green] versionCode {released.version_code} -> {candidate.version_code}"
    )


@app.command("fetch-defaults")
def fetch_defaults(
    refresh: bool = typer.Option(False, "--refresh", help="Download again from Flutter's sources."),
) -> None:
    """Show (or refresh) the Flutter default SDK levels used for flutter.* values."""

    settings = AppSettings()
    try:
        defaults = load_flutter_defaults(settings, refresh=refresh)
    except httpx.HTTPError as exc:
        _console.print(f"[red]Download failed:[/red] {exc}")
        raise typer.Exit(code=1)

    _console.print(build_defaults_table(defaults))


def run() -> None:
    app()
