"""Doctor command for environment diagnostics."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.sdk_probe import probe_sdk
from cli.ui_components import print_banner, show_banner
from core.config import AppSettings, get_user_env_file, read_user_env_vars, write_user_env_vars
from core.resources_loader import load_flutter_defaults
from core.services.config_pipeline import PipelineRequest, run_pipeline

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


@app.command()
def run(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Build settings file whose compileSdk/ndkVersion should be checked.",
    ),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    defaults = load_flutter_defaults(settings)

    compile_sdk = defaults.compile_sdk_version
    ndk_version: str | None = defaults.ndk_version
    if config is not None:
        result = run_pipeline(PipelineRequest(path=config), settings=settings, flutter_defaults=defaults)
        if result.config is not None:
            compile_sdk = result.config.compile_sdk
            ndk_version = result.config.ndk_version

    if show_banner(ctx):
        print_banner(_console)

    table = Table(title="droidcfg Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Platform minimum", "OK", f"API {settings.platform_min_sdk}")
    table.add_row("Flutter defaults", "OK", defaults.source)
    env_file = get_user_env_file()
    if env_file.exists():
        table.add_row("User .env", "OK", f"{env_file} ({len(read_user_env_vars())} values)")
    else:
        table.add_row("User .env", "OPTIONAL", str(env_file))

    # Android SDK
    checks = probe_sdk(settings.android_sdk_root, compile_sdk=compile_sdk, ndk_version=ndk_version)
    for check in checks:
        table.add_row(check.name, "OK" if check.ok else "FAIL", check.detail)

    _console.print(table)

    if not all(check.ok for check in checks):
        _console.print(
            "\n[yellow]Note:[/yellow] install missing packages with `sdkmanager`, "
            "e.g. `sdkmanager \"platforms;android-"
            f"{compile_sdk}\"`."
        )


@app.command(name="set-defaults")
def set_defaults() -> None:
    """Interactive setup of Flutter default SDK levels (stored in the user .env).

    Useful on machines without network access to refresh them from Flutter.
    """

    settings = AppSettings()

    compile_sdk = typer.prompt("compileSdkVersion", default=settings.flutter_compile_sdk, type=int)
    target_sdk = typer.prompt("targetSdkVersion", default=settings.flutter_target_sdk, type=int)
    min_sdk = typer.prompt("minSdkVersion", default=settings.flutter_min_sdk, type=int)
    ndk_version = typer.prompt("ndkVersion", default=settings.flutter_ndk_version).strip()

    if min_sdk > target_sdk or target_sdk > compile_sdk:
        raise typer.BadParameter("expected minSdkVersion <= targetSdkVersion <= compileSdkVersion")
    if not ndk_version:
        raise typer.BadParameter("ndkVersion is required")

    env_path = write_user_env_vars(
        {
            "DROIDCFG_FLUTTER_COMPILE_SDK": str(compile_sdk),
            "DROIDCFG_FLUTTER_TARGET_SDK": str(target_sdk),
            "DROIDCFG_FLUTTER_MIN_SDK": str(min_sdk),
            "DROIDCFG_FLUTTER_NDK_VERSION": ndk_version,
        }
    )

    _console.print(f"[green]Saved Flutter defaults to:[/green] {env_path}")
