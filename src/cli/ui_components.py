"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables and panels are reused by several commands.
"""

from __future__ import annotations

import typer
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import ConfigError
from core.domain.models import BuildConfiguration, FlutterDefaults


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Why here:
    - Avoids circular imports (main <-> doctor).
    - Lets non-interactive modes (JSON, pipelines) skip it.
    """

    title = Text("droidcfg", style="bold cyan")
    subtitle = Text("Android build settings • Flutter • Gradle", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def show_banner(ctx: typer.Context) -> bool:
    """False when the global `--no-banner` option was given."""

    return not (ctx.obj or {}).get("no_banner", False)


def build_errors_table(errors: list[ConfigError]) -> Table:
    table = Table(title="Configuration errors")
    table.add_column("Code", style="red", no_wrap=True)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Message", style="white")
    for error in errors:
        table.add_row(error.code, error.field or "-", error.message)
    return table


def _flutter_note(config: BuildConfiguration, key: str) -> str:
    prop = config.flutter_refs.get(key)
    return f"flutter.{prop}" if prop else ""


def build_config_table(config: BuildConfiguration) -> Table:
    """Resolved defaultConfig / android settings."""

    table = Table(title="Build configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_column("From", style="dim")

    rows = [
        ("namespace", config.namespace),
        ("applicationId", config.application_id),
        ("minSdk", str(config.min_sdk)),
        ("targetSdk", str(config.target_sdk)),
        ("compileSdk", str(config.compile_sdk)),
        ("ndkVersion", config.ndk_version or "-"),
        ("versionCode", str(config.version_code)),
        ("versionName", config.version_name),
        ("multiDexEnabled", str(config.multidex_enabled).lower()),
        ("jvmTarget", config.compile_options.jvm_target),
        ("plugins", ", ".join(config.plugins)),
        ("dependencies", ", ".join(dep.coordinate for dep in config.dependencies) or "-"),
    ]
    for key, value in rows:
        table.add_row(key, value, _flutter_note(config, key))
    return table


def build_build_types_table(config: BuildConfiguration) -> Table:
    table = Table(title="Build types")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Minify", style="white")
    table.add_column("Shrink", style="white")
    table.add_column("Signing", style="magenta")
    table.add_column("ProGuard files", style="dim")
    for bt in config.build_types:
        files = ", ".join(f"<default>/{pf.path}" if pf.default else pf.path for pf in bt.proguard_files)
        table.add_row(
            bt.name,
            "yes" if bt.minify else "no",
            "yes" if bt.shrink_resources else "no",
            bt.signing_config or "-",
            files or "-",
        )
    return table


def build_defaults_table(defaults: FlutterDefaults) -> Table:
    table = Table(title="Flutter defaults")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("compileSdkVersion", str(defaults.compile_sdk_version))
    table.add_row("targetSdkVersion", str(defaults.target_sdk_version))
    table.add_row("minSdkVersion", str(defaults.min_sdk_version))
    table.add_row("ndkVersion", defaults.ndk_version)
    table.add_row("source", defaults.source)
    return table


def build_warnings_panel(warnings: list[str]) -> Panel:
    body = Text()
    for warning in warnings:
        body.append(f"- {warning}\n")
    return Panel(body, title=Text("Warnings", style="bold yellow"), border_style="yellow")
