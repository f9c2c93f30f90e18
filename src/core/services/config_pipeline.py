"""Load → resolve → validate → emit orchestration.

The CLI delegates every step to these helpers, which keeps the flow
reusable for other entry-points (CI scripts, tests) and keeps side-effects
(printing, exit codes) out of the core logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from adapters.config_sources import load_config_source, read_pubspec_version
from adapters.gradle_emitter import groovy_dsl_emitter, kotlin_dsl_emitter
from adapters.json_exporter import JsonEmitter
from core.config import AppSettings
from core.domain.errors import ConfigError
from core.domain.models import BuildConfiguration, FlutterDefaults, ValidConfig
from core.interfaces.emitter import ConfigEmitter
from core.resources_loader import load_flutter_defaults
from core.services.resolver import resolve_flutter_refs, uses_pubspec
from core.services.validator import find_errors, find_warnings, parse_config, validate


logger = logging.getLogger(__name__)

EMIT_FORMATS: tuple[str, ...] = ("kts", "groovy", "json")


@dataclass
class PipelineRequest:
    """Parameters that control one pipeline run."""

    path: Path
    resolve_flutter_refs: bool = True
    platform_min_sdk: int | None = None


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers."""

    warning: Callable[[str], None] | None = None


@dataclass
class PipelineResult:
    """Output of a pipeline invocation."""

    path: Path
    config: BuildConfiguration | None = None
    valid: ValidConfig | None = None
    errors: list[ConfigError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.valid is not None and not self.errors


def _flutter_project_root(path: Path, data: dict) -> Path:
    return (path.parent / str(data.get("flutterSource") or "../..")).resolve()


def run_pipeline(
    request: PipelineRequest,
    *,
    settings: AppSettings | None = None,
    flutter_defaults: FlutterDefaults | None = None,
    hooks: PipelineHooks | None = None,
) -> PipelineResult:
    """Run the whole flow for one file. Configuration problems end up in `errors`."""

    settings = settings or AppSettings()
    hooks = hooks or PipelineHooks()
    result = PipelineResult(path=request.path)
    platform_min_sdk = request.platform_min_sdk or settings.platform_min_sdk

    try:
        data = load_config_source(request.path)
        if request.resolve_flutter_refs:
            defaults = flutter_defaults or load_flutter_defaults(settings)
            pubspec_version = None
            if uses_pubspec(data):
                pubspec_version = read_pubspec_version(_flutter_project_root(request.path, data))
            data = resolve_flutter_refs(data, defaults=defaults, pubspec_version=pubspec_version)
    except ConfigError as exc:
        result.errors.append(exc)
        return result

    config, parse_errors = parse_config(data)
    if config is None:
        result.errors.extend(parse_errors)
        return result
    result.config = config

    result.errors.extend(
        find_errors(
            config,
            platform_min_sdk=platform_min_sdk,
            max_version_code=settings.max_version_code,
        )
    )
    result.warnings.extend(find_warnings(config))
    for warning in result.warnings:
        if hooks.warning:
            hooks.warning(warning)

    if not result.errors:
        result.valid = validate(
            config,
            platform_min_sdk=platform_min_sdk,
            max_version_code=settings.max_version_code,
        )
    logger.info(
        "%s: %d error(s), %d warning(s)",
        request.path,
        len(result.errors),
        len(result.warnings),
    )
    return result


def load_valid_config(path: Path, *, settings: AppSettings | None = None) -> ValidConfig:
    """Pipeline shortcut that raises the first error instead of returning it."""

    result = run_pipeline(PipelineRequest(path=path), settings=settings)
    if not result.ok:
        raise result.errors[0]
    return result.valid


def get_emitter(fmt: str, *, preserve_flutter_refs: bool = True) -> ConfigEmitter:
    if fmt == "kts":
        return kotlin_dsl_emitter(preserve_flutter_refs=preserve_flutter_refs)
    if fmt == "groovy":
        return groovy_dsl_emitter(preserve_flutter_refs=preserve_flutter_refs)
    if fmt == "json":
        return JsonEmitter(preserve_flutter_refs=preserve_flutter_refs)
    raise ValueError(f"unknown output format '{fmt}' (expected one of {', '.join(EMIT_FORMATS)})")


def emit_config(
    config: ValidConfig,
    fmt: str,
    output_path: Path | None = None,
    *,
    preserve_flutter_refs: bool = True,
) -> Path:
    """Render `config` and write it, creating parent directories."""

    emitter = get_emitter(fmt, preserve_flutter_refs=preserve_flutter_refs)
    output_path = output_path or Path(emitter.default_filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(emitter.render(config), encoding="utf-8")
    logger.info("Wrote %s (%s)", output_path, emitter.format_name)
    return output_path
