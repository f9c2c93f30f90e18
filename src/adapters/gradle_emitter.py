"""Gradle build script emitters.

Why this lives in adapters:
- Gradle syntax (Kotlin/Groovy DSL) is an infrastructure detail rendered
  with Jinja2 templates.
- The Core only knows `ValidConfig`; this module turns it into text.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.models import (
    DEBUG_SIGNING_CONFIG,
    ENV_REF_PREFIX,
    SigningConfig,
    ValidConfig,
    java_version_constant,
)
from core.services.resolver import FLUTTER_REF_PREFIX


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Build types the Android Gradle Plugin creates on its own.
_BUILTIN_BUILD_TYPES = ("debug", "release")


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def quote(value: str) -> str:
    """Double-quoted literal valid in both Kotlin and Groovy (no `$` templating)."""

    return json.dumps(value, ensure_ascii=False).replace("$", "\\$")


def _secret(value: str | None) -> str | None:
    if value is None:
        return None
    if value.startswith(ENV_REF_PREFIX):
        return f"System.getenv({quote(value[len(ENV_REF_PREFIX):])})"
    return quote(value)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _signing_context(signing: SigningConfig) -> dict[str, Any]:
    return {
        "name": quote(signing.name),
        "accessor": "getByName" if signing.name == DEBUG_SIGNING_CONFIG else "create",
        "store_file": quote(signing.store_file) if signing.store_file else None,
        "store_password": _secret(signing.store_password),
        "key_alias": _secret(signing.key_alias),
        "key_password": _secret(signing.key_password),
    }


def build_context(config: ValidConfig, *, preserve_flutter_refs: bool = True) -> dict[str, Any]:
    """Template variables, already formatted as Gradle expressions."""

    def value(key: str, literal: str) -> str:
        prop = config.flutter_refs.get(key) if preserve_flutter_refs else None
        return f"{FLUTTER_REF_PREFIX}{prop}" if prop else literal

    options = config.compile_options
    return {
        "plugins": [quote(plugin) for plugin in config.plugins],
        "namespace": quote(config.namespace),
        "compile_sdk": value("compileSdk", str(config.compile_sdk)),
        "ndk_version": value("ndkVersion", quote(config.ndk_version)) if config.ndk_version else None,
        "source_compatibility": java_version_constant(options.source_compatibility),
        "target_compatibility": java_version_constant(options.target_compatibility),
        "jvm_target": java_version_constant(options.jvm_target),
        "application_id": quote(config.application_id),
        "min_sdk": value("minSdk", str(config.min_sdk)),
        "target_sdk": value("targetSdk", str(config.target_sdk)),
        "version_code": value("versionCode", str(config.version_code)),
        "version_name": value("versionName", quote(config.version_name)),
        "multidex": config.multidex_enabled,
        "signing_configs": [_signing_context(sc) for sc in config.signing_configs],
        "build_types": [
            {
                "name": quote(bt.name),
                "accessor": "getByName" if bt.name in _BUILTIN_BUILD_TYPES else "create",
                "minify": _bool(bt.minify),
                "shrink_resources": _bool(bt.shrink_resources),
                "signing_config": quote(bt.signing_config) if bt.signing_config else None,
                "proguard_files": [
                    f"getDefaultProguardFile({quote(pf.path)})" if pf.default else quote(pf.path)
                    for pf in bt.proguard_files
                ],
            }
            for bt in config.build_types
        ],
        "dependencies": [
            {"configuration": dep.configuration, "coordinate": quote(dep.coordinate)}
            for dep in config.dependencies
        ],
        "flutter_source": quote(config.flutter_source),
    }


class GradleEmitter:
    """Renders a `ValidConfig` through one of the Gradle templates."""

    def __init__(
        self,
        *,
        format_name: str,
        template_name: str,
        default_filename: str,
        preserve_flutter_refs: bool = True,
    ) -> None:
        self.format_name = format_name
        self.template_name = template_name
        self.default_filename = default_filename
        self.preserve_flutter_refs = preserve_flutter_refs

    def render(self, config: ValidConfig) -> str:
        template = _get_env().get_template(self.template_name)
        context = build_context(config, preserve_flutter_refs=self.preserve_flutter_refs)
        return template.render(**context)


def kotlin_dsl_emitter(*, preserve_flutter_refs: bool = True) -> GradleEmitter:
    return GradleEmitter(
        format_name="kts",
        template_name="build.gradle.kts.j2",
        default_filename="build.gradle.kts",
        preserve_flutter_refs=preserve_flutter_refs,
    )


def groovy_dsl_emitter(*, preserve_flutter_refs: bool = True) -> GradleEmitter:
    return GradleEmitter(
        format_name="groovy",
        template_name="build.gradle.j2",
        default_filename="build.gradle",
        preserve_flutter_refs=preserve_flutter_refs,
    )
