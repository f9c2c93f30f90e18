"""Validation of build configurations.

The checks are pure: no filesystem, no environment. `find_errors` collects
everything that is wrong (for reports), `validate` is the gate the emitters
rely on and fails on the first problem.

Check order is fixed so reports are stable:
1. parsing (missing keys, wrong types)
2. build type presence and uniqueness
3. identifiers
4. SDK ordering
5. version code / name, NDK version
6. signing configs and per-build-type rules
7. compile options and plugins
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from core.domain.errors import (
    ConfigError,
    DuplicateBuildTypeName,
    InvalidFieldValue,
    MissingField,
    UnresolvedSigningConfig,
    VersionCodeRegression,
    VersionOrderingViolation,
)
from core.domain.models import (
    ANDROID_APPLICATION_PLUGIN,
    DEBUG_SIGNING_CONFIG,
    FLUTTER_GRADLE_PLUGIN,
    KOTLIN_ANDROID_PLUGIN,
    BuildConfiguration,
    ValidConfig,
)


logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_MIN_SDK = 21
MAX_VERSION_CODE = 2_100_000_000
REQUIRED_BUILD_TYPES: tuple[str, ...] = ("debug", "release")

# API level from which multidex is built into the runtime (ART).
NATIVE_MULTIDEX_SDK = 21

_APPLICATION_ID_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)+$")
_VERSION_NAME_RE = re.compile(r"^\d+(\.\d+){0,3}([-+][0-9A-Za-z][0-9A-Za-z.+-]*)?$")
_NDK_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


def _loc_to_path(loc: tuple[Any, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def errors_from_pydantic(exc: ValidationError) -> list[ConfigError]:
    """Map pydantic's error list onto the domain taxonomy."""

    out: list[ConfigError] = []
    for err in exc.errors():
        field = _loc_to_path(tuple(err.get("loc", ())))
        kind = err.get("type")
        if kind == "missing":
            out.append(MissingField("required field is missing", field=field))
        elif kind == "extra_forbidden":
            out.append(InvalidFieldValue("unknown key", field=field))
        else:
            message = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
            out.append(InvalidFieldValue(message, field=field))
    return out


def parse_config(data: Mapping[str, Any]) -> tuple[BuildConfiguration | None, list[ConfigError]]:
    """Build the model from a normalized mapping, collecting errors instead of raising."""

    try:
        return BuildConfiguration.model_validate(dict(data)), []
    except ValidationError as exc:
        return None, errors_from_pydantic(exc)


def _check_build_types(config: BuildConfiguration) -> list[ConfigError]:
    errors: list[ConfigError] = []
    names = config.build_type_names()
    for required in REQUIRED_BUILD_TYPES:
        if required not in names:
            errors.append(MissingField(f"build type '{required}' is required", field="buildTypes"))

    counts = Counter(names)
    reported: set[str] = set()
    for name in names:
        if counts[name] > 1 and name not in reported:
            reported.add(name)
            errors.append(
                DuplicateBuildTypeName(
                    f"build type '{name}' is declared {counts[name]} times",
                    field=f"buildTypes.{name}",
                )
            )
    return errors


def _check_identifiers(config: BuildConfiguration) -> list[ConfigError]:
    errors: list[ConfigError] = []
    if not config.namespace.strip():
        errors.append(MissingField("must not be empty", field="namespace"))

    if not config.application_id.strip():
        errors.append(MissingField("must not be empty", field="applicationId"))
    elif not _APPLICATION_ID_RE.match(config.application_id):
        errors.append(
            InvalidFieldValue(
                f"'{config.application_id}' is not a reverse-domain identifier",
                field="applicationId",
            )
        )
    return errors


def _check_sdk_ordering(config: BuildConfiguration, platform_min_sdk: int) -> list[ConfigError]:
    errors: list[ConfigError] = []
    if config.min_sdk < platform_min_sdk:
        errors.append(
            VersionOrderingViolation(
                f"minSdk {config.min_sdk} is below the platform minimum {platform_min_sdk}",
                field="minSdk",
            )
        )
    if config.target_sdk < config.min_sdk:
        errors.append(
            VersionOrderingViolation(
                f"targetSdk {config.target_sdk} is lower than minSdk {config.min_sdk}",
                field="targetSdk",
            )
        )
    if config.compile_sdk < config.target_sdk:
        errors.append(
            VersionOrderingViolation(
                f"compileSdk {config.compile_sdk} is lower than targetSdk {config.target_sdk}",
                field="compileSdk",
            )
        )
    return errors


def _check_versions(config: BuildConfiguration, max_version_code: int) -> list[ConfigError]:
    errors: list[ConfigError] = []
    if not 1 <= config.version_code <= max_version_code:
        errors.append(
            InvalidFieldValue(
                f"versionCode must be between 1 and {max_version_code}, got {config.version_code}",
                field="versionCode",
            )
        )
    if not _VERSION_NAME_RE.match(config.version_name):
        errors.append(
            InvalidFieldValue(
                f"'{config.version_name}' does not look like a semantic version",
                field="versionName",
            )
        )
    if config.ndk_version is not None and not _NDK_VERSION_RE.match(config.ndk_version):
        errors.append(
            InvalidFieldValue(f"'{config.ndk_version}' is not a dotted version", field="ndkVersion")
        )
    return errors


def _check_signing_and_build_types(config: BuildConfiguration) -> list[ConfigError]:
    errors: list[ConfigError] = []

    counts = Counter(sc.name for sc in config.signing_configs)
    for name, count in counts.items():
        if count > 1:
            errors.append(
                InvalidFieldValue(
                    f"signing config '{name}' is declared {count} times",
                    field=f"signingConfigs.{name}",
                )
            )

    declared = config.declared_signing_configs()
    for build_type in config.build_types:
        if build_type.signing_config is not None and build_type.signing_config not in declared:
            errors.append(
                UnresolvedSigningConfig(
                    f"signing config '{build_type.signing_config}' is not declared",
                    field=f"buildTypes.{build_type.name}.signingConfig",
                )
            )
        if build_type.shrink_resources and not build_type.minify:
            errors.append(
                InvalidFieldValue(
                    "resource shrinking requires minify to be enabled",
                    field=f"buildTypes.{build_type.name}.shrinkResources",
                )
            )
    return errors


def _check_toolchain(config: BuildConfiguration) -> list[ConfigError]:
    errors: list[ConfigError] = []
    options = config.compile_options
    if options.jvm_target != options.target_compatibility:
        errors.append(
            InvalidFieldValue(
                f"jvmTarget {options.jvm_target} differs from targetCompatibility "
                f"{options.target_compatibility}",
                field="compileOptions.jvmTarget",
            )
        )

    plugins = config.plugins
    for plugin, count in Counter(plugins).items():
        if count > 1:
            errors.append(InvalidFieldValue(f"plugin '{plugin}' is applied twice", field="plugins"))
    if ANDROID_APPLICATION_PLUGIN not in plugins:
        errors.append(MissingField(f"plugin '{ANDROID_APPLICATION_PLUGIN}' is required", field="plugins"))
    if FLUTTER_GRADLE_PLUGIN in plugins:
        flutter_at = plugins.index(FLUTTER_GRADLE_PLUGIN)
        for earlier in (ANDROID_APPLICATION_PLUGIN, KOTLIN_ANDROID_PLUGIN):
            if earlier in plugins and plugins.index(earlier) > flutter_at:
                errors.append(
                    InvalidFieldValue(
                        f"'{FLUTTER_GRADLE_PLUGIN}' must be applied after '{earlier}'",
                        field="plugins",
                    )
                )
    return errors


def find_errors(
    config: BuildConfiguration | Mapping[str, Any],
    *,
    platform_min_sdk: int = DEFAULT_PLATFORM_MIN_SDK,
    max_version_code: int = MAX_VERSION_CODE,
) -> list[ConfigError]:
    """Every violation in `config`, in a deterministic order (empty when valid)."""

    if not isinstance(config, BuildConfiguration):
        parsed, errors = parse_config(config)
        if parsed is None:
            return errors
        config = parsed

    errors = [
        *_check_build_types(config),
        *_check_identifiers(config),
        *_check_sdk_ordering(config, platform_min_sdk),
        *_check_versions(config, max_version_code),
        *_check_signing_and_build_types(config),
        *_check_toolchain(config),
    ]
    logger.debug("Validation of %s found %d error(s)", config.application_id, len(errors))
    return errors


def validate(
    config: BuildConfiguration | Mapping[str, Any],
    *,
    platform_min_sdk: int = DEFAULT_PLATFORM_MIN_SDK,
    max_version_code: int = MAX_VERSION_CODE,
) -> ValidConfig:
    """Return `config` as a `ValidConfig`, or raise its first `ConfigError`."""

    errors = find_errors(config, platform_min_sdk=platform_min_sdk, max_version_code=max_version_code)
    if errors:
        raise errors[0]

    if not isinstance(config, BuildConfiguration):
        config = BuildConfiguration.model_validate(dict(config))
    return ValidConfig.model_validate(config.model_dump())


def find_warnings(config: BuildConfiguration) -> list[str]:
    """Non-fatal findings worth showing before a release build."""

    warnings: list[str] = []
    release = config.build_type("release")
    if release is not None:
        if release.signing_config == DEBUG_SIGNING_CONFIG:
            warnings.append("release build is signed with the debug key")
        if not release.minify:
            warnings.append("release build has code shrinking disabled")
    if config.multidex_enabled and config.min_sdk >= NATIVE_MULTIDEX_SDK:
        warnings.append(
            f"multiDexEnabled is redundant with minSdk {config.min_sdk} "
            f"(native from API {NATIVE_MULTIDEX_SDK})"
        )
    return warnings


def check_version_bump(previous: BuildConfiguration, current: BuildConfiguration) -> None:
    """Raise `VersionCodeRegression` unless `current` ships a higher versionCode."""

    if current.version_code <= previous.version_code:
        raise VersionCodeRegression(
            f"versionCode {current.version_code} must be greater than the released "
            f"{previous.version_code}",
            field="versionCode",
        )
