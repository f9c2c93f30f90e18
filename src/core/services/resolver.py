"""Resolution of `flutter.*` placeholders.

A Flutter app's Gradle file delegates several values to the Flutter Gradle
plugin (`compileSdk = flutter.compileSdkVersion`, ...). In the declarative
source those appear as plain strings; this module swaps them for concrete
values and remembers which fields were delegated so emitters can write the
reference back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from core.domain.errors import InvalidFieldValue
from core.domain.models import FLUTTER_PROPERTIES, RESOLVABLE_KEYS, FlutterDefaults


logger = logging.getLogger(__name__)

FLUTTER_REF_PREFIX = "flutter."

# Flutter's own fallbacks when pubspec.yaml has no build number / version.
FALLBACK_VERSION_CODE = 1
FALLBACK_VERSION_NAME = "1.0"


def flutter_ref(value: Any) -> str | None:
    """Return the property name for `"flutter.<name>"` values, else None."""

    if isinstance(value, str) and value.startswith(FLUTTER_REF_PREFIX):
        return value[len(FLUTTER_REF_PREFIX):]
    return None


def uses_pubspec(data: Mapping[str, Any]) -> bool:
    return any(
        flutter_ref(data.get(key)) in ("versionCode", "versionName")
        for key in RESOLVABLE_KEYS
    )


def resolve_flutter_refs(
    data: Mapping[str, Any],
    *,
    defaults: FlutterDefaults,
    pubspec_version: tuple[str, int | None] | None = None,
) -> dict[str, Any]:
    """Return a copy of `data` with every `flutter.*` placeholder resolved."""

    version_name, version_code = pubspec_version or (None, None)
    values: dict[str, Any] = {
        "compileSdkVersion": defaults.compile_sdk_version,
        "targetSdkVersion": defaults.target_sdk_version,
        "minSdkVersion": defaults.min_sdk_version,
        "ndkVersion": defaults.ndk_version,
        "versionCode": version_code or FALLBACK_VERSION_CODE,
        "versionName": version_name or FALLBACK_VERSION_NAME,
    }

    out = dict(data)
    existing = out.get("flutterRefs") or {}
    if not isinstance(existing, Mapping):
        raise InvalidFieldValue("expected a mapping", field="flutterRefs")
    refs: dict[str, str] = dict(existing)
    for key in RESOLVABLE_KEYS:
        prop = flutter_ref(out.get(key))
        if prop is None:
            continue
        if prop not in FLUTTER_PROPERTIES:
            raise InvalidFieldValue(f"unknown Flutter property '{out[key]}'", field=key)
        out[key] = values[prop]
        refs[key] = prop
        logger.debug("Resolved %s = flutter.%s -> %r", key, prop, values[prop])

    if refs:
        out["flutterRefs"] = refs
    return out
