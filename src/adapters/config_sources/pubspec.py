"""Reads the app version from a Flutter `pubspec.yaml`.

Flutter derives `flutter.versionName` / `flutter.versionCode` from the
`version: <name>+<build>` line.
"""

from __future__ import annotations

import re
from pathlib import Path

import yaml

from core.domain.errors import ConfigSourceError, InvalidFieldValue


_VERSION_RE = re.compile(r"^(?P<name>[^+\s]+)(?:\+(?P<code>\d+))?$")


def parse_pubspec_version(raw: str) -> tuple[str, int | None]:
    match = _VERSION_RE.match(raw.strip())
    if not match:
        raise InvalidFieldValue(f"cannot parse version '{raw}'", field="pubspec.version")
    code = match.group("code")
    return match.group("name"), int(code) if code else None


def read_pubspec_version(project_root: Path) -> tuple[str, int | None] | None:
    """Return `(versionName, versionCode | None)` or None when not declared."""

    path = project_root / "pubspec.yaml"
    if not path.is_file():
        return None

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigSourceError(f"malformed pubspec: {exc}", field=str(path)) from exc

    if not isinstance(data, dict) or data.get("version") is None:
        return None
    return parse_pubspec_version(str(data["version"]))
