"""Inspection of a local Android SDK installation.

The build itself runs elsewhere; this only answers whether the SDK
platform and NDK a configuration asks for are installed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path


_PLATFORM_RE = re.compile(r"^android-(\d+)$")


@dataclass
class SdkCheck:
    """Result of one environment check."""

    name: str
    ok: bool
    detail: str


def installed_platforms(sdk_root: Path) -> list[int]:
    platforms_dir = sdk_root / "platforms"
    if not platforms_dir.is_dir():
        return []
    levels: list[int] = []
    for entry in platforms_dir.iterdir():
        match = _PLATFORM_RE.match(entry.name)
        if entry.is_dir() and match:
            levels.append(int(match.group(1)))
    return sorted(levels)


def installed_ndks(sdk_root: Path) -> list[str]:
    ndk_dir = sdk_root / "ndk"
    if not ndk_dir.is_dir():
        return []
    return sorted(entry.name for entry in ndk_dir.iterdir() if entry.is_dir())


def probe_sdk(sdk_root: Path | None, *, compile_sdk: int, ndk_version: str | None) -> list[SdkCheck]:
    """Checks for the SDK root, the compile platform and (if set) the NDK."""

    if sdk_root is None:
        return [SdkCheck("Android SDK", False, "ANDROID_HOME / DROIDCFG_ANDROID_SDK_ROOT not set")]
    if not sdk_root.is_dir():
        return [SdkCheck("Android SDK", False, f"{sdk_root} does not exist")]

    checks = [SdkCheck("Android SDK", True, str(sdk_root))]

    platforms = installed_platforms(sdk_root)
    if compile_sdk in platforms:
        checks.append(SdkCheck(f"platforms/android-{compile_sdk}", True, "installed"))
    else:
        found = ", ".join(str(level) for level in platforms) or "none"
        checks.append(SdkCheck(f"platforms/android-{compile_sdk}", False, f"missing (installed: {found})"))

    if ndk_version:
        ndks = installed_ndks(sdk_root)
        if ndk_version in ndks:
            checks.append(SdkCheck(f"ndk/{ndk_version}", True, "installed"))
        else:
            checks.append(SdkCheck(f"ndk/{ndk_version}", False, f"missing (installed: {', '.join(ndks) or 'none'})"))
    return checks
