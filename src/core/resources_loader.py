"""Flutter default SDK levels.

This module lives in `core/` because:
- it centralizes *which* defaults back the `flutter.*` placeholders, without
  coupling the resolver to the CLI or the network
- validation stays offline: a download only happens on explicit refresh.

Lookup order: cached `flutter_defaults.json` -> download (refresh only) -> settings.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

import httpx

from adapters.http_client import build_client
from core.config import AppSettings, get_user_config_dir
from core.domain.models import FlutterDefaults


logger = logging.getLogger(__name__)

CACHE_FILENAME = "flutter_defaults.json"

# Matches both the Kotlin (`val compileSdkVersion: Int = 35`) and the older
# Groovy (`static int compileSdkVersion = 34`) FlutterExtension sources.
_PROPERTY_RE = re.compile(
    r"\b(?P<key>compileSdkVersion|minSdkVersion|targetSdkVersion|ndkVersion)\b"
    r"\s*(?::\s*\w+)?\s*=\s*\"?(?P<value>[\w.]+)\"?"
)

_FIELD_BY_PROPERTY = {
    "compileSdkVersion": "compile_sdk_version",
    "targetSdkVersion": "target_sdk_version",
    "minSdkVersion": "min_sdk_version",
    "ndkVersion": "ndk_version",
}


def data_dir() -> Path:
    """Runtime data directory.

    Rules:
    - If DROIDCFG_DATA_DIR is set, it is used as-is.
    - Otherwise `<user config dir>/data`.
    """

    override = (os.environ.get("DROIDCFG_DATA_DIR") or "").strip()
    if override:
        return Path(override)
    return get_user_config_dir() / "data"


def defaults_from_settings(settings: AppSettings) -> FlutterDefaults:
    return FlutterDefaults(
        compile_sdk_version=settings.flutter_compile_sdk,
        target_sdk_version=settings.flutter_target_sdk,
        min_sdk_version=settings.flutter_min_sdk,
        ndk_version=settings.flutter_ndk_version,
        source="settings",
    )


def parse_flutter_extension(text: str, *, fallback: FlutterDefaults) -> FlutterDefaults:
    """Extract the default SDK levels from FlutterExtension source text.

    Properties that cannot be found keep the `fallback` value.
    """

    values: dict[str, object] = {}
    for match in _PROPERTY_RE.finditer(text):
        field = _FIELD_BY_PROPERTY[match.group("key")]
        if field in values:
            continue
        raw = match.group("value")
        if field == "ndk_version":
            values[field] = raw
        elif raw.isdigit():
            values[field] = int(raw)

    if not values:
        logger.warning("No Flutter SDK defaults found in the downloaded source")
    return fallback.model_copy(update=values)


def load_flutter_defaults(
    settings: AppSettings | None = None,
    *,
    refresh: bool = False,
    client: httpx.Client | None = None,
) -> FlutterDefaults:
    """Load Flutter defaults.

    Logic:
    - If the cache exists and `refresh=False`, it is used. An unreadable
      cache is logged and skipped.
    - With `refresh=True` the source is downloaded, parsed and cached.
    - Otherwise the settings values are returned.
    """

    settings = settings or AppSettings()
    fallback = defaults_from_settings(settings)
    cache_path = data_dir() / CACHE_FILENAME

    if cache_path.exists() and not refresh:
        try:
            data = json.loads(cache_path.read_text(encoding="utf-8"))
            defaults = FlutterDefaults.model_validate(data)
        except (OSError, ValueError) as exc:
            # JSONDecodeError and pydantic's ValidationError are both ValueErrors.
            logger.warning("Ignoring unreadable Flutter defaults cache %s: %s", cache_path, exc)
        else:
            logger.debug("Using cached Flutter defaults from %s", cache_path)
            return defaults.model_copy(update={"source": str(cache_path)})

    if not refresh:
        return fallback

    url = settings.flutter_defaults_url
    logger.info("Downloading Flutter defaults from %s", url)
    owns_client = client is None
    client = client or build_client(settings)
    try:
        resp = client.get(url)
        resp.raise_for_status()
    finally:
        if owns_client:
            client.close()

    defaults = parse_flutter_extension(resp.text, fallback=fallback).model_copy(update={"source": url})
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_path.write_text(
        json.dumps(defaults.model_dump(mode="json"), ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
    return defaults
