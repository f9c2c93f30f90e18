"""Flutter default SDK levels: parsing, cache and download."""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from adapters.http_client import build_client
from core.config import AppSettings
from core.resources_loader import (
    CACHE_FILENAME,
    data_dir,
    defaults_from_settings,
    load_flutter_defaults,
    parse_flutter_extension,
)


KOTLIN_SOURCE = """
open class FlutterExtension {
    /** Sets the compileSdkVersion used by default in Flutter app projects. */
    val compileSdkVersion: Int = 36

    /** Sets the minSdkVersion used by default in Flutter app projects. */
    val minSdkVersion: Int = 24

    val targetSdkVersion: Int = 36

    val ndkVersion: String = "27.0.12077973"
}
"""

GROOVY_SOURCE = """
class FlutterExtension {
    public static int compileSdkVersion = 34
    public static int minSdkVersion = 21
    public static int targetSdkVersion = 34
    public static String ndkVersion = "23.1.7779620"
}
"""


@pytest.fixture
def settings():
    return AppSettings()


def test_parse_kotlin_source(settings):
    defaults = parse_flutter_extension(KOTLIN_SOURCE, fallback=defaults_from_settings(settings))

    assert defaults.compile_sdk_version == 36
    assert defaults.min_sdk_version == 24
    assert defaults.target_sdk_version == 36
    assert defaults.ndk_version == "27.0.12077973"


def test_parse_groovy_source(settings):
    defaults = parse_flutter_extension(GROOVY_SOURCE, fallback=defaults_from_settings(settings))

    assert (defaults.compile_sdk_version, defaults.ndk_version) == (34, "23.1.7779620")


def test_parse_keeps_fallback_for_missing_properties(settings):
    fallback = defaults_from_settings(settings)

    defaults = parse_flutter_extension("val compileSdkVersion: Int = 40", fallback=fallback)

    assert defaults.compile_sdk_version == 40
    assert defaults.ndk_version == fallback.ndk_version


def test_without_cache_settings_are_used(settings):
    defaults = load_flutter_defaults(settings)

    assert defaults.source == "settings"
    assert defaults.compile_sdk_version == settings.flutter_compile_sdk


@pytest.mark.parametrize("content", ["{not json", "[]", "{\"compile_sdk_version\": \"x\"}"])
def test_unreadable_cache_falls_back_to_settings(settings, caplog, content):
    cache_path = data_dir() / CACHE_FILENAME
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_path.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="core.resources_loader"):
        defaults = load_flutter_defaults(settings)

    assert defaults == defaults_from_settings(settings)
    assert "Ignoring unreadable Flutter defaults cache" in caplog.text


def test_refresh_downloads_and_caches(settings, tmp_path):
    requests: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(str(request.url))
        return httpx.Response(200, text=KOTLIN_SOURCE)

    client = build_client(settings, transport=httpx.MockTransport(handler))
    defaults = load_flutter_defaults(settings, refresh=True, client=client)

    assert requests == [settings.flutter_defaults_url]
    assert defaults.compile_sdk_version == 36
    assert defaults.source == settings.flutter_defaults_url

    cache_path = data_dir() / CACHE_FILENAME
    assert cache_path == tmp_path / "data" / CACHE_FILENAME
    assert json.loads(cache_path.read_text(encoding="utf-8"))["min_sdk_version"] == 24

    cached = load_flutter_defaults(settings)
    assert cached.compile_sdk_version == 36
    assert cached.source == str(cache_path)


def test_refresh_http_error(settings):
    client = build_client(settings, transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    with pytest.raises(httpx.HTTPStatusError):
        load_flutter_defaults(settings, refresh=True, client=client)
    assert not (data_dir() / CACHE_FILENAME).exists()


def test_client_headers(settings):
    client = build_client(settings, extra_headers={"X-Trace": "1"})

    assert client.headers["User-Agent"] == settings.user_agent
    assert client.headers["X-Trace"] == "1"
    client.close()
