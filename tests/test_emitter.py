"""Gradle (Kotlin/Groovy) and JSON rendering."""

from __future__ import annotations

import json
import re

import pytest

from adapters.config_sources import normalize_source
from adapters.gradle_emitter import groovy_dsl_emitter, kotlin_dsl_emitter, quote
from adapters.json_exporter import JsonEmitter
from core.domain.models import FlutterDefaults
from core.interfaces.emitter import ConfigEmitter
from core.services.config_pipeline import emit_config, get_emitter
from core.services.resolver import resolve_flutter_refs
from core.services.validator import validate


DEFAULTS = FlutterDefaults(
    compile_sdk_version=35,
    target_sdk_version=35,
    min_sdk_version=21,
    ndk_version="27.0.12077973",
)


@pytest.fixture
def flutter_app(base_config):
    """The Flutter template app: SDK levels and version delegated to Flutter."""

    base_config.update(
        compileSdk="flutter.compileSdkVersion",
        targetSdk="flutter.targetSdkVersion",
        versionCode="flutter.versionCode",
        versionName="flutter.versionName",
        ndkVersion="28.0.13004108",
        multiDexEnabled=True,
    )
    data = resolve_flutter_refs(base_config, defaults=DEFAULTS, pubspec_version=("1.0.0", 7))
    return validate(data)


def test_kotlin_dsl(flutter_app):
    text = kotlin_dsl_emitter().render(flutter_app)

    assert text.startswith('plugins {\n    id("com.android.application")\n')
    assert 'namespace = "com.example.yolo"' in text
    assert "compileSdk = flutter.compileSdkVersion" in text
    assert 'ndkVersion = "28.0.13004108"' in text
    assert "sourceCompatibility = JavaVersion.VERSION_11" in text
    assert "jvmTarget = JavaVersion.VERSION_11.toString()" in text
    assert "minSdk = 24" in text
    assert "targetSdk = flutter.targetSdkVersion" in text
    assert "versionCode = flutter.versionCode" in text
    assert "versionName = flutter.versionName" in text
    assert "multiDexEnabled = true" in text
    assert 'getByName("release") {' in text
    assert "isMinifyEnabled = true" in text
    assert "isShrinkResources = true" in text
    assert (
        "            setProguardFiles(\n"
        "                listOf(\n"
        '                    getDefaultProguardFile("proguard-android-optimize.txt"),\n'
        '                    "proguard-rules.pro"\n'
        "                )\n"
        "            )\n"
    ) in text
    assert 'signingConfig = signingConfigs.getByName("debug")' in text
    assert "signingConfigs {" not in text
    assert 'implementation("androidx.multidex:multidex:2.0.1")' in text
    assert text.endswith('flutter {\n    source = "../.."\n}\n')


def test_kotlin_dsl_literal_values(flutter_app):
    text = kotlin_dsl_emitter(preserve_flutter_refs=False).render(flutter_app)

    assert "compileSdk = 35" in text
    assert "targetSdk = 35" in text
    assert "versionCode = 7" in text
    assert 'versionName = "1.0.0"' in text
    assert "flutter.compileSdkVersion" not in text


def test_groovy_dsl(flutter_app):
    text = groovy_dsl_emitter().render(flutter_app)

    assert 'id "dev.flutter.flutter-gradle-plugin"' in text
    assert "minifyEnabled = true" in text
    assert "shrinkResources = true" in text
    assert 'proguardFiles getDefaultProguardFile("proguard-android-optimize.txt"), "proguard-rules.pro"' in text
    assert "jvmTarget = JavaVersion.VERSION_11\n" in text
    assert 'implementation "androidx.multidex:multidex:2.0.1"' in text


def test_signing_configs_and_custom_build_types(base_config):
    base_config["signingConfigs"] = [
        {
            "name": "release",
            "storeFile": "upload-keystore.jks",
            "storePassword": "env:STORE_PASSWORD",
            "keyAlias": "upload",
            "keyPassword": "env:KEY_PASSWORD",
        }
    ]
    base_config["buildTypes"][0]["signingConfig"] = "release"
    base_config["buildTypes"].append({"name": "staging", "signingConfig": "release"})
    config = validate(normalize_source(base_config))

    text = kotlin_dsl_emitter().render(config)

    assert 'create("release") {' in text
    assert 'storeFile = file("upload-keystore.jks")' in text
    assert 'storePassword = System.getenv("STORE_PASSWORD")' in text
    assert 'keyAlias = "upload"' in text
    assert 'keyPassword = System.getenv("KEY_PASSWORD")' in text
    assert 'create("staging") {' in text
    assert 'signingConfig = signingConfigs.getByName("release")' in text


def test_quote_escapes_templates():
    assert quote("pa$$word") == '"pa\\$\\$word"'
    assert quote('say "hi"') == '"say \\"hi\\""'


def test_json_emitter_writes_refs_back(flutter_app):
    payload = json.loads(JsonEmitter().render(flutter_app))

    assert payload["compileSdk"] == "flutter.compileSdkVersion"
    assert payload["minSdk"] == 24
    assert "flutterRefs" not in payload
    assert payload["buildTypes"][0]["proguardFiles"][0] == {
        "default": True,
        "path": "proguard-android-optimize.txt",
    }


def test_json_output_is_a_valid_source(flutter_app):
    payload = json.loads(JsonEmitter().render(flutter_app))
    data = resolve_flutter_refs(normalize_source(payload), defaults=DEFAULTS, pubspec_version=("1.0.0", 7))

    assert validate(data) == flutter_app


def test_json_literal_values(flutter_app):
    payload = json.loads(JsonEmitter(preserve_flutter_refs=False).render(flutter_app))

    assert payload["compileSdk"] == 35
    assert payload["versionCode"] == 7


@pytest.mark.parametrize("fmt", ["kts", "groovy", "json"])
def test_emitters_follow_the_protocol(fmt):
    assert isinstance(get_emitter(fmt), ConfigEmitter)


def test_unknown_format():
    with pytest.raises(ValueError):
        get_emitter("xml")


def test_emit_config_creates_directories(flutter_app, tmp_path):
    target = tmp_path / "android" / "app" / "build.gradle.kts"

    written = emit_config(flutter_app, "kts", target)

    assert written == target
    assert target.read_text(encoding="utf-8") == kotlin_dsl_emitter().render(flutter_app)


def test_emit_config_default_filename(flutter_app, tmp_path):
    written = emit_config(flutter_app, "groovy")

    assert written.name == "build.gradle"
    assert (tmp_path / "build.gradle").exists()


def test_emitters_write_only_known_flutter_references(flutter_app):
    text = kotlin_dsl_emitter().render(flutter_app)

    references = sorted(set(re.findall(r"= flutter\.(\w+)", text)))
    assert references == ["compileSdkVersion", "targetSdkVersion", "versionCode", "versionName"]
