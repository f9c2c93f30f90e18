"""CLI commands through Typer's test runner."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from cli.main import app


runner = CliRunner()


@pytest.fixture
def config_path(base_config, write_config, tmp_path):
    return write_config(base_config, directory=tmp_path / "android" / "app")


def test_validate_ok(config_path):
    result = runner.invoke(app, ["validate", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "is valid" in result.output


def test_validate_json_reports_errors(base_config, write_config):
    base_config.update(minSdk=30, targetSdk=24)
    path = write_config(base_config)

    result = runner.invoke(app, ["validate", str(path), "--json"])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["valid"] is False
    assert payload["errors"][0]["code"] == "version_ordering_violation"
    assert payload["errors"][0]["field"] == "targetSdk"


def test_validate_platform_min_sdk_option(config_path):
    result = runner.invoke(app, ["validate", str(config_path), "--platform-min-sdk", "26", "--json"])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["errors"][0]["field"] == "minSdk"


def test_validate_missing_file(tmp_path):
    result = runner.invoke(app, ["validate", str(tmp_path / "nope.yaml"), "--json"])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["errors"][0]["code"] == "config_source_error"


def test_show(config_path):
    result = runner.invoke(app, ["--no-banner", "show", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "Build configuration" in result.output
    assert "Build types" in result.output


def test_banner_is_shown_unless_disabled_globally(config_path):
    with_banner = runner.invoke(app, ["show", str(config_path)])
    without_banner = runner.invoke(app, ["--no-banner", "show", str(config_path)])

    assert with_banner.exit_code == 0, with_banner.output
    assert "Android build settings" in with_banner.output
    assert without_banner.exit_code == 0, without_banner.output
    assert "Android build settings" not in without_banner.output


def test_no_banner_is_not_a_show_option(config_path):
    result = runner.invoke(app, ["show", str(config_path), "--no-banner"])

    assert result.exit_code == 2


def test_validate_survives_corrupt_defaults_cache(config_path, tmp_path, monkeypatch):
    monkeypatch.setenv("DROIDCFG_LOG_LEVEL", "ERROR")
    cache = tmp_path / "data" / "flutter_defaults.json"
    cache.parent.mkdir(parents=True)
    cache.write_text("{truncated", encoding="utf-8")

    result = runner.invoke(app, ["validate", str(config_path), "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["valid"] is True


def test_emit_kotlin_next_to_config(config_path):
    result = runner.invoke(app, ["emit", str(config_path)])

    assert result.exit_code == 0, result.output
    script = config_path.parent / "build.gradle.kts"
    assert 'applicationId = "com.example.yolo"' in script.read_text(encoding="utf-8")


def test_emit_groovy_to_output(config_path, tmp_path):
    target = tmp_path / "out" / "build.gradle"

    result = runner.invoke(app, ["emit", str(config_path), "--format", "groovy", "--output", str(target)])

    assert result.exit_code == 0, result.output
    assert "minifyEnabled = true" in target.read_text(encoding="utf-8")


def test_emit_refuses_invalid_config(base_config, write_config, tmp_path):
    base_config["buildTypes"][0]["signingConfig"] = "upload"
    path = write_config(base_config)

    result = runner.invoke(app, ["emit", str(path)])

    assert result.exit_code == 1
    assert not (tmp_path / "build.gradle.kts").exists()


def test_emit_unknown_format(config_path):
    result = runner.invoke(app, ["emit", str(config_path), "--format", "xml"])

    assert result.exit_code == 2


def test_emit_refuses_to_overwrite_source(base_config, write_config):
    path = write_config(base_config, name="build-config.json")

    result = runner.invoke(app, ["emit", str(path), "--format", "json", "--output", str(path)])

    assert result.exit_code == 2


def test_check_bump(base_config, write_config):
    released = write_config(base_config, name="released.yaml")
    base_config["versionCode"] = 2
    candidate = write_config(base_config, name="candidate.yaml")

    ok = runner.invoke(app, ["check-bump", str(released), str(candidate)])
    regression = runner.invoke(app, ["check-bump", str(candidate), str(released)])

    assert ok.exit_code == 0, ok.output
    assert regression.exit_code == 1
    assert "version_code_regression" in regression.output


def test_fetch_defaults_offline():
    result = runner.invoke(app, ["fetch-defaults"])

    assert result.exit_code == 0, result.output
    assert "compileSdkVersion" in result.output
    assert "settings" in result.output


def test_doctor_without_sdk():
    result = runner.invoke(app, ["--no-banner", "doctor", "run"])

    assert result.exit_code == 0, result.output
    assert "FAIL" in result.output


def test_doctor_with_sdk(config_path, tmp_path, monkeypatch):
    sdk = tmp_path / "sdk"
    (sdk / "platforms" / "android-34").mkdir(parents=True)
    monkeypatch.setenv("ANDROID_HOME", str(sdk))

    result = runner.invoke(app, ["--no-banner", "doctor", "run", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "platforms/android-34" in result.output
    assert "FAIL" not in result.output


def test_doctor_set_defaults(tmp_path):
    result = runner.invoke(app, ["doctor", "set-defaults"], input="36\n35\n23\n27.0.12077973\n")

    assert result.exit_code == 0, result.output
    env_file = tmp_path / "xdg" / "droidcfg" / ".env"
    content = env_file.read_text(encoding="utf-8")
    assert "DROIDCFG_FLUTTER_COMPILE_SDK=36" in content
    assert "DROIDCFG_FLUTTER_MIN_SDK=23" in content
