from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

# Wide, stable Rich output for CLI assertions (read when consoles are created).
os.environ.setdefault("COLUMNS", "200")


BASE_CONFIG: dict[str, Any] = {
    "namespace": "com.example.yolo",
    "applicationId": "com.example.yolo",
    "minSdk": 24,
    "targetSdk": 34,
    "compileSdk": 34,
    "versionCode": 1,
    "versionName": "1.0.0",
    "buildTypes": [
        {
            "name": "release",
            "minify": True,
            "shrinkResources": True,
            "proguardFiles": [{"default": "proguard-android-optimize.txt"}, "proguard-rules.pro"],
            "signingConfig": "debug",
        },
        {"name": "debug", "signingConfig": "debug"},
    ],
    "dependencies": ["androidx.multidex:multidex:2.0.1"],
}


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep every test away from the real user config, data dir and SDK."""

    monkeypatch.setenv("DROIDCFG_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "xdg"))
    for name in ("ANDROID_HOME", "ANDROID_SDK_ROOT", "DROIDCFG_ANDROID_SDK_ROOT", "DROIDCFG_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def base_config() -> dict[str, Any]:
    return copy.deepcopy(BASE_CONFIG)


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write a config mapping as YAML (default) or JSON and return its path."""

    def _write(data: dict[str, Any], name: str = "build-config.yaml", directory: Path | None = None) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        if path.suffix == ".json":
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
