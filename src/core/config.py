"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without leaking into the CLI.
- Lets adapters (loader, emitters, HTTP) read settings consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import dotenv_values, set_key
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_DIR_NAME = "droidcfg"
ENV_FILE_HEADER = "# droidcfg user config (.env)"


def get_user_config_dir() -> Path:
    """Where `doctor set-defaults` keeps the user's `.env`.

    Windows: %APPDATA%, macOS: Application Support, elsewhere XDG.
    """

    if sys.platform.startswith("win"):
        return Path(os.environ.get("APPDATA", str(Path.home()))) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config") / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def read_user_env_vars() -> dict[str, str]:
    env_path = get_user_env_file()
    if not env_path.exists():
        return {}
    return {key: value for key, value in dotenv_values(env_path).items() if value is not None}


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Set `values` in the user's `.env`, keeping its other lines and comments.

    Known keys are updated in place, new ones are appended in sorted order.
    """

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)
    if not env_path.exists():
        env_path.write_text(ENV_FILE_HEADER + "\n", encoding="utf-8")

    for key in sorted(values):
        if values[key] is not None:
            set_key(env_path, key, values[key], quote_mode="never")
    return env_path


FLUTTER_EXTENSION_URL = (
    "https://raw.githubusercontent.com/flutter/flutter/stable/"
    "packages/flutter_tools/gradle/src/main/kotlin/FlutterExtension.kt"
)


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed, validated at the edge (env vars) without polluting the Core.
    - One configuration contract for CLI and adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="DROIDCFG_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    platform_min_sdk: int = Field(
        default=21,
        ge=1,
        description="Lowest Android API level the toolchain can target.",
    )
    max_version_code: int = Field(
        default=2_100_000_000,
        ge=1,
        description="Largest versionCode accepted by the Play Store.",
    )

    flutter_compile_sdk: int = Field(
        default=35,
        ge=1,
        description="Fallback for flutter.compileSdkVersion.",
    )
    flutter_target_sdk: int = Field(
        default=35,
        ge=1,
        description="Fallback for flutter.targetSdkVersion.",
    )
    flutter_min_sdk: int = Field(
        default=21,
        ge=1,
        description="Fallback for flutter.minSdkVersion.",
    )
    flutter_ndk_version: str = Field(
        default="27.0.12077973",
        min_length=1,
        description="Fallback for flutter.ndkVersion.",
    )
    flutter_defaults_url: str = Field(
        default=FLUTTER_EXTENSION_URL,
        min_length=8,
        description="Source of Flutter's default SDK levels (FlutterExtension.kt).",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="droidcfg/0.1 (+https://local)",
        min_length=1,
        description="User-Agent for outgoing requests.",
    )

    android_sdk_root: Path | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "DROIDCFG_ANDROID_SDK_ROOT",
            "ANDROID_HOME",
            "ANDROID_SDK_ROOT",
        ),
        description="Android SDK installation used by `doctor`.",
    )

    default_emit_format: str = Field(
        default="kts",
        pattern=r"^(kts|groovy|json)$",
        description="Output format used by `emit` when none is given.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Root log level for the CLI (DEBUG, INFO, WARNING, ...).",
    )
