"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict typing plus self-documenting fields (Field) without coupling the
  Core to file formats or Gradle.
- Source keys stay camelCase (as written in Gradle) through aliases, while
  Python code uses snake_case.

Note:
- These models describe *what* an Android build configuration is. Business
  rules that span several fields (SDK ordering, signing references) live in
  `core.services.validator`.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator
from pydantic.config import ConfigDict


ANDROID_APPLICATION_PLUGIN = "com.android.application"
KOTLIN_ANDROID_PLUGIN = "kotlin-android"
FLUTTER_GRADLE_PLUGIN = "dev.flutter.flutter-gradle-plugin"

DEFAULT_PLUGINS: tuple[str, ...] = (
    ANDROID_APPLICATION_PLUGIN,
    KOTLIN_ANDROID_PLUGIN,
    FLUTTER_GRADLE_PLUGIN,
)

# Signing config the Android Gradle Plugin always creates.
DEBUG_SIGNING_CONFIG = "debug"

ENV_REF_PREFIX = "env:"

# Source keys that may delegate to the Flutter Gradle plugin.
RESOLVABLE_KEYS: tuple[str, ...] = (
    "compileSdk",
    "targetSdk",
    "minSdk",
    "ndkVersion",
    "versionCode",
    "versionName",
)

# Properties the Flutter Gradle plugin exposes as `flutter.<name>`.
FLUTTER_PROPERTIES: tuple[str, ...] = (
    "compileSdkVersion",
    "targetSdkVersion",
    "minSdkVersion",
    "ndkVersion",
    "versionCode",
    "versionName",
)

# Gradle's JavaVersion enum: VERSION_1_5 .. VERSION_1_10, then VERSION_11 and up.
JAVA_VERSION_PATTERN = r"^(1\.([5-9]|10)|1[1-9]|[2-9]\d)$"

# A Gradle configuration name is written unquoted, as a Kotlin/Groovy identifier.
GRADLE_CONFIGURATION_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"


def java_version_constant(version: str) -> str:
    """`"1.8"` -> `"VERSION_1_8"`, `"11"` -> `"VERSION_11"` (JavaVersion enum)."""

    return "VERSION_" + version.replace(".", "_")


class ProguardFile(BaseModel):
    """One entry of `proguardFiles`, order matters.

    `default=True` stands for `getDefaultProguardFile(path)`, a file bundled
    with the Android Gradle Plugin rather than one in the project.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., min_length=1, description="File name or project-relative path.")
    default: bool = Field(
        default=False,
        description="True when the file ships with the Android Gradle Plugin.",
    )

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"path": value}
        if isinstance(value, dict) and "path" not in value and isinstance(value.get("default"), str):
            return {"path": value["default"], "default": True}
        return value


class BuildType(BaseModel):
    """A named build variant (debug, release, ...)."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, description="Variant name, unique per configuration.")
    minify: bool = Field(
        default=False,
        description="Code shrinking and obfuscation (isMinifyEnabled).",
    )
    shrink_resources: bool = Field(
        default=False,
        alias="shrinkResources",
        description="Resource shrinking (isShrinkResources). Requires minify.",
    )
    signing_config: str | None = Field(
        default=None,
        alias="signingConfig",
        description="Name of the signing config used for this variant.",
    )
    proguard_files: tuple[ProguardFile, ...] = Field(
        default=(),
        alias="proguardFiles",
        description="Ordered ProGuard/R8 rule files.",
    )


class SigningConfig(BaseModel):
    """Named credentials used to sign the output.

    Secret values may be written as `env:NAME`; emitters then read them from
    the environment at build time instead of writing them into the file.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    store_file: str | None = Field(default=None, alias="storeFile")
    store_password: str | None = Field(default=None, alias="storePassword")
    key_alias: str | None = Field(default=None, alias="keyAlias")
    key_password: str | None = Field(default=None, alias="keyPassword")


class Dependency(BaseModel):
    """A Maven dependency declared for one Gradle configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    configuration: str = Field(
        default="implementation",
        pattern=GRADLE_CONFIGURATION_PATTERN,
        description="Gradle configuration (implementation, debugImplementation, ...).",
    )
    name: str = Field(..., min_length=1, description="`group:artifact` coordinate.")
    version: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _from_coordinate(cls, value: Any) -> Any:
        if isinstance(value, str) and value.count(":") >= 2:
            name, version = value.rsplit(":", 1)
            return {"name": name, "version": version}
        return value

    @property
    def coordinate(self) -> str:
        return f"{self.name}:{self.version}"


class CompileOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    source_compatibility: str = Field(
        default="11",
        alias="sourceCompatibility",
        pattern=JAVA_VERSION_PATTERN,
    )
    target_compatibility: str = Field(
        default="11",
        alias="targetCompatibility",
        pattern=JAVA_VERSION_PATTERN,
    )
    jvm_target: str = Field(
        default="11",
        alias="jvmTarget",
        pattern=JAVA_VERSION_PATTERN,
        description="Kotlin JVM target; must match targetCompatibility.",
    )

    @field_validator("source_compatibility", "target_compatibility", "jvm_target", mode="before")
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class BuildConfiguration(BaseModel):
    """Aggregate: the Android build settings of one Flutter app.

    Created once per project, edited by hand in the declarative source and
    never mutated at runtime.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    plugins: tuple[str, ...] = Field(
        default=DEFAULT_PLUGINS,
        description="Gradle plugin ids in application order.",
    )
    namespace: str = Field(..., description="Kotlin/Java namespace of the generated R class.")
    application_id: str = Field(..., alias="applicationId", description="Reverse-domain app id.")
    min_sdk: int = Field(..., alias="minSdk")
    target_sdk: int = Field(..., alias="targetSdk")
    compile_sdk: int = Field(..., alias="compileSdk")
    ndk_version: str | None = Field(default=None, alias="ndkVersion")
    version_code: int = Field(..., alias="versionCode")
    version_name: str = Field(..., alias="versionName")
    multidex_enabled: bool = Field(default=False, alias="multiDexEnabled")
    compile_options: CompileOptions = Field(default_factory=CompileOptions, alias="compileOptions")
    build_types: tuple[BuildType, ...] = Field(..., alias="buildTypes")
    signing_configs: tuple[SigningConfig, ...] = Field(default=(), alias="signingConfigs")
    dependencies: tuple[Dependency, ...] = Field(default=())
    flutter_source: str = Field(
        default="../..",
        alias="flutterSource",
        description="Flutter project root, relative to the config file.",
    )
    flutter_refs: Mapping[str, str] = Field(
        default_factory=dict,
        alias="flutterRefs",
        validate_default=True,
        description="Source key -> Flutter property it was resolved from. Read-only.",
    )

    @field_validator("flutter_refs", mode="after")
    @classmethod
    def _known_flutter_refs(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        # Values are written unquoted as `flutter.<prop>` into the build script.
        for key, prop in value.items():
            if key not in RESOLVABLE_KEYS:
                raise ValueError(f"'{key}' cannot reference a Flutter property")
            if prop not in FLUTTER_PROPERTIES:
                raise ValueError(f"unknown Flutter property '{prop}' for '{key}'")
        return MappingProxyType(dict(value))

    @field_serializer("flutter_refs")
    def _refs_as_dict(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    @field_validator("dependencies", mode="after")
    @classmethod
    def _dedupe_dependencies(cls, value: tuple[Dependency, ...]) -> tuple[Dependency, ...]:
        seen: set[tuple[str, str]] = set()
        out: list[Dependency] = []
        for dep in value:
            key = (dep.name, dep.version)
            if key in seen:
                continue
            seen.add(key)
            out.append(dep)
        return tuple(out)

    def build_type(self, name: str) -> BuildType | None:
        for build_type in self.build_types:
            if build_type.name == name:
                return build_type
        return None

    def build_type_names(self) -> list[str]:
        return [bt.name for bt in self.build_types]

    def declared_signing_configs(self) -> set[str]:
        return {DEBUG_SIGNING_CONFIG} | {sc.name for sc in self.signing_configs}


class ValidConfig(BuildConfiguration):
    """A `BuildConfiguration` that passed validation.

    Immutable all the way down: nested models are frozen, collections are
    tuples and `flutter_refs` is a read-only mapping.
    """


class FlutterDefaults(BaseModel):
    """SDK levels Flutter injects through `flutter.*` properties."""

    compile_sdk_version: int = Field(..., ge=1)
    target_sdk_version: int = Field(..., ge=1)
    min_sdk_version: int = Field(..., ge=1)
    ndk_version: str = Field(..., min_length=1)
    source: str = Field(
        default="settings",
        description="Where the values came from (settings, cache, or a URL).",
    )
