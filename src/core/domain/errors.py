"""Configuration error taxonomy.

Every problem the loader or the validator can report is a `ConfigError`
subclass with a stable `code`, so the CLI can render them uniformly and
callers can branch on the type.
"""

from __future__ import annotations

from typing import Any


class ConfigError(Exception):
    """Base class for build configuration problems."""

    code = "config_error"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "field": self.field, "message": self.message}

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class MissingField(ConfigError):
    code = "missing_field"


class VersionOrderingViolation(ConfigError):
    """minSdk / targetSdk / compileSdk are not in ascending order."""

    code = "version_ordering_violation"


class DuplicateBuildTypeName(ConfigError):
    code = "duplicate_build_type_name"


class UnresolvedSigningConfig(ConfigError):
    """A build type points at a signing config nobody declared."""

    code = "unresolved_signing_config"


class InvalidFieldValue(ConfigError):
    code = "invalid_field_value"


class VersionCodeRegression(ConfigError):
    code = "version_code_regression"


class ConfigSourceError(ConfigError):
    """The source file could not be read or is not a mapping."""

    code = "config_source_error"
