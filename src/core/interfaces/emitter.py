"""Contract for configuration emitters.

Why Protocol:
- Structural contract (duck typing) without rigid inheritance.
- Output formats (Kotlin DSL, Groovy DSL, JSON) stay interchangeable and
  testable without coupling the Core to template engines.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ValidConfig


@runtime_checkable
class ConfigEmitter(Protocol):
    """Minimal contract for an output format.

    Design rules:
    - Only a `ValidConfig` can be rendered; validation happens before.
    - `render` is pure and returns the complete file content.
    """

    format_name: str
    default_filename: str

    def render(self, config: ValidConfig) -> str:
        """Render `config` in the emitter's format."""

        ...
