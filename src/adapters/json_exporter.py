"""JSON export of a validated configuration.

Why JSON:
- Interoperability with CI scripts and other tooling.
- The output is a valid droidcfg source: loading it again yields the same record.
"""

from __future__ import annotations

import json
from typing import Any

from core.domain.models import ValidConfig
from core.services.resolver import FLUTTER_REF_PREFIX


def config_payload(config: ValidConfig, *, preserve_flutter_refs: bool = True) -> dict[str, Any]:
    """camelCase mapping of `config`, with Flutter placeholders written back if asked."""

    payload = config.model_dump(mode="json", by_alias=True)
    refs = payload.pop("flutterRefs", {})
    if preserve_flutter_refs:
        for key, prop in refs.items():
            payload[key] = f"{FLUTTER_REF_PREFIX}{prop}"
    return payload


class JsonEmitter:
    format_name = "json"
    default_filename = "build-config.json"

    def __init__(self, *, preserve_flutter_refs: bool = True) -> None:
        self.preserve_flutter_refs = preserve_flutter_refs

    def render(self, config: ValidConfig) -> str:
        """Stable UTF-8 JSON: sorted keys, two-space indent, trailing newline."""

        payload = config_payload(config, preserve_flutter_refs=self.preserve_flutter_refs)
        return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"
