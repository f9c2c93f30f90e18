"""Loading of declarative build settings (JSON / YAML).

Supported shapes:
- `buildTypes` / `signingConfigs`: a list of objects with `name`, or a
  mapping keyed by name.
- `dependencies`: a list of `"group:artifact:version"` strings or objects,
  or a mapping `configuration -> [coordinates]`.

Repeated keys are never silently collapsed: under `buildTypes` and
`signingConfigs` every entry is kept so the validator can report it,
anywhere else the load fails.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from core.domain.errors import ConfigSourceError, InvalidFieldValue


logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")

_NAMED_SECTIONS = ("buildTypes", "signingConfigs")


class DuplicateKeyMapping(dict):
    """A dict that also remembers every (key, value) pair, repeats included."""

    def __init__(self, pairs: list[tuple[Any, Any]]) -> None:
        super().__init__(pairs)
        self.pairs = list(pairs)


def _mapping_from_pairs(pairs: list[tuple[Any, Any]]) -> dict:
    keys = [key for key, _ in pairs]
    if len(set(keys)) != len(keys):
        return DuplicateKeyMapping(pairs)
    return dict(pairs)


class _DuplicateAwareLoader(yaml.SafeLoader):
    pass


def _construct_mapping(loader: _DuplicateAwareLoader, node: yaml.MappingNode) -> dict:
    loader.flatten_mapping(node)
    pairs = []
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=True)
        try:
            hash(key)
        except TypeError as exc:
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping",
                node.start_mark,
                f"found unhashable key ({exc})",
                key_node.start_mark,
            ) from exc
        pairs.append((key, loader.construct_object(value_node, deep=True)))
    return _mapping_from_pairs(pairs)


_DuplicateAwareLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def _pairs(mapping: Mapping) -> list[tuple[Any, Any]]:
    if isinstance(mapping, DuplicateKeyMapping):
        return mapping.pairs
    return list(mapping.items())


def _plain(value: Any, path: str) -> Any:
    if isinstance(value, DuplicateKeyMapping):
        seen: set[Any] = set()
        for key, _ in value.pairs:
            if key in seen:
                raise InvalidFieldValue(f"duplicate key '{key}'", field=path)
            seen.add(key)
    if isinstance(value, Mapping):
        return {key: _plain(item, f"{path}.{key}") for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item, f"{path}[{index}]") for index, item in enumerate(value)]
    return value


def _normalize_named(value: Any, section: str) -> Any:
    if isinstance(value, Mapping):
        out: list[dict[str, Any]] = []
        for name, body in _pairs(value):
            body = _plain(body if body is not None else {}, f"{section}.{name}")
            if not isinstance(body, Mapping):
                raise InvalidFieldValue("expected an object", field=f"{section}.{name}")
            out.append({"name": name, **body})
        return out
    return _plain(value, section)


def _normalize_dependencies(value: Any) -> Any:
    if not isinstance(value, Mapping):
        return _plain(value, "dependencies")

    out: list[Any] = []
    for configuration, items in _pairs(value):
        if isinstance(items, (str, Mapping)):
            items = [items]
        if not isinstance(items, list):
            raise InvalidFieldValue("expected a list", field=f"dependencies.{configuration}")
        for item in items:
            if isinstance(item, str):
                if item.count(":") >= 2:
                    name, version = item.rsplit(":", 1)
                    out.append({"configuration": configuration, "name": name, "version": version})
                else:
                    out.append({"configuration": configuration, "name": item})
            else:
                out.append({"configuration": configuration, **_plain(item, f"dependencies.{configuration}")})
    return out


def normalize_source(data: Mapping[str, Any]) -> dict[str, Any]:
    """Bring a freshly parsed document into the list-based model shape."""

    out: dict[str, Any] = {}
    for key, value in _pairs(data):
        if key in out:
            raise InvalidFieldValue(f"duplicate key '{key}'", field=str(key))
        if key in _NAMED_SECTIONS:
            out[key] = _normalize_named(value, key)
        elif key == "dependencies":
            out[key] = _normalize_dependencies(value)
        else:
            out[key] = _plain(value, str(key))
    return out


def parse_config_text(text: str, *, suffix: str) -> Any:
    if suffix == ".json":
        return json.loads(text, object_pairs_hook=_mapping_from_pairs)
    return yaml.load(text, Loader=_DuplicateAwareLoader)  # nosec: SafeLoader subclass


def load_config_source(path: Path) -> dict[str, Any]:
    """Read and normalize a settings file. Raises `ConfigError` subclasses."""

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ConfigSourceError(
            f"unsupported file type '{suffix or path.name}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})",
            field=str(path),
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigSourceError(f"cannot read file: {exc}", field=str(path)) from exc

    try:
        data = parse_config_text(text, suffix=suffix)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigSourceError(f"malformed {suffix.lstrip('.')}: {exc}", field=str(path)) from exc

    if not isinstance(data, Mapping):
        raise ConfigSourceError("top-level value must be an object", field=str(path))

    logger.debug("Loaded %s (%d top-level keys)", path, len(data))
    return normalize_source(data)
