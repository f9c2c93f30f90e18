from adapters.config_sources.loader import load_config_source, normalize_source
from adapters.config_sources.pubspec import read_pubspec_version

__all__ = [
    "load_config_source",
    "normalize_source",
    "read_pubspec_version",
]
