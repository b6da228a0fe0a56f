"""YAML run-config loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Later layers override earlier ones:
#
#   1. config/indexer.yaml: optional checked-in defaults
#   2. .env / environment: via Settings
#   3. CLI flags: applied by rag_indexer.cli.index
#
# Example config/indexer.yaml:
#
#   indexing:
#     collections: [press_release, company_news]
#     page_size: 50
#     reembed_mode: missing
#   chunking:
#     target: 1200
#     overlap: 200
#     min: 800
#     max: 1500
#   logging:
#     level: DEBUG
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from rag_indexer.config.settings import Settings
from rag_indexer.utils.errors import ConfigError

DEFAULT_CONFIG_PATH = "config/indexer.yaml"


def load_config(path: str = DEFAULT_CONFIG_PATH, settings: Settings | None = None) -> dict[str, Any]:
    """Load the YAML config and merge environment-based Settings on top.

    A missing file is not an error; a malformed one is.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; built from the environment when omitted.

    Returns:
        Dict with ``indexing``, ``chunking`` and ``logging`` sections.
        Database paths and the embedding provider are read from Settings
        directly and have no YAML counterpart.

    Raises:
        ConfigError: If the file exists but is not a YAML mapping.
    """
    config_path = Path(path)
    yaml_config: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(message=f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigError(message=f"{config_path} must contain a mapping at top level")

    settings = settings or Settings()
    indexing = {
        "collections": ("index_collections", settings.collection_names()),
        "page_size": ("index_page_size", settings.index_page_size),
        "start_offset": ("index_start_offset", settings.index_start_offset),
        "reembed_mode": ("index_reembed_mode", settings.index_reembed_mode),
        "embed_concurrency": ("index_embed_concurrency", settings.index_embed_concurrency),
    }
    log_fields = {
        "level": ("log_level", settings.log_level),
        "json": ("app_env", settings.app_env == "production"),
    }
    defaults = {
        "indexing": {key: value for key, (_, value) in indexing.items()},
        "chunking": {"target": 1200, "overlap": 200, "min": 800, "max": 1500},
        "logging": {key: value for key, (_, value) in log_fields.items()},
    }
    # Only values actually set in the environment beat the file.
    explicit = settings.model_fields_set
    env_overrides = {
        section: {key: value for key, (field, value) in fields.items() if field in explicit}
        for section, fields in (("indexing", indexing), ("logging", log_fields))
    }

    _deep_merge(defaults, yaml_config)
    _deep_merge(defaults, env_overrides)
    return defaults


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
