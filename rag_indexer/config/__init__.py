"""Configuration module. Exports Settings and load_config."""

from rag_indexer.config.loader import load_config
from rag_indexer.config.settings import Settings

__all__ = ["Settings", "load_config"]
