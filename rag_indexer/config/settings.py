"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from (highest priority first):
#
#   1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
#   2. .env file, key=value lines in the working directory
#   3. The defaults below
#
# Field `store_db_path` maps to env var `STORE_DB_PATH`, and so on.
# Command-line flags of `rag-indexer build` override all three.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_COLLECTIONS = (
    "internal_data,press_release,board_members,partnerships,financial_reports,"
    "company_news,product_info,executive_team,investor_relations"
)


class Settings(BaseSettings):
    """rag-indexer settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding providers ===
    # "auto" picks OpenAI when a key is set, else Ollama/nomic.
    embedding_provider: str = "auto"
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_embedding_model: str = "text-embedding-3-small"
    ollama_base_url: str = "http://localhost:11434"

    # === Storage ===
    store_db_path: str = "data/rag_index.db"
    source_db_path: str = "data/source.db"

    # === Indexing defaults ===
    index_collections: str = _DEFAULT_COLLECTIONS
    index_page_size: int = 100
    index_start_offset: int = 0
    index_reembed_mode: str = "none"
    index_embed_concurrency: int = 1

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def collection_names(self) -> list[str]:
        """Return ``index_collections`` as a list of trimmed names."""
        return [name.strip() for name in self.index_collections.split(",") if name.strip()]

    def resolved_embedding_provider(self) -> str:
        """Return the concrete provider name ``auto`` resolves to."""
        if self.embedding_provider != "auto":
            return self.embedding_provider
        return "openai" if self.openai_api_key else "nomic"

    def missing_indexer_settings(self) -> list[str]:
        """Return the env var names that the indexer needs but are empty."""
        missing: list[str] = []
        if self.resolved_embedding_provider() == "openai" and not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if self.resolved_embedding_provider() == "nomic" and not self.ollama_base_url:
            missing.append("OLLAMA_BASE_URL")
        if not self.store_db_path:
            missing.append("STORE_DB_PATH")
        if not self.source_db_path:
            missing.append("SOURCE_DB_PATH")
        return missing
