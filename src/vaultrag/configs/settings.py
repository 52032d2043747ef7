"""
Index settings.

Type-safe configuration for chunking, retrieval, caching and embedding
provider selection, loaded from VAULTRAG_* environment variables or a
.env file.

Dependencies: pydantic, pydantic_settings
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DAY_MS = 24 * 60 * 60 * 1000


class Settings(BaseSettings):
    """Configuration consumed by the index and its embedding providers."""

    model_config = SettingsConfigDict(
        env_prefix="VAULTRAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Enable vector-based context retrieval")
    log_level: str = Field(default="INFO", description="Logging level")

    # Corpus
    documents_dir: Path = Field(default=Path("."), description="Root folder of the vault")
    include_extensions: list[str] = Field(
        default=[".md"],
        description="File extensions indexed by the folder source",
    )
    watch_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Polling interval of the folder watcher",
    )

    # Chunking and retrieval
    chunk_size: int = Field(default=500, description="Tokens per chunk")
    chunk_overlap: int = Field(default=50, description="Token overlap between chunks")
    top_k: int = Field(default=3, ge=1, description="Chunks retrieved per query")

    # Cache and rebuild
    cache_path: Path = Field(
        default=Path(".vaultrag/embeddings-cache.json"),
        description="Location of the persisted index",
    )
    cache_staleness_days: float = Field(
        default=7,
        gt=0,
        description="Maximum cache age before a rebuild is forced",
    )
    rebuild_batch_size: int = Field(default=10, ge=1, description="Documents per embedding batch")
    cache_save_debounce_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Quiet period before a debounced cache save",
    )

    # Embedding provider
    provider_mode: Literal["openai", "custom", "local"] = Field(
        default="openai",
        description="General provider mode (openai, custom, local)",
    )
    openai_api_key: Optional[SecretStr] = Field(default=None, description="Hosted API key")
    custom_api_base: str = Field(default="", description="Base URL of a custom provider")
    custom_embedding_url: str = Field(
        default="",
        description="Explicit self-hosted embedding endpoint",
    )
    embedding_model: str = Field(default="text-embedding-3-small")
    local_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="sentence-transformers model used in local mode",
    )
    embed_timeout_seconds: float = Field(default=30.0, gt=0)
    embed_max_retries: int = Field(
        default=2,
        ge=0,
        description="Retries of a failed batch before a rebuild aborts",
    )
    embed_retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Base delay of the exponential backoff between batch retries",
    )

    @property
    def cache_staleness_ms(self) -> int:
        return int(self.cache_staleness_days * DAY_MS)

    @property
    def api_key(self) -> str:
        return self.openai_api_key.get_secret_value() if self.openai_api_key else ""


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once from the environment."""
    return Settings()
