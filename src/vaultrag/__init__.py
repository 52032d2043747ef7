"""
vaultrag: retrieval-augmented context for a vault of notes.

Chunks every note into overlapping, sentence-aware segments, embeds them
through a hosted, self-hosted or local provider, and answers similarity
queries with the best excerpt per note. The index is cached as JSON and
kept in sync with the vault incrementally.
"""

from vaultrag.configs import Settings, get_settings
from vaultrag.coordinator import IndexCoordinator, IndexState
from vaultrag.embedders import ProviderKind, create_embedding_provider
from vaultrag.errors import (
    CacheError,
    ConfigError,
    DimensionMismatchError,
    ProviderError,
    VaultRAGError,
)
from vaultrag.events import IndexEventKind, IndexEvents

__all__ = [
    "Settings",
    "get_settings",
    "IndexCoordinator",
    "IndexState",
    "ProviderKind",
    "create_embedding_provider",
    "CacheError",
    "ConfigError",
    "DimensionMismatchError",
    "ProviderError",
    "VaultRAGError",
    "IndexEventKind",
    "IndexEvents",
]
