"""Index storage: the in-memory vector index and its JSON cache."""

from vaultrag.storage.cache import CACHE_VERSION, CacheDocument, PersistentCache
from vaultrag.storage.vector_index import VectorIndex

__all__ = ["CACHE_VERSION", "CacheDocument", "PersistentCache", "VectorIndex"]
