"""Utility functions for vaultrag."""

from vaultrag.utils.vector_math import cosine_similarity, normalize, top_k_similar

__all__ = ["cosine_similarity", "normalize", "top_k_similar"]
