"""Vector operations for embedding similarity."""

from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

import numpy as np

from vaultrag.errors import DimensionMismatchError
from vaultrag.models import EmbeddingVector

T = TypeVar("T")


@dataclass(frozen=True)
class Candidate(Generic[T]):
    """An embedding paired with whatever the caller wants back on a match."""

    embedding: EmbeddingVector
    metadata: T


@dataclass(frozen=True)
class ScoredCandidate(Generic[T]):
    similarity: float
    metadata: T


def cosine_similarity(a: EmbeddingVector, b: EmbeddingVector) -> float:
    """Compute cosine similarity between two embedding vectors.

    Returns a value between -1 (opposite) and 1 (identical). A vector with
    zero magnitude is maximally dissimilar to everything and scores 0.
    """
    if a.dimensions != b.dimensions:
        raise DimensionMismatchError(a.dimensions, b.dimensions)

    va = np.asarray(a.values, dtype=np.float64)
    vb = np.asarray(b.values, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


def normalize(v: EmbeddingVector) -> EmbeddingVector:
    """Return a unit-length copy of ``v`` (zero vectors are returned as is)."""
    arr = np.asarray(v.values, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm == 0:
        return v
    return EmbeddingVector(values=(arr / norm).tolist(), dimensions=v.dimensions)


def top_k_similar(
    query: EmbeddingVector,
    candidates: Sequence[Candidate[Any]],
    k: int,
) -> list[ScoredCandidate[Any]]:
    """Rank candidates by similarity to ``query`` and keep the best ``k``.

    The sort is stable, so equally similar candidates keep their input order.
    """
    if k <= 0 or not candidates:
        return []

    scored = [
        ScoredCandidate(
            similarity=cosine_similarity(query, candidate.embedding),
            metadata=candidate.metadata,
        )
        for candidate in candidates
    ]
    scored.sort(key=lambda s: s.similarity, reverse=True)
    return scored[:k]
