"""In-memory vector index over chunk records."""

from typing import Iterable, Iterator, Optional

from vaultrag.errors import DimensionMismatchError
from vaultrag.models import ChunkRecord, EmbeddingVector, RetrievalResult
from vaultrag.utils.vector_math import Candidate, top_k_similar


class VectorIndex:
    """Collection of embedded chunks keyed by (source_id, chunk_index).

    All embeddings share one dimensionality, fixed by the first record added
    (or by ``dimensions`` when given) and reset when the index is emptied.
    """

    def __init__(self, dimensions: Optional[int] = None):
        self._records: dict[tuple[str, int], ChunkRecord] = {}
        self._configured_dimensions = dimensions
        self._dimensions = dimensions

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ChunkRecord]:
        return iter(self._records.values())

    @property
    def dimensions(self) -> Optional[int]:
        return self._dimensions

    def records(self) -> list[ChunkRecord]:
        return list(self._records.values())

    def sources(self) -> set[str]:
        return {record.source_id for record in self._records.values()}

    def last_modified(self, source_id: str) -> Optional[int]:
        """Modification time of the indexed version of a source, if indexed."""
        for record in self._records.values():
            if record.source_id == source_id:
                return record.last_modified
        return None

    def add_chunks(self, records: Iterable[ChunkRecord]) -> None:
        """Insert records, replacing any with the same (source_id, chunk_index).

        Raises:
            ValueError: a record has no embedding attached
            DimensionMismatchError: a record's dimensionality differs from the index's
        """
        records = list(records)
        dimensions = self._dimensions

        for record in records:
            if record.embedding.is_empty():
                raise ValueError(
                    f"Chunk {record.source_id}#{record.chunk_index} has no embedding"
                )
            if dimensions is None:
                dimensions = record.embedding.dimensions
            elif record.embedding.dimensions != dimensions:
                raise DimensionMismatchError(dimensions, record.embedding.dimensions)

        self._dimensions = dimensions
        for record in records:
            self._records[record.key] = record

    def remove_by_source(self, source_id: str) -> int:
        """Remove every chunk of a source, returning how many were removed."""
        keys = [key for key, record in self._records.items() if record.source_id == source_id]
        for key in keys:
            del self._records[key]
        if not self._records:
            self._dimensions = self._configured_dimensions
        return len(keys)

    def clear(self) -> None:
        self._records.clear()
        self._dimensions = self._configured_dimensions

    def search(self, query_embedding: EmbeddingVector, top_k: int) -> list[RetrievalResult]:
        """Rank chunks against a query, keeping the best chunk per source.

        Ranking happens before deduplication, so fewer than ``top_k`` results
        come back when several of the top chunks share a source.
        """
        candidates = [
            Candidate(embedding=record.embedding, metadata=record)
            for record in self._records.values()
        ]
        ranked = top_k_similar(query_embedding, candidates, top_k)

        seen: set[str] = set()
        results = []
        for scored in ranked:
            record: ChunkRecord = scored.metadata
            if record.source_id in seen:
                continue
            seen.add(record.source_id)
            results.append(RetrievalResult(similarity=scored.similarity, record=record))
        return results

    def query(self, query_embedding: EmbeddingVector, top_k: int) -> list[str]:
        """Search and format each hit as ``From "<source_id>":\\n<text>``."""
        return [result.format() for result in self.search(query_embedding, top_k)]
