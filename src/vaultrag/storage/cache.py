"""JSON cache file that lets the index skip full rebuilds."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from vaultrag.errors import CacheError
from vaultrag.models import ChunkRecord, EmbeddingVector

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class _CacheModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CachedEmbedding(_CacheModel):
    values: list[float]
    dimensions: int


class CachedChunk(_CacheModel):
    source_id: str
    chunk_index: int = Field(ge=0)
    text: str
    embedding: CachedEmbedding
    last_modified: int
    token_count: int

    @classmethod
    def from_record(cls, record: ChunkRecord) -> "CachedChunk":
        return cls(
            source_id=record.source_id,
            chunk_index=record.chunk_index,
            text=record.text,
            embedding=CachedEmbedding(
                values=record.embedding.values,
                dimensions=record.embedding.dimensions,
            ),
            last_modified=record.last_modified,
            token_count=record.token_count,
        )

    def to_record(self) -> ChunkRecord:
        return ChunkRecord(
            source_id=self.source_id,
            chunk_index=self.chunk_index,
            text=self.text,
            last_modified=self.last_modified,
            token_count=self.token_count,
            embedding=EmbeddingVector(
                values=self.embedding.values,
                dimensions=self.embedding.dimensions,
            ),
        )


class CacheDocument(_CacheModel):
    version: int
    last_built: int
    model: Optional[str] = None
    chunks: list[CachedChunk] = Field(default_factory=list)


class PersistentCache:
    """Single-file JSON persistence for the vector index.

    Writes go to a temporary file that replaces the cache atomically, and
    are serialized by a lock so debounced and immediate saves never overlap.
    """

    def __init__(self, path: Path | str, version: int = CACHE_VERSION):
        self.path = Path(path)
        self.version = version
        self._write_lock = asyncio.Lock()

    def exists(self) -> bool:
        return self.path.exists()

    async def load(
        self,
        *,
        now_ms: int,
        max_age_ms: int,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
    ) -> Optional[list[ChunkRecord]]:
        """Load cached records if the cache is present and still usable.

        ``model`` is the fingerprint of the current provider and
        ``dimensions`` its vector size, when known. A cache built for a
        different fingerprint or vector size is incompatible.

        Returns None for a missing, outdated, stale or incompatible cache.

        Raises:
            CacheError: the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            return None

        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            payload = json.loads(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CacheError(f"Cannot read cache {self.path}: {exc}") from exc

        if not isinstance(payload, dict) or payload.get("version") != self.version:
            logger.info("Cache version mismatch, rebuilding index")
            return None

        try:
            document = CacheDocument.model_validate(payload)
        except ValidationError as exc:
            raise CacheError(f"Malformed cache {self.path}: {exc}") from exc

        if now_ms - document.last_built > max_age_ms:
            logger.info("Cache is stale, rebuilding index")
            return None

        if model is not None and document.model is not None and document.model != model:
            logger.info(
                f"Cache was built with {document.model}, provider is {model}; rebuilding index"
            )
            return None

        cached_dimensions = {chunk.embedding.dimensions for chunk in document.chunks}
        if len(cached_dimensions) > 1 or any(
            len(chunk.embedding.values) != chunk.embedding.dimensions
            for chunk in document.chunks
        ):
            logger.info("Cache holds inconsistent embedding dimensions, rebuilding index")
            return None

        if dimensions is not None and cached_dimensions and cached_dimensions != {dimensions}:
            logger.info(
                f"Cache holds {cached_dimensions.pop()}-dimensional embeddings, "
                f"provider produces {dimensions}; rebuilding index"
            )
            return None

        return [chunk.to_record() for chunk in document.chunks]

    async def save(
        self,
        records: list[ChunkRecord],
        *,
        built_at: int,
        model: Optional[str] = None,
    ) -> None:
        """Persist records, replacing the previous cache file.

        Raises:
            CacheError: the file cannot be written
        """
        document = CacheDocument(
            version=self.version,
            last_built=built_at,
            model=model,
            chunks=[CachedChunk.from_record(record) for record in records],
        )
        data = json.dumps(document.model_dump(by_alias=True))

        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_atomic, data)
            except OSError as exc:
                raise CacheError(f"Cannot write cache {self.path}: {exc}") from exc

    async def delete(self) -> bool:
        """Remove the cache file; returns whether one existed."""
        async with self._write_lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                return False
            except OSError as exc:
                raise CacheError(f"Cannot delete cache {self.path}: {exc}") from exc
            return True

    def _write_atomic(self, data: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
