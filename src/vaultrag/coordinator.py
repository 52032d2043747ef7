"""Index coordinator: builds, syncs, persists and queries the vector index."""

import asyncio
import logging
import re
import time
from enum import Enum
from typing import Callable, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from vaultrag.chunkers import SentenceChunker, validate_chunk_options
from vaultrag.configs import Settings, get_settings
from vaultrag.embedders import create_embedding_provider
from vaultrag.errors import CacheError, DimensionMismatchError, ProviderError
from vaultrag.events import IndexEventKind, IndexEvents
from vaultrag.models import (
    ChangeEvent,
    ChangeKind,
    ChunkRecord,
    EmbeddingVector,
    IndexStats,
    SourceDocument,
)
from vaultrag.protocols import ChunkingStrategy, DocumentSource, EmbeddingProvider
from vaultrag.sources import FolderSource
from vaultrag.storage import PersistentCache, VectorIndex
from vaultrag.utils.debounce import DebouncedTask

logger = logging.getLogger(__name__)

STYLE_SAMPLE_SIZE = 10
LIST_RE = re.compile(r"^[-*]\s", re.MULTILINE)
HEADING_RE = re.compile(r"^#{1,6}\s", re.MULTILINE)


def now_ms() -> int:
    return int(time.time() * 1000)


class IndexState(str, Enum):
    EMPTY = "empty"
    INITIALIZING = "initializing"
    BUILT = "built"


def _is_retryable(exc: BaseException) -> bool:
    # Offline failures will not fix themselves within a backoff window
    return isinstance(exc, ProviderError) and not exc.offline


class IndexCoordinator:
    """Sole owner of the vector index.

    Every mutation of the index (rebuild, per-source update, removal, clear)
    runs under one lock. Updates that arrive while a full rebuild is running
    are dropped, since the rebuild reads the same documents. Incremental
    changes are persisted through a debounced save; full rebuilds save
    immediately. Both paths share the cache's write lock.
    """

    def __init__(
        self,
        source: DocumentSource,
        provider: EmbeddingProvider,
        cache: PersistentCache,
        settings: Optional[Settings] = None,
        *,
        chunker: Optional[ChunkingStrategy] = None,
        events: Optional[IndexEvents] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.settings = settings or get_settings()
        validate_chunk_options(self.settings.chunk_size, self.settings.chunk_overlap)

        self.source = source
        self.provider = provider
        self.cache = cache
        self.chunker = chunker or SentenceChunker()
        self.events = events or IndexEvents()
        self._clock = clock

        self._index = VectorIndex()
        self._state = IndexState.EMPTY
        self._lock = asyncio.Lock()
        self._rebuilding = False
        # Removals requested before the index is built, applied after a cache load
        self._pending_removals: set[str] = set()
        self._save_task = DebouncedTask(
            self.settings.cache_save_debounce_seconds, self._save_cache
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        events: Optional[IndexEvents] = None,
    ) -> "IndexCoordinator":
        """Wire a coordinator over a folder source using the configured provider."""
        settings = settings or get_settings()
        return cls(
            source=FolderSource(settings.documents_dir, settings.include_extensions),
            provider=create_embedding_provider(settings),
            cache=PersistentCache(settings.cache_path),
            settings=settings,
            events=events,
        )

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def is_built(self) -> bool:
        return self._state is IndexState.BUILT

    @property
    def index(self) -> VectorIndex:
        return self._index

    @property
    def save_pending(self) -> bool:
        return self._save_task.pending

    # ------------------------------------------------------------------
    # Building

    async def build_index(self, force_rebuild: bool = False) -> None:
        """Load the index from cache, or rebuild it from every document.

        Raises:
            ProviderError: embedding failed; the previous index and state are kept
        """
        if not self.settings.enabled:
            logger.info("RAG disabled in settings")
            return

        async with self._lock:
            if self.is_built and not force_rebuild:
                return

            previous_state = self._state
            self._state = IndexState.INITIALIZING
            self._rebuilding = True
            succeeded = False
            try:
                if not force_rebuild and await self._load_from_cache():
                    logger.info(f"Loaded {len(self._index)} chunks from cache")
                    succeeded = True
                    self._state = IndexState.BUILT
                    self.events.emit(
                        IndexEventKind.INDEX_BUILT, from_cache=True, chunks=len(self._index)
                    )
                    return

                staging = await self._rebuild()
                self._index = staging
                self._pending_removals.clear()
                succeeded = True
                self._state = IndexState.BUILT
            except ProviderError as exc:
                logger.error(f"RAG index rebuild failed: {exc}")
                self.events.emit(IndexEventKind.ERROR, operation="build_index", error=str(exc))
                raise
            finally:
                self._rebuilding = False
                if not succeeded:
                    self._state = previous_state

        # A full rebuild supersedes any pending incremental save
        self._save_task.cancel()
        await self._save_cache()
        self.events.emit(IndexEventKind.INDEX_BUILT, from_cache=False, chunks=len(self._index))

    async def _load_from_cache(self) -> bool:
        try:
            records = await self.cache.load(
                now_ms=self._clock(),
                max_age_ms=self.settings.cache_staleness_ms,
                model=self.provider.fingerprint,
                dimensions=self.provider.dimensions if self.provider.dimensions_known else None,
            )
        except CacheError as exc:
            logger.warning(f"Failed to load RAG cache: {exc}")
            return False

        if records is None:
            return False

        index = VectorIndex()
        try:
            index.add_chunks(records)
        except (ValueError, DimensionMismatchError) as exc:
            logger.warning(f"Discarding unusable RAG cache: {exc}")
            return False

        removed = sum(index.remove_by_source(sid) for sid in self._pending_removals)
        self._pending_removals.clear()
        self._index = index
        if removed:
            self._save_task.schedule()
        return True

    async def _rebuild(self) -> VectorIndex:
        logger.info("Building RAG index from scratch...")
        start = time.perf_counter()

        documents = await asyncio.to_thread(self.source.list_documents)
        staging = VectorIndex()
        batch_size = self.settings.rebuild_batch_size

        # Batches run one at a time to bound outstanding requests
        for i in range(0, len(documents), batch_size):
            batch = documents[i : i + batch_size]
            staging.add_chunks(await self._index_batch(batch))
            logger.info(f"Indexed {min(i + batch_size, len(documents))}/{len(documents)} files")

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"RAG index built: {len(staging)} chunks from {len(documents)} files in {duration_ms}ms"
        )
        return staging

    async def _index_batch(
        self,
        documents: list[SourceDocument],
        skip_unreadable: bool = True,
    ) -> list[ChunkRecord]:
        """Chunk a batch of documents and embed all their chunks in one call."""
        records: list[ChunkRecord] = []
        for document in documents:
            try:
                content = await self.source.read(document)
            except (OSError, UnicodeDecodeError) as exc:
                if not skip_unreadable:
                    raise
                logger.error(f"Failed to index file {document.source_id}: {exc}")
                continue
            records.extend(self._chunk_document(document, content))

        if not records:
            return []

        vectors = await self._embed_batch([record.text for record in records])
        for record, vector in zip(records, vectors):
            record.embedding = vector
        return records

    def _chunk_document(self, document: SourceDocument, content: str) -> list[ChunkRecord]:
        chunks = self.chunker.chunk(
            content, self.settings.chunk_size, self.settings.chunk_overlap
        )
        return [
            ChunkRecord(
                source_id=document.source_id,
                chunk_index=chunk.chunk_index,
                text=chunk.text,
                last_modified=document.modified_ms,
                token_count=chunk.token_count,
            )
            for chunk in chunks
        ]

    async def _embed_batch(self, texts: list[str]) -> list[EmbeddingVector]:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.settings.embed_max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.embed_retry_backoff_seconds, max=30),
            before_sleep=lambda retry_state: logger.warning(
                f"Embedding batch failed, retry {retry_state.attempt_number}/"
                f"{self.settings.embed_max_retries}"
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                vectors = await self.provider.embed_batch(texts)
                if len(vectors) != len(texts):
                    raise ProviderError(
                        f"Provider returned {len(vectors)} embeddings for {len(texts)} texts"
                    )
        return vectors

    # ------------------------------------------------------------------
    # Incremental sync

    async def update_source(self, document: SourceDocument) -> bool:
        """Re-index one document if it changed since it was last indexed.

        No-op while disabled, before the index is built, or during a full
        rebuild. Embedding and read failures are logged and leave the
        previous chunks in place. If the provider now produces vectors of a
        different size than the index holds, the whole index is rebuilt.

        Returns:
            True if the document was re-indexed
        """
        if not self._accepts_updates() or not self._is_newer(document):
            return False

        async with self._lock:
            if not self._accepts_updates() or not self._is_newer(document):
                return False

            try:
                records = await self._index_batch([document], skip_unreadable=False)
            except (ProviderError, OSError, UnicodeDecodeError) as exc:
                logger.error(f"Failed to update RAG index for {document.source_id}: {exc}")
                self.events.emit(
                    IndexEventKind.ERROR,
                    operation="update_source",
                    source_id=document.source_id,
                    error=str(exc),
                )
                return False

            previous = [r for r in self._index if r.source_id == document.source_id]
            self._index.remove_by_source(document.source_id)
            try:
                self._index.add_chunks(records)
            except DimensionMismatchError as exc:
                self._index.add_chunks(previous)
                drift = exc
            else:
                drift = None
                # Scheduled under the lock so a concurrent clear_index cancels it
                self.schedule_cache_save()

        if drift is not None:
            return await self._rebuild_after_drift(drift)

        logger.info(f"Updated RAG index for {document.source_id}")
        self.events.emit(
            IndexEventKind.SOURCE_UPDATED, source_id=document.source_id, chunks=len(records)
        )
        return True

    def _accepts_updates(self) -> bool:
        return self.settings.enabled and self.is_built and not self._rebuilding

    def _is_newer(self, document: SourceDocument) -> bool:
        indexed = self._index.last_modified(document.source_id)
        return indexed is None or document.modified_ms > indexed

    async def _rebuild_after_drift(self, exc: DimensionMismatchError) -> bool:
        """Re-embed everything after the provider's vector size changed."""
        logger.warning(f"Embedding dimensions changed ({exc}), rebuilding RAG index")
        try:
            await self.build_index(force_rebuild=True)
        except ProviderError:
            # build_index has already logged and emitted the failure
            return False
        return True

    async def remove_source(self, source_id: str) -> int:
        """Drop every chunk of a source; returns how many were removed."""
        if not self.settings.enabled:
            return 0

        async with self._lock:
            if not self.is_built:
                self._pending_removals.add(source_id)
            removed = self._index.remove_by_source(source_id)
            if removed:
                self.schedule_cache_save()

        if removed:
            logger.info(f"Removed {removed} chunks for {source_id}")
            self.events.emit(IndexEventKind.SOURCE_REMOVED, source_id=source_id, chunks=removed)
        return removed

    async def apply_change(self, event: ChangeEvent) -> None:
        """Route a document source change notification to the index."""
        if event.kind in (ChangeKind.CREATED, ChangeKind.MODIFIED):
            await self.update_source(event.document)
        elif event.kind is ChangeKind.DELETED:
            await self.remove_source(event.target_id)
        elif event.kind is ChangeKind.RENAMED:
            if event.old_source_id:
                await self.remove_source(event.old_source_id)
            await self.update_source(event.document)

    # ------------------------------------------------------------------
    # Persistence

    def schedule_cache_save(self) -> None:
        """Save the cache once no further changes arrive within the debounce window."""
        self._save_task.schedule()

    async def _save_cache(self) -> bool:
        if self._state is IndexState.EMPTY:
            # Cleared or never built: writing now would revive a discarded cache
            return False
        records = self._index.records()
        try:
            await self.cache.save(records, built_at=self._clock(), model=self.provider.fingerprint)
        except CacheError as exc:
            logger.error(f"Failed to save RAG cache: {exc}")
            self.events.emit(IndexEventKind.ERROR, operation="save_cache", error=str(exc))
            return False
        logger.info("RAG index cached to disk")
        return True

    async def flush(self) -> None:
        """Write a pending debounced save now."""
        await self._save_task.flush()

    async def clear_index(self) -> None:
        """Empty the index and delete its cache file."""
        self._save_task.cancel()

        async with self._lock:
            # An update holding the lock above may have scheduled another save
            self._save_task.cancel()
            self._index.clear()
            self._pending_removals.clear()
            self._state = IndexState.EMPTY

        try:
            await self.cache.delete()
        except CacheError as exc:
            logger.error(f"Failed to clear RAG cache: {exc}")
        logger.info("RAG index cleared")
        self.events.emit(IndexEventKind.INDEX_CLEARED)

    async def aclose(self) -> None:
        await self.flush()
        await self.provider.aclose()

    # ------------------------------------------------------------------
    # Queries

    async def retrieve_context(self, query_text: str, top_k: Optional[int] = None) -> list[str]:
        """Return the most relevant chunks for a query, one per source.

        Never raises: any failure yields an empty list so the calling
        workflow carries on without context.
        """
        if not self.settings.enabled:
            return []

        try:
            if not self.is_built:
                logger.warning("RAG index not built yet, building now...")
                await self.build_index()

            if len(self._index) == 0:
                return []

            start = time.perf_counter()
            query_embedding = await self.provider.embed(query_text)
            if query_embedding.dimensions != self._index.dimensions:
                drift = DimensionMismatchError(self._index.dimensions, query_embedding.dimensions)
                if not await self._rebuild_after_drift(drift):
                    return []
            contexts = self._index.query(query_embedding, top_k or self.settings.top_k)
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            logger.info(f"RAG retrieved {len(contexts)} contexts in {elapsed_ms}ms")
            return contexts
        except Exception as exc:
            logger.error(f"RAG context retrieval failed: {exc}")
            return []

    def stats(self) -> IndexStats:
        return IndexStats(
            total_files=len(self._index.sources()),
            total_chunks=len(self._index),
            is_built=self.is_built,
            provider=self.provider.model_name,
        )

    def analyze_style(self) -> str:
        """Describe the typical note style of the corpus for a refinement prompt."""
        records = self._index.records()
        if not self.is_built or not records:
            return ""

        sample_size = min(STYLE_SAMPLE_SIZE, len(records))
        step = len(records) // sample_size
        samples = [r.text for r in records[::step][:sample_size]]

        avg_length = sum(len(s) for s in samples) / len(samples)
        notes = []
        if avg_length < 300:
            notes.append("concise, brief notes")
        elif avg_length > 800:
            notes.append("detailed, comprehensive notes")
        if any(LIST_RE.search(s) for s in samples):
            notes.append("uses bullet lists")
        if any(HEADING_RE.search(s) for s in samples):
            notes.append("uses headings for structure")

        if not notes:
            return ""
        return f"The user's typical note style: {', '.join(notes)}."
