"""
Shared test fixtures.

Provides: a deterministic fake embedding provider, an in-memory document
source, settings pointed at a temporary directory, and a coordinator wired
from those pieces.
"""

import asyncio
import string
from typing import Optional

import pytest

from vaultrag.configs import Settings
from vaultrag.coordinator import IndexCoordinator
from vaultrag.models import EmbeddingVector, SourceDocument
from vaultrag.storage import PersistentCache

NOW = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000


def letter_vector(text: str, padding: int = 0) -> EmbeddingVector:
    """Bag-of-letters embedding plus a constant component so it is never zero.

    ``padding`` appends zeros to emulate a model with wider vectors.
    """
    lowered = text.lower()
    values = [float(lowered.count(ch)) for ch in string.ascii_lowercase]
    values.append(1.0)
    values.extend([0.0] * padding)
    return EmbeddingVector(values=values, dimensions=len(values))


class FakeEmbeddingProvider:
    """Deterministic provider that records every call.

    Set ``error`` to make calls fail, optionally only ``fail_times`` times.
    Set ``gate`` to make embed_batch wait until the event is set.
    ``padding`` widens every vector; ``dimensions_known`` can be cleared to
    emulate a provider that has not seen a response yet.
    """

    def __init__(self, model_name: str = "fake-embedding", padding: int = 0):
        self._model_name = model_name
        self.padding = padding
        self.dimensions_known = True
        self.batch_calls: list[list[str]] = []
        self.query_calls: list[str] = []
        self.error: Optional[Exception] = None
        self.fail_times: Optional[int] = None
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    @property
    def dimensions(self) -> int:
        return len(string.ascii_lowercase) + 1 + self.padding

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def fingerprint(self) -> str:
        return self._model_name

    def _maybe_fail(self) -> None:
        if self.error is None:
            return
        if self.fail_times is None:
            raise self.error
        if self.fail_times > 0:
            self.fail_times -= 1
            raise self.error

    async def embed(self, text: str) -> EmbeddingVector:
        self._maybe_fail()
        self.query_calls.append(text)
        return letter_vector(text, self.padding)

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingVector]:
        if self.gate is not None:
            await self.gate.wait()
        self._maybe_fail()
        self.batch_calls.append(list(texts))
        return [letter_vector(t, self.padding) for t in texts]

    async def aclose(self) -> None:
        self.closed = True


class InMemorySource:
    """Document source backed by a dict of id -> (text, modified_ms)."""

    def __init__(self):
        self.docs: dict[str, tuple[str, int]] = {}
        self.reads: list[str] = []

    def put(self, source_id: str, text: str, modified_ms: int = NOW - DAY_MS) -> SourceDocument:
        self.docs[source_id] = (text, modified_ms)
        return SourceDocument(source_id=source_id, modified_ms=modified_ms)

    def delete(self, source_id: str) -> None:
        del self.docs[source_id]

    def document(self, source_id: str) -> SourceDocument:
        return SourceDocument(source_id=source_id, modified_ms=self.docs[source_id][1])

    def list_documents(self) -> list[SourceDocument]:
        return [self.document(sid) for sid in sorted(self.docs)]

    async def read(self, document: SourceDocument) -> str:
        self.reads.append(document.source_id)
        if document.source_id not in self.docs:
            raise FileNotFoundError(document.source_id)
        return self.docs[document.source_id][0]


class CountingCache(PersistentCache):
    """PersistentCache that counts completed saves."""

    def __init__(self, path):
        super().__init__(path)
        self.saves = 0

    async def save(self, records, *, built_at, model=None):
        await super().save(records, built_at=built_at, model=model)
        self.saves += 1


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        documents_dir=tmp_path,
        cache_path=tmp_path / "cache" / "embeddings-cache.json",
        chunk_size=20,
        chunk_overlap=2,
        top_k=3,
        rebuild_batch_size=10,
        cache_save_debounce_seconds=0.2,
        embed_max_retries=0,
        embed_retry_backoff_seconds=0,
    )


@pytest.fixture
def provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def source():
    src = InMemorySource()
    src.put("fruit.md", "Apples are red. Pears are green. Bananas are yellow.")
    src.put("animals.md", "Zebras have stripes. Owls hunt at night.")
    src.put("journal.md", "Today I walked to the market and bought bread.")
    return src


@pytest.fixture
def cache(settings):
    return CountingCache(settings.cache_path)


@pytest.fixture
def make_coordinator(source, provider, cache, settings):
    """Factory so a test can build several coordinators over the same cache file."""

    def _make(**overrides) -> IndexCoordinator:
        return IndexCoordinator(
            source=overrides.get("source", source),
            provider=overrides.get("provider", provider),
            cache=overrides.get("cache", cache),
            settings=overrides.get("settings", settings),
            events=overrides.get("events"),
            clock=overrides.get("clock", lambda: NOW),
        )

    return _make


@pytest.fixture
def coordinator(make_coordinator):
    return make_coordinator()
