"""Tests for the JSON cache file."""

import json

import pytest

from vaultrag.errors import CacheError
from vaultrag.models import ChunkRecord, EmbeddingVector
from vaultrag.storage import CACHE_VERSION, PersistentCache

NOW = 1_700_000_000_000
WEEK_MS = 7 * 24 * 60 * 60 * 1000


def make_record(source_id="notes/a.md", chunk_index=0) -> ChunkRecord:
    return ChunkRecord(
        source_id=source_id,
        chunk_index=chunk_index,
        text="Remember the milk.",
        last_modified=NOW - 5000,
        token_count=5,
        embedding=EmbeddingVector(values=[0.1, 0.2, 0.3], dimensions=3),
    )


@pytest.fixture
def cache(tmp_path):
    return PersistentCache(tmp_path / "nested" / "embeddings-cache.json")


@pytest.mark.asyncio
async def test_save_writes_documented_shape(cache):
    await cache.save([make_record()], built_at=NOW, model="text-embedding-3-small")

    payload = json.loads(cache.path.read_text())
    assert payload["version"] == CACHE_VERSION
    assert payload["lastBuilt"] == NOW
    assert payload["model"] == "text-embedding-3-small"
    assert payload["chunks"] == [
        {
            "sourceId": "notes/a.md",
            "chunkIndex": 0,
            "text": "Remember the milk.",
            "embedding": {"values": [0.1, 0.2, 0.3], "dimensions": 3},
            "lastModified": NOW - 5000,
            "tokenCount": 5,
        }
    ]


@pytest.mark.asyncio
async def test_load_returns_saved_records(cache):
    records = [make_record(chunk_index=0), make_record(chunk_index=1)]
    await cache.save(records, built_at=NOW, model="m")

    loaded = await cache.load(now_ms=NOW + 1000, max_age_ms=WEEK_MS, model="m")

    assert loaded == records


@pytest.mark.asyncio
async def test_missing_file_is_no_cache(cache):
    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS) is None


@pytest.mark.asyncio
async def test_version_mismatch_is_no_cache(cache):
    cache.path.parent.mkdir(parents=True)
    cache.path.write_text(json.dumps({"version": 0, "lastBuilt": NOW, "chunks": []}))

    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS) is None


@pytest.mark.asyncio
async def test_stale_cache_is_no_cache(cache):
    await cache.save([make_record()], built_at=NOW - 8 * 24 * 60 * 60 * 1000)

    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS) is None


@pytest.mark.asyncio
async def test_other_model_is_no_cache(cache):
    await cache.save([make_record()], built_at=NOW, model="nomic-embed-text")

    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS, model="text-embedding-3-small") is None


@pytest.mark.asyncio
async def test_mixed_dimensions_are_no_cache(cache):
    wide = make_record(chunk_index=1)
    wide.embedding = EmbeddingVector(values=[0.1, 0.2], dimensions=2)
    await cache.save([make_record(), wide], built_at=NOW)

    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"version": CACHE_VERSION, "lastBuilt": "yesterday", "chunks": []}),
        json.dumps({"version": CACHE_VERSION, "lastBuilt": NOW, "chunks": [{"sourceId": "a"}]}),
    ],
)
async def test_corrupt_cache_raises_cache_error(cache, content):
    cache.path.parent.mkdir(parents=True)
    cache.path.write_text(content)

    with pytest.raises(CacheError):
        await cache.load(now_ms=NOW, max_age_ms=WEEK_MS)


@pytest.mark.asyncio
async def test_save_replaces_previous_file_atomically(cache):
    await cache.save([make_record()], built_at=NOW)
    await cache.save([], built_at=NOW + 1)

    assert json.loads(cache.path.read_text())["chunks"] == []
    assert [p.name for p in cache.path.parent.iterdir()] == [cache.path.name]


@pytest.mark.asyncio
async def test_delete(cache):
    assert await cache.delete() is False
    await cache.save([make_record()], built_at=NOW)

    assert await cache.delete() is True
    assert not cache.exists()


@pytest.mark.asyncio
async def test_unwritable_location_raises_cache_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    cache = PersistentCache(blocker / "embeddings-cache.json")

    with pytest.raises(CacheError):
        await cache.save([make_record()], built_at=NOW)


@pytest.mark.asyncio
async def test_other_vector_size_is_no_cache(cache):
    await cache.save([make_record()], built_at=NOW, model="m")

    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS, model="m", dimensions=768) is None
    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS, model="m", dimensions=3) == [make_record()]


@pytest.mark.asyncio
async def test_empty_cache_fits_any_vector_size(cache):
    await cache.save([], built_at=NOW, model="m")

    assert await cache.load(now_ms=NOW, max_age_ms=WEEK_MS, model="m", dimensions=768) == []
