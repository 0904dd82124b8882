"""Tests for the Redis object store, run against fakeredis."""

from datetime import datetime, timezone

import pytest
from fakeredis import FakeAsyncRedis
from redis.exceptions import RedisError

from repository.object_store import (
    DirectoryNotFoundError,
    ObjectExistsError,
    ObjectNotFoundError,
    StorageError,
)
from repository.redis_object_store import RedisObjectStore

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


async def _chunks(*parts: bytes):
    for p in parts:
        yield p


async def _read(obj, offset=0, limit=-1) -> bytes:
    return b"".join([c async for c in obj.open(offset, limit)])


@pytest.fixture
def redis_client():
    return FakeAsyncRedis()


@pytest.fixture
def store(redis_client):
    return RedisObjectStore(redis_client, "test", chunk_size=3)


class TestObjects:
    @pytest.mark.asyncio
    async def test_create_then_read_back(self, store):
        obj = await store.create_from_stream("r/keys/k1", _chunks(b"hello ", b"world"), NOW)
        assert obj.size == 11

        again = await store.new_object("r/keys/k1")
        assert again.size == 11
        assert await _read(again) == b"hello world"

    @pytest.mark.asyncio
    async def test_empty_object_exists(self, store):
        await store.create_from_stream("r/locks/l", _chunks(), NOW)
        obj = await store.new_object("r/locks/l")
        assert obj.size == 0
        assert await _read(obj) == b""

    @pytest.mark.asyncio
    async def test_create_never_overwrites(self, store, redis_client):
        await store.create_from_stream("r/keys/k1", _chunks(b"original"), NOW)
        with pytest.raises(ObjectExistsError):
            await store.create_from_stream("r/keys/k1", _chunks(b"replacement"), NOW)
        assert await _read(await store.new_object("r/keys/k1")) == b"original"
        # The losing upload's temp key is cleaned up.
        assert [k async for k in redis_client.scan_iter("test:tmp:*")] == []

    @pytest.mark.asyncio
    async def test_ranged_read(self, store):
        obj = await store.create_from_stream("r/data/ab/abcd", _chunks(bytes(range(50))), NOW)
        assert await _read(obj, 10, 10) == bytes(range(10, 20))
        assert await _read(obj, 48) == bytes([48, 49])

    @pytest.mark.asyncio
    async def test_missing_object(self, store):
        with pytest.raises(ObjectNotFoundError):
            await store.new_object("r/keys/nope")

    @pytest.mark.asyncio
    async def test_remove(self, store):
        obj = await store.create_from_stream("r/keys/k1", _chunks(b"x"), NOW)
        await obj.remove()
        with pytest.raises(ObjectNotFoundError):
            await store.new_object("r/keys/k1")
        with pytest.raises(ObjectNotFoundError):
            await obj.remove()
        assert await store.list_sorted("r/keys") == []


class TestDirectories:
    @pytest.mark.asyncio
    async def test_mkdir_registers_parents(self, store):
        await store.mkdir("r/data/00")
        await store.mkdir("r/data/00")
        root = await store.list_sorted(".")
        assert [(e.remote, e.is_dir) for e in root] == [("r", True)]
        data = await store.list_sorted("r/data")
        assert [(e.remote, e.is_dir) for e in data] == [("r/data/00", True)]

    @pytest.mark.asyncio
    async def test_list_sorted_with_sizes(self, store):
        await store.create_from_stream("r/data/ab/ab2", _chunks(b"22"), NOW)
        await store.create_from_stream("r/data/ab/ab1", _chunks(b"1"), NOW)
        entries = await store.list_sorted("r/data/ab")
        assert [(e.remote, e.size) for e in entries] == [
            ("r/data/ab/ab1", 1),
            ("r/data/ab/ab2", 2),
        ]

    @pytest.mark.asyncio
    async def test_list_missing_directory(self, store):
        with pytest.raises(DirectoryNotFoundError):
            await store.list_sorted("r/nope")

    @pytest.mark.asyncio
    async def test_failed_publish_leaves_nothing_behind(self, store, redis_client, monkeypatch):
        real_pipeline = redis_client.pipeline

        def broken_pipeline(*args, **kwargs):
            pipe = real_pipeline(*args, **kwargs)

            async def fail(*a, **kw):
                raise RedisError("connection lost")

            pipe.execute = fail
            return pipe

        monkeypatch.setattr(redis_client, "pipeline", broken_pipeline)
        with pytest.raises(StorageError):
            await store.create_from_stream("r/keys/k1", _chunks(b"x"), NOW)
        monkeypatch.undo()

        # Neither published nor half-listed, so a retry goes through.
        with pytest.raises(ObjectNotFoundError):
            await store.new_object("r/keys/k1")
        assert [k async for k in redis_client.scan_iter("test:tmp:*")] == []
        obj = await store.create_from_stream("r/keys/k1", _chunks(b"retry"), NOW)
        assert obj.size == 5
        assert [e.remote for e in await store.list_sorted("r/keys")] == ["r/keys/k1"]

    @pytest.mark.asyncio
    async def test_published_object_is_always_listed(self, store):
        await store.create_from_stream("r/data/ab/abcd", _chunks(b"x"), NOW)
        assert [e.remote for e in await store.list_sorted("r/data")] == ["r/data/ab"]
        assert [e.remote for e in await store.list_sorted("r/data/ab")] == ["r/data/ab/abcd"]
