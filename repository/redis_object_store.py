# repository/redis_object_store.py
import logging
import posixpath
from datetime import datetime
from typing import AsyncIterable, AsyncIterator, List, Tuple
from uuid import uuid4
from redis.asyncio import Redis
from redis.exceptions import RedisError
from repository.object_store import (
    DirEntry,
    DirectoryNotFoundError,
    ObjectExistsError,
    ObjectNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)

DIR_MARK = "/"


def _clean(key: str) -> str:
    return posixpath.normpath(key)


def _split(key: str) -> Tuple[str, str]:
    parent, name = posixpath.split(key)
    return parent or ".", name


class RedisObject:
    def __init__(self, store: "RedisObjectStore", key: str, size: int) -> None:
        self._store = store
        self._key = key
        self._size = size

    @property
    def remote(self) -> str:
        return self._key

    @property
    def size(self) -> int:
        return self._size

    async def open(self, offset: int = 0, limit: int = -1) -> AsyncIterator[bytes]:
        r = self._store.client
        k = self._store.obj_key(self._key)
        chunk = self._store.chunk_size
        try:
            if not await r.exists(k):
                raise ObjectNotFoundError(self._key)
            stop = self._size if limit < 0 else min(self._size, offset + limit)
            pos = offset
            while pos < stop:
                # GETRANGE end is inclusive
                data = await r.getrange(k, pos, min(pos + chunk, stop) - 1)
                if not data:
                    break
                pos += len(data)
                yield data
        except RedisError as e:
            raise StorageError(f"read {self._key}: {e}") from e

    async def remove(self) -> None:
        await self._store.remove(self._key)


class RedisObjectStore:
    """
    Redis-backed object store.

    Layout under the namespace:
    - <ns>:obj:<key>   object bytes
    - <ns>:dir:<key>   sorted set of children (score 0, so ordered by name);
                       sub-directories carry a trailing "/"
    - <ns>:dirs        set of existing directory keys
    - <ns>:mtime       hash key -> unix timestamp of creation

    Creation appends into a private temp key and publishes it with RENAMENX,
    which refuses to replace an existing key.
    """

    def __init__(self, client: Redis, namespace: str, chunk_size: int = 64 * 1024) -> None:
        self.client = client
        self.namespace = namespace
        self.chunk_size = chunk_size

    def obj_key(self, key: str) -> str:
        return f"{self.namespace}:obj:{key}"

    def _dir_key(self, key: str) -> str:
        return f"{self.namespace}:dir:{key}"

    @property
    def _dirs(self) -> str:
        return f"{self.namespace}:dirs"

    @property
    def _mtime(self) -> str:
        return f"{self.namespace}:mtime"

    async def new_object(self, key: str) -> RedisObject:
        key = _clean(key)
        k = self.obj_key(key)
        try:
            async with self.client.pipeline(transaction=False) as pipe:
                pipe.exists(k)
                pipe.strlen(k)
                exists, size = await pipe.execute()
        except RedisError as e:
            raise StorageError(f"stat {key}: {e}") from e
        if not exists:
            raise ObjectNotFoundError(key)
        return RedisObject(self, key, int(size))

    async def create_from_stream(
        self, key: str, chunks: AsyncIterable[bytes], modified: datetime
    ) -> RedisObject:
        key = _clean(key)
        tmp = f"{self.namespace}:tmp:{uuid4().hex}"
        published = False
        written = 0
        try:
            await self.client.set(tmp, b"")
            async for chunk in chunks:
                if chunk:
                    await self.client.append(tmp, chunk)
                    written += len(chunk)
            # Rename and directory registration commit together, so a published
            # object is always listed. On a lost race the extra writes are no-ops.
            parent, name = _split(key)
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.renamenx(tmp, self.obj_key(key))
                self._queue_mkdir(pipe, parent)
                pipe.zadd(self._dir_key(parent), {name: 0})
                pipe.hsetnx(self._mtime, key, str(int(modified.timestamp())))
                renamed = (await pipe.execute())[0]
            if not renamed:
                raise ObjectExistsError(key)
            published = True
        except RedisError as e:
            raise StorageError(f"create {key}: {e}") from e
        finally:
            if not published:
                try:
                    await self.client.delete(tmp)
                except RedisError:
                    logger.warning("redis.tmp.cleanup.error key=%s", tmp)

        logger.debug("redis.create key=%s bytes=%d", key, written)
        return RedisObject(self, key, written)

    async def remove(self, key: str) -> None:
        key = _clean(key)
        parent, name = _split(key)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(self.obj_key(key))
                pipe.zrem(self._dir_key(parent), name)
                pipe.hdel(self._mtime, key)
                deleted, _, _ = await pipe.execute()
        except RedisError as e:
            raise StorageError(f"remove {key}: {e}") from e
        if not deleted:
            raise ObjectNotFoundError(key)

    def _queue_mkdir(self, pipe, key: str) -> None:
        # Register key and every ancestor up to the root.
        while True:
            pipe.sadd(self._dirs, key)
            if key == ".":
                break
            parent, name = _split(key)
            pipe.zadd(self._dir_key(parent), {name + DIR_MARK: 0})
            key = parent

    async def mkdir(self, key: str) -> None:
        key = _clean(key)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                self._queue_mkdir(pipe, key)
                await pipe.execute()
        except RedisError as e:
            raise StorageError(f"mkdir {key}: {e}") from e

    async def list_sorted(self, key: str) -> List[DirEntry]:
        key = _clean(key)
        try:
            if not await self.client.sismember(self._dirs, key):
                raise DirectoryNotFoundError(key)
            members = await self.client.zrange(self._dir_key(key), 0, -1)
            names = [m.decode("utf-8") if isinstance(m, bytes) else m for m in members]
            files = [n for n in names if not n.endswith(DIR_MARK)]
            async with self.client.pipeline(transaction=False) as pipe:
                for n in files:
                    pipe.strlen(self.obj_key(_clean(posixpath.join(key, n))))
                sizes = await pipe.execute()
        except RedisError as e:
            raise StorageError(f"list {key}: {e}") from e

        size_of = dict(zip(files, sizes))
        out: List[DirEntry] = []
        for n in names:
            if n.endswith(DIR_MARK):
                out.append(DirEntry(remote=_clean(posixpath.join(key, n[:-1])), is_dir=True))
            else:
                out.append(DirEntry(remote=_clean(posixpath.join(key, n)), size=int(size_of[n])))
        return out

    async def close(self) -> None:
        await self.client.aclose()
