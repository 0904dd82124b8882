# repository/local_object_store.py
import logging
import os
import posixpath
import stat
import tempfile
from datetime import datetime
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, List
from starlette.concurrency import run_in_threadpool
from repository.object_store import (
    DirEntry,
    DirectoryNotFoundError,
    ObjectExistsError,
    ObjectNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)

# In-flight uploads live next to their target until linked into place.
TMP_PREFIX = ".tmp-"


class LocalObject:
    def __init__(self, key: str, path: Path, size: int, chunk_size: int) -> None:
        self._key = key
        self._path = path
        self._size = size
        self._chunk_size = chunk_size

    @property
    def remote(self) -> str:
        return self._key

    @property
    def size(self) -> int:
        return self._size

    async def open(self, offset: int = 0, limit: int = -1) -> AsyncIterator[bytes]:
        try:
            fh = await run_in_threadpool(open, self._path, "rb")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(self._key) from e
        except OSError as e:
            raise StorageError(f"open {self._key}: {e}") from e
        try:
            if offset:
                await run_in_threadpool(fh.seek, offset)
            remaining = limit
            while remaining != 0:
                n = self._chunk_size if remaining < 0 else min(self._chunk_size, remaining)
                data = await run_in_threadpool(fh.read, n)
                if not data:
                    break
                if remaining > 0:
                    remaining -= len(data)
                yield data
        finally:
            fh.close()

    async def remove(self) -> None:
        try:
            await run_in_threadpool(os.remove, self._path)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(self._key) from e
        except OSError as e:
            raise StorageError(f"remove {self._key}: {e}") from e


class LocalObjectStore:
    """
    Filesystem-backed object store rooted at a single directory.

    Flow:
    - Keys map 1:1 onto relative paths under the root; escaping the root is refused.
    - Uploads stream into a temp file in the target directory, then os.link()
      publishes it. link() fails when the target exists, so creation never overwrites.
    """

    def __init__(self, root: str | Path, chunk_size: int = 64 * 1024) -> None:
        self.root = Path(root).absolute()
        self.root.mkdir(parents=True, exist_ok=True)
        self._chunk_size = chunk_size

    def _path(self, key: str) -> Path:
        clean = posixpath.normpath(key)
        if clean.startswith("/") or clean == ".." or clean.startswith("../"):
            raise StorageError(f"key escapes storage root: {key!r}")
        return self.root / clean

    async def new_object(self, key: str) -> LocalObject:
        path = self._path(key)
        try:
            st = await run_in_threadpool(path.stat)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StorageError(f"stat {key}: {e}") from e
        if not stat.S_ISREG(st.st_mode):
            raise ObjectNotFoundError(key)
        return LocalObject(key, path, st.st_size, self._chunk_size)

    async def create_from_stream(
        self, key: str, chunks: AsyncIterable[bytes], modified: datetime
    ) -> LocalObject:
        path = self._path(key)
        try:
            await run_in_threadpool(path.parent.mkdir, parents=True, exist_ok=True)
            fd, tmp = await run_in_threadpool(
                tempfile.mkstemp, dir=path.parent, prefix=TMP_PREFIX
            )
        except OSError as e:
            raise StorageError(f"create {key}: {e}") from e

        try:
            written = 0
            with os.fdopen(fd, "wb") as fh:
                async for chunk in chunks:
                    await run_in_threadpool(fh.write, chunk)
                    written += len(chunk)
                await run_in_threadpool(fh.flush)
                await run_in_threadpool(os.fsync, fh.fileno())
            ts = modified.timestamp()
            await run_in_threadpool(os.utime, tmp, (ts, ts))
            try:
                await run_in_threadpool(os.link, tmp, path)
            except FileExistsError as e:
                raise ObjectExistsError(key) from e
        except OSError as e:
            raise StorageError(f"create {key}: {e}") from e
        finally:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass

        logger.debug("local.create key=%s bytes=%d", key, written)
        return LocalObject(key, path, written, self._chunk_size)

    async def mkdir(self, key: str) -> None:
        path = self._path(key)
        try:
            await run_in_threadpool(path.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"mkdir {key}: {e}") from e

    def _scan(self, key: str, path: Path) -> List[DirEntry]:
        out: List[DirEntry] = []
        with os.scandir(path) as it:
            for entry in it:
                if entry.name.startswith(TMP_PREFIX):
                    continue
                remote = posixpath.normpath(posixpath.join(key, entry.name))
                if entry.is_dir():
                    out.append(DirEntry(remote=remote, is_dir=True))
                elif entry.is_file():
                    out.append(DirEntry(remote=remote, size=entry.stat().st_size))
        out.sort(key=lambda e: e.remote)
        return out

    async def list_sorted(self, key: str) -> List[DirEntry]:
        path = self._path(key)
        try:
            return await run_in_threadpool(self._scan, key, path)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise DirectoryNotFoundError(key) from e
        except OSError as e:
            raise StorageError(f"list {key}: {e}") from e

    async def close(self) -> None:
        return None
