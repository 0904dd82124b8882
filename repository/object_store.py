"""Object store protocol consumed by the transfer layer.

Keys are POSIX-style paths relative to the store root ("repo/data/ab/abcd...").
Backends must make `create_from_stream` an atomic create-new: it fails with
ObjectExistsError when the key already exists instead of overwriting.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterable, AsyncIterator, List, Protocol


class StorageError(Exception):
    """Backend failure not covered by a more specific error."""


class ObjectNotFoundError(StorageError):
    pass


class ObjectExistsError(StorageError):
    pass


class DirectoryNotFoundError(StorageError):
    pass


class StoredObject(Protocol):
    @property
    def remote(self) -> str: ...

    @property
    def size(self) -> int: ...

    def open(self, offset: int = 0, limit: int = -1) -> AsyncIterator[bytes]:
        """
        Stream the object's bytes starting at `offset`.
        limit == -1 reads to the end. The iterator releases its handle when
        exhausted or closed.
        """
        ...

    async def remove(self) -> None:
        """Raises ObjectNotFoundError when the object vanished meanwhile."""
        ...


@dataclass(frozen=True)
class DirEntry:
    remote: str
    size: int = 0
    is_dir: bool = False


class ObjectStore(Protocol):
    async def new_object(self, key: str) -> StoredObject:
        """Raises ObjectNotFoundError when nothing is stored at `key`."""
        ...

    async def create_from_stream(
        self, key: str, chunks: AsyncIterable[bytes], modified: datetime
    ) -> StoredObject: ...

    async def mkdir(self, key: str) -> None:
        """Create a directory (and parents). Existing directories are fine."""
        ...

    async def list_sorted(self, key: str) -> List[DirEntry]:
        """Direct children of `key` sorted by name. Raises DirectoryNotFoundError."""
        ...

    async def close(self) -> None: ...


