# service/repository_service.py
import logging
from typing import List, Optional
from fastapi import Response, status
from pydantic import TypeAdapter
from model.api import ListItem
from repository import paths
from repository.object_store import DirectoryNotFoundError, ObjectStore, StorageError
from util.constants import LIST_MEDIA_TYPE_V2
from util.enums import ErrorMessage
from util.errors import AppError, ResolveError
from util.timing import timed

logger = logging.getLogger(__name__)

_LIST_ADAPTER = TypeAdapter(List[ListItem])


class RepositoryService:
    """
    Directory-level operations: v2 blob listing and repository initialization.
    """

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    async def _list_dir(self, key: str):
        try:
            return await self._store.list_sorted(key)
        except DirectoryNotFoundError as e:
            logger.debug("list.missing dir=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.NOT_FOUND)
        except StorageError as e:
            logger.error("list.error dir=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

    async def list_items(self, repo: Optional[str], blob_type: str) -> List[ListItem]:
        """
        Blobs of one type as {name, size}, in backend listing order.
        Data blobs are collected from every shard directory; the shard
        directories themselves never appear.
        """
        try:
            dir_key = paths.resolve_type(repo, blob_type)
        except ResolveError as e:
            logger.debug("list.resolve.error err=%s", e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

        entries = await self._list_dir(dir_key)
        items: List[ListItem] = []
        for entry in entries:
            if paths.is_sharded(blob_type):
                if not entry.is_dir:
                    continue
                for sub in await self._list_dir(entry.remote):
                    if not sub.is_dir:
                        items.append(ListItem.from_entry(sub))
            elif not entry.is_dir:
                items.append(ListItem.from_entry(entry))
        logger.debug("list.ok dir=%s count=%d", dir_key, len(items))
        return items

    async def list_blobs(self, repo: Optional[str], blob_type: str) -> Response:
        items = await self.list_items(repo, blob_type)
        try:
            data = _LIST_ADAPTER.dump_json(items)
        except ValueError as e:
            logger.error("list.marshal.error err=%s", e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)
        return Response(content=data, media_type=LIST_MEDIA_TYPE_V2)

    async def create_repository(
        self, repo: Optional[str], create_flag: Optional[str]
    ) -> Response:
        """
        Create the repository directory, every non-config type directory and
        the 256 data shards, one mkdir at a time. A failure stops the run and
        leaves what was already created in place.
        """
        if create_flag != "true":
            raise AppError.of(ErrorMessage.BAD_REQUEST)

        try:
            layout = list(paths.repository_layout(repo))
        except ResolveError as e:
            logger.error("repo.create.resolve.error err=%s", e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

        logger.info("repo.create path=%s", layout[0])
        with timed(logger, "repo.create", path=layout[0], dirs=len(layout)):
            for key in layout:
                try:
                    await self._store.mkdir(key)
                except StorageError as e:
                    logger.error("repo.create.mkdir.error dir=%s err=%s", key, e)
                    raise AppError.of(ErrorMessage.INTERNAL_ERROR)
        return Response(status_code=status.HTTP_200_OK)
