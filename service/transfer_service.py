# service/transfer_service.py
import logging
from datetime import datetime, timezone
from typing import AsyncIterable, AsyncIterator, Optional
from fastapi import Response, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect
from repository.object_store import (
    ObjectExistsError,
    ObjectNotFoundError,
    ObjectStore,
    StorageError,
    StoredObject,
)
from service.metrics_service import MetricLabels, MetricsRecorder
from util.enums import ErrorMessage
from util.errors import AppError, InvalidRange
from util.http_range import parse_range, serving_window

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"


async def _close_reader(chunks: AsyncIterator[bytes]) -> None:
    # Closing an already finished generator is a no-op.
    await chunks.aclose()


class TransferService:
    """
    The four storage primitives behind every config/blob endpoint.

    Each takes an already-resolved storage key, talks to the object store and
    shapes the HTTP response. Failures short-circuit with AppError.
    """

    def __init__(self, store: ObjectStore, metrics: MetricsRecorder) -> None:
        self._store = store
        self._metrics = metrics

    async def _open(self, key: str) -> StoredObject:
        try:
            return await self._store.new_object(key)
        except ObjectNotFoundError as e:
            logger.debug("object.missing key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.NOT_FOUND)
        except StorageError as e:
            logger.error("object.stat.error key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

    async def check(self, key: str) -> Response:
        obj = await self._open(key)
        # Length only; no bytes are transferred for HEAD.
        return Response(
            status_code=status.HTTP_200_OK,
            headers={"Content-Length": str(obj.size)},
        )

    async def read(
        self, key: str, range_header: Optional[str], labels: MetricLabels
    ) -> StreamingResponse:
        obj = await self._open(key)
        size = obj.size
        headers = {}
        code = status.HTTP_200_OK
        offset, limit = 0, -1

        if range_header:
            try:
                option = parse_range(range_header)
            except InvalidRange as e:
                logger.debug("blob.read.bad_range key=%s err=%s", key, e)
                raise AppError.of(ErrorMessage.BAD_REQUEST)
            offset, end = serving_window(option, size)
            limit = end - offset
            # Content-Range: bytes 0-1023/146515
            headers["Content-Range"] = option.content_range(size)
            code = status.HTTP_206_PARTIAL_CONTENT

        headers["Content-Length"] = str(size if limit < 0 else limit)

        chunks = obj.open(offset, limit)
        # Pull the first chunk now so open failures still get a proper status.
        try:
            first = await chunks.__anext__()
        except StopAsyncIteration:
            first = b""
        except ObjectNotFoundError as e:
            logger.debug("blob.read.vanished key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.NOT_FOUND)
        except StorageError as e:
            logger.error("blob.read.open.error key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

        # The background close also covers a body that is never iterated.
        return StreamingResponse(
            self._stream(key, first, chunks, labels),
            status_code=code,
            headers=headers,
            media_type=OCTET_STREAM,
            background=BackgroundTask(_close_reader, chunks),
        )

    async def _stream(
        self,
        key: str,
        first: bytes,
        chunks: AsyncIterator[bytes],
        labels: MetricLabels,
    ) -> AsyncIterator[bytes]:
        sent = 0
        try:
            if first:
                sent += len(first)
                yield first
            async for data in chunks:
                sent += len(data)
                yield data
        except StorageError as e:
            # Status line is already out; aborting the body is all that's left.
            logger.error("blob.read.stream.error key=%s sent=%d err=%s", key, sent, e)
            raise
        finally:
            await chunks.aclose()
        self._metrics.record_read(labels, sent)

    async def save(
        self, key: str, body: AsyncIterable[bytes], labels: MetricLabels
    ) -> Response:
        # The object mustn't already exist
        try:
            await self._store.new_object(key)
        except ObjectNotFoundError:
            pass
        except StorageError as e:
            logger.error("blob.save.stat.error key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)
        else:
            logger.debug("blob.save.conflict key=%s", key)
            raise AppError.of(ErrorMessage.CONFLICT)

        try:
            obj = await self._store.create_from_stream(
                key, body, datetime.now(timezone.utc)
            )
        except ObjectExistsError:
            # Lost the race against a concurrent upload of the same key.
            logger.debug("blob.save.conflict.race key=%s", key)
            raise AppError.of(ErrorMessage.CONFLICT)
        except (StorageError, ClientDisconnect) as e:
            logger.error("blob.save.error key=%s err=%r", key, e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

        logger.info("blob.save.ok key=%s bytes=%d", key, obj.size)
        self._metrics.record_write(labels, obj.size)
        return Response(status_code=status.HTTP_200_OK)

    async def delete(self, key: str, labels: MetricLabels) -> Response:
        obj = await self._open(key)
        size = obj.size
        try:
            await obj.remove()
        except ObjectNotFoundError as e:
            logger.debug("blob.delete.vanished key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.NOT_FOUND)
        except StorageError as e:
            logger.error("blob.delete.error key=%s err=%s", key, e)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

        logger.info("blob.delete.ok key=%s bytes=%d", key, size)
        self._metrics.record_delete(labels, size)
        return Response(status_code=status.HTTP_200_OK)
