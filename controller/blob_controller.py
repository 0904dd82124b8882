# controller/blob_controller.py
import logging
from typing import Optional
from fastapi import Depends, Request, Response
from config.context import ServerContext
from controller.controller_dependencies import (
    get_context,
    get_metric_labels,
    get_repo,
    get_transfer_service,
)
from repository import paths
from service.metrics_service import MetricLabels
from service.transfer_service import TransferService
from util.enums import BlobType, ErrorMessage
from util.errors import AppError, ResolveError

logger = logging.getLogger(__name__)


def _blob_key(repo: Optional[str], blob_type: str, name: str) -> str:
    try:
        return paths.resolve_blob(repo, blob_type, name)
    except ResolveError as e:
        # Resolver failures surface as 500, not 400.
        logger.debug("blob.resolve.error err=%s", e)
        raise AppError.of(ErrorMessage.INTERNAL_ERROR)


async def check_blob(
    blob_type: str,
    name: str,
    repo: Optional[str] = Depends(get_repo),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("CheckBlob()")
    return await service.check(_blob_key(repo, blob_type, name))


async def get_blob(
    request: Request,
    blob_type: str,
    name: str,
    repo: Optional[str] = Depends(get_repo),
    labels: MetricLabels = Depends(get_metric_labels),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("GetBlob()")
    key = _blob_key(repo, blob_type, name)
    return await service.read(key, request.headers.get("Range"), labels)


async def save_blob(
    request: Request,
    blob_type: str,
    name: str,
    repo: Optional[str] = Depends(get_repo),
    labels: MetricLabels = Depends(get_metric_labels),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("SaveBlob()")
    key = _blob_key(repo, blob_type, name)
    return await service.save(key, request.stream(), labels)


async def delete_blob(
    blob_type: str,
    name: str,
    repo: Optional[str] = Depends(get_repo),
    labels: MetricLabels = Depends(get_metric_labels),
    ctx: ServerContext = Depends(get_context),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("DeleteBlob()")
    # Locks stay deletable so append-only repositories can still be unlocked.
    if ctx.append_only and blob_type != BlobType.LOCKS.value:
        raise AppError.of(ErrorMessage.FORBIDDEN)
    return await service.delete(_blob_key(repo, blob_type, name), labels)
