# controller/config_controller.py
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
from util.enums import ErrorMessage
from util.errors import AppError, ResolveError

logger = logging.getLogger(__name__)


def _config_key(repo: Optional[str]) -> str:
    try:
        return paths.resolve_config(repo)
    except ResolveError as e:
        logger.debug("config.resolve.error err=%s", e)
        raise AppError.of(ErrorMessage.INTERNAL_ERROR)


async def check_config(
    repo: Optional[str] = Depends(get_repo),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("CheckConfig()")
    return await service.check(_config_key(repo))


async def get_config(
    request: Request,
    repo: Optional[str] = Depends(get_repo),
    labels: MetricLabels = Depends(get_metric_labels),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("GetConfig()")
    return await service.read(_config_key(repo), request.headers.get("Range"), labels)


async def save_config(
    request: Request,
    repo: Optional[str] = Depends(get_repo),
    labels: MetricLabels = Depends(get_metric_labels),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("SaveConfig()")
    return await service.save(_config_key(repo), request.stream(), labels)


async def delete_config(
    repo: Optional[str] = Depends(get_repo),
    labels: MetricLabels = Depends(get_metric_labels),
    ctx: ServerContext = Depends(get_context),
    service: TransferService = Depends(get_transfer_service),
) -> Response:
    logger.debug("DeleteConfig()")
    if ctx.append_only:
        raise AppError.of(ErrorMessage.FORBIDDEN)
    return await service.delete(_config_key(repo), labels)
