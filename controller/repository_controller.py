# controller/repository_controller.py
import logging
from typing import Optional
from fastapi import Depends, Query, Response
from controller.controller_dependencies import get_repo, get_repository_service
from service.repository_service import RepositoryService

logger = logging.getLogger(__name__)


async def list_blobs(
    blob_type: str,
    repo: Optional[str] = Depends(get_repo),
    service: RepositoryService = Depends(get_repository_service),
) -> Response:
    logger.debug("ListBlobs()")
    return await service.list_blobs(repo, blob_type)


async def create_repo(
    create: Optional[str] = Query(default=None),
    repo: Optional[str] = Depends(get_repo),
    service: RepositoryService = Depends(get_repository_service),
) -> Response:
    logger.debug("CreateRepo()")
    return await service.create_repository(repo, create)
