# controller/controller_dependencies.py
import base64
import binascii
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param
from config.context import ServerContext
from service.metrics_service import MetricLabels
from service.repository_service import RepositoryService
from service.transfer_service import TransferService
from util.constants import AUTH_REALM, ROOT_REPO
from util.enums import ErrorMessage
from util.errors import AppError


def get_context(request: Request) -> ServerContext:
    return request.app.state.context


def get_transfer_service(ctx: ServerContext = Depends(get_context)) -> TransferService:
    return TransferService(ctx.store, ctx.metrics)


def get_repository_service(
    ctx: ServerContext = Depends(get_context),
) -> RepositoryService:
    return RepositoryService(ctx.store)


def get_repo(request: Request) -> Optional[str]:
    # Routes without a {repo} placeholder address the root namespace.
    return request.path_params.get("repo")


def basic_credentials(request: Request) -> Optional[HTTPBasicCredentials]:
    """Decode `Authorization: Basic ...`; anything unusable counts as absent."""
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "basic" or not param:
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return HTTPBasicCredentials(username=username, password=password)


async def require_auth(
    ctx: ServerContext = Depends(get_context),
    creds: Optional[HTTPBasicCredentials] = Depends(basic_credentials),
) -> None:
    if ctx.credentials is None:
        return
    if creds is None or not ctx.credentials.validate(creds.username, creds.password):
        raise AppError.of(
            ErrorMessage.UNAUTHORIZED,
            headers={"WWW-Authenticate": f'Basic realm="{AUTH_REALM}"'},
        )


def get_metric_labels(
    request: Request,
    creds: Optional[HTTPBasicCredentials] = Depends(basic_credentials),
) -> MetricLabels:
    return MetricLabels(
        user=creds.username if creds else "",
        repo=request.path_params.get("repo") or ROOT_REPO,
        type=request.path_params.get("blob_type", ""),
    )
