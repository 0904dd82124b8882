# routes.py
from typing import Callable, List, NamedTuple, Tuple
from fastapi import APIRouter, Depends, FastAPI
from controller import blob_controller, config_controller, repository_controller
from controller.controller_dependencies import require_auth
from util.constants import InternalURIs


class Route(NamedTuple):
    methods: Tuple[str, ...]
    path: str
    endpoint: Callable


HEAD = ("HEAD",)
GET = ("GET",)
SAVE = ("POST", "PUT")
DELETE = ("DELETE",)
POST = ("POST",)


def _config_routes(config: str) -> List[Route]:
    return [
        Route(HEAD, config, config_controller.check_config),
        Route(GET, config, config_controller.get_config),
        Route(SAVE, config, config_controller.save_config),
        Route(DELETE, config, config_controller.delete_config),
    ]


def _blob_routes(type_dir: str, blob: str, root: str) -> List[Route]:
    return [
        Route(GET, type_dir, repository_controller.list_blobs),
        Route(HEAD, blob, blob_controller.check_blob),
        Route(GET, blob, blob_controller.get_blob),
        Route(SAVE, blob, blob_controller.save_blob),
        Route(DELETE, blob, blob_controller.delete_blob),
        Route(POST, root, repository_controller.create_repo),
    ]


# Method + pattern -> handler, first match wins. Config patterns go first so
# "/{repo}/config" is never taken for "/{blob_type}/{name}".
ROUTE_TABLE: List[Route] = [
    *_config_routes(InternalURIs.CONFIG),
    *_config_routes(InternalURIs.REPO_CONFIG),
    *_blob_routes(InternalURIs.TYPE_DIR, InternalURIs.BLOB, InternalURIs.ROOT),
    *_blob_routes(
        InternalURIs.REPO_TYPE_DIR, InternalURIs.REPO_BLOB, InternalURIs.REPO_ROOT
    ),
]


def build_router() -> APIRouter:
    router = APIRouter(dependencies=[Depends(require_auth)])
    for route in ROUTE_TABLE:
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=list(route.methods),
            response_model=None,
            include_in_schema=False,
        )
    return router


def register_routes(app: FastAPI) -> None:
    """Register the REST protocol routes; every one of them sits behind auth."""
    app.include_router(build_router())
