# main.py
import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional
import routes
from config.context import ServerContext
from config.settings import Settings, settings as default_settings
from config.storage import build_object_store
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from controller.controller_dependencies import get_context, require_auth
from model.api import HealthResponse
from repository.object_store import ObjectStore
from service.metrics_service import METRICS_CONTENT_TYPE
from util.constants import InternalURIs
from util.enums import Color, Environment
from util.errors import AppError
from util.logger import init_logger

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, store: Optional[ObjectStore] = None
) -> FastAPI:
    """
    Build the app. The ServerContext is created once in the lifespan and
    handed to every request through app.state.
    `store` overrides the configured backend (tests pass one in).
    """
    cfg = settings or default_settings

    @asynccontextmanager
    async def lifespan(fastApi: FastAPI):
        init_logger(cfg)
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        try:
            backend = store or await build_object_store(cfg)
        except Exception as e:
            print("Failed to open object store:", e)
            raise
        fastApi.state.context = ServerContext.build(cfg, backend)
        logger.info(
            "server.start backend=%s append_only=%s auth=%s metrics=%s",
            cfg.STORAGE_BACKEND if store is None else type(store).__name__,
            cfg.APPEND_ONLY,
            cfg.HTPASSWD_FILE is not None,
            cfg.METRICS_ENABLED,
        )
        print(f"{Color.BLUE}Server Started{Color.RESET}")

        try:
            yield
        finally:
            try:
                await backend.close()
            except Exception as e:
                print("Error closing object store:", e)

            print(f"{Color.RED}Server Shutdown{Color.RESET}")

    # Unmatched paths answer 404; never redirect to the trailing-slash listing route.
    app = FastAPI(
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    @app.get(InternalURIs.HEALTHZ, response_model=HealthResponse)
    async def healthz():
        return {"ok": True}

    if cfg.METRICS_ENABLED:

        @app.get(InternalURIs.METRICS, dependencies=[Depends(require_auth)])
        async def metrics(request: Request):
            ctx: ServerContext = get_context(request)
            return Response(ctx.metrics.render(), media_type=METRICS_CONTENT_TYPE)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Plain status text, the way restic clients expect error bodies.
        if isinstance(exc, AppError):
            text = exc.detail
        else:
            text = HTTPStatus(exc.status_code).phrase
        return PlainTextResponse(
            f"{text}\n", status_code=exc.status_code, headers=exc.headers
        )

    routes.register_routes(app)
    return app


app: FastAPI = create_app()

if __name__ == "__main__":
    import uvicorn

    reload = default_settings.APP_ENV == Environment.DEV and default_settings.DEBUG
    uvicorn.run(
        "main:app", host=default_settings.HOST, port=default_settings.PORT, reload=reload
    )
