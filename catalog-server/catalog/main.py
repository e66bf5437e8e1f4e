import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog import __version__
from catalog.api import create_api_router
from catalog.api.routers import websocket as websocket_router
from catalog.core.config import Settings, get_settings
from catalog.core.container import CatalogContainer
from catalog.core.logging import configure_logging

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

logger = logging.getLogger(__name__)


def _resolve_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def resolve_storage_paths(settings: Settings) -> Settings:
    """Anchor relative storage directories at the project root."""
    storage = settings.storage.model_copy(
        update={
            "photo_dir": _resolve_path(settings.storage.photo_dir),
            "staging_dir": _resolve_path(settings.storage.staging_dir),
        }
    )
    return settings.model_copy(update={"storage": storage})


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: CatalogContainer = app.state.container
    await container.start()
    try:
        yield
    finally:
        await container.shutdown()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or "Invalid request"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    settings = resolve_storage_paths(settings)
    container = CatalogContainer.build(settings)

    app = FastAPI(
        title=settings.project_name,
        description="Product catalog with image uploads and live change notifications",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.mount(
        settings.storage.public_url_prefix,
        StaticFiles(directory=str(container.blob_store.root)),
        name="photo",
    )

    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(websocket_router.router)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def homepage() -> str:
        return "API Running..."

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    run_settings = get_settings()
    uvicorn.run(
        "catalog.main:app",
        host=run_settings.host,
        port=run_settings.port,
        reload=run_settings.server.reload,
    )
