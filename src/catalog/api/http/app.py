"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.api.http.routers import health, product, product_images
from src.catalog.api.utils.app_startup import configure_logging
from src.catalog.core.services import (
    BackgroundTaskRunner,
    DbSessionService,
    ImageAssetManager,
    LocalFileStore,
    LoggingErrorReporter,
)
from src.catalog.runtime.context import get_config

# Pending image writes get this long to finish on shutdown
SHUTDOWN_DRAIN_TIMEOUT_SECONDS = 10.0


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


def build_dependencies() -> ApplicationDependencies:
    """Create the application-wide services from the current configuration."""
    config = get_config()

    database_service = DbSessionService()
    database_service.create_all()

    task_runner = BackgroundTaskRunner()
    image_asset_manager = ImageAssetManager(
        database_service=database_service,
        file_store=LocalFileStore(config.images.directory),
        task_runner=task_runner,
        error_reporter=LoggingErrorReporter(),
        images_config=config.images,
    )
    return ApplicationDependencies(
        database_service=database_service,
        task_runner=task_runner,
        image_asset_manager=image_asset_manager,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    owns_dependencies = not hasattr(app.state, "app_dependencies")
    if owns_dependencies:
        app.state.app_dependencies = build_dependencies()

    deps: ApplicationDependencies = app.state.app_dependencies
    try:
        yield
    finally:
        logger.info("Shutting down application")
        await deps.task_runner.drain(timeout=SHUTDOWN_DRAIN_TIMEOUT_SECONDS)
        if owns_dependencies:
            deps.database_service.dispose()


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "scheme": request.url.scheme,
        "host": request.headers.get("host", request.url.hostname or "-"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        dependencies: Pre-built services. When omitted they are built from the
            current configuration during application startup.
    """
    config = get_config()
    is_production = config.app.environment == "production"

    app = FastAPI(
        title="Product Catalog",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )
    if dependencies is not None:
        app.state.app_dependencies = dependencies

    if is_production and "*" in config.app.cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    app.include_router(health.router)
    app.include_router(product.router)
    app.include_router(product_images.create_router(config.images.url_path))

    return app


app = create_app()

__all__ = ["app", "build_dependencies", "create_app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # We handle access logging in middleware
    )
