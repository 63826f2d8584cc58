"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlmodel import Session

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.core.services import ImageAssetManager


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session that is closed after the request."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_image_asset_manager(request: Request) -> ImageAssetManager:
    """Get the preview image asset manager."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.image_asset_manager


def get_request_base_url(request: Request) -> str:
    """``<scheme>://<host>`` as seen by the client that sent the request."""
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"
