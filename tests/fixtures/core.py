from __future__ import annotations

from collections.abc import AsyncIterator, Generator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.catalog.api.http.app import create_app
from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.core.services import (
    BackgroundTaskRunner,
    DbSessionService,
    ImageAssetManager,
    LocalFileStore,
)
from src.catalog.entities.product import Product, ProductRepository
from src.catalog.runtime.config.config_data import DatabaseConfig, ImagesConfig
from tests.utils import RecordingErrorReporter, SpyFileStore


@pytest.fixture
def session() -> Generator[Session]:
    """Create a fresh in-memory database session for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from src.catalog.entities.product import ProductTable  # noqa: F401

    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        try:
            yield session
        finally:
            session.rollback()
            session.close()
            engine.dispose()


@pytest.fixture
def database_service(tmp_path: Path) -> Generator[DbSessionService]:
    """File-backed SQLite so background threads see committed rows."""
    service = DbSessionService(DatabaseConfig(url=f"sqlite:///{tmp_path / 'catalog.db'}"))
    service.create_all()
    yield service
    service.dispose()


@pytest.fixture
def images_config() -> ImagesConfig:
    return ImagesConfig()


@pytest.fixture
def error_reporter() -> RecordingErrorReporter:
    return RecordingErrorReporter()


@pytest.fixture
def task_runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner()


@pytest.fixture
def spy_file_store() -> SpyFileStore:
    return SpyFileStore()


@pytest.fixture
def local_file_store(tmp_path: Path) -> LocalFileStore:
    return LocalFileStore(tmp_path / "images" / "product")


@pytest.fixture
def image_asset_manager(
    database_service: DbSessionService,
    spy_file_store: SpyFileStore,
    task_runner: BackgroundTaskRunner,
    error_reporter: RecordingErrorReporter,
    images_config: ImagesConfig,
) -> ImageAssetManager:
    return ImageAssetManager(
        database_service=database_service,
        file_store=spy_file_store,
        task_runner=task_runner,
        error_reporter=error_reporter,
        images_config=images_config,
    )


@pytest.fixture
def store_product(database_service: DbSessionService):
    """Persist a product directly and return it."""

    def _store(**fields) -> Product:
        with database_service.session_scope() as db:
            return ProductRepository(db).create(Product(**fields))

    return _store


@pytest.fixture
def load_product(database_service: DbSessionService):
    """Read a product straight from the database, or None."""

    def _load(product_id: str) -> Product | None:
        with database_service.session_scope() as db:
            return ProductRepository(db).get(product_id)

    return _load


@pytest.fixture
def app(
    database_service: DbSessionService,
    local_file_store: LocalFileStore,
    task_runner: BackgroundTaskRunner,
    error_reporter: RecordingErrorReporter,
    images_config: ImagesConfig,
) -> FastAPI:
    """Application wired to a temporary database and image directory."""
    manager = ImageAssetManager(
        database_service=database_service,
        file_store=local_file_store,
        task_runner=task_runner,
        error_reporter=error_reporter,
        images_config=images_config,
    )
    return create_app(
        ApplicationDependencies(
            database_service=database_service,
            task_runner=task_runner,
            image_asset_manager=manager,
        )
    )


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
