"""Conversion of inline preview images into stored image files.

A product replace whose ``previewImage`` is a base64 data URI is turned into a
file ``<prefix><id>.<ext>`` in the image directory, and the stored field is
rewritten to the public URL of that file. Deleting the product removes the
file. File I/O happens in background tasks; the store write that follows an
image write always runs after the write attempt, whatever its outcome.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TypeVar
from urllib.parse import urlsplit

from loguru import logger

from src.catalog.core.services.database.db_session import DbSessionService
from src.catalog.core.services.files.file_store import FileStore
from src.catalog.core.services.images.data_uri import (
    is_image_data_uri,
    parse_image_data_uri,
)
from src.catalog.core.services.images.error_reporter import ErrorReporter
from src.catalog.core.services.tasks.background import BackgroundTaskRunner
from src.catalog.entities.product import Product, ProductRepository
from src.catalog.runtime.config.config_data import ImagesConfig

T = TypeVar("T")


def file_name_from_url(url: str) -> str:
    """Last path segment of ``url``, ignoring any query string or fragment."""
    return urlsplit(url).path.rsplit("/", 1)[-1]


class ImageAssetManager:
    """Owns the lifecycle of stored product preview images."""

    def __init__(
        self,
        database_service: DbSessionService,
        file_store: FileStore,
        task_runner: BackgroundTaskRunner,
        error_reporter: ErrorReporter,
        images_config: ImagesConfig | None = None,
    ):
        self._db = database_service
        self._file_store = file_store
        self._tasks = task_runner
        self._reporter = error_reporter
        self._config = images_config or ImagesConfig()

    def storage_file_name(self, product_id: str, extension: str) -> str:
        return f"{self._config.filename_prefix}{product_id}.{extension}"

    def public_url(self, base_url: str, file_name: str) -> str:
        return f"{base_url.rstrip('/')}{self._config.url_path}/{file_name}"

    def _in_session(self, operation: Callable[[ProductRepository], T]) -> T:
        with self._db.session_scope() as session:
            return operation(ProductRepository(session))

    async def _with_repository(self, operation: Callable[[ProductRepository], T]) -> T:
        return await asyncio.to_thread(self._in_session, operation)

    async def replace_record(
        self, product_id: str, product: Product, base_url: str
    ) -> asyncio.Task[None] | None:
        """Replace a product, converting an inline preview image to a file.

        Args:
            product_id: Identifier of the product to replace.
            product: Full replacement; its ``id`` is forced to ``product_id``.
            base_url: ``<scheme>://<host>`` of the request, used for the image URL.

        Returns:
            The background task storing the image and then the product, or
            ``None`` when the product was replaced directly.

        Raises:
            ProductNotFoundError: If no product has ``product_id``.
            InvalidDataUriError: If ``previewImage`` starts with ``data:image``
                but cannot be decoded. Nothing is written in that case.
        """
        product = product.model_copy(update={"id": product_id})

        if not is_image_data_uri(product.preview_image):
            await self._with_repository(lambda repo: repo.replace_by_id(product_id, product))
            return None

        image = parse_image_data_uri(product.preview_image)
        # Surface a missing product to the caller instead of the background task
        await self._with_repository(lambda repo: repo.find_by_id(product_id))

        file_name = self.storage_file_name(product_id, image.extension)
        logger.bind(record_id=product_id).info(
            "Scheduling preview image write to {} ({} bytes)", file_name, len(image.data)
        )
        return self._tasks.submit(
            self._store_image_then_replace(
                product_id, product, image.data, file_name, self.public_url(base_url, file_name)
            ),
            name=f"replace-preview-{product_id}",
        )

    async def _store_image_then_replace(
        self, product_id: str, product: Product, data: bytes, file_name: str, url: str
    ) -> None:
        try:
            await self._file_store.write(file_name, data)
        except Exception as error:
            # The product is still replaced, keeping the inline image
            self._reporter.report("write", product_id, error)
        else:
            product.preview_image = url

        try:
            await self._with_repository(lambda repo: repo.replace_by_id(product_id, product))
        except Exception as error:
            self._reporter.report("replace", product_id, error)

    async def delete_record(self, product_id: str) -> asyncio.Task[None] | None:
        """Delete a product and, best effort, its stored preview image.

        Returns:
            The background task removing the image file, if one was scheduled.

        Raises:
            ProductNotFoundError: If no product has ``product_id``.
        """
        product = await self._with_repository(lambda repo: repo.find_by_id(product_id))

        task = None
        if product.preview_image:
            file_name = file_name_from_url(product.preview_image)
            if file_name:
                task = self._tasks.submit(
                    self._delete_image(product_id, file_name),
                    name=f"delete-preview-{product_id}",
                )

        await self._with_repository(lambda repo: repo.delete_by_id(product_id))
        return task

    async def _delete_image(self, product_id: str, file_name: str) -> None:
        try:
            await self._file_store.delete(file_name)
        except Exception as error:
            self._reporter.report("delete", product_id, error)

    def resolve_image(self, file_name: str) -> Path:
        """Path of a stored image for serving.

        Raises:
            UnsafeFileNameError: If ``file_name`` could escape the image directory.
            FileNotFoundError: If no such image is stored.
        """
        return self._file_store.resolve(file_name)

    async def prune_orphans(
        self, dry_run: bool = False, min_age: timedelta | None = None
    ) -> list[str]:
        """Delete stored preview images that no product references.

        Orphans appear when a write succeeds but the following store write does
        not, or when a product is replaced with an image of another extension.
        A file written less than ``min_age`` ago may belong to a replace that
        has not saved its product yet, so it is left alone.

        Args:
            dry_run: Only return the orphans, do not delete them.
            min_age: Minimum file age; defaults to ``orphan_min_age_seconds``.
        """
        if min_age is None:
            min_age = timedelta(seconds=self._config.orphan_min_age_seconds)
        cutoff = datetime.now(UTC) - min_age

        # Ages are read before references; a file written in between is too young
        candidates = []
        for name in self._file_store.list_names():
            if not name.startswith(self._config.filename_prefix):
                continue
            try:
                modified_at = await self._file_store.modified_at(name)
            except FileNotFoundError:
                continue
            if modified_at <= cutoff:
                candidates.append(name)

        preview_images = await self._with_repository(lambda repo: repo.list_preview_images())
        referenced = {file_name_from_url(value) for value in preview_images}
        orphans = [name for name in candidates if name not in referenced]
        if dry_run:
            return orphans

        for name in orphans:
            try:
                await self._file_store.delete(name)
            except FileNotFoundError:
                continue
            logger.info("Pruned orphaned preview image {}", name)
        return orphans
