"""Serving of stored product preview images."""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from loguru import logger

from src.catalog.api.http.deps import get_image_asset_manager
from src.catalog.core.services import ImageAssetManager, UnsafeFileNameError


def create_router(url_path: str = "/product-images") -> APIRouter:
    router = APIRouter(prefix=url_path, tags=["product-images"])

    @router.get("/{file_name}", response_class=FileResponse)
    def get_product_image(
        file_name: str,
        image_asset_manager: ImageAssetManager = Depends(get_image_asset_manager),
    ) -> FileResponse:
        """Stream a stored preview image."""
        try:
            path = image_asset_manager.resolve_image(file_name)
        except UnsafeFileNameError as e:
            logger.warning("Rejected image request for unsafe name {!r}", file_name)
            raise HTTPException(status_code=400, detail=str(e))
        except FileNotFoundError:
            raise HTTPException(status_code=404, detail="Image not found")
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return FileResponse(path, media_type=media_type)

    return router
