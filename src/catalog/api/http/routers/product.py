"""Product API router with CRUD operations."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlmodel import Session

from src.catalog.api.http.deps import (
    get_db_session,
    get_image_asset_manager,
    get_request_base_url,
)
from src.catalog.core.services import ImageAssetManager, InvalidDataUriError
from src.catalog.entities.product import (
    InvalidFilterError,
    NewProduct,
    Product,
    ProductNotFoundError,
    ProductPatch,
    ProductRepository,
)
from src.catalog.entities.product.filter import parse_filter, parse_where

router = APIRouter(prefix="/products", tags=["products"])


class Count(BaseModel):
    count: int


@router.post("", response_model=Product)
def create_product(
    product: NewProduct,
    session: Session = Depends(get_db_session),
) -> Product:
    """Create a new product."""
    repository = ProductRepository(session)
    created_product = repository.create(Product(**product.model_dump()))
    session.commit()
    return created_product


@router.get("/count", response_model=Count)
def count_products(
    where: str | None = Query(default=None, description="JSON equality conditions"),
    session: Session = Depends(get_db_session),
) -> Count:
    """Count products matching ``where``."""
    try:
        return Count(count=ProductRepository(session).count(parse_where(where)))
    except InvalidFilterError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[Product])
def list_products(
    filter: str | None = Query(
        default=None, description="JSON object with where, limit, skip and order"
    ),
    session: Session = Depends(get_db_session),
) -> list[Product]:
    """List products."""
    try:
        return ProductRepository(session).find(parse_filter(filter))
    except InvalidFilterError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("", response_model=Count)
def update_products(
    patch: ProductPatch,
    where: str | None = Query(default=None, description="JSON equality conditions"),
    session: Session = Depends(get_db_session),
) -> Count:
    """Apply a partial update to every product matching ``where``."""
    try:
        updated = ProductRepository(session).update_all(patch.changes(), parse_where(where))
    except InvalidFilterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    session.commit()
    return Count(count=updated)


@router.get("/{product_id}", response_model=Product)
def get_product(
    product_id: str,
    session: Session = Depends(get_db_session),
) -> Product:
    """Get a product by ID."""
    try:
        return ProductRepository(session).find_by_id(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{product_id}", status_code=204, response_class=Response)
def update_product(
    product_id: str,
    patch: ProductPatch,
    session: Session = Depends(get_db_session),
) -> None:
    """Apply a partial update to one product."""
    try:
        ProductRepository(session).update_by_id(product_id, patch.changes())
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    session.commit()


@router.put("/{product_id}", status_code=204, response_class=Response)
async def replace_product(
    product_id: str,
    product: Product,
    base_url: str = Depends(get_request_base_url),
    image_asset_manager: ImageAssetManager = Depends(get_image_asset_manager),
) -> None:
    """Replace a product.

    An inline ``data:image/...;base64,`` preview image is stored as a file in
    the background and the product is saved with the URL of that file.
    """
    try:
        await image_asset_manager.replace_record(product_id, product, base_url)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidDataUriError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/{product_id}", status_code=204, response_class=Response)
async def delete_product(
    product_id: str,
    image_asset_manager: ImageAssetManager = Depends(get_image_asset_manager),
) -> None:
    """Delete a product together with its stored preview image."""
    try:
        await image_asset_manager.delete_record(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
