"""Product repository for data access operations."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from src.catalog.entities._base import utc_now
from src.catalog.entities.product.entity import Product
from src.catalog.entities.product.filter import (
    ProductFilter,
    resolve_column,
    where_clauses,
)
from src.catalog.entities.product.table import ProductTable

_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class ProductNotFoundError(LookupError):
    """Raised by id-keyed operations when no product has the given id."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product '{product_id}' not found")
        self.product_id = product_id


def _to_entity(row: ProductTable) -> Product:
    return Product.model_validate(row.model_dump())


class ProductRepository:
    """Data-access layer for products.

    The repository flushes but never commits; the owner of the session decides
    the transaction boundary.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _require(self, product_id: str) -> ProductTable:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            raise ProductNotFoundError(product_id)
        return row

    def create(self, product: Product) -> Product:
        row = ProductTable.model_validate(product.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return _to_entity(row)

    def count(self, where: dict[str, Any] | None = None) -> int:
        statement = select(func.count()).select_from(ProductTable)
        for clause in where_clauses(where):
            statement = statement.where(clause)
        return self._session.exec(statement).one()

    def find(self, product_filter: ProductFilter | None = None) -> list[Product]:
        product_filter = product_filter or ProductFilter()
        statement = select(ProductTable)
        for clause in where_clauses(product_filter.where):
            statement = statement.where(clause)
        if product_filter.order_by is not None:
            field_name, direction = product_filter.order_by
            column = resolve_column(field_name)
            statement = statement.order_by(
                column.desc() if direction == "DESC" else column.asc()
            )
        if product_filter.skip:
            statement = statement.offset(product_filter.skip)
        if product_filter.limit is not None:
            statement = statement.limit(product_filter.limit)
        rows = self._session.exec(statement).all()
        return [_to_entity(row) for row in rows]

    def get(self, product_id: str) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return _to_entity(row)

    def find_by_id(self, product_id: str) -> Product:
        return _to_entity(self._require(product_id))

    def update_all(
        self, changes: dict[str, Any], where: dict[str, Any] | None = None
    ) -> int:
        values = {
            key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS
        }
        if not values:
            return self.count(where)
        statement = update(ProductTable).values(**values, updated_at=utc_now())
        for clause in where_clauses(where):
            statement = statement.where(clause)
        result = self._session.execute(statement)
        self._session.flush()
        self._session.expire_all()
        return result.rowcount

    def update_by_id(self, product_id: str, changes: dict[str, Any]) -> None:
        row = self._require(product_id)
        for key, value in changes.items():
            if key in _IMMUTABLE_FIELDS:
                continue
            setattr(row, key, value)
        row.updated_at = utc_now()
        self._session.add(row)
        self._session.flush()

    def replace_by_id(self, product_id: str, product: Product) -> None:
        """Overwrite every business field of the stored product.

        The identifier and creation timestamp of the stored row are kept.
        """
        row = self._require(product_id)
        replacement = product.model_dump(exclude=set(_IMMUTABLE_FIELDS) | {"updated_at"})
        for key, value in replacement.items():
            setattr(row, key, value)
        row.updated_at = utc_now()
        self._session.add(row)
        self._session.flush()

    def delete_by_id(self, product_id: str) -> None:
        row = self._require(product_id)
        self._session.delete(row)
        self._session.flush()

    def list_preview_images(self) -> list[str]:
        """Return every non-empty ``preview_image`` value."""
        statement = select(ProductTable.preview_image).where(
            col(ProductTable.preview_image).is_not(None),
            col(ProductTable.preview_image) != "",
        )
        return list(self._session.exec(statement).all())
