"""Equality filters for product queries.

Only what the product endpoints need: AND-combined equality conditions,
paging and single-field ordering. Field names may be given in either
camelCase (as in JSON payloads) or snake_case.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_snake
from sqlalchemy import ColumnElement
from sqlmodel import col

from src.catalog.entities.product.table import ProductTable


class InvalidFilterError(ValueError):
    """Raised when a filter cannot be parsed or names an unknown field."""


def resolve_column(field_name: str) -> Any:
    """Map an API field name onto a ProductTable column."""
    attribute = to_snake(field_name)
    if attribute not in ProductTable.model_fields:
        raise InvalidFilterError(f"Unknown product field '{field_name}'")
    return col(getattr(ProductTable, attribute))


def where_clauses(where: dict[str, Any] | None) -> list[ColumnElement[bool]]:
    """Translate a ``{field: value}`` mapping into SQL equality clauses."""
    if not where:
        return []
    return [resolve_column(name) == value for name, value in where.items()]


class ProductFilter(BaseModel):
    """Parsed ``filter`` query parameter for product listings."""

    where: dict[str, Any] = Field(default_factory=dict)
    limit: int | None = Field(default=None, ge=0)
    skip: int = Field(default=0, ge=0)
    order: str | None = Field(
        default=None, description="'<field>' or '<field> ASC|DESC'"
    )

    @field_validator("order")
    @classmethod
    def _check_order(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parts = value.split()
        if len(parts) not in (1, 2) or (
            len(parts) == 2 and parts[1].upper() not in ("ASC", "DESC")
        ):
            raise ValueError(f"Invalid order expression '{value}'")
        return value

    @property
    def order_by(self) -> tuple[str, Literal["ASC", "DESC"]] | None:
        if self.order is None:
            return None
        parts = self.order.split()
        direction = parts[1].upper() if len(parts) == 2 else "ASC"
        return parts[0], direction  # type: ignore[return-value]


def parse_where(raw: str | None) -> dict[str, Any] | None:
    """Decode the JSON ``where`` query parameter."""
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidFilterError(f"'where' is not valid JSON: {e.msg}") from e
    if not isinstance(value, dict):
        raise InvalidFilterError("'where' must be a JSON object")
    return value


def parse_filter(raw: str | None) -> ProductFilter | None:
    """Decode the JSON ``filter`` query parameter."""
    if raw is None or raw == "":
        return None
    try:
        return ProductFilter.model_validate_json(raw)
    except ValidationError as e:
        raise InvalidFilterError(f"Invalid filter: {e.errors()[0]['msg']}") from e
