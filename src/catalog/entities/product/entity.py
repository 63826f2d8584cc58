"""Entity: Product."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.catalog.entities._base import Entity


class ProductFields(BaseModel):
    """Business attributes shared by every product payload.

    JSON payloads use camelCase names (``previewImage``); Python code uses
    snake_case. Both are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = Field(default=None, description="Display name")
    description: str | None = Field(default=None, description="Free text description")
    price: float | None = Field(default=None, description="Unit price")
    preview_image: str | None = Field(
        default=None,
        description="Preview image: empty, a base64 data URI, or a URL of a stored file",
    )


class NewProduct(ProductFields):
    """Payload for creating a product; the identifier is assigned by the store."""

    model_config = ConfigDict(extra="forbid")


class ProductPatch(ProductFields):
    """Partial update payload; only explicitly sent fields are applied."""

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Product(Entity, ProductFields):
    """Product entity representing a product in the catalog.

    This is the domain model that contains business logic and validation.
    It inherits from Entity to get auto-generated UUID identifiers.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.description == other.description
            and self.price == other.price
            and self.preview_image == other.preview_image
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.name,
            self.description,
            self.price,
            self.preview_image,
        ))
