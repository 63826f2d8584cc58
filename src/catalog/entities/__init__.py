"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model exchanged with API clients
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .product import Product, ProductRepository, ProductTable

__all__ = [
    "Product",
    "ProductTable",
    "ProductRepository",
]
