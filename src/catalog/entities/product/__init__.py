"""Entity package: Product."""

from .entity import NewProduct, Product, ProductPatch
from .filter import InvalidFilterError, ProductFilter
from .repository import ProductNotFoundError, ProductRepository
from .table import ProductTable

__all__ = [
    "InvalidFilterError",
    "NewProduct",
    "Product",
    "ProductFilter",
    "ProductNotFoundError",
    "ProductPatch",
    "ProductRepository",
    "ProductTable",
]
