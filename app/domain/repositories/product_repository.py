"""
Product Repository Interface.
Defines specific data access operations for Products.
"""

from typing import List, Tuple

from app.domain.repositories.base import BaseRepository
from app.domain.models.product import Product
from app.domain.schemas.product import ProductFilter


class ProductRepository(BaseRepository[Product]):
    """Interface for Product-specific operations."""

    def get_with_filters(self, filters: ProductFilter) -> Tuple[List[Product], int]:
        """Get one page of products matching the filters, plus the total count."""
        ...

    def slug_exists(self, slug: str) -> bool:
        """Check whether a slug is taken, including by deleted products."""
        ...

    def get_all_for_export(self) -> List[Product]:
        """Get every non-deleted product (active and inactive), oldest first."""
        ...
