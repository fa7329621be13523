"""
SQLAlchemy Implementation of Product Repository.
"""

from typing import List, Tuple

from sqlalchemy import or_

from app.domain.models.product import Product
from app.domain.repositories.product_repository import ProductRepository
from app.domain.schemas.product import ProductFilter
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyProductRepository(SQLAlchemyRepository[Product], ProductRepository):
    """Product repository implementation using SQLAlchemy."""

    def get_with_filters(self, filters: ProductFilter) -> Tuple[List[Product], int]:
        """Get products with filtering, sorting and pagination."""
        query = self.query(filters.trashed)

        if filters.search:
            term = f"%{filters.search}%"
            query = query.filter(or_(Product.name.ilike(term), Product.description.ilike(term)))
        if filters.status:
            query = query.filter(Product.active.is_(filters.status == "active"))
        if filters.min_price is not None:
            query = query.filter(Product.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.filter(Product.price <= filters.max_price)

        # ``sort`` is restricted to SORTABLE_FIELDS by the schema
        column = getattr(Product, filters.sort)
        order = column.asc() if filters.direction == "asc" else column.desc()
        tiebreak = Product.id.asc() if filters.direction == "asc" else Product.id.desc()
        query = query.order_by(order, tiebreak)

        return self.paginate(query, filters.page, filters.per_page)

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(Product.id).filter(Product.slug == slug).first() is not None

    def get_all_for_export(self) -> List[Product]:
        return self.query().order_by(Product.id.asc()).all()
