"""Product domain model — maps to the 'products' table."""

from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.domain.models.mixins import SoftDeleteMixin, TimestampMixin


class Product(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    # Ordered storage keys, e.g. "products/20250101_120000_ab12cd34.jpg"
    images = Column(JSON, nullable=False, default=list)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    creator = relationship("User", foreign_keys=[created_by])
    updater = relationship("User", foreign_keys=[updated_by])

    def __repr__(self):
        return f"<Product {self.id} - {self.slug}>"
