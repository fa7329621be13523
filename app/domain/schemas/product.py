"""Pydantic schemas for Product domain."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.domain.schemas.common import TrashedScope, UserSummary

SORTABLE_FIELDS = ("created_at", "updated_at", "name", "price", "stock", "id")
SortField = Literal["created_at", "updated_at", "name", "price", "stock", "id"]


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)
    active: bool


class ProductUpdate(BaseModel):
    """Partial update; only the fields that were sent are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None


class ProductStatusUpdate(BaseModel):
    active: bool


class ProductFilter(BaseModel):
    search: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    sort: SortField = "created_at"
    direction: Literal["asc", "desc"] = "desc"
    page: int = 1
    per_page: int = 10
    trashed: Optional[TrashedScope] = None


class ProductRead(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    active: bool
    images: List[str] = []
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    # Computed by the presentation layer
    status_label: str
    in_stock: bool
    image_urls: List[str] = []
    creator: Optional[UserSummary] = None
    updater: Optional[UserSummary] = None


class ExportResult(BaseModel):
    path: str
    url: str
