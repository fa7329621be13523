"""Products API routes — catalog listing for any user, management and exports for admins."""

from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from app.infrastructure.storage import StorageBackend
from app.application.services import access_control, product_service, report_service
from app.core.exceptions import ForbiddenException
from app.core.responses import paginated, success
from app.domain.models.user import User
from app.domain.repositories.product_repository import ProductRepository
from app.domain.schemas.common import TrashedScope
from app.domain.schemas.product import (
    ExportResult,
    ProductCreate,
    ProductFilter,
    ProductStatusUpdate,
    ProductUpdate,
    SortField,
)
from app.interfaces.api.deps import get_current_user, require_permission
from app.interfaces.api.forms import Payload, parse, read_payload
from app.interfaces.api.presenters import image_url_resolver, present_product
from app.interfaces.deps import get_product_repository, get_product_storage, get_public_storage

router = APIRouter(prefix="/products", tags=["Products"])

can_create = require_permission("create product", role="admin")
can_edit = require_permission("edit product", role="admin")
can_delete = require_permission("delete product", role="admin")


@router.get("/export/pdf")
def export_pdf(
    user: User = Depends(require_permission("view product", role="admin")),
    repo: ProductRepository = Depends(get_product_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    result = report_service.export_products_pdf(repo, disk)
    return success(ExportResult(**result).model_dump(), "Products exported to PDF")


@router.get("/export/excel")
def export_excel(
    user: User = Depends(require_permission("view product", role="admin")),
    repo: ProductRepository = Depends(get_product_repository),
    disk: StorageBackend = Depends(get_public_storage),
):
    result = report_service.export_products_excel(repo, disk)
    return success(ExportResult(**result).model_dump(), "Products exported to Excel")


@router.get("")
def list_products(
    request: Request,
    search: Optional[str] = None,
    status_filter: Optional[Literal["active", "inactive"]] = Query(None, alias="status"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: SortField = "created_at",
    direction: Literal["asc", "desc"] = "desc",
    trashed: Optional[TrashedScope] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    repo: ProductRepository = Depends(get_product_repository),
):
    if trashed and not access_control.has_role(user, "admin"):
        raise ForbiddenException("Only administrators can view deleted products")

    filters = ProductFilter(
        search=search,
        status=status_filter,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        direction=direction,
        trashed=trashed,
        page=page,
        per_page=per_page,
    )
    products, total = product_service.list_products(repo, filters)
    resolve_url = image_url_resolver(request)
    items = [present_product(p, resolve_url) for p in products]
    return success(paginated(items, total, page, per_page))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    request: Request,
    payload: Payload = Depends(read_payload),
    actor: User = Depends(can_create),
    repo: ProductRepository = Depends(get_product_repository),
    storage: StorageBackend = Depends(get_product_storage),
):
    data = parse(ProductCreate, payload.fields)
    product = product_service.create_product(
        repo, storage, data, actor, images=payload.files.get("images", [])
    )
    return success(
        present_product(product, image_url_resolver(request)),
        "Product created successfully",
    )


@router.get("/{product_id}")
def show_product(
    product_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    repo: ProductRepository = Depends(get_product_repository),
):
    product = product_service.get_product(repo, product_id)
    return success(present_product(product, image_url_resolver(request), detail=True))


@router.put("/{product_id}")
def update_product(
    product_id: int,
    request: Request,
    payload: Payload = Depends(read_payload),
    actor: User = Depends(can_edit),
    repo: ProductRepository = Depends(get_product_repository),
    storage: StorageBackend = Depends(get_product_storage),
):
    product = product_service.get_product(repo, product_id)
    data = parse(ProductUpdate, payload.fields)
    product = product_service.update_product(
        repo, storage, product, data, actor, images=payload.files.get("images", [])
    )
    return success(
        present_product(product, image_url_resolver(request)),
        "Product updated successfully",
    )


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    actor: User = Depends(can_delete),
    repo: ProductRepository = Depends(get_product_repository),
):
    product = product_service.get_product(repo, product_id)
    product_service.delete_product(repo, product)
    return success(message="Product deleted successfully")


@router.post("/{product_id}/status")
def change_status(
    product_id: int,
    body: ProductStatusUpdate,
    actor: User = Depends(can_edit),
    repo: ProductRepository = Depends(get_product_repository),
):
    product = product_service.get_product(repo, product_id)
    product = product_service.change_status(repo, product, body.active, actor)
    return success({"active": product.active}, "Product status updated")


@router.post("/{product_id}/restore")
def restore_product(
    product_id: int,
    request: Request,
    actor: User = Depends(can_delete),
    repo: ProductRepository = Depends(get_product_repository),
):
    product = product_service.restore_product(repo, product_id)
    return success(
        present_product(product, image_url_resolver(request)),
        "Product restored successfully",
    )
