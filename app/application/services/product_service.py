"""Product service — catalog lifecycle: create, update, status, soft delete, restore."""

from typing import List, Optional, Sequence, Tuple

import structlog
from slugify import slugify

from app.core.exceptions import EntityNotFoundException
from app.domain.models.product import Product
from app.domain.models.user import User
from app.domain.repositories.product_repository import ProductRepository
from app.domain.schemas.common import TrashedScope
from app.domain.schemas.product import ProductCreate, ProductFilter, ProductUpdate
from app.infrastructure.storage import StorageBackend
from app.application.services import image_service
from app.application.services.image_service import UploadedImage

logger = structlog.get_logger(__name__)

SLUG_SUFFIX_LENGTH = 5
MAX_SLUG_ATTEMPTS = 10


def generate_slug(repo: ProductRepository, name: str) -> str:
    """slugify(name-XXXXX); a new suffix is drawn on collision."""
    for _ in range(MAX_SLUG_ATTEMPTS):
        slug = slugify(f"{name}-{image_service.random_alnum(SLUG_SUFFIX_LENGTH)}", max_length=255)
        if not repo.slug_exists(slug):
            return slug
    raise RuntimeError(f"Could not generate a unique slug for {name!r}")


def list_products(repo: ProductRepository, filters: ProductFilter) -> Tuple[List[Product], int]:
    return repo.get_with_filters(filters)


def get_product(repo: ProductRepository, product_id: int, trashed: Optional[TrashedScope] = None) -> Product:
    product = repo.get_by_id(product_id, trashed=trashed)
    if product is None:
        raise EntityNotFoundException("Product not found")
    return product


def create_product(
    repo: ProductRepository,
    storage: StorageBackend,
    data: ProductCreate,
    actor: User,
    images: Sequence[UploadedImage] = (),
) -> Product:
    """Upload images first, then persist; uploaded objects are removed if persisting fails."""
    keys = image_service.store_product_images(storage, images)

    try:
        product = repo.create(
            {
                **data.model_dump(),
                "slug": generate_slug(repo, data.name),
                "images": keys,
                "created_by": actor.id,
            }
        )
    except Exception:
        image_service.discard(storage, keys)
        raise

    logger.info("Product created", product_id=product.id, images=len(keys), by=actor.id)
    return product


def update_product(
    repo: ProductRepository,
    storage: StorageBackend,
    product: Product,
    data: ProductUpdate,
    actor: User,
    images: Sequence[UploadedImage] = (),
) -> Product:
    """
    Partial update. Only fields that were sent are applied; the slug never
    changes. New images are appended to the existing list.
    """
    fields = data.model_dump(exclude_unset=True)
    # Required columns cannot be cleared by sending an explicit null
    for column in ("name", "price", "stock", "active"):
        if column in fields and fields[column] is None:
            fields.pop(column)

    keys = image_service.store_product_images(storage, images)
    if keys:
        # Assign a new list so the JSON column is flagged as modified
        fields["images"] = list(product.images or []) + keys
    fields["updated_by"] = actor.id

    try:
        product = repo.update(product, fields)
    except Exception:
        image_service.discard(storage, keys)
        raise

    logger.info("Product updated", product_id=product.id, new_images=len(keys), by=actor.id)
    return product


def change_status(repo: ProductRepository, product: Product, active: bool, actor: User) -> Product:
    product = repo.update(product, {"active": active, "updated_by": actor.id})
    logger.info("Product status changed", product_id=product.id, active=product.active)
    return product


def delete_product(repo: ProductRepository, product: Product) -> None:
    repo.soft_delete(product)
    logger.info("Product deleted", product_id=product.id)


def restore_product(repo: ProductRepository, product_id: int) -> Product:
    product = get_product(repo, product_id, trashed=TrashedScope.ONLY)
    product = repo.restore(product)
    logger.info("Product restored", product_id=product.id)
    return product


def get_products_for_export(repo: ProductRepository) -> List[Product]:
    return repo.get_all_for_export()


def status_label(product: Product) -> str:
    return "ACTIVE" if product.active else "INACTIVE"


def in_stock(product: Product) -> bool:
    return (product.stock or 0) > 0
