"""Stored entities to wire dicts, with the computed fields added."""

from typing import Any, Callable, Dict, Optional
from urllib.parse import quote_plus

from fastapi import Request

from app.domain.models.product import Product
from app.domain.models.user import User
from app.domain.schemas.common import UserSummary
from app.domain.schemas.product import ProductRead
from app.domain.schemas.user import RoleRead, UserRead
from app.infrastructure.storage import StorageBackend
from app.application.services.product_service import in_stock, status_label
from app.application.services.user_service import full_name

UrlResolver = Callable[[str], str]


def image_url_resolver(request: Request) -> UrlResolver:
    """Product images are served through the API proxy route."""
    return lambda key: str(request.url_for("product_image", path=key))


def _summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return UserSummary.model_validate(user).model_dump()


def present_product(product: Product, resolve_url: UrlResolver, detail: bool = False) -> Dict[str, Any]:
    images = list(product.images or [])
    data = {
        column.name: getattr(product, column.name)
        for column in Product.__table__.columns
    }
    data.update(
        images=images,
        status_label=status_label(product),
        in_stock=in_stock(product),
        image_urls=[resolve_url(key) for key in images],
    )
    if detail:
        data.update(creator=_summary(product.creator), updater=_summary(product.updater))
    return ProductRead.model_validate(data).model_dump(mode="json")


def initials(user: User) -> str:
    first = (user.first_name or "")[:1]
    last = (user.last_name or "")[:1]
    return f"{first}{last}".upper()


def avatar_url(user: User, public_disk: StorageBackend) -> str:
    if user.avatar and public_disk.exists(user.avatar):
        return public_disk.url(user.avatar)
    return f"https://ui-avatars.com/api/?name={quote_plus(full_name(user))}&background=random"


def present_user(user: User, public_disk: StorageBackend, detail: bool = False) -> Dict[str, Any]:
    data = {
        column.name: getattr(user, column.name)
        for column in User.__table__.columns
        if column.name != "password_hash"
    }
    data.update(
        full_name=full_name(user),
        initials=initials(user),
        avatar_url=avatar_url(user, public_disk),
        roles=[RoleRead.model_validate(role) for role in user.roles],
    )
    if detail:
        data.update(creator=_summary(user.creator), updater=_summary(user.updater))
    return UserRead.model_validate(data).model_dump(mode="json")
