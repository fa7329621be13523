"""Mounts every API area under /v1."""

from fastapi import APIRouter

from app.interfaces.api.auth import router as auth_router
from app.interfaces.api.product_images import router as product_images_router
from app.interfaces.api.products import router as products_router
from app.interfaces.api.users import router as users_router

api_router = APIRouter(prefix="/v1")

api_router.include_router(auth_router)
api_router.include_router(users_router)
# Registered before /products/{product_id}
api_router.include_router(product_images_router)
api_router.include_router(products_router)
