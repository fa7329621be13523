"""Product image proxy — public, CORS-enabled passthrough to the image disk."""

import structlog
from fastapi import APIRouter, Depends, Request, Response

from app.core.exceptions import EntityNotFoundException
from app.infrastructure.storage import StorageBackend
from app.interfaces.deps import get_product_storage

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/products/images", tags=["Product Images"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "X-Content-Type-Options": "nosniff",
}
CACHE_CONTROL = "public, max-age=31536000, immutable"


@router.api_route("/{path:path}", methods=["GET", "OPTIONS"], name="product_image")
def show_image(
    path: str,
    request: Request,
    storage: StorageBackend = Depends(get_product_storage),
):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    # Anything the backend cannot serve is reported as missing
    try:
        if not storage.exists(path):
            raise EntityNotFoundException("Image not found")
        content = storage.get(path)
        mime_type = storage.mime_type(path) or "image/jpeg"
    except EntityNotFoundException:
        raise
    except Exception as e:
        logger.warning("Image fetch failed", path=path, error=str(e))
        raise EntityNotFoundException("Image not found") from e

    return Response(
        content=content,
        media_type=mime_type,
        headers={**CORS_HEADERS, "Cache-Control": CACHE_CONTROL},
    )
