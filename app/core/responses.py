"""Success envelope helpers: {"status": "success", "message"?: ..., "data": ...}."""

import math
from typing import Any, Dict, List, Optional


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def paginated(items: List[Any], total: int, page: int, per_page: int) -> Dict[str, Any]:
    """Page payload with the metadata the SPA tables expect."""
    last_page = max(1, math.ceil(total / per_page)) if per_page else 1
    first_index = (page - 1) * per_page + 1
    return {
        "items": items,
        "current_page": page,
        "last_page": last_page,
        "per_page": per_page,
        "total": total,
        "from": first_index if items else None,
        "to": first_index + len(items) - 1 if items else None,
    }
