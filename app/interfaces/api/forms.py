"""Request payload parsing for endpoints that accept JSON or multipart forms."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from app.core.exceptions import ValidationException
from app.application.services.image_service import UploadedImage

SchemaType = TypeVar("SchemaType", bound=BaseModel)


@dataclass
class Payload:
    fields: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, List[UploadedImage]] = field(default_factory=dict)

    def file(self, name: str):
        uploads = self.files.get(name) or []
        return uploads[0] if uploads else None


def _normalize(value: Any) -> Any:
    # Empty form inputs are treated as absent values
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


async def read_payload(request: Request) -> Payload:
    """
    Collect body fields and uploaded files.

    ``name[]`` keys are gathered into lists; files are buffered in memory.
    """
    content_type = request.headers.get("content-type", "")
    payload = Payload()

    if content_type.startswith("application/json"):
        raw = await request.body()
        if not raw:
            return payload
        try:
            body = json.loads(raw)
        except ValueError as e:
            raise ValidationException.for_field("body", "The request body must be valid JSON.") from e
        if not isinstance(body, dict):
            raise ValidationException.for_field("body", "The request body must be a JSON object.")
        payload.fields = {key: _normalize(value) for key, value in body.items()}
        return payload

    if not content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        return payload

    form = await request.form()
    for key, value in form.multi_items():
        is_list = key.endswith("[]")
        name = key[:-2] if is_list else key
        if isinstance(value, UploadFile):
            if not value.filename:
                continue
            payload.files.setdefault(name, []).append(
                UploadedImage(
                    filename=value.filename,
                    content_type=value.content_type,
                    content=await value.read(),
                )
            )
        elif is_list:
            payload.fields.setdefault(name, []).append(value)
        else:
            payload.fields[name] = _normalize(value)
    return payload


def parse(schema: Type[SchemaType], data: Dict[str, Any]) -> SchemaType:
    """Validate ``data`` against ``schema``, raising the 422 envelope on failure."""
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ValidationException.from_pydantic(e) from e
