"""Shared schema pieces: name rules, trashed scope, audit summaries."""

import enum
import re
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel

# Letters (any script), whitespace and hyphens
_PERSON_NAME_RE = re.compile(r"^(?:[^\W\d_]|[\s\-])+$", re.UNICODE)
_MOBILE_RE = re.compile(r"^[0-9+\-\s]+$")


def validate_person_name(value: str) -> str:
    if value and not _PERSON_NAME_RE.match(value):
        raise ValueError("may only contain letters, spaces and hyphens")
    return value


def validate_mobile(value: str) -> Optional[str]:
    if not value:
        return None
    if not _MOBILE_RE.match(value):
        raise ValueError("may only contain digits, +, - and spaces")
    return value


PersonName = Annotated[str, AfterValidator(validate_person_name)]
Mobile = Annotated[str, AfterValidator(validate_mobile)]


class TrashedScope(str, enum.Enum):
    """Soft-delete visibility for list/get queries (default: exclude deleted)."""
    WITH = "with"
    ONLY = "only"


class UserSummary(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {"from_attributes": True}
