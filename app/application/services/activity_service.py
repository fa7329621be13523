"""Activity log for user accounts: what changed and who changed it."""

from typing import Any, Dict, Iterable, Optional, Tuple

import structlog

from app.domain.models.activity_log import ActivityLog
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository

logger = structlog.get_logger(__name__)

USER_TRACKED_FIELDS = ("first_name", "last_name", "email", "mobile", "status", "avatar")


def snapshot(user: User, fields: Iterable[str] = USER_TRACKED_FIELDS) -> Dict[str, Any]:
    return {name: getattr(user, name) for name in fields}


def diff(before: Dict[str, Any], after: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Return (old, new) restricted to the keys whose value changed."""
    changed = [key for key in after if before.get(key) != after[key]]
    old = {key: before[key] for key in changed if key in before}
    return old, {key: after[key] for key in changed}


def record(
    repo: UserRepository,
    subject: User,
    event: str,
    before: Dict[str, Any],
    causer: Optional[User] = None,
) -> Optional[ActivityLog]:
    """
    Persist one activity entry for ``subject`` if a tracked field changed.

    ``before`` is the snapshot taken ahead of the change ({} for a new
    record). Entries with nothing to report are not written.
    """
    old, new = diff(before, snapshot(subject))
    if not new:
        return None

    entry = repo.add_activity(
        ActivityLog(
            subject_type="user",
            subject_id=subject.id,
            causer_id=causer.id if causer else None,
            event=event,
            old_values=old,
            new_values=new,
        )
    )
    logger.info("Activity recorded", subject_id=subject.id, activity=event, fields=sorted(new))
    return entry
