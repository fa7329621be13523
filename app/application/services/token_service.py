"""Token service — issue, verify, refresh and revoke JWT bearer tokens.

Tokens carry only the identity claims (``sub``, ``iat``, ``exp``, ``jti``).
Revocation is persisted in ``revoked_tokens`` keyed by ``jti``; a revoked
row is kept until the token could no longer be refreshed anyway.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.exceptions import UnauthorizedException
from app.domain.models.revoked_token import RevokedToken
from app.domain.models.user import User

settings = get_settings()
logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _refresh_ttl() -> timedelta:
    return timedelta(minutes=settings.JWT_REFRESH_TTL_MINUTES)


def expires_in() -> int:
    """Access token lifetime in seconds."""
    return settings.JWT_EXPIRATION_MINUTES * 60


def issue(user: User) -> str:
    now = _now()
    claims = {
        "sub": str(user.id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode(token: str, verify_exp: bool = True) -> Dict[str, Any]:
    """Decode and check the signature; raises UnauthorizedException."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except ExpiredSignatureError as e:
        raise UnauthorizedException("Token has expired") from e
    except JWTError as e:
        raise UnauthorizedException("Token is invalid") from e

    if not payload.get("sub") or not payload.get("jti") or not isinstance(payload.get("iat"), int):
        raise UnauthorizedException("Token is invalid")
    return payload


def is_revoked(db: Session, jti: str) -> bool:
    return db.query(RevokedToken.jti).filter(RevokedToken.jti == jti).first() is not None


def _resolve_user(db: Session, payload: Dict[str, Any]) -> User:
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise UnauthorizedException("Token is invalid") from e

    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if user is None or not user.is_active:
        raise UnauthorizedException("User not found or inactive")
    return user


def verify(db: Session, token: str) -> User:
    """Resolve a bearer token to a live, active user."""
    payload = decode(token)
    if is_revoked(db, payload["jti"]):
        raise UnauthorizedException("Token has been revoked")
    return _resolve_user(db, payload)


def refresh(db: Session, token: str) -> Tuple[str, User]:
    """
    Exchange a token for a new one bound to the same user.

    The old token may already be expired, as long as it was issued within
    the refresh window and has not been revoked. It is revoked on success.
    """
    payload = decode(token, verify_exp=False)
    issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
    if _now() > issued_at + _refresh_ttl():
        raise UnauthorizedException("Token can no longer be refreshed")
    if is_revoked(db, payload["jti"]):
        raise UnauthorizedException("Token has been revoked")

    user = _resolve_user(db, payload)
    _revoke(db, payload)
    logger.info("Token refreshed", user_id=user.id)
    return issue(user), user


def invalidate(db: Session, token: str) -> None:
    """Make a token permanently unusable, even before it expires."""
    payload = decode(token, verify_exp=False)
    if not is_revoked(db, payload["jti"]):
        _revoke(db, payload)
        logger.info("Token revoked", user_id=payload["sub"])


def _revoke(db: Session, payload: Dict[str, Any]) -> None:
    issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
    purge_expired(db)
    db.add(
        RevokedToken(
            jti=payload["jti"],
            user_id=int(payload["sub"]),
            expires_at=issued_at + _refresh_ttl(),
        )
    )
    db.commit()


def purge_expired(db: Session) -> int:
    """Drop deny-list rows whose tokens are past the refresh window."""
    return (
        db.query(RevokedToken)
        .filter(RevokedToken.expires_at < _now())
        .delete(synchronize_session=False)
    )
