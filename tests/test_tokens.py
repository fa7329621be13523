"""Token service: claims, verification failures, refresh window and deny-list purge."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.application.services import token_service
from app.config import get_settings
from app.core.exceptions import UnauthorizedException
from app.domain.models.revoked_token import RevokedToken

settings = get_settings()


def _encode(claims):
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def test_token_carries_only_identity_claims(member):
    claims = jwt.get_unverified_claims(token_service.issue(member))
    assert set(claims) == {"sub", "iat", "exp", "jti"}
    assert claims["sub"] == str(member.id)
    assert claims["exp"] - claims["iat"] == settings.JWT_EXPIRATION_MINUTES * 60


def test_each_token_has_a_distinct_jti(member):
    first = jwt.get_unverified_claims(token_service.issue(member))
    second = jwt.get_unverified_claims(token_service.issue(member))
    assert first["jti"] != second["jti"]


def test_verify_resolves_user(db, member):
    assert token_service.verify(db, token_service.issue(member)).id == member.id


def test_verify_rejects_bad_signature(db, member):
    token = jwt.encode(
        jwt.get_unverified_claims(token_service.issue(member)),
        "another-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(UnauthorizedException):
        token_service.verify(db, token)


def test_verify_rejects_expired_token(db, member):
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = _encode({"sub": str(member.id), "iat": issued, "exp": issued + timedelta(hours=1), "jti": "a1"})
    with pytest.raises(UnauthorizedException, match="expired"):
        token_service.verify(db, token)


def test_verify_rejects_unknown_user(db):
    now = datetime.now(timezone.utc)
    token = _encode({"sub": "9999", "iat": now, "exp": now + timedelta(minutes=5), "jti": "a2"})
    with pytest.raises(UnauthorizedException):
        token_service.verify(db, token)


def test_refresh_outside_window_is_rejected(db, member):
    issued = datetime.now(timezone.utc) - timedelta(minutes=settings.JWT_REFRESH_TTL_MINUTES + 1)
    token = _encode({"sub": str(member.id), "iat": issued, "exp": issued + timedelta(hours=1), "jti": "a3"})
    with pytest.raises(UnauthorizedException, match="refreshed"):
        token_service.refresh(db, token)


def test_refresh_twice_with_same_token_fails(db, member):
    token = token_service.issue(member)
    new_token, user = token_service.refresh(db, token)
    assert user.id == member.id
    assert token_service.verify(db, new_token).id == member.id

    with pytest.raises(UnauthorizedException, match="revoked"):
        token_service.refresh(db, token)


def test_invalidate_is_idempotent(db, member):
    token = token_service.issue(member)
    token_service.invalidate(db, token)
    token_service.invalidate(db, token)

    assert db.query(RevokedToken).count() == 1
    with pytest.raises(UnauthorizedException):
        token_service.verify(db, token)


def test_revocation_purges_rows_past_refresh_window(db, member):
    db.add(RevokedToken(jti="stale", user_id=member.id, expires_at=datetime.now(timezone.utc) - timedelta(days=1)))
    db.commit()

    token_service.invalidate(db, token_service.issue(member))

    jtis = [row.jti for row in db.query(RevokedToken).all()]
    assert "stale" not in jtis
    assert len(jtis) == 1
