# tests/test_services/test_signing.py

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest

from app.core.config import settings
from app.core.exceptions import GrantExpired, InvalidGrant
from app.schemas.enums import Resolution
from app.services import signing

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
USER = "7d8f0a3e-1b2c-4d5e-8f90-a1b2c3d4e5f6"


def test_signature_is_deterministic_and_truncated():
    a = signing.compute_signature(42, Resolution.HIGH, USER, 1_750_000_000)
    b = signing.compute_signature(42, Resolution.HIGH, USER, 1_750_000_000)
    assert a == b
    assert len(a) == settings.DOWNLOAD_SIGNATURE_LENGTH
    int(a, 16)


@pytest.mark.parametrize(
    "changed",
    [
        dict(resource_id=43),
        dict(resolution=Resolution.ULTRA),
        dict(user_id="00000000-0000-4000-8000-000000000000"),
        dict(expires_at=1_750_000_001),
    ],
)
def test_signature_changes_with_every_bound_field(changed):
    base = dict(resource_id=42, resolution=Resolution.HIGH, user_id=USER, expires_at=1_750_000_000)
    assert signing.compute_signature(**base) != signing.compute_signature(**{**base, **changed})


def test_signature_depends_on_secret(monkeypatch):
    before = signing.compute_signature(1, Resolution.STANDARD, USER, 100)
    monkeypatch.setattr(signing, "_secret", lambda: b"another-secret")
    assert signing.compute_signature(1, Resolution.STANDARD, USER, 100) != before


def test_sign_builds_redemption_url():
    grant = signing.sign(7, Resolution.STANDARD, USER, NOW)

    assert grant.expires_at == int(NOW.timestamp()) + settings.DOWNLOAD_URL_TTL_SECONDS
    parts = urlsplit(grant.url)
    assert parts.path == f"{settings.API_V1_STR}/downloads/7/file"
    q = parse_qs(parts.query)
    assert q == {
        "resolution": ["standard"],
        "expires": [str(grant.expires_at)],
        "signature": [grant.signature],
        "user": [USER],
    }


def test_verify_accepts_fresh_grant_until_expiry_inclusive():
    grant = signing.sign(7, Resolution.HIGH, USER, NOW, ttl_seconds=600)
    signing.verify(7, Resolution.HIGH, USER, grant.expires_at, grant.signature, NOW)
    signing.verify(7, Resolution.HIGH, USER, grant.expires_at, grant.signature, NOW + timedelta(seconds=600))


def test_verify_rejects_after_expiry():
    grant = signing.sign(7, Resolution.HIGH, USER, NOW, ttl_seconds=600)
    with pytest.raises(GrantExpired):
        signing.verify(7, Resolution.HIGH, USER, grant.expires_at, grant.signature, NOW + timedelta(seconds=601))


@pytest.mark.parametrize(
    "field, value",
    [
        ("resource_id", 8),
        ("resolution", Resolution.ULTRA),
        ("user_id", "00000000-0000-4000-8000-000000000000"),
        ("expires_at", None),
        ("signature", "0" * 16),
    ],
)
def test_verify_rejects_tampering(field, value):
    grant = signing.sign(7, Resolution.HIGH, USER, NOW)
    presented = dict(
        resource_id=7,
        resolution=Resolution.HIGH,
        user_id=USER,
        expires_at=grant.expires_at,
        signature=grant.signature,
    )
    presented[field] = grant.expires_at + 3600 if field == "expires_at" else value
    with pytest.raises(InvalidGrant):
        signing.verify(now=NOW, **presented)


def test_tampered_expired_grant_reports_invalid_not_expired():
    grant = signing.sign(7, Resolution.HIGH, USER, NOW, ttl_seconds=60)
    with pytest.raises(InvalidGrant):
        signing.verify(7, Resolution.HIGH, USER, grant.expires_at, "f" * 16, NOW + timedelta(hours=1))
