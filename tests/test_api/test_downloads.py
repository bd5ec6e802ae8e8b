# tests/test_api/test_downloads.py

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest

from app.api.v1.routers import downloads as downloads_mod
from app.core.config import settings
from tests.fixtures.app import build_harness
from tests.fixtures.auth import bearer, make_token
from tests.fixtures.fakes import FailingDownloads, FakeProfiles, FakeWallpapers, wallpaper

URL = f"{settings.API_V1_STR}/downloads/url"
FREE = "11111111-1111-4111-8111-111111111111"
PREMIUM = "22222222-2222-4222-8222-222222222222"


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

@pytest.fixture
def h():
    return build_harness(
        profiles=FakeProfiles(premium={PREMIUM: None}),
        wallpapers=FakeWallpapers(
            wallpaper(1, title="Aurora", r1080="https://cdn.example/1080/1.jpg", r4k="https://cdn.example/4k/1.jpg"),
            wallpaper(2, title="Nebula", is_premium=True),
            wallpaper(3, title="Dunes", original=None),
        ),
    )


def _issue(h, user_id, body):
    return h.client.post(URL, json=body, headers=bearer(user_id))


def _redeem_path(signed_url: str) -> str:
    parts = urlsplit(signed_url)
    return f"{parts.path}?{parts.query}"


def _assert_no_store(resp):
    assert resp.headers.get("Cache-Control") == "no-store"
    assert resp.headers.get("Pragma") == "no-cache"


def _assert_error(resp, status, code):
    assert resp.status_code == status, resp.text
    body = resp.json()
    assert body["error"]["code"] == code
    assert body["error"]["message"]
    return body


# ─────────────────────────────────────────────────────────────
# Issue
# ─────────────────────────────────────────────────────────────

def test_free_user_gets_signed_url_and_event_recorded(h):
    resp = _issue(h, FREE, {"resource_id": 1})

    assert resp.status_code == 200, resp.text
    _assert_no_store(resp)
    data = resp.json()["data"]
    assert data["download_url"] == "https://cdn.example/1080/1.jpg"
    assert data["resource_title"] == "Aurora"
    assert data["resolution"] == "standard"
    assert isinstance(data["expires_at"], int)

    signed = urlsplit(data["signed_url"])
    assert signed.path == f"{settings.API_V1_STR}/downloads/1/file"
    q = parse_qs(signed.query)
    assert q["resolution"] == ["standard"]
    assert q["user"] == [FREE]
    assert q["expires"] == [str(data["expires_at"])]
    expected = datetime.now(timezone.utc).timestamp() + settings.DOWNLOAD_URL_TTL_SECONDS
    assert abs(data["expires_at"] - expected) <= 5

    assert len(h.writer.written) == 1
    event = h.writer.written[0]
    assert (event.user_id, event.resource_id, event.resolution.value) == (FREE, 1, "standard")


def test_wallpaper_id_alias_and_legacy_resolution_label(h):
    resp = _issue(h, PREMIUM, {"wallpaper_id": "1", "resolution": "4k"})
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["resolution"] == "high"
    assert data["download_url"] == "https://cdn.example/4k/1.jpg"


def test_free_user_premium_resolution_is_403_with_constraint(h):
    body = _assert_error(_issue(h, FREE, {"resource_id": 1, "resolution": "ultra"}), 403, "ENTITLEMENT_REQUIRED")
    assert "data" not in body
    assert "signed_url" not in str(body)
    assert body["error"]["details"] == {"constraint": "resolution"}
    assert "8K" in body["error"]["message"]
    assert h.writer.written == []


def test_free_user_premium_wallpaper_is_403(h):
    body = _assert_error(_issue(h, FREE, {"resource_id": 2}), 403, "ENTITLEMENT_REQUIRED")
    assert body["error"]["details"] == {"constraint": "resource"}


def test_free_user_over_quota_is_403_and_nothing_recorded(h):
    h.downloads.add(FREE, datetime.now(timezone.utc) - timedelta(minutes=5), n=10)
    body = _assert_error(_issue(h, FREE, {"resource_id": 1}), 403, "RATE_LIMIT_EXCEEDED")
    assert "10 wallpapers per hour" in body["error"]["message"]
    assert h.writer.written == []


def test_tenth_download_allowed_eleventh_denied(h):
    h.downloads.add(FREE, datetime.now(timezone.utc) - timedelta(minutes=5), n=9)
    assert _issue(h, FREE, {"resource_id": 1}).status_code == 200
    # the recorder wrote the tenth event; feed it back into the store
    h.downloads.add(FREE, h.writer.written[-1].occurred_at)
    _assert_error(_issue(h, FREE, {"resource_id": 1}), 403, "RATE_LIMIT_EXCEEDED")


def test_oversized_user_agent_is_clipped_and_still_counts(h):
    headers = {**bearer(FREE), "User-Agent": "x" * 2000}
    codes = []
    for _ in range(settings.FREE_DOWNLOADS_PER_HOUR + 1):
        resp = h.client.post(URL, json={"resource_id": 1}, headers=headers)
        codes.append(resp.status_code)
        if resp.status_code == 200 and h.writer.written:
            h.downloads.add(FREE, h.writer.written[-1].occurred_at)

    assert codes == [200] * settings.FREE_DOWNLOADS_PER_HOUR + [403]
    assert len(h.writer.written) == settings.FREE_DOWNLOADS_PER_HOUR
    assert all(len(e.user_agent) == 1024 for e in h.writer.written)
    assert h.outbox.items == []


def test_quota_store_down_fails_open(h):
    h.downloads = FailingDownloads()
    assert _issue(h, FREE, {"resource_id": 1}).status_code == 200


def test_quota_store_down_fails_closed_when_configured(h):
    h.downloads = FailingDownloads()
    h.limiter_kwargs = {"fail_closed": True}
    _assert_error(_issue(h, FREE, {"resource_id": 1}), 403, "RATE_LIMIT_EXCEEDED")


@pytest.mark.parametrize("body", [None, {}, {"resource_id": ""}, {"resolution": "high"}])
def test_missing_resource_id_is_400(h, body):
    resp = h.client.post(URL, json=body, headers=bearer(FREE))
    _assert_error(resp, 400, "MISSING_INPUT")


def test_unknown_wallpaper_is_404(h):
    body = _assert_error(_issue(h, FREE, {"resource_id": 999}), 404, "RESOURCE_NOT_FOUND")
    assert body["error"]["message"] == "Wallpaper not found"


def test_non_numeric_wallpaper_id_is_404(h):
    _assert_error(_issue(h, FREE, {"resource_id": "not-a-number"}), 404, "RESOURCE_NOT_FOUND")


def test_unknown_resolution_is_404(h):
    _assert_error(_issue(h, FREE, {"resource_id": 1, "resolution": "720p"}), 404, "RESOLUTION_UNAVAILABLE")


def test_no_source_location_is_404(h):
    _assert_error(_issue(h, FREE, {"resource_id": 3}), 404, "RESOLUTION_UNAVAILABLE")


def test_recording_failure_does_not_change_response(h):
    h.writer.failures = 99
    resp = _issue(h, FREE, {"resource_id": 1})
    assert resp.status_code == 200
    assert len(h.outbox.items) == 1


# ─────────────────────────────────────────────────────────────
# Authentication
# ─────────────────────────────────────────────────────────────

def test_missing_token_is_401(h):
    resp = h.client.post(URL, json={"resource_id": 1})
    _assert_error(resp, 401, "UNAUTHENTICATED")
    assert resp.headers.get("WWW-Authenticate") == "Bearer"


@pytest.mark.parametrize(
    "header",
    [
        "Bearer not-a-jwt",
        "Basic abc",
        f"Bearer {make_token(FREE, secret='wrong-secret')}",
        f"Bearer {make_token(FREE, audience='anon')}",
        f"Bearer {make_token(FREE, expires_in=-60)}",
        f"Bearer {make_token(None)}",
        f"Bearer {make_token('not-a-uuid')}",
    ],
)
def test_invalid_tokens_are_401(h, header):
    resp = h.client.post(URL, json={"resource_id": 1}, headers={"Authorization": header})
    _assert_error(resp, 401, "UNAUTHENTICATED")
    assert h.writer.written == []


# ─────────────────────────────────────────────────────────────
# Redeem
# ─────────────────────────────────────────────────────────────

def test_redeem_redirects_to_stored_file(h):
    signed = _issue(h, FREE, {"resource_id": 1}).json()["data"]["signed_url"]
    resp = h.client.get(_redeem_path(signed), follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "https://cdn.example/1080/1.jpg"
    assert resp.headers.get("Cache-Control") == "no-store"


def test_redeem_tampered_signature_is_403(h):
    signed = _issue(h, FREE, {"resource_id": 1}).json()["data"]["signed_url"]
    path = _redeem_path(signed).replace("resolution=standard", "resolution=high")
    _assert_error(h.client.get(path, follow_redirects=False), 403, "INVALID_SIGNATURE")


def test_redeem_other_resource_is_403(h):
    signed = _issue(h, FREE, {"resource_id": 1}).json()["data"]["signed_url"]
    path = _redeem_path(signed).replace("/downloads/1/file", "/downloads/2/file")
    _assert_error(h.client.get(path, follow_redirects=False), 403, "INVALID_SIGNATURE")


def test_redeem_after_expiry_is_410(h, monkeypatch):
    signed = _issue(h, FREE, {"resource_id": 1}).json()["data"]["signed_url"]
    later = datetime.now(timezone.utc) + timedelta(seconds=settings.DOWNLOAD_URL_TTL_SECONDS + 5)
    monkeypatch.setattr(downloads_mod, "_now", lambda: later)
    _assert_error(h.client.get(_redeem_path(signed), follow_redirects=False), 410, "GRANT_EXPIRED")


def test_redeem_missing_params_is_400(h):
    resp = h.client.get(f"{settings.API_V1_STR}/downloads/1/file?resolution=standard", follow_redirects=False)
    _assert_error(resp, 400, "MISSING_INPUT")


def test_redeem_unknown_resolution_is_403(h):
    resp = h.client.get(
        f"{settings.API_V1_STR}/downloads/1/file?resolution=720p&expires=1&signature=abc&user={FREE}",
        follow_redirects=False,
    )
    _assert_error(resp, 403, "INVALID_SIGNATURE")


def test_wallpaper_id_beyond_bigint_is_404(h):
    _assert_error(_issue(h, FREE, {"resource_id": "9" * 30}), 404, "RESOURCE_NOT_FOUND")
    assert h.wallpapers.calls == []
