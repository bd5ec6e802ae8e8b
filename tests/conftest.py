# tests/conftest.py
"""
Global test bootstrap
- Required secrets and a quiet logger are set BEFORE the app is imported
- SlowAPI throttling is bypassed unless a test turns it back on
- Exposes token minting and an app/client wired to in-memory fakes
"""

from __future__ import annotations

import os
import random

os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-0123456789abcdef")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("DOWNLOAD_SIGNING_SECRET", "test-signing-secret")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")

import pytest  # noqa: E402

from tests.fixtures.app import *     # noqa: F401,F403,E402
from tests.fixtures.auth import *    # noqa: F401,F403,E402
from tests.fixtures.db import *      # noqa: F401,F403,E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ──────────────────────────────────────────────────────────────────────────────
# 🚦 Opt-in fixture to actually enforce HTTP throttling in a specific test
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def ratelimit_on(monkeypatch):
    """Enforce SlowAPI limits for this test; the limiter re-reads the env per request."""
    monkeypatch.setenv("RATE_LIMIT_TEST_BYPASS", "0")
    from app.core.limiter import limiter

    limiter.reset()
    yield
    limiter.reset()
