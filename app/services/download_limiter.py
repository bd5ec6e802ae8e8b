from __future__ import annotations

"""
Free-tier download quota
========================

Counts the caller's download events inside a rolling window and denies the
grant once the count reaches the threshold (10 per hour by default).

Failure policy
--------------
If the event store cannot be read the check **fails open** (logs a warning
and lets the grant through). Set `DOWNLOAD_RATE_LIMIT_FAIL_CLOSED=true` to
deny instead.

Known limitations
-----------------
- The window is a count over `[now - window, now]`, so a burst right at the
  window edge can briefly exceed the nominal rate.
- Check-then-act: concurrent requests from one user can each pass the check
  before any of their events is recorded.
"""

from datetime import datetime, timedelta
from typing import Tuple

from loguru import logger

from app.core.config import settings
from app.core.exceptions import RateLimitExceeded
from app.core.metrics import inc_limiter_block, inc_limiter_fail_open


class DownloadLimiter:
    """Rolling-window quota over recorded download events.

    `store` is anything exposing ``async count_since(user_id, since) -> int``
    (see `app.repositories.downloads.DownloadRepository`).
    """

    def __init__(
        self,
        store,
        *,
        threshold: int | None = None,
        window_seconds: int | None = None,
        fail_closed: bool | None = None,
    ) -> None:
        self.store = store
        self.threshold = threshold if threshold is not None else settings.FREE_DOWNLOADS_PER_HOUR
        self.window_seconds = window_seconds if window_seconds is not None else settings.DOWNLOAD_RATE_WINDOW_SECONDS
        self.fail_closed = settings.DOWNLOAD_RATE_LIMIT_FAIL_CLOSED if fail_closed is None else fail_closed

    @property
    def window_label(self) -> str:
        """"hour", "2 hours" or "900 seconds"."""
        hours, rem = divmod(self.window_seconds, 3600)
        if rem:
            return f"{self.window_seconds} seconds"
        return "hour" if hours == 1 else f"{hours} hours"

    @property
    def message(self) -> str:
        return f"Rate limit exceeded. Free users can download {self.threshold} wallpapers per {self.window_label}."

    def window_start(self, now: datetime) -> datetime:
        return now - timedelta(seconds=self.window_seconds)

    async def check(self, user_id: str, now: datetime) -> None:
        """Raise `RateLimitExceeded` when the caller is at or over quota."""
        try:
            count = await self.store.count_since(user_id, self.window_start(now))
        except Exception as exc:
            if self.fail_closed:
                logger.error("Download quota lookup failed; denying (fail-closed) | user={} | err={}", user_id, exc)
                inc_limiter_block()
                raise RateLimitExceeded("Download limit temporarily unavailable. Please try again shortly.")
            logger.warning("Download quota lookup failed; allowing (fail-open) | user={} | err={}", user_id, exc)
            inc_limiter_fail_open()
            return

        if count >= self.threshold:
            logger.info("Download quota reached | user={} | count={} | limit={}", user_id, count, self.threshold)
            inc_limiter_block()
            raise RateLimitExceeded(self.message)

    async def usage(self, user_id: str, now: datetime, limit: int | None = None) -> Tuple[int, int, int]:
        """Return ``(count, limit, remaining)`` for the caller's current window."""
        limit = self.threshold if limit is None else limit
        count = await self.store.count_since(user_id, self.window_start(now))
        return count, limit, max(0, limit - count)


__all__ = ["DownloadLimiter"]
