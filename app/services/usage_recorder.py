from __future__ import annotations

"""
Usage recorder
==============

Persists one download event per issued grant, *after* the response has been
sent (scheduled as a FastAPI background task). The caller's response never
depends on this succeeding.

Delivery
--------
1. Try the writer up to `USAGE_RECORD_MAX_ATTEMPTS` times with a short linear
   back-off.
2. If every attempt fails, push the event onto the Redis outbox
   (`USAGE_OUTBOX_KEY`); `scripts/worker.py` replays it later.
3. If the outbox is disabled or Redis is unreachable too, the event is dropped
   and an error is logged.

Nothing here raises to the caller.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger

from app.core.config import settings
from app.core.metrics import inc_usage_outbox, inc_usage_record_failure
from app.core.redis_client import RedisClient, redis_wrapper
from app.repositories.downloads import DownloadEvent, write_download_event

Writer = Callable[[DownloadEvent], Awaitable[None]]


class UsageRecorder:
    def __init__(
        self,
        writer: Writer = write_download_event,
        *,
        outbox: Optional[RedisClient] = redis_wrapper,
        outbox_key: Optional[str] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        outbox_enabled: Optional[bool] = None,
    ) -> None:
        self.writer = writer
        self.outbox = outbox
        self.outbox_key = outbox_key or settings.USAGE_OUTBOX_KEY
        self.max_attempts = max_attempts or settings.USAGE_RECORD_MAX_ATTEMPTS
        self.retry_delay = settings.USAGE_RECORD_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.outbox_enabled = settings.USAGE_OUTBOX_ENABLED if outbox_enabled is None else outbox_enabled

    async def write_with_retries(self, event: DownloadEvent) -> bool:
        """Return True once the writer succeeds; False after the last failed attempt."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.writer(event)
                return True
            except Exception as exc:
                inc_usage_record_failure()
                logger.warning(
                    "Usage record attempt {}/{} failed | user={} | resource={} | err={}",
                    attempt, self.max_attempts, event.user_id, event.resource_id, exc,
                )
                if attempt < self.max_attempts and self.retry_delay:
                    await asyncio.sleep(self.retry_delay * attempt)
        return False

    async def record(self, event: DownloadEvent) -> None:
        """Background-task entry point."""
        if await self.write_with_retries(event):
            return

        if self.outbox_enabled and self.outbox is not None:
            try:
                await self.outbox.outbox_push(self.outbox_key, event.to_payload())
                inc_usage_outbox("queued")
                logger.warning(
                    "Usage event queued to outbox | user={} | resource={}", event.user_id, event.resource_id
                )
                return
            except Exception as exc:
                inc_usage_outbox("failed")
                logger.error("Usage outbox push failed | err={}", exc)

        logger.error(
            "Usage event dropped | user={} | resource={} | resolution={}",
            event.user_id, event.resource_id, event.resolution.value,
        )


__all__ = ["UsageRecorder"]
