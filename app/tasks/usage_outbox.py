# app/tasks/usage_outbox.py
from __future__ import annotations

"""
Usage outbox replay
-------------------
- Drains download events parked in Redis by the usage recorder
- Writes each one through the normal event writer (insert + counter bump)
- Events that still fail go back on the tail of the list, up to a replay cap
- Rows the database rejects (integrity or data errors) are discarded
- Single-replica-safe via a Redis lock
"""

from dataclasses import dataclass
from datetime import timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger
from sqlalchemy.exc import DataError, IntegrityError

from app.core.config import settings
from app.core.metrics import inc_usage_outbox
from app.core.redis_client import RedisClient, redis_wrapper
from app.repositories.downloads import DownloadEvent, write_download_event
from app.services.usage_recorder import Writer

_LOCK_KEY = "maintenance:usage-outbox:lock"
_LOCK_TTL_SECONDS = 120


@dataclass
class ReplayStats:
    written: int = 0
    requeued: int = 0
    discarded: int = 0


async def replay_outbox(
    outbox: RedisClient = redis_wrapper,
    writer: Writer = write_download_event,
    *,
    key: Optional[str] = None,
    batch_size: Optional[int] = None,
    max_replays: Optional[int] = None,
) -> ReplayStats:
    """Replay one batch.

    Malformed payloads and rows the database rejects outright are discarded.
    Other failures are requeued with an `attempts` count until `max_replays`
    runs have failed, after which the event is discarded.
    """
    key = key or settings.USAGE_OUTBOX_KEY
    max_replays = max_replays or settings.USAGE_OUTBOX_MAX_REPLAYS
    stats = ReplayStats()
    batch = await outbox.outbox_pop_batch(key, batch_size or settings.USAGE_OUTBOX_REPLAY_BATCH)

    for payload in batch:
        try:
            event = DownloadEvent.from_payload(payload)
        except (KeyError, TypeError, ValueError) as exc:
            _discard(stats, payload, "malformed payload", exc)
            continue

        try:
            await writer(event)
        except (IntegrityError, DataError) as exc:
            _discard(stats, payload, "rejected by database", exc)
            continue
        except Exception as exc:
            attempts = int(payload.get("attempts") or 0) + 1
            if attempts >= max_replays:
                _discard(stats, payload, f"gave up after {attempts} replays", exc)
                continue
            try:
                await outbox.outbox_push(key, {**payload, "attempts": attempts})
            except Exception as push_exc:
                inc_usage_outbox("failed")
                _discard(stats, payload, "requeue failed", push_exc)
                continue
            stats.requeued += 1
            logger.warning(
                "Outbox replay failed, requeued | user={} | resource={} | attempts={} | err={}",
                event.user_id, event.resource_id, attempts, exc,
            )
            continue

        stats.written += 1
        inc_usage_outbox("replayed")

    if batch:
        logger.info(
            "Outbox replay | written={} requeued={} discarded={}",
            stats.written, stats.requeued, stats.discarded,
        )
    return stats


def _discard(stats: ReplayStats, payload: dict, reason: str, exc: BaseException) -> None:
    stats.discarded += 1
    inc_usage_outbox("discarded")
    logger.error("Outbox payload discarded ({}) | payload={} | err={}", reason, payload, exc)


async def run_replay_job() -> None:
    """Scheduled entry point: one batch under the replay lock."""
    lock = redis_wrapper.client.lock(_LOCK_KEY, timeout=_LOCK_TTL_SECONDS, blocking_timeout=2)
    if not await lock.acquire():
        logger.debug("Outbox replay skipped; another worker holds the lock")
        return
    try:
        await replay_outbox()
    finally:
        await lock.release()


def start_outbox_scheduler(*, interval_seconds: Optional[int] = None) -> AsyncIOScheduler:
    seconds = interval_seconds or settings.USAGE_OUTBOX_REPLAY_INTERVAL_SECONDS
    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    scheduler.add_job(
        run_replay_job,
        IntervalTrigger(seconds=seconds, jitter=min(5, seconds), timezone=timezone.utc),
        id="usage_outbox_replay",
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info("Usage outbox scheduler started | interval={}s", seconds)
    return scheduler


__all__ = ["ReplayStats", "replay_outbox", "run_replay_job", "start_outbox_scheduler"]
