# app/core/redis_client.py
from __future__ import annotations

"""
Redis Client (async)
====================
Single source of truth for Redis access. Redis only backs the usage-event
**outbox**: download events that could not be written to Postgres are pushed
onto a list and replayed later by `scripts/worker.py`.

Public API (imported as `redis_wrapper`)
----------------------------------------
- await redis_wrapper.connect() / close() / is_connected()
- redis_wrapper.client
- await redis_wrapper.outbox_push(key, payload)
- await redis_wrapper.outbox_pop_batch(key, limit)
- await redis_wrapper.outbox_length(key)
"""

import asyncio
import json
import os
import random
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from app.core.config import settings

MAX_RETRIES = int(os.getenv("REDIS_CONNECT_MAX_RETRIES", "5"))
BASE_DELAY = float(os.getenv("REDIS_CONNECT_BASE_DELAY", "0.3"))  # seconds
HEALTH_CHECK_INTERVAL = int(os.getenv("REDIS_HEALTH_CHECK_INTERVAL", "30"))
SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "3"))
SOCKET_CONNECT_TIMEOUT = float(os.getenv("REDIS_SOCKET_CONNECT_TIMEOUT", "3"))
CLIENT_NAME = os.getenv("REDIS_CLIENT_NAME", "wallpaper-downloads-api")


class RedisClient:
    """Connection manager with retrying connect and outbox list helpers."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client: Optional[redis.Redis] = None

    # ── lifecycle ────────────────────────────────────────────────────────────
    async def connect(self) -> None:
        """Connect with exponential backoff; reuse a healthy client."""
        if self._client:
            try:
                await self._client.ping()
                return
            except RedisError:
                self._client = None

        last_err: Optional[Exception] = None
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                self._client = redis.Redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    health_check_interval=HEALTH_CHECK_INTERVAL,
                    socket_keepalive=True,
                    socket_timeout=SOCKET_TIMEOUT,
                    socket_connect_timeout=SOCKET_CONNECT_TIMEOUT,
                    retry_on_timeout=True,
                    client_name=CLIENT_NAME,
                )
                await self._client.ping()
                logger.info("Connected to Redis")
                return
            except (RedisError, OSError) as e:
                last_err = e
                delay = self._backoff(attempt)
                logger.warning(
                    "Redis connect attempt {}/{} failed: {!r} (retrying in {:.2f}s)",
                    attempt, MAX_RETRIES, e, delay,
                )
                await asyncio.sleep(delay)

        logger.error("Redis connection failed after {} retries", MAX_RETRIES)
        raise RuntimeError("Redis connection failed") from last_err

    async def close(self) -> None:
        if not self._client:
            return
        try:
            await self._client.aclose()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.warning("Error closing Redis connection: {}", e)
        finally:
            self._client = None

    async def is_connected(self) -> bool:
        """True if `PING` succeeds."""
        if not self._client:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Low-level client; `connect()` must have run (app lifespan or worker start)."""
        if not self._client:
            raise RuntimeError("Redis client not initialized. Call connect() first.")
        return self._client

    # ── outbox ───────────────────────────────────────────────────────────────
    async def outbox_push(self, key: str, payload: Dict[str, Any]) -> int:
        """Append a JSON payload to the outbox list; returns the new length."""
        return int(await self.client.rpush(key, json.dumps(payload, default=str)))

    async def outbox_pop_batch(self, key: str, limit: int = 100) -> List[Dict[str, Any]]:
        """Remove and return up to `limit` payloads from the head of the outbox."""
        raw = await self.client.lrange(key, 0, max(0, limit - 1))
        if not raw:
            return []
        await self.client.ltrim(key, len(raw), -1)
        return [json.loads(item) for item in raw]

    async def outbox_length(self, key: str) -> int:
        return int(await self.client.llen(key))

    @staticmethod
    def _backoff(attempt: int) -> float:
        return min(3.0, BASE_DELAY * (2 ** (attempt - 1))) + random.uniform(0, 0.25)


redis_wrapper = RedisClient(settings.REDIS_URL)

__all__ = ["RedisClient", "redis_wrapper"]
