from __future__ import annotations

"""
Usage outbox worker.

Replays download events the API could not persist at request time
(see `app/tasks/usage_outbox.py`).

Run:
  python scripts/worker.py          # scheduled, runs until interrupted
  python scripts/worker.py --once   # drain one batch and exit
"""

import argparse
import asyncio
import os

os.environ.setdefault("LOG_SERVICE", "worker")

from loguru import logger  # noqa: E402

from app.core import logger as _logsetup  # noqa: E402,F401
from app.core.redis_client import redis_wrapper  # noqa: E402
from app.db.session import async_engine  # noqa: E402
from app.tasks.usage_outbox import replay_outbox, start_outbox_scheduler  # noqa: E402


async def _run(once: bool) -> None:
    await redis_wrapper.connect()
    try:
        if once:
            stats = await replay_outbox()
            logger.info("Single replay done | {}", stats)
            return
        scheduler = start_outbox_scheduler()
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)
    finally:
        await redis_wrapper.close()
        await async_engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay queued download usage events")
    parser.add_argument("--once", action="store_true", help="drain one batch and exit")
    args = parser.parse_args()
    try:
        asyncio.run(_run(args.once))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
