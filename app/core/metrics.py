from __future__ import annotations

"""Prometheus counters for download-grant issuance and usage recording."""

from prometheus_client import Counter

grants_total = Counter(
    "download_grants_total",
    "Download grant requests by outcome",
    labelnames=("outcome",),
)
redemptions_total = Counter(
    "download_redemptions_total",
    "Signed download URL redemptions by outcome",
    labelnames=("outcome",),
)
limiter_blocks_total = Counter(
    "download_limiter_blocks_total",
    "Free-tier download quota denials",
)
limiter_fail_open_total = Counter(
    "download_limiter_fail_open_total",
    "Quota checks allowed because the usage store could not be read",
)
usage_record_failures_total = Counter(
    "download_usage_record_failures_total",
    "Usage-record attempts that raised",
)
usage_outbox_total = Counter(
    "download_usage_outbox_total",
    "Usage outbox operations by result (queued, failed, replayed, discarded)",
    labelnames=("result",),
)


def inc_grant(outcome: str) -> None:
    grants_total.labels(outcome=outcome).inc()


def inc_redemption(outcome: str) -> None:
    redemptions_total.labels(outcome=outcome).inc()


def inc_limiter_block() -> None:
    limiter_blocks_total.inc()


def inc_limiter_fail_open() -> None:
    limiter_fail_open_total.inc()


def inc_usage_record_failure() -> None:
    usage_record_failures_total.inc()


def inc_usage_outbox(result: str) -> None:
    usage_outbox_total.labels(result=result).inc()


__all__ = [
    "inc_grant",
    "inc_redemption",
    "inc_limiter_block",
    "inc_limiter_fail_open",
    "inc_usage_record_failure",
    "inc_usage_outbox",
]
