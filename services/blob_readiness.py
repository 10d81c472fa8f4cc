"""
Blob readiness check.

Suppliers may still be writing a blob when the scan lists it. A blob is
picked up only once it is at least `delay_minutes` old (0 disables the
delay).
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from infrastructure.blob import BlobItemInfo

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlobReadinessChecker:

    def __init__(self, delay_minutes: int = 0, clock: Clock = _utcnow):
        if delay_minutes < 0:
            raise ValueError(f"delay_minutes must not be negative, got {delay_minutes}")
        self.delay = timedelta(minutes=delay_minutes)
        self.clock = clock

    def is_ready(self, blob: BlobItemInfo) -> bool:
        return blob.created_at + self.delay <= self.clock()
