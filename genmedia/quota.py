from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from .constants import DEFAULT_RATE_LIMIT_INTERVAL, ONE_DAY_MS, ONE_MINUTE_MS
from .core.types import Context, ModelQuota, RequestHistoryEntry
from .errors import AdmissionTimeoutError

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class QuotaUsage:
    quota: ModelQuota
    rpm_count: int
    rpd_count: int
    tpm_count: int

    @property
    def rpm_exceeded(self) -> bool:
        return self.rpm_count >= self.quota.rpm

    @property
    def rpd_exceeded(self) -> bool:
        return self.rpd_count >= self.quota.rpd

    @property
    def tpm_exceeded(self) -> bool:
        return self.quota.tpm is not None and self.tpm_count >= self.quota.tpm

    @property
    def exceeded(self) -> bool:
        return self.rpm_exceeded or self.rpd_exceeded or self.tpm_exceeded

    def describe(self) -> str:
        parts = [
            f"RPM remaining={self.quota.rpm - self.rpm_count}",
            f"RPD remaining={self.quota.rpd - self.rpd_count}",
        ]
        if self.quota.tpm is not None:
            parts.append(f"TPM remaining={self.quota.tpm - self.tpm_count}")
        return " / ".join(parts)


def measure_usage(entries: Iterable[RequestHistoryEntry], quota: ModelQuota, now: int) -> QuotaUsage:
    """Count requests and tokens for *quota.model* inside the minute and day windows."""
    rpm_count = 0
    rpd_count = 0
    tpm_count = 0
    for entry in entries:
        if entry.model != quota.model:
            continue
        age = now - entry.time
        if age <= ONE_MINUTE_MS:
            rpm_count += 1
            tpm_count += entry.token_usage
        if age <= ONE_DAY_MS:
            rpd_count += 1
    return QuotaUsage(quota=quota, rpm_count=rpm_count, rpd_count=rpd_count, tpm_count=tpm_count)


class RateLimiter:
    """Blocks until the active model has per-minute and per-day headroom.

    Usage is recomputed from the full request log on every check. While any
    ceiling is reached the limiter sleeps for a fixed interval and checks
    again. ``max_wait`` bounds the total wait; ``None`` waits indefinitely.
    """

    def __init__(
        self,
        *,
        interval: float = DEFAULT_RATE_LIMIT_INTERVAL,
        max_wait: float | None = None,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.max_wait = max_wait
        self.clock = clock
        self._sleep = sleep

    def check(self, context: Context) -> QuotaUsage:
        if context.model is None:
            raise RuntimeError("AI model is not set in context")
        return measure_usage(context.entries, context.model, self.clock())

    def await_admission(self, context: Context) -> QuotaUsage:
        waited = 0.0
        while True:
            usage = self.check(context)
            quota = usage.quota
            if usage.rpm_exceeded:
                logger.warning("RPM limit exceeded: %d >= %d", usage.rpm_count, quota.rpm)
            if usage.rpd_exceeded:
                logger.warning("RPD limit exceeded: %d >= %d", usage.rpd_count, quota.rpd)
            if usage.tpm_exceeded:
                logger.warning("TPM limit exceeded: %d >= %d", usage.tpm_count, quota.tpm)
            logger.info("%s (%s)", usage.describe(), quota.model)

            if not usage.exceeded:
                return usage

            delay = self.interval
            if self.max_wait is not None:
                if waited >= self.max_wait:
                    raise AdmissionTimeoutError(
                        f"Quota for {quota.model} still exhausted after waiting {waited:.0f}s"
                    )
                delay = min(delay, self.max_wait - waited)
            logger.warning("Waiting %.0fs for rate limit reset...", delay)
            self._sleep(delay)
            waited += delay
