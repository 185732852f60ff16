"""Provider instance status rules.

- depleted: quota or billing exhausted, retriable after 24 hours
- temporarily_blocked: rate limited, retriable after 60 seconds
- active: always retriable

All functions are pure; the caller supplies the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from reelboard.models.domain import ApiSettingEntity

ProviderStatus = Literal["active", "temporarily_blocked", "depleted"]

RATE_LIMIT_COOLDOWN = timedelta(seconds=60)
DEPLETED_COOLDOWN = timedelta(hours=24)

COOLDOWNS: dict[str, timedelta] = {
    "temporarily_blocked": RATE_LIMIT_COOLDOWN,
    "depleted": DEPLETED_COOLDOWN,
}

# Checked before the rate-limit keywords: "exceeded your current quota"
# must not be read as a throttle
QUOTA_KEYWORDS = (
    "quota",
    "billing",
    "insufficient funds",
    "credit",
    "payment required",
    "balance",
    "depleted",
    "out of funds",
    "api error: 402",
)
RATE_LIMIT_KEYWORDS = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
    "throttl",
    "resource_exhausted",
    "slow down",
    "api error: 429",
)


@dataclass
class FailureClassification:
    """Status transition implied by a failed call.

    Attributes:
        status: New status, or None to keep the current one.
        reason: Matched keyword, for logging.
    """

    status: ProviderStatus | None
    reason: str | None = None


def classify_failure(error: str | None) -> FailureClassification:
    """Map a failure's error text to a status transition.

    Args:
        error: Error text from the provider adapter.

    Returns:
        FailureClassification; ``status`` is None when nothing matched.
    """
    text = (error or "").lower()

    for keyword in QUOTA_KEYWORDS:
        if keyword in text:
            return FailureClassification(status="depleted", reason=keyword)

    for keyword in RATE_LIMIT_KEYWORDS:
        if keyword in text:
            return FailureClassification(status="temporarily_blocked", reason=keyword)

    return FailureClassification(status=None)


def retry_after(setting: ApiSettingEntity) -> datetime | None:
    """When a blocked or depleted instance becomes eligible again.

    Returns None for active instances or when no failure time is recorded.
    """
    cooldown = COOLDOWNS.get(setting.status)
    if cooldown is None or setting.last_failure_at is None:
        return None
    return setting.last_failure_at + cooldown


def is_retriable(setting: ApiSettingEntity, now: datetime) -> bool:
    """Whether an instance may be tried at ``now``."""
    eligible_at = retry_after(setting)
    return eligible_at is None or now >= eligible_at
