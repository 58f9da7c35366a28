"""Trial and usage-limit status derived from an organization record."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from mailroom.models.enums import SubscriptionStatus
from mailroom.models.organization import Organization

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class TrialStatus:
    is_trial_active: bool
    is_expired: bool
    days_remaining: int
    packages_used: int
    packages_limit: int
    can_add_packages: bool

    @property
    def packages_remaining(self) -> int:
        return max(0, self.packages_limit - self.packages_used)


def trial_status(org: Organization, now: datetime | None = None) -> TrialStatus:
    """Compute trial state the way the server's trial manager does.

    Days remaining round up, so a trial ending later today still shows 1 day.
    An expired trial blocks intake regardless of the package counter.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    end = org.trial_end_date
    if end is not None and end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)

    on_trial = org.subscription_status == SubscriptionStatus.TRIAL
    is_active = on_trial and end is not None and now < end
    is_expired = on_trial and end is not None and now > end
    days_remaining = 0
    if end is not None:
        days_remaining = max(0, math.ceil((end - now).total_seconds() / _SECONDS_PER_DAY))

    under_limit = org.current_month_packages < org.max_packages_per_month
    return TrialStatus(
        is_trial_active=is_active,
        is_expired=is_expired,
        days_remaining=days_remaining,
        packages_used=org.current_month_packages,
        packages_limit=org.max_packages_per_month,
        can_add_packages=under_limit and not is_expired,
    )
