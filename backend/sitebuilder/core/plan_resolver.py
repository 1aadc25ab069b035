from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sitebuilder.core.config import settings
from sitebuilder.core.plan_limits import normalize_plan, plan_to_str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_effective_plan(tenant, now: Optional[datetime] = None) -> str:
    """
    Resolve the plan used for limit enforcement.

    Active subscription plan wins. A trialing plan applies until trial_ends_at.
    Otherwise fall back to tenant.plan, then to the configured default.
    """
    subscription_status = getattr(tenant, "subscription_status", None)
    subscription_plan = getattr(tenant, "subscription_plan", None)
    trial_ends_at: Optional[datetime] = getattr(tenant, "trial_ends_at", None)

    now = now or _utcnow()

    if subscription_status == "active" and subscription_plan:
        return normalize_plan(plan_to_str(subscription_plan))

    if subscription_status == "trialing" and subscription_plan:
        if trial_ends_at is None or _aware(trial_ends_at) > now:
            return normalize_plan(plan_to_str(subscription_plan))

    return normalize_plan(plan_to_str(getattr(tenant, "plan", None)) or settings.DEFAULT_PLAN)
