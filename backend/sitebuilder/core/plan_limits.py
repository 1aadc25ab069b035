# ============================
# FILE: sitebuilder/core/plan_limits.py
# Canonical plan limits
# ============================
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlanLimits:
    plan: str
    max_websites: int
    max_pages_per_site: int
    max_components_per_page: int
    custom_html: bool = False
    # Active memberships, the owner included.
    max_collaborators: int = 1


PLAN_LIMITS: dict[str, PlanLimits] = {
    "starter": PlanLimits(plan="starter", max_websites=2, max_pages_per_site=10, max_components_per_page=25),
    "growth": PlanLimits(
        plan="growth",
        max_websites=10,
        max_pages_per_site=50,
        max_components_per_page=60,
        max_collaborators=5,
    ),
    "pro": PlanLimits(
        plan="pro",
        max_websites=50,
        max_pages_per_site=200,
        max_components_per_page=150,
        custom_html=True,
        max_collaborators=25,
    ),
}

FALLBACK_PLAN = "starter"


def normalize_plan(value: str | None) -> str:
    return (value or "").strip().lower()


def plan_to_str(plan_obj) -> str | None:
    """
    Supports Enum-like plan objects (plan.value) or plain strings.
    Returns None if empty.
    """
    if plan_obj is None:
        return None
    v = getattr(plan_obj, "value", None)
    if isinstance(v, str) and v:
        return v
    s = str(plan_obj)
    return s if s else None


def get_limits_for_plan(plan: str | None) -> PlanLimits:
    """
    Returns the limits for the given plan slug.
    Defaults to starter if unknown.
    """
    p = normalize_plan(plan)
    if p in PLAN_LIMITS:
        return PLAN_LIMITS[p]
    return PLAN_LIMITS[FALLBACK_PLAN]


def get_next_plan(plan: str | None) -> str | None:
    """
    Returns the next plan in the upgrade path, or None if already highest/unknown.
    """
    p = normalize_plan(plan)
    return {"starter": "growth", "growth": "pro"}.get(p)


def get_plan_with_custom_html() -> str | None:
    """Cheapest plan that unlocks custom HTML blocks."""
    for plan in ("starter", "growth", "pro"):
        if PLAN_LIMITS[plan].custom_html:
            return plan
    return None
