# sitebuilder/services/billing.py
from __future__ import annotations

import uuid
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.core.errors import ResourceNotFound
from sitebuilder.core.plan_limits import PlanLimits, get_limits_for_plan
from sitebuilder.core.plan_resolver import resolve_effective_plan
from sitebuilder.models.tenant import Tenant


class PlanLimitsProvider(Protocol):
    async def get_plan_limits(self, tenant_id: uuid.UUID) -> PlanLimits: ...


class TenantPlanLimits:
    """Plan limits for a tenant, read from its row and subscription state."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_plan_limits(self, tenant_id: uuid.UUID) -> PlanLimits:
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise ResourceNotFound("tenant", tenant_id)
        return get_limits_for_plan(resolve_effective_plan(tenant))
