# sitebuilder/services/components.py
from __future__ import annotations

import uuid
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.core.component_types import HTML_COMPONENT_TYPES
from sitebuilder.core.config import settings
from sitebuilder.core.errors import FeatureNotAllowed
from sitebuilder.core.plan_limits import get_plan_with_custom_html
from sitebuilder.crud.siblings import ComponentStore
from sitebuilder.models.site_component import SiteComponent
from sitebuilder.services.billing import PlanLimitsProvider, TenantPlanLimits
from sitebuilder.services.ordering import END, OrderedCollectionManager, Position


def component_manager(
    db: AsyncSession,
    plan_limits: Optional[PlanLimitsProvider] = None,
) -> OrderedCollectionManager:
    return OrderedCollectionManager(
        ComponentStore(db),
        plan_limits or TenantPlanLimits(db),
        "max_components_per_page",
        settings.ORDER_KEY_MAX_ATTEMPTS,
    )


async def create_component(
    manager: OrderedCollectionManager,
    tenant_id: uuid.UUID,
    page_id: uuid.UUID,
    *,
    component_type: str,
    props: Optional[Dict[str, Any]] = None,
    is_visible: bool = True,
    position: Position = END,
) -> SiteComponent:
    if component_type in HTML_COMPONENT_TYPES:
        limits = await manager.plan_limits.get_plan_limits(tenant_id)
        if not limits.custom_html:
            raise FeatureNotAllowed(component_type, upgrade_to=get_plan_with_custom_html())

    return await manager.insert(
        page_id,
        {
            "component_type": component_type,
            "props": dict(props or {}),
            "is_visible": is_visible,
        },
        position,
    )


async def update_component(db: AsyncSession, component: SiteComponent, changes: Mapping[str, Any]) -> SiteComponent:
    for field, value in changes.items():
        if field == "props" and value is not None:
            value = dict(value)
        setattr(component, field, value)
    await db.commit()
    await db.refresh(component)
    return component
