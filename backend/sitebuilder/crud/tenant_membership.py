# sitebuilder/crud/tenant_membership.py
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.models.tenant_membership import TenantMembership
from sitebuilder.models.user import User


async def get_active_membership(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[TenantMembership]:
    """
    The caller's ACTIVE membership in a tenant, or None.
    Inactive memberships are treated as absent.
    """
    stmt = select(TenantMembership).where(
        TenantMembership.tenant_id == tenant_id,
        TenantMembership.user_id == user_id,
        TenantMembership.is_active.is_(True),
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_membership(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[TenantMembership]:
    """Membership in any state; team management also sees deactivated members."""
    stmt = select(TenantMembership).where(
        TenantMembership.tenant_id == tenant_id,
        TenantMembership.user_id == user_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_members(db: AsyncSession, tenant_id: uuid.UUID) -> List[Tuple[TenantMembership, User]]:
    stmt = (
        select(TenantMembership, User)
        .join(User, User.id == TenantMembership.user_id)
        .where(TenantMembership.tenant_id == tenant_id)
        .order_by(TenantMembership.created_at.asc(), TenantMembership.id.asc())
    )
    return [(m, u) for m, u in (await db.execute(stmt)).all()]


async def count_active_memberships(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    exclude_user_id: Optional[uuid.UUID] = None,
) -> int:
    stmt = (
        select(func.count(TenantMembership.id))
        .where(TenantMembership.tenant_id == tenant_id)
        .where(TenantMembership.is_active.is_(True))
    )
    if exclude_user_id is not None:
        stmt = stmt.where(TenantMembership.user_id != exclude_user_id)
    res = await db.execute(stmt)
    return int(res.scalar() or 0)
