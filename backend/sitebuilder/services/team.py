# sitebuilder/services/team.py
"""
Team management inside one tenant.

The guard has already checked that the caller holds the team capability for
the route. On top of that, members are ranked (owner > admin > developer >
editor > viewer): a caller only manages members ranked below them and only
hands out roles ranked below their own. The owner's membership is never
changed here, and nobody changes their own.
"""
from __future__ import annotations

import uuid
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.core.errors import (
    AlreadyMember,
    InvalidTeamChange,
    PlanLimitExceeded,
    ResourceNotFound,
    TeamChangeNotAllowed,
)
from sitebuilder.core.logging import get_logger
from sitebuilder.core.plan_limits import get_next_plan
from sitebuilder.core.roles import TenantRole, can_manage_role, parse_role
from sitebuilder.crud.tenant_membership import count_active_memberships, get_membership
from sitebuilder.models.tenant_membership import TenantMembership
from sitebuilder.models.user import User
from sitebuilder.services.billing import PlanLimitsProvider

logger = get_logger(__name__)

Member = Tuple[TenantMembership, User]


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _require_assignable(actor: TenantMembership, role: str) -> None:
    if not can_manage_role(actor.role, role):
        raise TeamChangeNotAllowed(f"You cannot assign the {role} role")


async def _check_collaborator_limit(
    db: AsyncSession,
    plan_limits: PlanLimitsProvider,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    limits = await plan_limits.get_plan_limits(tenant_id)
    current = await count_active_memberships(db, tenant_id, exclude_user_id=user_id)
    if current >= limits.max_collaborators:
        raise PlanLimitExceeded("max_collaborators", current, limits.max_collaborators, get_next_plan(limits.plan))


async def _load_target(db: AsyncSession, actor: TenantMembership, user_id: uuid.UUID) -> TenantMembership:
    if user_id == actor.user_id:
        raise InvalidTeamChange("You cannot change your own membership")

    target = await get_membership(db, actor.tenant_id, user_id)
    if target is None:
        raise ResourceNotFound("member", user_id)
    if parse_role(target.role) is TenantRole.OWNER:
        raise TeamChangeNotAllowed("The owner's membership cannot be changed")
    if not can_manage_role(actor.role, target.role):
        raise TeamChangeNotAllowed("You cannot manage this member")
    return target


async def add_member(
    db: AsyncSession,
    plan_limits: PlanLimitsProvider,
    actor: TenantMembership,
    *,
    email: str,
    role: str,
) -> Member:
    """Add an existing account to the tenant, or re-activate its old membership."""
    _require_assignable(actor, role)

    email = normalize_email(email)
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        raise ResourceNotFound("user", email)

    membership = await get_membership(db, actor.tenant_id, user.id)
    if membership is not None and membership.is_active:
        raise AlreadyMember("User is already a member of this tenant")

    await _check_collaborator_limit(db, plan_limits, actor.tenant_id, user.id)

    if membership is None:
        membership = TenantMembership(tenant_id=actor.tenant_id, user_id=user.id, role=role, is_active=True)
        db.add(membership)
    else:
        membership.role = role
        membership.is_active = True

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise AlreadyMember("User is already a member of this tenant") from exc
    await db.refresh(membership)

    logger.info("User %s joined tenant %s as %s (by %s)", user.id, actor.tenant_id, role, actor.user_id)
    return membership, user


async def update_member(
    db: AsyncSession,
    plan_limits: PlanLimitsProvider,
    actor: TenantMembership,
    user_id: uuid.UUID,
    *,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Member:
    target = await _load_target(db, actor, user_id)

    if role is not None:
        _require_assignable(actor, role)
        target.role = role
    if is_active is not None:
        if is_active and not target.is_active:
            await _check_collaborator_limit(db, plan_limits, actor.tenant_id, user_id)
        target.is_active = is_active

    await db.commit()
    await db.refresh(target)

    logger.info(
        "Membership of %s in tenant %s set to role=%s active=%s (by %s)",
        user_id, actor.tenant_id, target.role, target.is_active, actor.user_id,
    )
    return target, await db.get(User, user_id)


async def remove_member(db: AsyncSession, actor: TenantMembership, user_id: uuid.UUID) -> None:
    target = await _load_target(db, actor, user_id)
    await db.delete(target)
    await db.commit()
    logger.info("Removed %s from tenant %s (by %s)", user_id, actor.tenant_id, actor.user_id)
