from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.api.deps.permissions import require_capability
from sitebuilder.auth.permissions import CAP
from sitebuilder.crud.tenant_membership import list_members
from sitebuilder.db.session import get_db
from sitebuilder.models.tenant_membership import TenantMembership
from sitebuilder.models.user import User
from sitebuilder.schemas.team import TeamMemberAdd, TeamMemberOut, TeamMemberUpdate
from sitebuilder.services.billing import TenantPlanLimits
from sitebuilder.services.team import add_member, remove_member, update_member

router = APIRouter(prefix="/team", tags=["team"])


def _member_out(membership: TenantMembership, user: User) -> TeamMemberOut:
    return TeamMemberOut(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=membership.role,
        is_active=membership.is_active,
        joined_at=membership.created_at,
    )


@router.get("", response_model=List[TeamMemberOut])
async def list_team(
    db: AsyncSession = Depends(get_db),
    membership: TenantMembership = Depends(require_capability(CAP.TEAM_VIEW)),
):
    return [_member_out(m, u) for m, u in await list_members(db, membership.tenant_id)]


@router.post("", response_model=TeamMemberOut, status_code=status.HTTP_201_CREATED)
async def add_team_member(
    payload: TeamMemberAdd,
    db: AsyncSession = Depends(get_db),
    membership: TenantMembership = Depends(require_capability(CAP.TEAM_INVITE)),
):
    member, user = await add_member(db, TenantPlanLimits(db), membership, email=payload.email, role=payload.role)
    return _member_out(member, user)


@router.patch("/{user_id}", response_model=TeamMemberOut)
async def update_team_member(
    user_id: uuid.UUID,
    payload: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    membership: TenantMembership = Depends(require_capability(CAP.TEAM_CHANGE_ROLE)),
):
    member, user = await update_member(
        db,
        TenantPlanLimits(db),
        membership,
        user_id,
        role=payload.role,
        is_active=payload.is_active,
    )
    return _member_out(member, user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_team_member(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    membership: TenantMembership = Depends(require_capability(CAP.TEAM_REMOVE)),
):
    await remove_member(db, membership, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
