from __future__ import annotations

from fastapi import APIRouter, Depends

from sitebuilder.api.deps.permissions import require_capability
from sitebuilder.auth.permissions import CAP, DEFAULT_MATRIX
from sitebuilder.models.tenant_membership import TenantMembership
from sitebuilder.schemas.tenant_membership import MembershipOut

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("/membership", response_model=MembershipOut)
async def my_membership(
    membership: TenantMembership = Depends(require_capability(CAP.SETTINGS_VIEW)),
):
    """
    Caller's role in the X-Tenant-Id tenant and what it unlocks.
    The builder UI uses this to hide actions the role cannot take.
    """
    return MembershipOut(
        tenant_id=membership.tenant_id,
        user_id=membership.user_id,
        role=membership.role,
        capabilities=DEFAULT_MATRIX.capabilities_for(membership.role),
        matrix_version=DEFAULT_MATRIX.version,
    )
