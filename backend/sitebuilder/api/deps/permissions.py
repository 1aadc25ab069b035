# sitebuilder/api/deps/permissions.py
from __future__ import annotations

import uuid
from typing import Callable, Optional

from fastapi import Depends, Request

from sitebuilder.api.deps.tenant import get_actor, get_guard, get_tenant_id
from sitebuilder.core.errors import ResourceNotFound
from sitebuilder.crud.tenancy import ResourceKind, ResourceRef
from sitebuilder.models.tenant_membership import TenantMembership
from sitebuilder.services.guard import Actor, TenantResourceGuard


def require_capability(
    capability: str,
    kind: Optional[ResourceKind] = None,
    path_param: Optional[str] = None,
) -> Callable:
    """
    Run the tenant guard before the handler.

    With ``kind`` set, the resource id is read from ``path_param`` and must
    belong to the X-Tenant-Id tenant. Without it, only membership and the
    capability are checked (tenant-level actions such as creating a website).

    Returns the caller's membership.
    """
    if kind is not None and path_param is None:
        raise ValueError("path_param is required when kind is set")

    async def _checker(
        request: Request,
        actor: Actor = Depends(get_actor),
        tenant_id: uuid.UUID = Depends(get_tenant_id),
        guard: TenantResourceGuard = Depends(get_guard),
    ) -> TenantMembership:
        resource = None
        if kind is not None:
            raw = request.path_params.get(path_param)
            try:
                resource = ResourceRef(kind, uuid.UUID(str(raw)))
            except ValueError:
                raise ResourceNotFound(kind.value, raw)

        return await guard.check(actor, tenant_id, resource, capability)

    return _checker
