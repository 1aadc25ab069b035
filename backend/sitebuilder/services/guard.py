# sitebuilder/services/guard.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.auth.authorization import authorize
from sitebuilder.auth.permissions import DEFAULT_MATRIX, PermissionMatrix
from sitebuilder.core.errors import AuthorizationError, NotAMember, ResourceNotFound, WrongTenant
from sitebuilder.core.logging import get_logger, log_security_event
from sitebuilder.crud.tenancy import ResourceRef, resolve_tenant_id
from sitebuilder.crud.tenant_membership import get_active_membership
from sitebuilder.models.tenant_membership import TenantMembership

logger = get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """Caller identity as handed over by the identity provider."""

    user_id: uuid.UUID


class TenantResourceGuard:
    """
    Gate for every tenant-scoped operation.

    Checks, in order: the resource belongs to ``tenant_id`` (WrongTenant),
    the actor is an active member of ``tenant_id`` (NotAMember), and the
    member's role holds the capability (PermissionDenied). The three are kept
    apart in logs; the HTTP layer answers all of them with the same 404.
    """

    def __init__(self, db: AsyncSession, matrix: PermissionMatrix = DEFAULT_MATRIX) -> None:
        self.db = db
        self.matrix = matrix

    async def check(
        self,
        actor: Actor,
        tenant_id: uuid.UUID,
        resource: Optional[ResourceRef],
        capability: str,
    ) -> TenantMembership:
        try:
            if resource is not None:
                owner_tenant_id = await resolve_tenant_id(self.db, resource)
                if owner_tenant_id is None:
                    raise ResourceNotFound(resource.kind.value, resource.id)
                if owner_tenant_id != tenant_id:
                    raise WrongTenant(resource, tenant_id, owner_tenant_id)

            membership = await get_active_membership(self.db, tenant_id, actor.user_id)
            if membership is None:
                raise NotAMember(actor.user_id, tenant_id)

            authorize(membership.role, capability, self.matrix)
        except AuthorizationError as exc:
            details = {
                "user_id": actor.user_id,
                "tenant_id": tenant_id,
                "capability": capability,
                "resource": str(resource) if resource is not None else None,
                "matrix_version": self.matrix.version,
            }
            details.update(exc.log_context())
            log_security_event(exc.code, details, logger)
            raise

        return membership
