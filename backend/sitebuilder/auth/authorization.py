from __future__ import annotations

from sitebuilder.auth.permissions import DEFAULT_MATRIX, PermissionMatrix, RoleLike
from sitebuilder.core.errors import PermissionDenied


def authorize(role: RoleLike, capability: str, matrix: PermissionMatrix = DEFAULT_MATRIX) -> None:
    """
    Raise PermissionDenied unless ``role`` holds ``capability`` in ``matrix``.

    Deny by default. This only answers the role question; requests that touch
    a resource also need the tenant check in TenantResourceGuard.
    """
    if not matrix.allows(capability, role):
        role_value = getattr(role, "value", role)
        raise PermissionDenied(role_value, capability)
