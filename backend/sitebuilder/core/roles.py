# sitebuilder/core/roles.py

from __future__ import annotations

import enum
from typing import Any, Optional


class TenantRole(str, enum.Enum):
    OWNER = "owner"          # created the tenant, holds billing
    ADMIN = "admin"
    EDITOR = "editor"        # content
    DEVELOPER = "developer"  # content + code blocks
    VIEWER = "viewer"        # read-only


# Higher outranks lower. Team changes only go downwards.
ROLE_LEVELS = {
    TenantRole.OWNER: 5,
    TenantRole.ADMIN: 4,
    TenantRole.DEVELOPER: 3,
    TenantRole.EDITOR: 2,
    TenantRole.VIEWER: 1,
}


def parse_role(value: Any) -> Optional[TenantRole]:
    """Normalize a stored role string; None for anything outside the fixed set."""
    if isinstance(value, TenantRole):
        return value
    if not isinstance(value, str):
        return None
    try:
        return TenantRole(value.strip().lower())
    except ValueError:
        return None


def can_manage_role(manager: Any, target: Any) -> bool:
    """True when ``manager`` strictly outranks ``target``. Unknown roles manage nothing."""
    m, t = parse_role(manager), parse_role(target)
    if m is None or t is None:
        return False
    return ROLE_LEVELS[m] > ROLE_LEVELS[t]
