"""
Domain errors.

Services raise these; the HTTP layer translates them in one place
(sitebuilder.api.errors). Each error carries a stable ``code`` for logs.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class SiteBuilderError(Exception):
    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def log_context(self) -> Dict[str, Any]:
        return {}


# ---------------------------------------------------------
# Authorization
# ---------------------------------------------------------
class AuthorizationError(SiteBuilderError):
    """Base for the three guard failures. Callers only ever see 'not found'."""

    code = "authorization_error"


class PermissionDenied(AuthorizationError):
    code = "permission_denied"

    def __init__(self, role: Optional[str], capability: str) -> None:
        super().__init__(f"Role {role!r} may not perform {capability!r}")
        self.role = role
        self.capability = capability

    def log_context(self) -> Dict[str, Any]:
        return {"role": self.role, "capability": self.capability}


class NotAMember(AuthorizationError):
    code = "not_a_member"

    def __init__(self, user_id: Any, tenant_id: Any) -> None:
        super().__init__(f"User {user_id} has no active membership in tenant {tenant_id}")
        self.user_id = user_id
        self.tenant_id = tenant_id

    def log_context(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "tenant_id": self.tenant_id}


class WrongTenant(AuthorizationError):
    code = "wrong_tenant"

    def __init__(self, resource: Any, expected_tenant_id: Any, actual_tenant_id: Any) -> None:
        super().__init__(f"{resource} belongs to tenant {actual_tenant_id}, not {expected_tenant_id}")
        self.resource = resource
        self.expected_tenant_id = expected_tenant_id
        self.actual_tenant_id = actual_tenant_id

    def log_context(self) -> Dict[str, Any]:
        return {
            "resource": str(self.resource),
            "tenant_id": self.expected_tenant_id,
            "owner_tenant_id": self.actual_tenant_id,
        }


# ---------------------------------------------------------
# Lookup
# ---------------------------------------------------------
class ResourceNotFound(SiteBuilderError):
    code = "not_found"

    def __init__(self, kind: str, resource_id: Any) -> None:
        super().__init__(f"{kind} {resource_id} not found")
        self.kind = kind
        self.resource_id = resource_id


# ---------------------------------------------------------
# Ordering
# ---------------------------------------------------------
class InvalidOrderKey(SiteBuilderError):
    code = "invalid_order_key"


class SiblingNotFound(SiteBuilderError):
    code = "sibling_not_found"

    def __init__(self, sibling_id: Any, parent_id: Any) -> None:
        super().__init__(f"{sibling_id} is not a sibling under parent {parent_id}")
        self.sibling_id = sibling_id
        self.parent_id = parent_id


class SelfReferential(SiteBuilderError):
    code = "self_referential"

    def __init__(self, entity_id: Any) -> None:
        super().__init__(f"{entity_id} cannot be positioned relative to itself")
        self.entity_id = entity_id


class InvalidReorder(SiteBuilderError):
    code = "invalid_reorder"


class OrderKeyCollision(SiteBuilderError):
    """Unique (parent_id, order_key) violated. Retried inside the collection manager."""

    code = "order_key_collision"

    def __init__(self, parent_id: Any, order_key: str) -> None:
        super().__init__(f"order key {order_key!r} already taken under {parent_id}")
        self.parent_id = parent_id
        self.order_key = order_key


# ---------------------------------------------------------
# Plans / validation
# ---------------------------------------------------------
class PlanLimitExceeded(SiteBuilderError):
    code = "plan_limit_exceeded"

    def __init__(self, limit: str, current: int, maximum: int, upgrade_to: Optional[str] = None) -> None:
        super().__init__(f"{limit}: {current} of {maximum} used")
        self.limit = limit
        self.current = current
        self.maximum = maximum
        self.upgrade_to = upgrade_to

    def log_context(self) -> Dict[str, Any]:
        return {"limit": self.limit, "current": self.current, "max": self.maximum}


class FeatureNotAllowed(SiteBuilderError):
    code = "feature_not_allowed"

    def __init__(self, feature: str, upgrade_to: Optional[str] = None) -> None:
        super().__init__(f"{feature} is not available on this plan")
        self.feature = feature
        self.upgrade_to = upgrade_to


class Conflict(SiteBuilderError):
    code = "conflict"


class SlugTaken(Conflict):
    code = "slug_taken"


# ---------------------------------------------------------
# Team
# ---------------------------------------------------------
class AlreadyMember(Conflict):
    code = "already_member"


class TeamChangeNotAllowed(SiteBuilderError):
    """The caller may manage the team, but not this member or this role."""

    code = "team_change_not_allowed"


class InvalidTeamChange(SiteBuilderError):
    code = "invalid_team_change"


class InternalError(SiteBuilderError):
    code = "internal_error"
