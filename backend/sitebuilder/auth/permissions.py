from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Tuple, Union

from sitebuilder.core.roles import TenantRole, parse_role

OWNER = TenantRole.OWNER
ADMIN = TenantRole.ADMIN
EDITOR = TenantRole.EDITOR
DEVELOPER = TenantRole.DEVELOPER
VIEWER = TenantRole.VIEWER

ALL_ROLES = frozenset(TenantRole)


@dataclass(frozen=True)
class Capability:
    # websites.*
    WEBSITES_CREATE: str = "websites.create"
    WEBSITES_EDIT: str = "websites.edit"
    WEBSITES_DELETE: str = "websites.delete"
    WEBSITES_PUBLISH: str = "websites.publish"
    WEBSITES_VIEW: str = "websites.view"

    # pages.*
    PAGES_CREATE: str = "pages.create"
    PAGES_EDIT: str = "pages.edit"
    PAGES_DELETE: str = "pages.delete"
    PAGES_VIEW: str = "pages.view"

    # components.*
    COMPONENTS_CREATE: str = "components.create"
    COMPONENTS_EDIT: str = "components.edit"
    COMPONENTS_DELETE: str = "components.delete"
    COMPONENTS_VIEW: str = "components.view"

    # builder.*
    BUILDER_ACCESS: str = "builder.access"
    BUILDER_EDIT_HTML: str = "builder.edit_html"

    BRANDING_EDIT: str = "branding.edit"
    DOMAINS_MANAGE: str = "domains.manage"

    # team.*
    TEAM_INVITE: str = "team.invite"
    TEAM_REMOVE: str = "team.remove"
    TEAM_CHANGE_ROLE: str = "team.change_role"
    TEAM_VIEW: str = "team.view"

    ANALYTICS_VIEW: str = "analytics.view"

    # billing.*
    BILLING_MANAGE: str = "billing.manage"
    BILLING_VIEW: str = "billing.view"

    # settings.*
    SETTINGS_EDIT: str = "settings.edit"
    SETTINGS_VIEW: str = "settings.view"


CAP = Capability()

_CONTENT_EDITORS = frozenset({OWNER, ADMIN, EDITOR, DEVELOPER})

_DEFAULT_GRANTS: Mapping[str, FrozenSet[TenantRole]] = {
    CAP.WEBSITES_CREATE: frozenset({OWNER, ADMIN}),
    CAP.WEBSITES_EDIT: _CONTENT_EDITORS,
    CAP.WEBSITES_DELETE: frozenset({OWNER, ADMIN}),
    CAP.WEBSITES_PUBLISH: frozenset({OWNER, ADMIN, EDITOR}),
    CAP.WEBSITES_VIEW: ALL_ROLES,
    CAP.PAGES_CREATE: _CONTENT_EDITORS,
    CAP.PAGES_EDIT: _CONTENT_EDITORS,
    CAP.PAGES_DELETE: frozenset({OWNER, ADMIN, EDITOR}),
    CAP.PAGES_VIEW: ALL_ROLES,
    CAP.COMPONENTS_CREATE: _CONTENT_EDITORS,
    CAP.COMPONENTS_EDIT: _CONTENT_EDITORS,
    CAP.COMPONENTS_DELETE: _CONTENT_EDITORS,
    CAP.COMPONENTS_VIEW: ALL_ROLES,
    CAP.BUILDER_ACCESS: _CONTENT_EDITORS,
    CAP.BUILDER_EDIT_HTML: frozenset({OWNER, ADMIN, DEVELOPER}),
    CAP.BRANDING_EDIT: frozenset({OWNER, ADMIN, EDITOR}),
    CAP.DOMAINS_MANAGE: frozenset({OWNER, ADMIN}),
    CAP.TEAM_INVITE: frozenset({OWNER, ADMIN}),
    CAP.TEAM_REMOVE: frozenset({OWNER, ADMIN}),
    CAP.TEAM_CHANGE_ROLE: frozenset({OWNER, ADMIN}),
    CAP.TEAM_VIEW: ALL_ROLES,
    CAP.ANALYTICS_VIEW: frozenset({OWNER, ADMIN, EDITOR, VIEWER}),
    CAP.BILLING_MANAGE: frozenset({OWNER}),
    CAP.BILLING_VIEW: frozenset({OWNER, ADMIN}),
    CAP.SETTINGS_EDIT: frozenset({OWNER, ADMIN}),
    CAP.SETTINGS_VIEW: ALL_ROLES,
}


RoleLike = Union[TenantRole, str, None]


def _coerce_role(role: RoleLike) -> TenantRole | None:
    if isinstance(role, TenantRole):
        return role
    return parse_role(role)


@dataclass(frozen=True)
class PermissionMatrix:
    """
    Capability -> roles allowed to exercise it.

    Immutable once built. A different policy is a different matrix object with
    its own version, handed to whoever needs it.
    """

    version: str
    grants: Mapping[str, FrozenSet[TenantRole]] = field(repr=False)

    @classmethod
    def from_table(cls, version: str, table: Mapping[str, Iterable[TenantRole]]) -> "PermissionMatrix":
        frozen = {}
        for capability, roles in table.items():
            role_set = frozenset(roles)
            if not role_set:
                raise ValueError(f"capability {capability!r} grants no role")
            frozen[capability] = role_set
        return cls(version=version, grants=MappingProxyType(frozen))

    def allows(self, capability: str, role: RoleLike) -> bool:
        """Pure lookup. Unknown capability or role is denied, never raised."""
        r = _coerce_role(role)
        if r is None:
            return False
        return r in self.grants.get(capability, frozenset())

    def capabilities_for(self, role: RoleLike) -> List[str]:
        r = _coerce_role(role)
        if r is None:
            return []
        return sorted(c for c, roles in self.grants.items() if r in roles)

    def items(self) -> Tuple[Tuple[str, FrozenSet[TenantRole]], ...]:
        return tuple(sorted(self.grants.items()))


DEFAULT_MATRIX = PermissionMatrix.from_table("2024-01", _DEFAULT_GRANTS)


def allows(capability: str, role: RoleLike) -> bool:
    return DEFAULT_MATRIX.allows(capability, role)
