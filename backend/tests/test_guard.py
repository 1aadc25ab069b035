from __future__ import annotations

import logging
import uuid

import pytest

from builder_factories import (
    add_membership,
    create_page_row,
    create_user,
    tenant_with_member,
)
from sitebuilder.auth.permissions import CAP, PermissionMatrix
from sitebuilder.core.errors import NotAMember, PermissionDenied, ResourceNotFound, WrongTenant
from sitebuilder.core.roles import TenantRole
from sitebuilder.crud.tenancy import ResourceKind, ResourceRef
from sitebuilder.services.guard import Actor, TenantResourceGuard


@pytest.mark.asyncio
async def test_member_with_capability_passes(db):
    tenant, user, website = await tenant_with_member(db, role="editor")
    page = await create_page_row(db, website, "i")

    membership = await TenantResourceGuard(db).check(
        Actor(user.id), tenant.id, ResourceRef(ResourceKind.PAGE, page.id), CAP.PAGES_EDIT
    )

    assert membership.role == "editor"
    assert membership.tenant_id == tenant.id


@pytest.mark.asyncio
async def test_viewer_cannot_edit_pages(db, caplog):
    tenant, user, website = await tenant_with_member(db, role="viewer")
    page = await create_page_row(db, website, "i")
    caplog.set_level(logging.WARNING, logger="sitebuilder.services.guard")

    with pytest.raises(PermissionDenied):
        await TenantResourceGuard(db).check(
            Actor(user.id), tenant.id, ResourceRef(ResourceKind.PAGE, page.id), CAP.PAGES_EDIT
        )

    events = [r for r in caplog.records if getattr(r, "security_event", False)]
    assert len(events) == 1
    assert events[0].event_type == "permission_denied"
    assert events[0].capability == CAP.PAGES_EDIT
    assert events[0].matrix_version == "2024-01"


@pytest.mark.asyncio
async def test_page_of_another_tenant_is_wrong_tenant_even_for_owner(db, caplog):
    tenant_a, owner_a, _site_a = await tenant_with_member(db, role="owner")
    _tenant_b, _owner_b, site_b = await tenant_with_member(db, role="owner")
    foreign_page = await create_page_row(db, site_b, "i")
    caplog.set_level(logging.WARNING, logger="sitebuilder.services.guard")

    with pytest.raises(WrongTenant):
        await TenantResourceGuard(db).check(
            Actor(owner_a.id), tenant_a.id, ResourceRef(ResourceKind.PAGE, foreign_page.id), CAP.PAGES_EDIT
        )

    assert [r.event_type for r in caplog.records if getattr(r, "security_event", False)] == ["wrong_tenant"]


@pytest.mark.asyncio
async def test_wrong_tenant_is_checked_before_membership(db):
    _tenant_a, _owner_a, site_a = await tenant_with_member(db)
    tenant_b, _owner_b, _site_b = await tenant_with_member(db)
    outsider = await create_user(db)

    with pytest.raises(WrongTenant):
        await TenantResourceGuard(db).check(
            Actor(outsider.id), tenant_b.id, ResourceRef(ResourceKind.WEBSITE, site_a.id), CAP.WEBSITES_VIEW
        )


@pytest.mark.asyncio
async def test_non_member(db):
    tenant, _owner, website = await tenant_with_member(db)
    outsider = await create_user(db)

    with pytest.raises(NotAMember):
        await TenantResourceGuard(db).check(
            Actor(outsider.id), tenant.id, ResourceRef(ResourceKind.WEBSITE, website.id), CAP.WEBSITES_VIEW
        )


@pytest.mark.asyncio
async def test_inactive_membership_counts_as_non_member(db):
    tenant, _owner, _website = await tenant_with_member(db)
    former = await create_user(db)
    await add_membership(db, tenant, former, "admin", is_active=False)

    with pytest.raises(NotAMember):
        await TenantResourceGuard(db).check(Actor(former.id), tenant.id, None, CAP.WEBSITES_VIEW)


@pytest.mark.asyncio
async def test_missing_resource(db):
    tenant, user, _website = await tenant_with_member(db)

    with pytest.raises(ResourceNotFound):
        await TenantResourceGuard(db).check(
            Actor(user.id), tenant.id, ResourceRef(ResourceKind.COMPONENT, uuid.uuid4()), CAP.COMPONENTS_VIEW
        )


@pytest.mark.asyncio
async def test_unknown_stored_role_is_denied(db):
    tenant, _owner, _website = await tenant_with_member(db)
    odd = await create_user(db)
    await add_membership(db, tenant, odd, "superuser")

    with pytest.raises(PermissionDenied):
        await TenantResourceGuard(db).check(Actor(odd.id), tenant.id, None, CAP.WEBSITES_VIEW)


@pytest.mark.asyncio
async def test_guard_uses_the_matrix_it_was_given(db):
    tenant, user, _website = await tenant_with_member(db, role="admin")
    owners_only = PermissionMatrix.from_table("owners-only", {CAP.WEBSITES_VIEW: [TenantRole.OWNER]})

    with pytest.raises(PermissionDenied):
        await TenantResourceGuard(db, owners_only).check(Actor(user.id), tenant.id, None, CAP.WEBSITES_VIEW)
