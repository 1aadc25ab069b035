from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from builder_factories import (
    add_membership,
    auth_headers,
    create_page_row,
    create_user,
    create_website,
    tenant_with_member,
)
from sitebuilder.core.security import create_access_token
from sitebuilder.models.page import Page


@pytest.mark.asyncio
async def test_owner_creates_website_with_generated_subdomain(client, db):
    tenant, user, _website = await tenant_with_member(db, role="owner")

    res = await client.post("/api/v1/websites", json={"name": "Pizza Palace"}, headers=auth_headers(user, tenant))
    assert res.status_code == 201, res.text

    body = res.json()
    assert body["tenant_id"] == str(tenant.id)
    assert body["subdomain"].startswith("pizza-palace-")
    assert len(body["subdomain"]) == len("pizza-palace-") + 4


@pytest.mark.asyncio
async def test_explicit_subdomain_must_be_valid_and_free(client, db):
    tenant, user, website = await tenant_with_member(db, plan="growth")
    headers = auth_headers(user, tenant)

    bad = await client.post("/api/v1/websites", json={"name": "X", "subdomain": "-nope-"}, headers=headers)
    assert bad.status_code == 422

    taken = await client.post(
        "/api/v1/websites", json={"name": "X", "subdomain": website.subdomain}, headers=headers
    )
    assert taken.status_code == 409
    assert taken.json()["detail"]["code"] == "slug_taken"

    ok = await client.post("/api/v1/websites", json={"name": "X", "subdomain": "My-Bakery"}, headers=headers)
    assert ok.status_code == 201
    assert ok.json()["subdomain"] == "my-bakery"


@pytest.mark.asyncio
async def test_starter_plan_caps_websites(client, db):
    tenant, user, _website = await tenant_with_member(db, plan="starter")
    headers = auth_headers(user, tenant)

    second = await client.post("/api/v1/websites", json={"name": "Second"}, headers=headers)
    assert second.status_code == 201

    third = await client.post("/api/v1/websites", json={"name": "Third"}, headers=headers)
    assert third.status_code == 403
    detail = third.json()["detail"]
    assert detail["code"] == "plan_limit_exceeded"
    assert detail["limit"] == "max_websites"
    assert (detail["current"], detail["max"]) == (2, 2)
    assert detail["upgrade_to"] == "growth"


@pytest.mark.asyncio
async def test_editor_cannot_create_websites(client, db):
    tenant, _owner, _website = await tenant_with_member(db)
    editor = await create_user(db)
    await add_membership(db, tenant, editor, "editor")

    res = await client.post("/api/v1/websites", json={"name": "Nope"}, headers=auth_headers(editor, tenant))
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_list_only_shows_own_tenant(client, db):
    tenant_a, user_a, site_a = await tenant_with_member(db)
    tenant_b, _user_b, _site_b = await tenant_with_member(db)
    await create_website(db, tenant_b, name="B2")

    res = await client.get("/api/v1/websites", headers=auth_headers(user_a, tenant_a))
    assert res.status_code == 200
    assert [w["id"] for w in res.json()] == [str(site_a.id)]


@pytest.mark.asyncio
async def test_foreign_and_missing_websites_look_the_same(client, db):
    tenant_a, user_a, _site_a = await tenant_with_member(db)
    _tenant_b, _user_b, site_b = await tenant_with_member(db)
    headers = auth_headers(user_a, tenant_a)

    foreign = await client.get(f"/api/v1/websites/{site_b.id}", headers=headers)
    missing = await client.get(f"/api/v1/websites/{uuid.uuid4()}", headers=headers)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


@pytest.mark.asyncio
async def test_claiming_a_tenant_you_do_not_belong_to(client, db):
    _tenant_a, user_a, _site_a = await tenant_with_member(db)
    tenant_b, _user_b, site_b = await tenant_with_member(db)

    res = await client.get(f"/api/v1/websites/{site_b.id}", headers=auth_headers(user_a, tenant_b))
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_identity_is_required(client, db):
    tenant, user, _website = await tenant_with_member(db)

    no_token = await client.get("/api/v1/websites", headers={"X-Tenant-Id": str(tenant.id)})
    assert no_token.status_code in (401, 403)

    bad_token = await client.get(
        "/api/v1/websites", headers={"Authorization": "Bearer nope", "X-Tenant-Id": str(tenant.id)}
    )
    assert bad_token.status_code == 401

    headers = auth_headers(user, tenant)
    del headers["X-Tenant-Id"]
    no_tenant = await client.get("/api/v1/websites", headers=headers)
    assert no_tenant.status_code == 400

    headers["X-Tenant-Id"] = "not-a-uuid"
    bad_tenant = await client.get("/api/v1/websites", headers=headers)
    assert bad_tenant.status_code == 422


@pytest.mark.asyncio
async def test_membership_lists_capabilities(client, db):
    tenant, user, _website = await tenant_with_member(db, role="viewer")

    res = await client.get("/api/v1/tenants/membership", headers=auth_headers(user, tenant))
    assert res.status_code == 200
    body = res.json()
    assert body["role"] == "viewer"
    assert "pages.view" in body["capabilities"]
    assert "pages.edit" not in body["capabilities"]
    assert body["matrix_version"] == "2024-01"


@pytest.mark.asyncio
async def test_update_website(client, db):
    tenant, user, website = await tenant_with_member(db, role="editor", plan="growth")
    other = await create_website(db, tenant, name="Other")
    headers = auth_headers(user, tenant)

    res = await client.patch(
        f"/api/v1/websites/{website.id}", json={"name": " Pizza Place ", "subdomain": "Pizza-Place"}, headers=headers
    )
    assert res.status_code == 200, res.text
    assert (res.json()["name"], res.json()["subdomain"]) == ("Pizza Place", "pizza-place")

    taken = await client.patch(f"/api/v1/websites/{website.id}", json={"subdomain": other.subdomain}, headers=headers)
    assert taken.status_code == 409

    same = await client.patch(f"/api/v1/websites/{website.id}", json={"subdomain": "pizza-place"}, headers=headers)
    assert same.status_code == 200


@pytest.mark.asyncio
async def test_viewer_cannot_update_website(client, db):
    tenant, _owner, website = await tenant_with_member(db)
    viewer = await create_user(db)
    await add_membership(db, tenant, viewer, "viewer")

    res = await client.patch(f"/api/v1/websites/{website.id}", json={"name": "X"}, headers=auth_headers(viewer, tenant))
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_publish_keeps_the_first_publish_time(client, db):
    tenant, user, website = await tenant_with_member(db, role="editor")
    headers = auth_headers(user, tenant)

    first = await client.post(f"/api/v1/websites/{website.id}/publish", headers=headers)
    assert first.status_code == 200, first.text
    assert first.json()["published_at"] is not None
    assert first.json()["last_published_at"] is not None

    again = await client.post(f"/api/v1/websites/{website.id}/publish", headers=headers)
    assert again.json()["published_at"] == first.json()["published_at"]


@pytest.mark.asyncio
async def test_developer_cannot_publish_website(client, db):
    tenant, _owner, website = await tenant_with_member(db)
    dev = await create_user(db)
    await add_membership(db, tenant, dev, "developer")

    res = await client.post(f"/api/v1/websites/{website.id}/publish", headers=auth_headers(dev, tenant))
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_delete_website_takes_its_pages_along(client, db):
    tenant, user, website = await tenant_with_member(db, role="admin")
    headers = auth_headers(user, tenant)
    page = await create_page_row(db, website, "i", slug="/")
    page_id = page.id

    res = await client.delete(f"/api/v1/websites/{website.id}", headers=headers)
    assert res.status_code == 204

    assert (await client.get(f"/api/v1/websites/{website.id}", headers=headers)).status_code == 404
    assert (await db.execute(select(Page.id).where(Page.id == page_id))).first() is None


@pytest.mark.asyncio
async def test_editor_cannot_delete_website(client, db):
    tenant, _owner, website = await tenant_with_member(db)
    editor = await create_user(db)
    await add_membership(db, tenant, editor, "editor")

    res = await client.delete(f"/api/v1/websites/{website.id}", headers=auth_headers(editor, tenant))
    assert res.status_code == 404
    assert (await client.get(f"/api/v1/websites/{website.id}", headers=auth_headers(editor, tenant))).status_code == 200


@pytest.mark.asyncio
async def test_token_for_unknown_or_inactive_user(client, db):
    tenant, _user, _website = await tenant_with_member(db)
    inactive = await create_user(db, is_active=False)
    await add_membership(db, tenant, inactive, "owner")

    for subject in ("not-a-uuid", str(uuid.uuid4()), str(inactive.id)):
        headers = {"Authorization": f"Bearer {create_access_token(subject)}", "X-Tenant-Id": str(tenant.id)}
        res = await client.get("/api/v1/websites", headers=headers)
        assert res.status_code == 401, subject
