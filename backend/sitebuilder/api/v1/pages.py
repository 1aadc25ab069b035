from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.api.deps.permissions import require_capability
from sitebuilder.api.deps.tenant import get_actor, get_guard, get_page_manager, get_tenant_id
from sitebuilder.auth.permissions import CAP
from sitebuilder.core.errors import ResourceNotFound
from sitebuilder.crud.tenancy import ResourceKind, ResourceRef
from sitebuilder.db.session import get_db
from sitebuilder.schemas.ordering import MoveRequest, ReorderRequest
from sitebuilder.schemas.page import PageCreate, PageOut, PageUpdate
from sitebuilder.services.guard import Actor, TenantResourceGuard
from sitebuilder.services.ordering import OrderedCollectionManager
from sitebuilder.services.pages import create_page, delete_page, move_page, set_home_page, update_page

router = APIRouter(tags=["pages"])

_NULLABLE_PAGE_FIELDS = {"seo_title", "seo_description"}


async def _load_page(manager: OrderedCollectionManager, page_id: uuid.UUID):
    page = await manager.store.get(page_id)
    if page is None:
        raise ResourceNotFound("page", page_id)
    return page


@router.get("/websites/{website_id}/pages", response_model=List[PageOut])
async def list_pages(
    website_id: uuid.UUID,
    manager: OrderedCollectionManager = Depends(get_page_manager),
    _=Depends(require_capability(CAP.PAGES_VIEW, ResourceKind.WEBSITE, "website_id")),
):
    return list(await manager.list_ordered(website_id).fetch())


@router.post("/websites/{website_id}/pages", response_model=PageOut, status_code=status.HTTP_201_CREATED)
async def create_page_endpoint(
    website_id: uuid.UUID,
    payload: PageCreate,
    db: AsyncSession = Depends(get_db),
    manager: OrderedCollectionManager = Depends(get_page_manager),
    _=Depends(require_capability(CAP.PAGES_CREATE, ResourceKind.WEBSITE, "website_id")),
):
    return await create_page(
        db,
        manager,
        website_id,
        title=payload.title,
        slug=payload.slug,
        is_home=payload.is_home,
        seo_title=payload.seo_title,
        seo_description=payload.seo_description,
        position=payload.position.to_position(),
    )


@router.patch("/pages/{page_id}", response_model=PageOut)
async def update_page_endpoint(
    page_id: uuid.UUID,
    payload: PageUpdate,
    db: AsyncSession = Depends(get_db),
    manager: OrderedCollectionManager = Depends(get_page_manager),
    actor: Actor = Depends(get_actor),
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    guard: TenantResourceGuard = Depends(get_guard),
    _=Depends(require_capability(CAP.PAGES_EDIT, ResourceKind.PAGE, "page_id")),
):
    changes = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_PAGE_FIELDS
    }
    if "is_published" in changes:
        # publishing also needs websites.publish
        await guard.check(actor, tenant_id, ResourceRef(ResourceKind.PAGE, page_id), CAP.WEBSITES_PUBLISH)
    page = await _load_page(manager, page_id)
    return await update_page(db, page, changes)


@router.post("/pages/{page_id}/move", response_model=PageOut)
async def move_page_endpoint(
    page_id: uuid.UUID,
    payload: MoveRequest,
    db: AsyncSession = Depends(get_db),
    manager: OrderedCollectionManager = Depends(get_page_manager),
    actor: Actor = Depends(get_actor),
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    guard: TenantResourceGuard = Depends(get_guard),
    _=Depends(require_capability(CAP.PAGES_EDIT, ResourceKind.PAGE, "page_id")),
):
    if payload.new_parent_id is not None:
        await guard.check(
            actor, tenant_id, ResourceRef(ResourceKind.WEBSITE, payload.new_parent_id), CAP.PAGES_CREATE
        )
    return await move_page(db, manager, page_id, payload.position.to_position(), payload.new_parent_id)


@router.post("/websites/{website_id}/pages/reorder", response_model=List[PageOut])
async def reorder_pages(
    website_id: uuid.UUID,
    payload: ReorderRequest,
    manager: OrderedCollectionManager = Depends(get_page_manager),
    _=Depends(require_capability(CAP.PAGES_EDIT, ResourceKind.WEBSITE, "website_id")),
):
    await manager.reorder_bulk(website_id, payload.ids)
    return list(await manager.list_ordered(website_id).fetch())


@router.post("/pages/{page_id}/home", response_model=PageOut)
async def make_home_page(
    page_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    manager: OrderedCollectionManager = Depends(get_page_manager),
    _=Depends(require_capability(CAP.PAGES_EDIT, ResourceKind.PAGE, "page_id")),
):
    page = await _load_page(manager, page_id)
    return await set_home_page(db, page)


@router.delete("/pages/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_page_endpoint(
    page_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    manager: OrderedCollectionManager = Depends(get_page_manager),
    _=Depends(require_capability(CAP.PAGES_DELETE, ResourceKind.PAGE, "page_id")),
):
    await delete_page(db, manager, page_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
