from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.api.deps.permissions import require_capability
from sitebuilder.api.deps.tenant import get_actor, get_component_manager, get_guard, get_tenant_id
from sitebuilder.auth.permissions import CAP
from sitebuilder.core.component_types import HTML_COMPONENT_TYPES
from sitebuilder.core.errors import ResourceNotFound
from sitebuilder.crud.tenancy import ResourceKind, ResourceRef
from sitebuilder.db.session import get_db
from sitebuilder.schemas.component import ComponentCreate, ComponentOut, ComponentUpdate
from sitebuilder.schemas.ordering import MoveRequest, ReorderRequest
from sitebuilder.services.components import create_component, update_component
from sitebuilder.services.guard import Actor, TenantResourceGuard
from sitebuilder.services.ordering import OrderedCollectionManager

router = APIRouter(tags=["components"])


async def _load_component(manager: OrderedCollectionManager, component_id: uuid.UUID):
    component = await manager.store.get(component_id)
    if component is None:
        raise ResourceNotFound("component", component_id)
    return component


@router.get("/pages/{page_id}/components", response_model=List[ComponentOut])
async def list_components(
    page_id: uuid.UUID,
    manager: OrderedCollectionManager = Depends(get_component_manager),
    _=Depends(require_capability(CAP.COMPONENTS_VIEW, ResourceKind.PAGE, "page_id")),
):
    return list(await manager.list_ordered(page_id).fetch())


@router.post("/pages/{page_id}/components", response_model=ComponentOut, status_code=status.HTTP_201_CREATED)
async def create_component_endpoint(
    page_id: uuid.UUID,
    payload: ComponentCreate,
    manager: OrderedCollectionManager = Depends(get_component_manager),
    actor: Actor = Depends(get_actor),
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    guard: TenantResourceGuard = Depends(get_guard),
    _=Depends(require_capability(CAP.COMPONENTS_CREATE, ResourceKind.PAGE, "page_id")),
):
    if payload.component_type in HTML_COMPONENT_TYPES:
        await guard.check(actor, tenant_id, ResourceRef(ResourceKind.PAGE, page_id), CAP.BUILDER_EDIT_HTML)

    return await create_component(
        manager,
        tenant_id,
        page_id,
        component_type=payload.component_type,
        props=payload.props,
        is_visible=payload.is_visible,
        position=payload.position.to_position(),
    )


@router.patch("/components/{component_id}", response_model=ComponentOut)
async def update_component_endpoint(
    component_id: uuid.UUID,
    payload: ComponentUpdate,
    db: AsyncSession = Depends(get_db),
    manager: OrderedCollectionManager = Depends(get_component_manager),
    actor: Actor = Depends(get_actor),
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    guard: TenantResourceGuard = Depends(get_guard),
    _=Depends(require_capability(CAP.COMPONENTS_EDIT, ResourceKind.COMPONENT, "component_id")),
):
    component = await _load_component(manager, component_id)
    if component.component_type in HTML_COMPONENT_TYPES:
        await guard.check(
            actor, tenant_id, ResourceRef(ResourceKind.COMPONENT, component_id), CAP.BUILDER_EDIT_HTML
        )

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    return await update_component(db, component, changes)


@router.post("/components/{component_id}/move", response_model=ComponentOut)
async def move_component(
    component_id: uuid.UUID,
    payload: MoveRequest,
    manager: OrderedCollectionManager = Depends(get_component_manager),
    actor: Actor = Depends(get_actor),
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    guard: TenantResourceGuard = Depends(get_guard),
    _=Depends(require_capability(CAP.COMPONENTS_EDIT, ResourceKind.COMPONENT, "component_id")),
):
    if payload.new_parent_id is not None:
        await guard.check(
            actor, tenant_id, ResourceRef(ResourceKind.PAGE, payload.new_parent_id), CAP.COMPONENTS_CREATE
        )
    return await manager.move(component_id, payload.position.to_position(), payload.new_parent_id)


@router.post("/pages/{page_id}/components/reorder", response_model=List[ComponentOut])
async def reorder_components(
    page_id: uuid.UUID,
    payload: ReorderRequest,
    manager: OrderedCollectionManager = Depends(get_component_manager),
    _=Depends(require_capability(CAP.COMPONENTS_EDIT, ResourceKind.PAGE, "page_id")),
):
    await manager.reorder_bulk(page_id, payload.ids)
    return list(await manager.list_ordered(page_id).fetch())


@router.delete("/components/{component_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_component(
    component_id: uuid.UUID,
    manager: OrderedCollectionManager = Depends(get_component_manager),
    _=Depends(require_capability(CAP.COMPONENTS_DELETE, ResourceKind.COMPONENT, "component_id")),
):
    await manager.delete(component_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
