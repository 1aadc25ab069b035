from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.api.deps.permissions import require_capability
from sitebuilder.auth.permissions import CAP
from sitebuilder.crud.tenancy import ResourceKind
from sitebuilder.db.session import get_db
from sitebuilder.models.tenant_membership import TenantMembership
from sitebuilder.models.website import Website
from sitebuilder.schemas.website import WebsiteCreate, WebsiteOut, WebsiteUpdate
from sitebuilder.services.billing import TenantPlanLimits
from sitebuilder.services.websites import create_website, delete_website, publish_website, update_website

router = APIRouter(prefix="/websites", tags=["websites"])


@router.get("", response_model=List[WebsiteOut])
async def list_websites(
    db: AsyncSession = Depends(get_db),
    membership: TenantMembership = Depends(require_capability(CAP.WEBSITES_VIEW)),
):
    stmt = (
        select(Website)
        .where(Website.tenant_id == membership.tenant_id)
        .order_by(Website.created_at.asc(), Website.id.asc())
    )
    return (await db.execute(stmt)).scalars().all()


@router.post("", response_model=WebsiteOut, status_code=status.HTTP_201_CREATED)
async def create_website_endpoint(
    payload: WebsiteCreate,
    db: AsyncSession = Depends(get_db),
    membership: TenantMembership = Depends(require_capability(CAP.WEBSITES_CREATE)),
):
    return await create_website(
        db,
        TenantPlanLimits(db),
        membership.tenant_id,
        name=payload.name,
        subdomain=payload.subdomain,
    )


@router.get("/{website_id}", response_model=WebsiteOut)
async def get_website(
    website_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _=Depends(require_capability(CAP.WEBSITES_VIEW, ResourceKind.WEBSITE, "website_id")),
):
    # The guard already proved it exists and belongs to the caller's tenant.
    return await db.get(Website, website_id)


@router.patch("/{website_id}", response_model=WebsiteOut)
async def update_website_endpoint(
    website_id: uuid.UUID,
    payload: WebsiteUpdate,
    db: AsyncSession = Depends(get_db),
    _=Depends(require_capability(CAP.WEBSITES_EDIT, ResourceKind.WEBSITE, "website_id")),
):
    website = await db.get(Website, website_id)
    return await update_website(db, website, payload.model_dump(exclude_unset=True))


@router.post("/{website_id}/publish", response_model=WebsiteOut)
async def publish_website_endpoint(
    website_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _=Depends(require_capability(CAP.WEBSITES_PUBLISH, ResourceKind.WEBSITE, "website_id")),
):
    website = await db.get(Website, website_id)
    return await publish_website(db, website)


@router.delete("/{website_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_website_endpoint(
    website_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _=Depends(require_capability(CAP.WEBSITES_DELETE, ResourceKind.WEBSITE, "website_id")),
):
    website = await db.get(Website, website_id)
    await delete_website(db, website)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
