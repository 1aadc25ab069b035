# sitebuilder/crud/tenancy.py
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.models.page import Page
from sitebuilder.models.site_component import SiteComponent
from sitebuilder.models.website import Website


class ResourceKind(str, enum.Enum):
    WEBSITE = "website"
    PAGE = "page"
    COMPONENT = "component"


@dataclass(frozen=True)
class ResourceRef:
    kind: ResourceKind
    id: uuid.UUID

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


async def resolve_tenant_id(db: AsyncSession, ref: ResourceRef) -> Optional[uuid.UUID]:
    """
    Tenant that owns the resource, following component -> page -> website.
    None when the resource does not exist.
    """
    if ref.kind is ResourceKind.WEBSITE:
        stmt = select(Website.tenant_id).where(Website.id == ref.id)
    elif ref.kind is ResourceKind.PAGE:
        stmt = (
            select(Website.tenant_id)
            .join(Page, Page.website_id == Website.id)
            .where(Page.id == ref.id)
        )
    else:
        stmt = (
            select(Website.tenant_id)
            .select_from(SiteComponent)
            .join(Page, Page.id == SiteComponent.page_id)
            .join(Website, Website.id == Page.website_id)
            .where(SiteComponent.id == ref.id)
        )
    return (await db.execute(stmt)).scalar_one_or_none()
