# sitebuilder/services/pages.py
from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.core.config import settings
from sitebuilder.core.errors import ResourceNotFound, SiteBuilderError, SlugTaken
from sitebuilder.core.logging import get_logger
from sitebuilder.crud.siblings import PageStore
from sitebuilder.models.page import Page
from sitebuilder.services.billing import PlanLimitsProvider, TenantPlanLimits
from sitebuilder.services.ordering import END, OrderedCollectionManager, Position

logger = get_logger(__name__)


def page_manager(
    db: AsyncSession,
    plan_limits: Optional[PlanLimitsProvider] = None,
) -> OrderedCollectionManager:
    return OrderedCollectionManager(
        PageStore(db),
        plan_limits or TenantPlanLimits(db),
        "max_pages_per_site",
        settings.ORDER_KEY_MAX_ATTEMPTS,
    )


async def _slug_in_use(db: AsyncSession, website_id: uuid.UUID, slug: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    stmt = select(Page.id).where(Page.website_id == website_id, Page.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Page.id != exclude_id)
    return (await db.execute(stmt)).first() is not None


async def _mark_home(db: AsyncSession, website_id: uuid.UUID, page_id: uuid.UUID) -> None:
    await db.execute(
        update(Page)
        .where(Page.website_id == website_id)
        .where(Page.id != page_id)
        .where(Page.is_home.is_(True))
        .values(is_home=False)
    )
    await db.execute(update(Page).where(Page.id == page_id).values(is_home=True))
    await db.commit()


async def _has_home_page(db: AsyncSession, website_id: uuid.UUID) -> bool:
    stmt = select(Page.id).where(Page.website_id == website_id, Page.is_home.is_(True))
    return (await db.execute(stmt)).first() is not None


async def set_home_page(db: AsyncSession, page: Page) -> Page:
    """Make ``page`` the only home page of its website."""
    await _mark_home(db, page.website_id, page.id)
    await db.refresh(page)
    return page


async def create_page(
    db: AsyncSession,
    manager: OrderedCollectionManager,
    website_id: uuid.UUID,
    *,
    title: str,
    slug: str,
    is_home: bool = False,
    seo_title: Optional[str] = None,
    seo_description: Optional[str] = None,
    position: Position = END,
) -> Page:
    if await _slug_in_use(db, website_id, slug):
        raise SlugTaken("A page with this slug already exists")

    first_page = await manager.store.count_by_parent(website_id) == 0

    page = await manager.insert(
        website_id,
        {
            "title": title.strip(),
            "slug": slug,
            "is_home": False,
            "seo_title": seo_title,
            "seo_description": seo_description,
        },
        position,
    )

    # The first page of a site is its home until another one is picked.
    if is_home or first_page:
        page = await set_home_page(db, page)
    return page


async def update_page(db: AsyncSession, page: Page, changes: Mapping[str, Any]) -> Page:
    slug = changes.get("slug")
    if slug is not None and slug != page.slug:
        if await _slug_in_use(db, page.website_id, slug, exclude_id=page.id):
            raise SlugTaken("A page with this slug already exists")

    for field, value in changes.items():
        if field == "title" and value is not None:
            value = value.strip()
        setattr(page, field, value)

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise SlugTaken("A page with this slug already exists") from exc
    await db.refresh(page)
    return page


async def _promote_first_page(db: AsyncSession, manager: OrderedCollectionManager, website_id: uuid.UUID) -> None:
    remaining = await manager.list_ordered(website_id).fetch()
    if remaining:
        await _mark_home(db, website_id, remaining[0].id)
        logger.info("Promoted page %s to home of website %s", remaining[0].id, website_id)


async def move_page(
    db: AsyncSession,
    manager: OrderedCollectionManager,
    page_id: uuid.UUID,
    position: Position,
    new_website_id: Optional[uuid.UUID] = None,
) -> Page:
    """
    Move a page within its website, or into another website of the same tenant.

    A page that changes website does not take its home flag along: the source
    website promotes its first remaining page, and the target keeps its home
    page or, having none, gets this one.
    """
    page = await manager.store.get(page_id)
    if page is None:
        raise ResourceNotFound("page", page_id)
    source_id, slug, was_home = page.website_id, page.slug, page.is_home

    if new_website_id is None or new_website_id == source_id:
        return await manager.move(page_id, position)

    if await _slug_in_use(db, new_website_id, slug):
        raise SlugTaken("A page with this slug already exists")

    if was_home:
        # Cleared before the key write; the target may already have a home page.
        await db.execute(update(Page).where(Page.id == page_id).values(is_home=False))
        await db.commit()

    try:
        moved = await manager.move(page_id, position, new_website_id)
    except SiteBuilderError:
        if was_home:
            await _mark_home(db, source_id, page_id)
        raise

    if was_home:
        await _promote_first_page(db, manager, source_id)
    if not await _has_home_page(db, new_website_id):
        await _mark_home(db, new_website_id, page_id)
    await db.refresh(moved)
    return moved


async def delete_page(db: AsyncSession, manager: OrderedCollectionManager, page_id: uuid.UUID) -> None:
    page = await manager.store.get(page_id)
    if page is None:
        raise ResourceNotFound("page", page_id)
    website_id, was_home = page.website_id, page.is_home

    await manager.delete(page_id)

    if was_home:
        await _promote_first_page(db, manager, website_id)
