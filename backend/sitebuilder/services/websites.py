# sitebuilder/services/websites.py
from __future__ import annotations

import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.core.errors import PlanLimitExceeded, SlugTaken
from sitebuilder.core.logging import get_logger
from sitebuilder.core.plan_limits import get_next_plan
from sitebuilder.core.slugs import slugify
from sitebuilder.crud.websites import count_websites, subdomain_taken
from sitebuilder.models.website import Website
from sitebuilder.services.billing import PlanLimitsProvider

logger = get_logger(__name__)

_SUFFIX_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
_NON_SUBDOMAIN_RE = re.compile(r"[^a-z0-9-]")


def generate_subdomain(name: str) -> str:
    """'Pizza Palace' -> 'pizza-palace-x7k2'"""
    base = _NON_SUBDOMAIN_RE.sub("", slugify(name))[:35].strip("-") or "site"
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"{base}-{suffix}"


async def create_website(
    db: AsyncSession,
    plan_limits: PlanLimitsProvider,
    tenant_id: uuid.UUID,
    *,
    name: str,
    subdomain: Optional[str] = None,
) -> Website:
    limits = await plan_limits.get_plan_limits(tenant_id)
    current = await count_websites(db, tenant_id)
    if current >= limits.max_websites:
        raise PlanLimitExceeded("max_websites", current, limits.max_websites, get_next_plan(limits.plan))

    subdomain = subdomain or generate_subdomain(name)
    if await subdomain_taken(db, subdomain):
        raise SlugTaken("This subdomain is already in use")

    website = Website(tenant_id=tenant_id, name=name.strip(), subdomain=subdomain)
    db.add(website)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise SlugTaken("This subdomain is already in use") from exc
    await db.refresh(website)

    logger.info("Created website %s for tenant %s", website.id, tenant_id)
    return website


async def update_website(db: AsyncSession, website: Website, changes: Mapping[str, Any]) -> Website:
    subdomain = changes.get("subdomain")
    if subdomain is not None and subdomain != website.subdomain:
        if await subdomain_taken(db, subdomain, exclude_id=website.id):
            raise SlugTaken("This subdomain is already in use")
        website.subdomain = subdomain
    if changes.get("name") is not None:
        website.name = changes["name"].strip()

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise SlugTaken("This subdomain is already in use") from exc
    await db.refresh(website)
    return website


async def publish_website(db: AsyncSession, website: Website) -> Website:
    now = datetime.now(timezone.utc)
    website.published_at = website.published_at or now
    website.last_published_at = now
    await db.commit()
    await db.refresh(website)

    logger.info("Published website %s", website.id)
    return website


async def delete_website(db: AsyncSession, website: Website) -> None:
    """Delete a website; its pages and their components go with it."""
    website_id = website.id
    await db.delete(website)
    await db.commit()
    logger.info("Deleted website %s", website_id)
