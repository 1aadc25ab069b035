# sitebuilder/crud/websites.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.models.website import Website


async def count_websites(db: AsyncSession, tenant_id: uuid.UUID) -> int:
    stmt = select(func.count(Website.id)).where(Website.tenant_id == tenant_id)
    res = await db.execute(stmt)
    return int(res.scalar() or 0)


async def subdomain_taken(db: AsyncSession, subdomain: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    stmt = select(Website.id).where(Website.subdomain == subdomain)
    if exclude_id is not None:
        stmt = stmt.where(Website.id != exclude_id)
    return (await db.execute(stmt)).first() is not None
