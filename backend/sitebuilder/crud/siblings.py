# sitebuilder/crud/siblings.py
from __future__ import annotations

import uuid
from typing import Any, ClassVar, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.core.errors import InternalError, OrderKeyCollision, ResourceNotFound, SlugTaken
from sitebuilder.core.logging import get_logger
from sitebuilder.models.page import Page
from sitebuilder.models.site_component import SiteComponent
from sitebuilder.models.website import Website

logger = get_logger(__name__)


class SqlSiblingStore:
    """
    Row-level persistence for one kind of ordered entity.

    Every write is a single row committed on its own. The unique
    (parent, order_key) constraint is what serializes concurrent editors:
    a violation comes back as OrderKeyCollision so the caller can recompute.
    """

    model: ClassVar[type]
    parent_attr: ClassVar[str]
    kind: ClassVar[str]
    parent_kind: ClassVar[str]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @property
    def _parent_column(self):
        return getattr(self.model, self.parent_attr)

    # -----------------------------
    # Reads
    # -----------------------------
    async def get(self, entity_id: uuid.UUID):
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def list_by_parent(self, parent_id: uuid.UUID) -> List[Any]:
        stmt = (
            select(self.model)
            .where(self._parent_column == parent_id)
            .order_by(self.model.order_key)
            .execution_options(populate_existing=True)
        )
        res = await self.db.execute(stmt)
        return list(res.scalars().all())

    async def count_by_parent(self, parent_id: uuid.UUID) -> int:
        stmt = select(func.count(self.model.id)).where(self._parent_column == parent_id)
        res = await self.db.execute(stmt)
        return int(res.scalar() or 0)

    async def parent_tenant_id(self, parent_id: uuid.UUID) -> Optional[uuid.UUID]:
        raise NotImplementedError

    # -----------------------------
    # Writes
    # -----------------------------
    async def insert(self, parent_id: uuid.UUID, order_key: str, payload: Mapping[str, Any]):
        entity = self.model(**dict(payload), **{self.parent_attr: parent_id}, order_key=order_key)
        self.db.add(entity)
        await self._commit(parent_id, order_key)
        await self.db.refresh(entity)
        return entity

    async def update_key(
        self,
        entity_id: uuid.UUID,
        order_key: str,
        parent_id: Optional[uuid.UUID] = None,
    ):
        entity = await self.get(entity_id)
        if entity is None:
            raise ResourceNotFound(self.kind, entity_id)

        target_parent = parent_id if parent_id is not None else getattr(entity, self.parent_attr)
        entity.order_key = order_key
        if parent_id is not None:
            setattr(entity, self.parent_attr, parent_id)

        await self._commit(target_parent, order_key)
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity_id: uuid.UUID) -> None:
        entity = await self.get(entity_id)
        if entity is None:
            raise ResourceNotFound(self.kind, entity_id)
        parent_id, order_key = getattr(entity, self.parent_attr), entity.order_key
        await self.db.delete(entity)
        await self._commit(parent_id, order_key)

    async def _commit(self, parent_id: uuid.UUID, order_key: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            message = str(exc.orig)
            if "order_key" in message:
                raise OrderKeyCollision(parent_id, order_key) from exc
            if "slug" in message:
                raise SlugTaken("A page with this slug already exists") from exc
            logger.error("Integrity error writing %s under %s: %s", self.kind, parent_id, message)
            raise InternalError(f"failed to write {self.kind}") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Database error writing %s under %s", self.kind, parent_id, exc_info=True)
            raise InternalError(f"failed to write {self.kind}") from exc


class PageStore(SqlSiblingStore):
    """Pages ordered within a website."""

    model = Page
    parent_attr = "website_id"
    kind = "page"
    parent_kind = "website"

    async def parent_tenant_id(self, parent_id: uuid.UUID) -> Optional[uuid.UUID]:
        stmt = select(Website.tenant_id).where(Website.id == parent_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()


class ComponentStore(SqlSiblingStore):
    """Components ordered within a page."""

    model = SiteComponent
    parent_attr = "page_id"
    kind = "component"
    parent_kind = "page"

    async def parent_tenant_id(self, parent_id: uuid.UUID) -> Optional[uuid.UUID]:
        stmt = (
            select(Website.tenant_id)
            .join(Page, Page.website_id == Website.id)
            .where(Page.id == parent_id)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()
