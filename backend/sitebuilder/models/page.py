# backend/sitebuilder/models/page.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from sitebuilder.db.base import Base

# Byte-order comparison on Postgres so SQL ORDER BY agrees with str ordering.
ORDER_KEY_TYPE = String().with_variant(String(collation="C"), "postgresql")


class Page(Base):
    __tablename__ = "pages"
    __table_args__ = (
        UniqueConstraint("website_id", "order_key", name="uq_pages_website_order_key"),
        UniqueConstraint("website_id", "slug", name="uq_pages_website_slug"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    website_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("websites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)

    is_home: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    seo_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    seo_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    order_key: Mapped[str] = mapped_column(ORDER_KEY_TYPE, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def parent_id(self) -> uuid.UUID:
        return self.website_id


# At most one home page per website.
Index(
    "uq_pages_website_home",
    Page.website_id,
    unique=True,
    postgresql_where=Page.is_home.is_(True),
    sqlite_where=Page.is_home.is_(True),
)
