# backend/sitebuilder/models/site_component.py

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from sitebuilder.db.base import Base
from sitebuilder.models.page import ORDER_KEY_TYPE


class SiteComponent(Base):
    __tablename__ = "site_components"
    __table_args__ = (
        UniqueConstraint("page_id", "order_key", name="uq_site_components_page_order_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    page_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # one of sitebuilder.core.component_types.COMPONENT_TYPES
    component_type: Mapped[str] = mapped_column(String(40), nullable=False)

    # opaque to the backend; rendered by the builder UI
    props: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    order_key: Mapped[str] = mapped_column(ORDER_KEY_TYPE, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def parent_id(self) -> uuid.UUID:
        return self.page_id
