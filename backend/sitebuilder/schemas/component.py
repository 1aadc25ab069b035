from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from sitebuilder.core.component_types import is_valid_component_type
from sitebuilder.schemas.ordering import PositionIn


class ComponentCreate(BaseModel):
    component_type: str = Field(..., max_length=40)
    props: Dict[str, Any] = Field(default_factory=dict)
    is_visible: bool = True
    position: PositionIn = Field(default_factory=PositionIn)

    @field_validator("component_type")
    @classmethod
    def validate_component_type(cls, v: str) -> str:
        v = v.strip().lower()
        if not is_valid_component_type(v):
            raise ValueError(f"Unknown component type: {v}")
        return v


class ComponentUpdate(BaseModel):
    # component_type is fixed once created
    props: Optional[Dict[str, Any]] = None
    is_visible: Optional[bool] = None


class ComponentOut(BaseModel):
    id: uuid.UUID
    page_id: uuid.UUID
    component_type: str
    props: Dict[str, Any]
    is_visible: bool
    order_key: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
