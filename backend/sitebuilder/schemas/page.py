from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from sitebuilder.core.slugs import is_valid_page_slug
from sitebuilder.schemas.ordering import PositionIn

SLUG_RULE = "Slug must start with / and contain only lowercase letters, digits, hyphens and slashes"


def _check_slug(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not is_valid_page_slug(v):
        raise ValueError(SLUG_RULE)
    return v


class PageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., max_length=200)
    is_home: bool = False
    seo_title: Optional[str] = Field(None, max_length=200)
    seo_description: Optional[str] = None
    position: PositionIn = Field(default_factory=PositionIn)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_slug(v)


class PageUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=200)
    is_published: Optional[bool] = None
    seo_title: Optional[str] = Field(None, max_length=200)
    seo_description: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_slug(v)


class PageOut(BaseModel):
    id: uuid.UUID
    website_id: uuid.UUID
    title: str
    slug: str
    is_home: bool
    is_published: bool
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    order_key: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
