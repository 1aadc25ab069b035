from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from sitebuilder.core.slugs import is_valid_subdomain


def _check_subdomain(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if not is_valid_subdomain(v):
        raise ValueError("Subdomain must be 3-40 characters: lowercase letters, digits and hyphens")
    return v


class WebsiteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    # Generated from the name when omitted
    subdomain: Optional[str] = None

    @field_validator("subdomain")
    @classmethod
    def validate_subdomain(cls, v: Optional[str]) -> Optional[str]:
        return _check_subdomain(v)


class WebsiteUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    subdomain: Optional[str] = None

    @field_validator("subdomain")
    @classmethod
    def validate_subdomain(cls, v: Optional[str]) -> Optional[str]:
        return _check_subdomain(v)


class WebsiteOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    subdomain: str
    published_at: Optional[datetime] = None
    last_published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
