from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr

# The owner role is never handed out through the team API.
AssignableRole = Literal["admin", "developer", "editor", "viewer"]


class TeamMemberAdd(BaseModel):
    email: EmailStr
    role: AssignableRole = "viewer"


class TeamMemberUpdate(BaseModel):
    role: Optional[AssignableRole] = None
    is_active: Optional[bool] = None


class TeamMemberOut(BaseModel):
    user_id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    role: str
    is_active: bool
    joined_at: datetime
