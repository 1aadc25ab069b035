from __future__ import annotations

import uuid
from typing import List

from pydantic import BaseModel


class MembershipOut(BaseModel):
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    capabilities: List[str] = []
    matrix_version: str
