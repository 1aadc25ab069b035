from __future__ import annotations

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from sitebuilder.services.ordering import END, START, After, Before, Position


class PositionIn(BaseModel):
    """
    Where to put an item among its siblings.

    {"type": "start"} | {"type": "end"} |
    {"type": "before", "sibling_id": ...} | {"type": "after", "sibling_id": ...}
    """

    type: Literal["start", "end", "before", "after"] = "end"
    sibling_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _sibling_required(self) -> "PositionIn":
        if self.type in ("before", "after") and self.sibling_id is None:
            raise ValueError(f"sibling_id is required for position type {self.type!r}")
        return self

    def to_position(self) -> Position:
        if self.type == "start":
            return START
        if self.type == "before":
            return Before(self.sibling_id)
        if self.type == "after":
            return After(self.sibling_id)
        return END


class MoveRequest(BaseModel):
    position: PositionIn
    # Optional new parent (website for pages, page for components)
    new_parent_id: Optional[uuid.UUID] = None


class ReorderRequest(BaseModel):
    ids: List[uuid.UUID] = Field(..., min_length=1)
