from uuid import UUID
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SegmentInput(BaseModel):
    """Writable fields of a segment (create and update)."""

    name: str = ""
    segment_query: str = ""
    description: Optional[str] = None

    @field_validator("name", "segment_query", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class Segment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    # =====================================================
    # IDENTITY
    # =====================================================
    id: int
    uuid: UUID

    # =====================================================
    # DEFINITION
    # =====================================================
    name: str
    segment_query: str = ""
    description: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # =====================================================
    # QUERY-ONLY
    # =====================================================
    # Size of the whole matching set of the listing query that produced
    # this row. Not a live subscriber count, never persisted. Left out of
    # model_dump(); the paginated listing adds it per row.
    total: int = Field(default=0, exclude=True)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Segment":
        return cls.model_validate(row)
