"""Table holding segment definitions."""

from uuid import UUID
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

class SegmentRecord(Base, TimestampMixin):
    __tablename__ = "segments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Generated once by the repository at creation; never updated.
    uuid: Mapped[UUID] = mapped_column(unique=True, nullable=False)

    name: Mapped[str] = mapped_column(String, nullable=False, index=True)

    # Boolean predicate over the subscribers table, e.g.
    # subscribers.attribs->>'city' = 'Hanoi'
    segment_query: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    description: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<SegmentRecord(id={self.id}, name='{self.name}')>"
