"""Subscribers: the population segment queries are evaluated against."""

import enum
from uuid import UUID
from typing import Any

from sqlalchemy import Enum, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

class SubscriberStatusEnum(enum.Enum):
    enabled = "enabled"
    disabled = "disabled"
    blocklisted = "blocklisted"

class Subscriber(Base, TimestampMixin):
    __tablename__ = "subscribers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[UUID] = mapped_column(
        unique=True,
        nullable=False,
        server_default=text("gen_random_uuid()"),
    )

    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    # Free-form attributes segment queries usually filter on.
    attribs: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    status: Mapped[SubscriberStatusEnum] = mapped_column(
        Enum(SubscriberStatusEnum, name="subscriber_status"),
        nullable=False,
        default=SubscriberStatusEnum.enabled,
        server_default=SubscriberStatusEnum.enabled.value,
    )
