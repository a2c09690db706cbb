"""Notification model - persisted user-facing notification records."""

import uuid as uuid_module
from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import Column, Field, SQLModel

from .base import JSONType, utcnow


class Notification(SQLModel, table=True):
    """Notification database model.

    Created once per recipient per fired report and never modified afterwards.
    """

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    notification_id: str = Field(
        default_factory=lambda: str(uuid_module.uuid4()),
        max_length=36,
        unique=True,
    )
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=255)
    body: str
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONType))
    created_at: datetime = Field(default_factory=utcnow)
