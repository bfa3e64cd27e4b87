"""Persona entity. Owned by the persona service; this app only reads it."""
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, String, false
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity
from api.shared.entities.types import UTCDateTime, utcnow


class Persona(BaseEntity):
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Optional[str]] = mapped_column(String(255))
    department: Mapped[Optional[str]] = mapped_column(String(255))
    avatar: Mapped[Optional[str]] = mapped_column(String(2048))
    has_start_chat: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    traits: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
