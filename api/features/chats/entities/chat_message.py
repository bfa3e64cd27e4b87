"""Chat message entity: one user/AI exchange inside a persona session."""
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, Index, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity
from api.shared.entities.types import UTCDateTime, utcnow


class ChatMessage(BaseEntity):
    """Message log row. Sessions are derived from these rows at query time."""

    # Insertion order; breaks timestamp ties
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True, default=lambda: str(uuid4())
    )

    # Ownership and grouping
    user: Mapped[str] = mapped_column(String(255), nullable=False)
    persona: Mapped[str] = mapped_column(String(255), nullable=False)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Content
    user_message: Mapped[str] = mapped_column(Text, nullable=False)
    ai_response: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Opaque attachment reference
    file_url: Mapped[Optional[str]] = mapped_column(String(2048))
    file_type: Mapped[Optional[str]] = mapped_column(String(255))

    __table_args__ = (
        Index("ix_chat_message_user_persona_timestamp", "user", "persona", "timestamp"),
        Index("ix_chat_message_user_session", "user", "session_id"),
    )
