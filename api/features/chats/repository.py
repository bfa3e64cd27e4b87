"""Repository for the chat message log."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import func, select, update

from api.features.chats.entities.chat_message import ChatMessage
from api.features.chats.models import MessageFilter
from api.shared.base import BaseRepository


class ChatMessageRepository(BaseRepository[ChatMessage]):
    """Queries over the message log. Sessions are never stored separately."""

    model = ChatMessage

    async def latest_timestamp(
        self, *, user: str, persona: str, session_id: str
    ) -> Optional[datetime]:
        """Timestamp of the newest message already stored for a session."""
        stmt = select(func.max(ChatMessage.timestamp)).where(
            ChatMessage.user == user,
            ChatMessage.persona == persona,
            ChatMessage.session_id == session_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find(self, *, user: str, filters: MessageFilter) -> List[ChatMessage]:
        """Messages for a user, ascending by timestamp then insertion order."""
        stmt = select(ChatMessage).where(ChatMessage.user == user)
        if filters.persona is not None:
            stmt = stmt.where(ChatMessage.persona == filters.persona)
        if filters.session_id is not None:
            stmt = stmt.where(ChatMessage.session_id == filters.session_id)
        if filters.archived is not None:
            stmt = stmt.where(ChatMessage.archived == filters.archived)
        stmt = stmt.order_by(ChatMessage.timestamp.asc(), ChatMessage.seq.asc())

        result = await self.session.execute(
            stmt.execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_owned(self, *, message_id: str, user: str) -> Optional[ChatMessage]:
        """Fetch a message only if ``user`` owns it."""
        entities = await self.get_by_fields(id=message_id, user=user)
        return entities[0] if entities else None

    async def update_text_owned(
        self, *, message_id: str, user: str, **values: Any
    ) -> int:
        """Update text fields of an owned message. Returns rows touched."""
        stmt = (
            update(ChatMessage)
            .where(ChatMessage.id == message_id, ChatMessage.user == user)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def set_archived(self, *, user: str, session_id: str, archived: bool) -> int:
        """Bulk-set the archive flag for a user's session.

        Only rows not already in the target state are touched, so the
        returned count is the number of messages actually changed.
        """
        stmt = (
            update(ChatMessage)
            .where(
                ChatMessage.user == user,
                ChatMessage.session_id == session_id,
                ChatMessage.archived != archived,
            )
            .values(archived=archived)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)
