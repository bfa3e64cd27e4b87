"""Service layer for the Chats feature: message log, sessions, archive, recency."""
from typing import List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chats import ranker
from api.features.chats.models import (
    MessageCreateModel,
    MessageFilter,
    MessageModel,
    SessionGroup,
    SessionSummary,
)
from api.features.chats.repository import ChatMessageRepository
from api.features.chats.sessions import to_session_groups
from api.features.personas.directory import PersonaDirectory
from api.shared.base import storage_errors
from api.shared.entities.types import utcnow
from api.shared.exceptions import NotFoundError, ValidationError, require_fields

logger = structlog.get_logger("chats.service")


class ChatService:
    """Conversation store operations using the repository pattern."""

    def __init__(
        self,
        persona_directory: PersonaDirectory,
        unknown_persona_name: str = "Unknown Persona",
        empty_preview_text: str = "No message",
    ):
        self.persona_directory = persona_directory
        self.unknown_persona_name = unknown_persona_name
        self.empty_preview_text = empty_preview_text

    async def append_message(
        self, create_model: MessageCreateModel, *, db_session: AsyncSession
    ) -> MessageModel:
        """Append one exchange to the log; id and timestamp are assigned here."""
        require_fields(
            user=create_model.user,
            persona=create_model.persona,
            session_id=create_model.session_id,
            user_message=create_model.user_message,
            ai_response=create_model.ai_response,
        )
        repository = ChatMessageRepository(db_session)

        async with storage_errors("append"):
            try:
                latest = await repository.latest_timestamp(
                    user=create_model.user,
                    persona=create_model.persona,
                    session_id=create_model.session_id,
                )
                now = utcnow()
                # Never move backwards within a session
                timestamp = latest if latest is not None and latest > now else now
                entity = await repository.create(create_model.to_entity(timestamp))
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

        logger.info(
            "chat.appended",
            message_id=entity.id,
            user=entity.user,
            persona=entity.persona,
            session_id=entity.session_id,
        )
        return MessageModel.from_entity(entity)

    async def edit_message(
        self,
        *,
        user: str,
        message_id: str,
        new_text: str,
        new_ai_response: Optional[str] = None,
        db_session: AsyncSession,
    ) -> MessageModel:
        """Replace the text of a message owned by ``user``.

        Ownership is checked by the UPDATE itself, so a message that is
        gone or owned by someone else at write time is reported as not
        found rather than silently skipped.
        """
        require_fields(user=user, messageId=message_id, newText=new_text)
        if new_ai_response is not None and not new_ai_response.strip():
            raise ValidationError(
                "newAIResponse cannot be empty when provided.",
                {"field": "newAIResponse"},
            )

        values = {"user_message": new_text}
        if new_ai_response is not None:
            values["ai_response"] = new_ai_response

        repository = ChatMessageRepository(db_session)
        async with storage_errors("edit"):
            try:
                touched = await repository.update_text_owned(
                    message_id=message_id, user=user, **values
                )
                if touched == 0:
                    await db_session.rollback()
                    raise NotFoundError("Message", message_id)
                await db_session.commit()
            except NotFoundError:
                raise
            except Exception:
                await db_session.rollback()
                raise
            entity = await repository.get_owned(message_id=message_id, user=user)

        if entity is None:
            raise NotFoundError("Message", message_id)
        logger.info("chat.edited", message_id=message_id, user=user)
        return MessageModel.from_entity(entity)

    async def query_messages(
        self, *, user: str, filters: MessageFilter, db_session: AsyncSession
    ) -> List[MessageModel]:
        """Messages for ``user`` matching ``filters``, oldest first."""
        require_fields(user=user)
        repository = ChatMessageRepository(db_session)
        async with storage_errors("query"):
            entities = await repository.find(user=user, filters=filters)
        return [MessageModel.from_entity(e) for e in entities]

    async def list_sessions(
        self, *, user: str, persona: str, db_session: AsyncSession
    ) -> List[SessionGroup]:
        """All of a user's sessions with one persona, grouped chronologically."""
        require_fields(user=user, persona=persona)
        messages = await self.query_messages(
            user=user, filters=MessageFilter(persona=persona), db_session=db_session
        )
        return to_session_groups(messages)

    async def set_archived(
        self,
        *,
        user: str,
        session_id: str,
        archived: bool,
        db_session: AsyncSession,
    ) -> int:
        """Bulk-move every message of a user's session to the target state.

        Idempotent: re-running with the same target modifies nothing and
        returns 0. A partially applied run is repaired by running it again.
        """
        require_fields(user=user, session_id=session_id)
        repository = ChatMessageRepository(db_session)
        async with storage_errors("archive" if archived else "unarchive"):
            try:
                modified = await repository.set_archived(
                    user=user, session_id=session_id, archived=archived
                )
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

        logger.info(
            "chat.session_archived" if archived else "chat.session_unarchived",
            user=user,
            session_id=session_id,
            modified_count=modified,
        )
        return modified

    async def archive_session(
        self, *, user: str, session_id: str, db_session: AsyncSession
    ) -> int:
        return await self.set_archived(
            user=user, session_id=session_id, archived=True, db_session=db_session
        )

    async def unarchive_session(
        self, *, user: str, session_id: str, db_session: AsyncSession
    ) -> int:
        return await self.set_archived(
            user=user, session_id=session_id, archived=False, db_session=db_session
        )

    async def recent_sessions(
        self,
        *,
        user: str,
        persona: Optional[str] = None,
        limit: int = 5,
        db_session: AsyncSession,
    ) -> List[SessionSummary]:
        """Most recently updated non-archived sessions, newest first."""
        require_fields(user=user)
        if limit < 1:
            raise ValidationError("limit must be at least 1.", {"limit": limit})

        messages = await self.query_messages(
            user=user,
            filters=MessageFilter(persona=persona, archived=False),
            db_session=db_session,
        )
        summaries = await ranker.recent_sessions(
            messages,
            limit=limit,
            directory=self.persona_directory,
            unknown_name=self.unknown_persona_name,
            empty_preview=self.empty_preview_text,
        )
        logger.debug(
            "chat.recent_sessions",
            user=user,
            persona=persona,
            sessions=[(s.session_id, s.updated_at.isoformat()) for s in summaries],
        )
        return summaries
