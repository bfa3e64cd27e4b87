"""Controller for the Chats feature: the conversation store façade."""
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chats.dtos import (
    EditMessageRequest,
    ModifiedCountResponse,
    PostMessageRequest,
    SessionActionRequest,
)
from api.features.chats.models import (
    MessageCreateModel,
    MessageFilter,
    MessageModel,
    SessionGroup,
    SessionSummary,
)
from api.features.chats.service import ChatService
from api.shared.exceptions import ValidationError, require_fields


class ChatController:
    """Scopes every store operation to the authenticated user."""

    def __init__(
        self,
        chat_service: ChatService,
        default_recent_limit: int = 5,
        max_recent_limit: int = 100,
    ):
        self.chat_service = chat_service
        self.default_recent_limit = default_recent_limit
        self.max_recent_limit = max_recent_limit

    async def post_message(
        self, request: PostMessageRequest, *, user: str, db_session: AsyncSession
    ) -> MessageModel:
        require_fields(
            user=user,
            persona=request.persona,
            session_id=request.session_id,
            user_message=request.user_message,
            ai_response=request.ai_response,
        )
        create_model = MessageCreateModel(
            user=user,
            persona=request.persona,
            session_id=request.session_id,
            user_message=request.user_message,
            ai_response=request.ai_response,
            file_url=request.file_url,
            file_type=request.file_type,
        )
        return await self.chat_service.append_message(create_model, db_session=db_session)

    async def get_messages(
        self,
        *,
        user: str,
        persona: Optional[str] = None,
        session_id: Optional[str] = None,
        archived: Optional[bool] = None,
        db_session: AsyncSession,
    ) -> List[MessageModel]:
        filters = MessageFilter(persona=persona, session_id=session_id, archived=archived)
        return await self.chat_service.query_messages(
            user=user, filters=filters, db_session=db_session
        )

    async def archive_session(
        self, request: SessionActionRequest, *, user: str, db_session: AsyncSession
    ) -> ModifiedCountResponse:
        modified = await self.chat_service.archive_session(
            user=user, session_id=request.session_id, db_session=db_session
        )
        return ModifiedCountResponse(modified_count=modified)

    async def unarchive_session(
        self, request: SessionActionRequest, *, user: str, db_session: AsyncSession
    ) -> ModifiedCountResponse:
        modified = await self.chat_service.unarchive_session(
            user=user, session_id=request.session_id, db_session=db_session
        )
        return ModifiedCountResponse(modified_count=modified)

    async def get_sessions_for_persona(
        self, *, user: str, persona: Optional[str], db_session: AsyncSession
    ) -> List[SessionGroup]:
        return await self.chat_service.list_sessions(
            user=user, persona=persona, db_session=db_session
        )

    async def get_recent_sessions(
        self,
        *,
        user: str,
        persona: Optional[str] = None,
        limit: Optional[int] = None,
        db_session: AsyncSession,
    ) -> List[SessionSummary]:
        if limit is None:
            limit = self.default_recent_limit
        if limit < 1 or limit > self.max_recent_limit:
            raise ValidationError(
                f"limit must be between 1 and {self.max_recent_limit}.",
                {"limit": limit},
            )
        return await self.chat_service.recent_sessions(
            user=user, persona=persona, limit=limit, db_session=db_session
        )

    async def edit_message(
        self, request: EditMessageRequest, *, user: str, db_session: AsyncSession
    ) -> MessageModel:
        return await self.chat_service.edit_message(
            user=user,
            message_id=request.message_id,
            new_text=request.new_text,
            new_ai_response=request.new_ai_response,
            db_session=db_session,
        )
