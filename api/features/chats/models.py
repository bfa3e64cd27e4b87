"""Domain models for the Chats feature."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.features.chats.entities.chat_message import ChatMessage as ChatMessageEntity
from api.shared.dtos import BaseDTO


class MessageModel(BaseDTO):
    """A stored user/AI exchange."""

    id: str = Field(description="Message identifier")
    user: str = Field(description="Owner identifier")
    persona: str = Field(description="Persona identifier")
    session_id: str = Field(description="Session the message belongs to")
    user_message: str = Field(description="User text")
    ai_response: str = Field(description="AI response text")
    timestamp: datetime = Field(description="Creation time")
    archived: bool = Field(default=False, description="Soft-hidden by session archive")
    file_url: Optional[str] = Field(default=None, alias="fileUrl", description="Attachment URL")
    file_type: Optional[str] = Field(default=None, alias="fileType", description="Attachment MIME type")

    @classmethod
    def from_entity(cls, entity: ChatMessageEntity) -> "MessageModel":
        """Create model from database entity."""
        return cls(
            id=entity.id,
            user=entity.user,
            persona=entity.persona,
            session_id=entity.session_id,
            user_message=entity.user_message,
            ai_response=entity.ai_response,
            timestamp=entity.timestamp,
            archived=bool(entity.archived),
            file_url=entity.file_url,
            file_type=entity.file_type,
        )


class MessageCreateModel(BaseModel):
    """Model for appending a message to the log."""

    user: str
    persona: str
    session_id: str
    user_message: str
    ai_response: str
    file_url: Optional[str] = None
    file_type: Optional[str] = None

    def to_entity(self, timestamp: datetime) -> ChatMessageEntity:
        """Convert to database entity with the store-assigned timestamp."""
        return ChatMessageEntity(
            user=self.user,
            persona=self.persona,
            session_id=self.session_id,
            user_message=self.user_message,
            ai_response=self.ai_response,
            timestamp=timestamp,
            archived=False,
            file_url=self.file_url,
            file_type=self.file_type,
        )


class MessageFilter(BaseModel):
    """Optional equality filters for a message query. ``None`` means no filter."""

    model_config = ConfigDict(frozen=True)

    persona: Optional[str] = None
    session_id: Optional[str] = None
    archived: Optional[bool] = None


class SessionGroup(BaseDTO):
    """Chronological view of one session, dated by its first message."""

    session_id: str = Field(description="Session identifier")
    messages: List[MessageModel] = Field(description="Messages in chronological order")
    date: Optional[datetime] = Field(default=None, description="Timestamp of the first message")


class SessionSummary(BaseDTO):
    """One entry of the recent-sessions feed."""

    session_id: str = Field(description="Session identifier")
    persona_id: str = Field(description="Persona identifier")
    persona_name: Optional[str] = Field(default=None, description="Persona display name")
    last_message: str = Field(description="Preview of the latest exchange")
    last_ai_response: Optional[str] = Field(default=None, description="Latest AI response")
    updated_at: datetime = Field(description="Timestamp of the latest message")
