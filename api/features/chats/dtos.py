"""DTOs for the Chats feature.

Request bodies never carry the user; it always comes from the verified token.
"""
from typing import Optional

from pydantic import Field

from api.shared.dtos import BaseDTO


class PostMessageRequest(BaseDTO):
    """Save one user/AI exchange."""

    persona: Optional[str] = Field(default=None, description="Persona identifier")
    session_id: Optional[str] = Field(default=None, description="Session identifier")
    user_message: Optional[str] = Field(default=None, description="User text")
    ai_response: Optional[str] = Field(default=None, description="AI response text")
    file_url: Optional[str] = Field(default=None, alias="fileUrl", description="Attachment URL")
    file_type: Optional[str] = Field(default=None, alias="fileType", description="Attachment MIME type")


class SessionActionRequest(BaseDTO):
    """Archive or unarchive every message of a session."""

    session_id: Optional[str] = Field(default=None, description="Session identifier")


class ModifiedCountResponse(BaseDTO):
    """Result of a bulk archive transition."""

    modified_count: int = Field(alias="modifiedCount", description="Messages changed")


class EditMessageRequest(BaseDTO):
    """Replace the text of an existing message."""

    message_id: Optional[str] = Field(default=None, alias="messageId", description="Message identifier")
    new_text: Optional[str] = Field(default=None, alias="newText", description="New user text")
    new_ai_response: Optional[str] = Field(
        default=None, alias="newAIResponse", description="New AI response, if it changes too"
    )
