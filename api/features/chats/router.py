"""Router for the Chats feature."""
import logging
from typing import List, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.chats.controller import ChatController
from api.features.chats.dtos import (
    EditMessageRequest,
    ModifiedCountResponse,
    PostMessageRequest,
    SessionActionRequest,
)
from api.features.chats.models import MessageModel, SessionGroup, SessionSummary
from api.shared.auth import get_current_user
from api.shared.identity import AuthenticatedUser
from api.shared.db import get_db_session
from api.shared.dtos import HealthCheckResponse
from api.shared.exceptions import ChatStoreException
from api.shared.response import ResponseModel

router = APIRouter()
logger = logging.getLogger("chats.router")

ALL = "all"


def _optional_filter(value: Optional[str]) -> Optional[str]:
    """Map the client's ``"all"`` sentinel and blanks to no filter."""
    if value is None or not value.strip() or value == ALL:
        return None
    return value


@router.get("/health", response_model=ResponseModel[HealthCheckResponse])
async def health_check():
    return ResponseModel.success(
        data=HealthCheckResponse(status="healthy", dependencies={"database": "ok"}),
        message="Chat service is healthy",
    )


@router.post("", status_code=201, response_model=ResponseModel[MessageModel])
@inject
async def post_message(
    request: PostMessageRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Save a user message and the AI response to it."""
    try:
        message = await controller.post_message(
            request, user=current_user.id, db_session=db_session
        )
        return ResponseModel.success(data=message, message="Chat message saved")
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to save chat message")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=ResponseModel[List[MessageModel]])
@inject
async def get_messages(
    persona: Optional[str] = Query(None, description="Persona id, or 'all'"),
    session_id: Optional[str] = Query(None, description="Session id, or 'all'"),
    archived: Optional[bool] = Query(None, description="Filter by archive state"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Messages for the caller, oldest first."""
    try:
        messages = await controller.get_messages(
            user=current_user.id,
            persona=_optional_filter(persona),
            session_id=_optional_filter(session_id),
            archived=archived,
            db_session=db_session,
        )
        return ResponseModel.success(data=messages, message="Chat messages fetched")
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to fetch chat messages")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("", response_model=ResponseModel[MessageModel])
@inject
async def edit_message(
    request: EditMessageRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Edit the text of one of the caller's messages."""
    try:
        message = await controller.edit_message(
            request, user=current_user.id, db_session=db_session
        )
        return ResponseModel.success(data=message, message="Message updated successfully")
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to edit chat message")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/archive", response_model=ResponseModel[ModifiedCountResponse])
@inject
async def archive_session(
    request: SessionActionRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.archive_session(
            request, user=current_user.id, db_session=db_session
        )
        return ResponseModel.success(
            data=result, message=f"Archived {result.modified_count} messages"
        )
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to archive session")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/unarchive", response_model=ResponseModel[ModifiedCountResponse])
@inject
async def unarchive_session(
    request: SessionActionRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.unarchive_session(
            request, user=current_user.id, db_session=db_session
        )
        return ResponseModel.success(
            data=result, message=f"Unarchived {result.modified_count} messages"
        )
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to unarchive session")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/all", response_model=ResponseModel[List[SessionGroup]])
@inject
async def get_sessions_for_persona(
    persona: Optional[str] = Query(None, description="Persona id"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Every session the caller has with one persona, grouped."""
    try:
        sessions = await controller.get_sessions_for_persona(
            user=current_user.id, persona=persona, db_session=db_session
        )
        return ResponseModel.success(data=sessions, message="Sessions fetched")
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to fetch sessions for persona")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/recent", response_model=ResponseModel[List[SessionSummary]])
@inject
async def get_recent_sessions(
    persona: Optional[str] = Query(None, description="Restrict to one persona"),
    limit: Optional[int] = Query(None, description="Maximum sessions to return"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Latest non-archived sessions across personas, newest first."""
    try:
        sessions = await controller.get_recent_sessions(
            user=current_user.id,
            persona=_optional_filter(persona),
            limit=limit,
            db_session=db_session,
        )
        return ResponseModel.success(data=sessions, message="Recent sessions fetched")
    except ChatStoreException:
        raise
    except Exception as e:
        logger.exception("Failed to fetch recent sessions")
        raise HTTPException(status_code=500, detail=str(e))
