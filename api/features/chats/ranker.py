"""Recency ranker: the most recently updated sessions, newest first.

The grouping and ordering steps are pure functions over a sequence that
is already sorted ascending by timestamp (ties in insertion order), so
"last message" means last in that order rather than max timestamp.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from api.features.chats.models import MessageModel, SessionSummary
from api.features.personas.directory import PersonaDirectory
from api.shared.exceptions import PersonaResolutionError

logger = structlog.get_logger("chats.ranker")


@dataclass
class SessionCandidate:
    session_id: str
    persona_id: str
    last_message: str
    last_ai_response: Optional[str]
    updated_at: datetime


def latest_per_session(
    messages: Sequence[MessageModel], *, empty_preview: str = "No message"
) -> List[SessionCandidate]:
    """One candidate per ``(session_id, persona)``, from its last message."""
    last: Dict[Tuple[str, str], MessageModel] = {}
    for message in messages:
        # Overwriting keeps the key's first-seen position
        last[(message.session_id, message.persona)] = message

    return [
        SessionCandidate(
            session_id=session_id,
            persona_id=persona_id,
            last_message=message.user_message or message.ai_response or empty_preview,
            last_ai_response=message.ai_response,
            updated_at=message.timestamp,
        )
        for (session_id, persona_id), message in last.items()
    ]


def rank_by_recency(
    candidates: Sequence[SessionCandidate], limit: int
) -> List[SessionCandidate]:
    """Newest first, truncated to ``limit``. Stable on equal timestamps."""
    ordered = sorted(candidates, key=lambda c: c.updated_at, reverse=True)
    return ordered[:limit]


async def resolve_persona_names(
    persona_ids: Sequence[str],
    directory: PersonaDirectory,
    *,
    unknown_name: str = "Unknown Persona",
) -> Dict[str, str]:
    """Look up display names concurrently; failures degrade to ``unknown_name``."""
    unique_ids = list(dict.fromkeys(persona_ids))

    async def _resolve(persona_id: str) -> str:
        try:
            name = await directory.resolve(persona_id)
        except Exception as e:
            failure = (
                e
                if isinstance(e, PersonaResolutionError)
                else PersonaResolutionError(persona_id, str(e) or type(e).__name__)
            )
            logger.warning(
                "persona.resolve_failed", persona_id=persona_id, error=failure.message
            )
            return unknown_name
        return name or unknown_name

    names = await asyncio.gather(*(_resolve(pid) for pid in unique_ids))
    return dict(zip(unique_ids, names))


async def recent_sessions(
    messages: Sequence[MessageModel],
    *,
    limit: int,
    directory: PersonaDirectory,
    unknown_name: str = "Unknown Persona",
    empty_preview: str = "No message",
) -> List[SessionSummary]:
    """Build the recent-sessions feed from non-archived, ascending messages."""
    ranked = rank_by_recency(
        latest_per_session(messages, empty_preview=empty_preview), limit
    )
    names = await resolve_persona_names(
        [c.persona_id for c in ranked], directory, unknown_name=unknown_name
    )
    summaries = [
        SessionSummary(
            session_id=c.session_id,
            persona_id=c.persona_id,
            persona_name=names[c.persona_id],
            last_message=c.last_message,
            last_ai_response=c.last_ai_response,
            updated_at=c.updated_at,
        )
        for c in ranked
    ]
    # Name resolution must not reorder; this sort is a stable no-op.
    summaries.sort(key=lambda s: s.updated_at, reverse=True)
    return summaries
