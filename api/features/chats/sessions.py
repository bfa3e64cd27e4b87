"""Session view: query-time grouping of the message log."""
from typing import Dict, List, Sequence

from api.features.chats.models import MessageModel, SessionGroup


def group_by_session(messages: Sequence[MessageModel]) -> Dict[str, List[MessageModel]]:
    """Partition an already-ordered sequence by ``session_id``.

    Sessions appear in first-seen order and messages keep their input
    order. Nothing is re-sorted.
    """
    sessions: Dict[str, List[MessageModel]] = {}
    for message in messages:
        sessions.setdefault(message.session_id, []).append(message)
    return sessions


def to_session_groups(messages: Sequence[MessageModel]) -> List[SessionGroup]:
    """Build the history view; each session is dated by its first message."""
    return [
        SessionGroup(
            session_id=session_id,
            messages=items,
            date=items[0].timestamp if items else None,
        )
        for session_id, items in group_by_session(messages).items()
    ]
