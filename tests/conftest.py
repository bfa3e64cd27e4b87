from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Set

import pytest

import api.features.chats.service as chat_service_module
from api.features.chats.models import MessageCreateModel, MessageModel
from api.features.chats.service import ChatService
from api.shared.entities.registry import BaseEntity
from api.shared.exceptions import PersonaResolutionError
from infra.resources import DatabaseResource

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakePersonaDirectory:
    def __init__(self, names: Dict[str, str], failing: Optional[Set[str]] = None):
        self.names = names
        self.failing = failing or set()
        self.calls = []

    async def resolve(self, persona_id: str) -> Optional[str]:
        self.calls.append(persona_id)
        if persona_id in self.failing:
            raise PersonaResolutionError(persona_id, "directory offline")
        return self.names.get(persona_id)


class Clock:
    """Deterministic replacement for the store's UTC clock."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def clock(monkeypatch):
    fake = Clock()
    monkeypatch.setattr(chat_service_module, "utcnow", fake)
    return fake


@pytest.fixture
async def database(tmp_path):
    resource = DatabaseResource(f"sqlite+aiosqlite:///{tmp_path / 'chats.db'}")
    await resource.init()
    async with resource.engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)
    yield resource
    await resource.shutdown()


@pytest.fixture
async def db_session(database):
    async with database.get_session() as session:
        yield session


@pytest.fixture
def persona_directory():
    return FakePersonaDirectory({"p1": "Ada", "p2": "Grace"})


@pytest.fixture
def chat_service(persona_directory):
    return ChatService(persona_directory=persona_directory)


@pytest.fixture
def append(chat_service, db_session):
    async def _append(
        user: str = "u1",
        persona: str = "p1",
        session_id: str = "s1",
        user_message: str = "hello",
        ai_response: str = "hi there",
        **extra,
    ) -> MessageModel:
        return await chat_service.append_message(
            MessageCreateModel(
                user=user,
                persona=persona,
                session_id=session_id,
                user_message=user_message,
                ai_response=ai_response,
                **extra,
            ),
            db_session=db_session,
        )

    return _append
