"""Read-only persona directory used to label chat sessions."""
import asyncio
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from api.features.personas.entities.persona import Persona
from api.shared.exceptions import PersonaResolutionError
from infra.resources import DatabaseResource


class PersonaDirectory(Protocol):
    async def resolve(self, persona_id: str) -> Optional[str]:
        """Return the persona's display name, or ``None`` if unknown."""
        ...


class SqlPersonaDirectory:
    """Resolves names from the ``persona`` table.

    Each lookup opens its own short-lived session so lookups can run
    concurrently and never share the caller's transaction.
    """

    def __init__(self, database: DatabaseResource):
        self.database = database

    async def resolve(self, persona_id: str) -> Optional[str]:
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    select(Persona.name).where(Persona.id == persona_id)
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, asyncio.TimeoutError, OSError, RuntimeError) as e:
            raise PersonaResolutionError(persona_id, str(e)) from e
