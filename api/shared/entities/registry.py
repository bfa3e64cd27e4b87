"""Entity registry to ensure SQLAlchemy loads all table metadata.

Import all entity modules here so Alembic autogenerate and test fixtures
that call ``create_all`` can discover them.
"""
# Import base first to expose BaseEntity.metadata
from api.shared.entities.base import BaseEntity  # noqa: F401

# Feature: Chats
from api.features.chats.entities.chat_message import ChatMessage  # noqa: F401

# Feature: Personas (read-only directory)
from api.features.personas.entities.persona import Persona  # noqa: F401
