from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
        statement_timeout_ms=SETTINGS.DATABASE.DB_STATEMENT_TIMEOUT_MS,
        lock_timeout_ms=SETTINGS.DATABASE.DB_LOCK_TIMEOUT_MS,
    )

    # Identity provider (verifies tokens issued by the auth service)
    identity_provider = providers.Singleton(
        "api.shared.identity.JwtIdentityProvider",
        secret=SETTINGS.AUTH.JWT_SECRET.get_secret_value(),
        algorithm=SETTINGS.AUTH.JWT_ALGORITHM,
        user_claim=SETTINGS.AUTH.JWT_USER_CLAIM,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Read-only persona lookups, separate sessions from the request
    persona_directory = providers.Singleton(
        "api.features.personas.directory.SqlPersonaDirectory",
        database=infrastructure.database,
    )

    chat_service = providers.Factory(
        "api.features.chats.service.ChatService",
        persona_directory=persona_directory,
        unknown_persona_name=SETTINGS.CHATS.UNKNOWN_PERSONA_NAME,
        empty_preview_text=SETTINGS.CHATS.EMPTY_PREVIEW_TEXT,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    chat_controller = providers.Factory(
        "api.features.chats.controller.ChatController",
        chat_service=services.chat_service,
        default_recent_limit=SETTINGS.CHATS.RECENT_SESSIONS_DEFAULT_LIMIT,
        max_recent_limit=SETTINGS.CHATS.RECENT_SESSIONS_MAX_LIMIT,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.shared.db",
            "api.shared.auth",
            "api.features.chats.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
