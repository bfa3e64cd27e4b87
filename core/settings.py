from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod", "test"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=True)


class PgDbSettings(CustomSettings):
    POSTGRES_ENGINE: str = Field(default="postgresql+asyncpg")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="persona_chat")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: PostgresDsn | str = Field(default="")
    DB_STATEMENT_TIMEOUT_MS: int = Field(default=8000)
    DB_LOCK_TIMEOUT_MS: int = Field(default=4000)

    @model_validator(mode="before")
    def validate_postgres_dsn(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            _built_uri = PostgresDsn.build(
                scheme=data.get("POSTGRES_ENGINE", "postgresql+asyncpg"),
                username=data.get("POSTGRES_USER", "postgres"),
                password=data.get("POSTGRES_PASSWORD", "postgres"),
                host=data.get("POSTGRES_HOST", "localhost"),
                port=int(data.get("POSTGRES_PORT", 5432)),
                path=data.get("POSTGRES_DB", "persona_chat"),
            ).unicode_string()
            data["DATABASE_URL"] = _built_uri
        return data


class AuthSettings(CustomSettings):
    """Settings for verifying bearer tokens issued by the auth service.

    Env vars:
    - JWT_SECRET
    - JWT_ALGORITHM
    - JWT_USER_CLAIM
    """

    JWT_SECRET: SecretStr = Field(default="your_jwt_secret")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_USER_CLAIM: str = Field(default="id")


class ChatSettings(CustomSettings):
    RECENT_SESSIONS_DEFAULT_LIMIT: int = Field(default=5)
    RECENT_SESSIONS_MAX_LIMIT: int = Field(default=100)
    UNKNOWN_PERSONA_NAME: str = Field(default="Unknown Persona")
    EMPTY_PREVIEW_TEXT: str = Field(default="No message")


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: PgDbSettings = Field(default_factory=PgDbSettings)
    AUTH: AuthSettings = Field(default_factory=AuthSettings)
    CHATS: ChatSettings = Field(default_factory=ChatSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
