"""Base repository pattern and storage error translation."""
import asyncio
from abc import ABC
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, List, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from api.shared.exceptions import StorageUnavailable

T = TypeVar("T", bound=DeclarativeBase)

_UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncIterator[None]:
    """Translate driver timeouts and connection failures into StorageUnavailable."""
    try:
        yield
    except _UNAVAILABLE_ERRORS as e:
        raise StorageUnavailable(
            f"Storage unavailable during {operation}", {"error": str(e)}
        ) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise StorageUnavailable(
                f"Storage connection lost during {operation}", {"error": str(e)}
            ) from e
        raise


class BaseRepository(ABC, Generic[T]):
    """Base repository with common write and lookup operations."""

    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: T) -> T:
        """Create new entity."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def get_by_fields(self, **filters: Any) -> List[T]:
        """Get entities by multiple field values."""
        stmt = select(self.model)

        for field_name, value in filters.items():
            field = getattr(self.model, field_name)
            stmt = stmt.where(field == value)

        result = await self.session.execute(
            stmt.execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
