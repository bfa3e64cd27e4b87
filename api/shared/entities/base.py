"""Shared base entity for all database models."""
import re

from sqlalchemy.orm import DeclarativeBase, declared_attr


class BaseEntity(DeclarativeBase):
    """Base class for all database entities."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate snake_case table name from class name."""
        return re.sub(r"(?<!^)(?=[A-Z])", "_", cls.__name__).lower()

    def __repr__(self) -> str:
        """String representation of the entity."""
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"
