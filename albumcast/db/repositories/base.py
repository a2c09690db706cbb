"""Base repository pattern for data access."""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlmodel import Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Generic repository over one SQLModel table."""

    def __init__(self, session: Session, model: Type[T]):
        """Initialize repository with session and model type.

        Args:
            session: SQLModel database session
            model: The model class this repository operates on
        """
        self.session: Any = session
        self.model = model

    def get(self, id: Any) -> Optional[T]:
        """Get entity by primary key."""
        return self.session.get(self.model, id)

    def add(self, entity: T) -> T:
        """Add new entity and flush it to obtain generated keys."""
        self.session.add(entity)
        self.session.flush()
        return entity

    def commit(self) -> None:
        """Commit transaction."""
        self.session.commit()
