"""Base repository class with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ubika.db import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Usage:
        class PropertyRepository(BaseRepository[Property]):
            model = Property

        repo = PropertyRepository(session)
        prop = repo.get_by_id("3f2a...")
    """

    model: type[T]

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, id: Any) -> T | None:
        """Get a single record by primary key."""
        return self.session.get(self.model, id)

    def create(self, **kwargs) -> T:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        self.session.flush()
        return instance

    def update(self, id: Any, **kwargs) -> T | None:
        """Update an existing record. Unknown attributes are ignored."""
        instance = self.get_by_id(id)
        if instance:
            for key, value in kwargs.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)
            self.session.flush()
        return instance

    def delete(self, id: Any) -> bool:
        """Delete a record by primary key."""
        instance = self.get_by_id(id)
        if instance:
            self.session.delete(instance)
            self.session.flush()
            return True
        return False

    def count(self, **filters) -> int:
        """Get count of records, optionally filtered."""
        stmt = select(func.count()).select_from(self.model)
        for key, value in filters.items():
            if key not in self.model.__table__.columns:
                raise ValueError(f"Unknown filter key: {key}")
            stmt = stmt.where(getattr(self.model, key) == value)
        return self.session.scalar(stmt) or 0
