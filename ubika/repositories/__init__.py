"""
Repository pattern implementations for data access.

Usage:
    from ubika.repositories import PropertyRepository

    with db.session() as session:
        repo = PropertyRepository(session)
        prop = repo.get_with_relations(property_id)
"""

from .base import BaseRepository
from .property_repository import PropertyRepository

__all__ = ["BaseRepository", "PropertyRepository"]
