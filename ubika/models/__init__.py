"""
SQLAlchemy models for the relational store.

Usage:
    from ubika.models import Property, PropertyImage
"""

from .base import Base
from .property import Property, PropertyFeature, PropertyFeatureAssignment, PropertyImage

__all__ = [
    "Base",
    "Property",
    "PropertyImage",
    "PropertyFeature",
    "PropertyFeatureAssignment",
]
