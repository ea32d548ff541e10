"""
API services - bridge FastAPI endpoints with the core library.
"""

from . import property_service

__all__ = ["property_service"]
