"""
Services combining the relational store, the read-model and the cache.
"""

from ubika.services.property_sync import PropertyNotFoundError, load_sync_inputs, sync_property

__all__ = ["PropertyNotFoundError", "load_sync_inputs", "sync_property"]
