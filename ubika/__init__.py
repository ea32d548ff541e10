"""
Ubika Listings Core Library.

This package provides the shared functionality for the listings web server
and the offline maintenance tooling: caching and cache invalidation, the
denormalized read-model, rate limiting, database models and logging.

Usage:
    # Cache
    from ubika.cache import CACHE_KEYS, get_cache

    # Config
    from ubika.config import get_settings, Settings

    # Logging
    from ubika.logging import get_logger, configure_logging
"""

__version__ = "1.0.0"

# Import directly from submodules:
#   from ubika.db import db
#   from ubika.config import get_settings
#   from ubika.logging import get_logger
