"""
API Dependencies
================

Process-wide catalog for the server. Created on first use and restored
from the state store, so a restarted server keeps serving the last
uploaded catalog.
"""

from order_entry.config.settings import get_settings
from order_entry.services.catalog_source import LocalCatalogSource, build_local_source
from order_entry.services.state_store import StateStore
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

_catalog_source: LocalCatalogSource | None = None


def get_catalog_source() -> LocalCatalogSource:
    """
    Get the server's catalog source.

    Factory function for dependency injection.
    """
    global _catalog_source

    if _catalog_source is None:
        settings = get_settings()
        store = StateStore(settings.state_dir, prefix=settings.state_key_prefix)
        _catalog_source = build_local_source(settings, store)
        restored = _catalog_source.restore()
        if restored:
            logger.info("Saved catalog restored", products=restored)
    return _catalog_source
