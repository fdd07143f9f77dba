"""Public interface definitions for the catalog store and event providers.

Every external source the aggregation engine touches is accessed through
the abstract base classes in this package.  Concrete adapters live in
``src/providers/`` and are injected at startup in ``src/main.py``.

    Interface                  →  Concrete implementations
    ─────────────────────────────────────────────────────────────
    ICatalogStore              →  SQLiteCatalogStore
    IConcertEventProvider      →  TicketmasterProvider, SetlistFmProvider
"""

from src.interfaces.catalog_store import ICatalogStore
from src.interfaces.event_provider import IConcertEventProvider

__all__ = [
    "ICatalogStore",
    "IConcertEventProvider",
]
