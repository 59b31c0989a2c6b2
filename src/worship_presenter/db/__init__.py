"""Database layer for the presenter.

Provides the read-only content library client and the setlist store.
"""

from worship_presenter.db.content_client import ContentClient, ContentNotFoundError
from worship_presenter.db.setlist_store import SetlistStore, SetlistStoreError, StoredSetlist

__all__ = [
    "ContentClient",
    "ContentNotFoundError",
    "SetlistStore",
    "SetlistStoreError",
    "StoredSetlist",
]
