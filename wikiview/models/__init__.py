from wikiview.models.models import (
    User,
    Namespace,
    Page,
    Revision,
    ArchivedRevision,
    RenderCacheEntry,
    LogEntry,
)

__all__ = [
    "User",
    "Namespace",
    "Page",
    "Revision",
    "ArchivedRevision",
    "RenderCacheEntry",
    "LogEntry",
]
