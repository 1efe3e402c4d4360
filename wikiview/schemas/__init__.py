from wikiview.schemas.schemas import (
    NoticeResponse, ErrorResponse, LogEntryResponse, DiffResponse,
    ViewResponse,
    DeleteForm,
)

__all__ = [
    "NoticeResponse", "ErrorResponse", "LogEntryResponse", "DiffResponse",
    "ViewResponse",
    "DeleteForm",
]
