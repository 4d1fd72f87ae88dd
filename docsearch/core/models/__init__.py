"""Domain models."""
from .document import Document, FileKind
from .events import SchedulerProgress, StoreEvent, StoreEventKind
from .search import RankedDocument, SearchMode, SearchState

__all__ = [
    "Document",
    "FileKind",
    "SchedulerProgress",
    "StoreEvent",
    "StoreEventKind",
    "RankedDocument",
    "SearchMode",
    "SearchState",
]
