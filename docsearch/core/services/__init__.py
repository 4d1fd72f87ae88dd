"""Core business services."""
from .document_store import DocumentStore
from .embedding_scheduler import EmbeddingScheduler, SchedulerReport
from .search_service import SearchService
from .search_controller import ControllerStatus, SearchController
from .ingest_service import IngestReport, IngestService

__all__ = [
    "DocumentStore",
    "EmbeddingScheduler",
    "SchedulerReport",
    "SearchService",
    "ControllerStatus",
    "SearchController",
    "IngestReport",
    "IngestService",
]
