"""Document store - authoritative ordered document collection."""

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Optional

from ..exceptions import DimensionMismatchError, DuplicateLocatorError, NotFoundError
from ..models.document import Document
from ..models.events import StoreEvent, StoreEventKind

logger = logging.getLogger(__name__)

StoreListener = Callable[[StoreEvent], None]

_IDENTITY_FIELDS = ("id", "name", "text", "url", "file_kind", "metadata", "access_token")


class DocumentStore:
    """Insertion-ordered document collection with a single-writer discipline.

    All mutations run under one lock. Readers iterate over snapshots, so a
    scheduler or ranker pass never observes a half-applied mutation.
    Listeners are notified after the lock is released.
    """

    def __init__(self, documents: Optional[Iterable[Document]] = None):
        self._lock = threading.RLock()
        self._documents: list[Document] = []
        self._index: dict[str, int] = {}
        self._listeners: list[StoreListener] = []
        if documents:
            self._replace_all(self._validated(list(documents)))

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        with self._lock:
            return doc_id in self._index

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register change listener.

        Returns:
            Callable removing the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> tuple[Document, ...]:
        """Immutable copy of the collection in insertion order."""
        with self._lock:
            return tuple(self._documents)

    def get(self, doc_id: str) -> Document:
        with self._lock:
            position = self._index.get(doc_id)
            if position is None:
                raise NotFoundError(doc_id)
            return self._documents[position]

    def has_url(self, url: str) -> bool:
        with self._lock:
            return any(doc.url == url for doc in self._documents)

    def unembedded(self) -> list[Document]:
        """Documents still lacking an embedding, in store order."""
        return [doc for doc in self.snapshot() if doc.embedding is None]

    @property
    def embedding_dimension(self) -> Optional[int]:
        """Dimension shared by embedded documents, None if none is embedded."""
        with self._lock:
            for doc in self._documents:
                if doc.embedding is not None:
                    return len(doc.embedding)
        return None

    def add(self, document: Document) -> None:
        """Append document.

        Raises:
            DuplicateLocatorError: Same source locator already stored.
        """
        with self._lock:
            if any(doc.url == document.url for doc in self._documents):
                raise DuplicateLocatorError(document.url)
            if document.id in self._index:
                raise ValueError(f"Duplicate document id: {document.id}")
            if document.embedding is not None:
                self._check_dimension(len(document.embedding), exclude_id=None)
            self._index[document.id] = len(self._documents)
            self._documents.append(document)

        logger.info(f"Added document: {document.name}")
        self._notify(StoreEvent(StoreEventKind.ADDED, (document.id,)))

    def remove(self, ids: Iterable[str]) -> int:
        """Remove documents by id; unknown ids are ignored.

        Returns:
            Number of removed documents.
        """
        wanted = set(ids)
        with self._lock:
            removed = tuple(doc.id for doc in self._documents if doc.id in wanted)
            if removed:
                self._replace_all([doc for doc in self._documents if doc.id not in wanted])

        if removed:
            logger.info(f"Removed {len(removed)} document(s)")
            self._notify(StoreEvent(StoreEventKind.REMOVED, removed))
        return len(removed)

    def clear(self) -> None:
        with self._lock:
            self._replace_all([])
        logger.info("Cleared all documents")
        self._notify(StoreEvent(StoreEventKind.CLEARED))

    def load(self, documents: Iterable[Document]) -> None:
        """Replace the collection with previously persisted documents."""
        documents = self._validated(list(documents))
        with self._lock:
            self._replace_all(documents)
        logger.info(f"Loaded {len(documents)} document(s)")
        self._notify(StoreEvent(StoreEventKind.LOADED, tuple(d.id for d in documents)))

    def update(self, doc_id: str, mutator: Callable[[Document], Document]) -> Document:
        """Apply mutator to one document's embedding/summary fields.

        Concurrent updates of the same id are applied in lock order, last
        write wins. A summary, once set, is never overwritten.

        Args:
            doc_id: Document id.
            mutator: Returns the updated document.

        Returns:
            The stored updated document.

        Raises:
            NotFoundError: Id absent (e.g. removed during a scheduler pass).
            DimensionMismatchError: Embedding dimension differs from the store.
            ValueError: Mutator changed an identity field.
        """
        with self._lock:
            position = self._index.get(doc_id)
            if position is None:
                raise NotFoundError(doc_id)

            current = self._documents[position]
            updated = mutator(current)

            changed = [f for f in _IDENTITY_FIELDS if getattr(updated, f) != getattr(current, f)]
            if changed:
                raise ValueError(f"Update may only change embedding/summary, got {changed}")

            if current.summary is not None and updated.summary != current.summary:
                updated = replace(updated, summary=current.summary)
            if updated.embedding is not None:
                self._check_dimension(len(updated.embedding), exclude_id=doc_id)

            self._documents[position] = updated

        self._notify(StoreEvent(StoreEventKind.UPDATED, (doc_id,)))
        return updated

    def reset_embeddings(self) -> int:
        """Drop every embedding so the next scheduler run re-embeds all.

        Returns:
            Number of documents whose embedding was dropped.
        """
        with self._lock:
            reset = tuple(doc.id for doc in self._documents if doc.embedding is not None)
            self._documents = [doc.without_embedding() for doc in self._documents]

        logger.info(f"Reset embeddings for {len(reset)} document(s)")
        self._notify(StoreEvent(StoreEventKind.RESET, reset))
        return len(reset)

    @staticmethod
    def _validated(documents: list[Document]) -> list[Document]:
        """Check persisted documents before they replace the collection.

        Mixed embedding dimensions drop every embedding so the next
        scheduler run re-embeds the whole collection with one model.

        Raises:
            DuplicateLocatorError: Two documents share a source locator.
            ValueError: Two documents share an id.
        """
        ids: set[str] = set()
        urls: set[str] = set()
        for doc in documents:
            if doc.id in ids:
                raise ValueError(f"Duplicate document id: {doc.id}")
            if doc.url in urls:
                raise DuplicateLocatorError(doc.url)
            ids.add(doc.id)
            urls.add(doc.url)

        dimensions = {len(doc.embedding) for doc in documents if doc.embedding is not None}
        if len(dimensions) > 1:
            logger.warning(
                f"Loaded embeddings have mixed dimensions {sorted(dimensions)}, "
                f"dropping all embeddings for a full re-embedding pass"
            )
            return [doc.without_embedding() for doc in documents]
        return documents

    def _replace_all(self, documents: list[Document]) -> None:
        self._documents = documents
        self._index = {doc.id: i for i, doc in enumerate(documents)}

    def _check_dimension(self, dimension: int, exclude_id: Optional[str]) -> None:
        for doc in self._documents:
            if doc.id == exclude_id or doc.embedding is None:
                continue
            if len(doc.embedding) != dimension:
                raise DimensionMismatchError(len(doc.embedding), dimension)
            return

    def _notify(self, event: StoreEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Store listener failed on {event.kind.value}: {e}")
