"""Document persistence protocol for dependency injection."""
from typing import Protocol, Sequence, runtime_checkable

from ..models.document import Document


@runtime_checkable
class DocumentRepositoryProtocol(Protocol):
    """Protocol for loading and saving the document collection."""

    def load(self) -> list[Document]:
        """Load all documents in stored order."""
        ...

    def save(self, documents: Sequence[Document]) -> None:
        """Replace stored documents."""
        ...
