"""Error taxonomy for the embedding pipeline and search engine."""
from typing import Optional


class DocSearchError(Exception):
    """Base class for all docsearch errors."""


class EmbeddingError(DocSearchError):
    """Embedding provider could not produce a vector."""


class AuthError(EmbeddingError):
    """Missing or rejected provider credential."""


class NetworkError(EmbeddingError):
    """Transport failure or non-success status from the provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(EmbeddingError):
    """Provider response could not be decoded into a vector."""


class UnsupportedFileKindError(DocSearchError):
    """Extraction collaborator declined the file."""


class ResourceAccessDeniedError(DocSearchError):
    """Locator cannot be authorized or its token is stale."""


class DuplicateLocatorError(DocSearchError):
    """A document with the same source locator already exists."""

    def __init__(self, url: str):
        super().__init__(f"Document already exists for {url}")
        self.url = url


class NotFoundError(DocSearchError):
    """No document with the given id."""

    def __init__(self, doc_id: str):
        super().__init__(f"Document not found: {doc_id}")
        self.doc_id = doc_id


class DimensionMismatchError(DocSearchError):
    """Embedding dimension differs from the rest of the store."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Embedding dimension {actual} does not match store dimension {expected}"
        )
        self.expected = expected
        self.actual = actual


class PersistenceError(DocSearchError):
    """Stored documents could not be read or written."""
