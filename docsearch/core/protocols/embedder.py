"""Embedder protocol for dependency injection."""
from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding service."""

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed. Empty text is forwarded to the provider.

        Returns:
            Embedding vector of 32-bit float values.

        Raises:
            AuthError: Credential missing or rejected.
            NetworkError: Transport failure or non-success status.
            ParseError: Response could not be decoded.
        """
        ...

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Compute cosine similarity between two vectors.

        Args:
            a: First vector.
            b: Second vector.

        Returns:
            Similarity in [-1, 1]; 0 for mismatched lengths or zero vectors.
        """
        ...

    async def close(self) -> None:
        """Release network or model resources."""
        ...
