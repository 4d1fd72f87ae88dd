"""Text generation protocol for summary and query enhancement hooks."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGeneratorProtocol(Protocol):
    """Protocol for the summarization / query enhancement collaborator."""

    async def summarize(self, text: str) -> str:
        """Summarize document text briefly.

        Args:
            text: Raw document text.

        Returns:
            Short summary.
        """
        ...

    async def enhance_query(self, query: str) -> str:
        """Expand a search query with related terms.

        Args:
            query: User query.

        Returns:
            Enhanced query, or the original query if nothing was generated.
        """
        ...

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        ...
