"""Text extraction protocol for dependency injection."""
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ExtractorProtocol(Protocol):
    """Protocol for the per-file-type text extraction collaborator."""

    def supports(self, file_path: Path) -> bool:
        """Check whether the file can be extracted."""
        ...

    async def extract_text(self, file_path: Path) -> str:
        """Extract textual content.

        Raises:
            UnsupportedFileKindError: The file kind is not handled.
        """
        ...

    async def extract_metadata(self, file_path: Path) -> dict[str, str]:
        """Extract file attributes and format-specific metadata."""
        ...

    async def extract(self, file_path: Path) -> tuple[str, dict[str, str]]:
        """Extract text and metadata together.

        Returns:
            Tuple of (text, metadata).

        Raises:
            UnsupportedFileKindError: The file kind is not handled or unreadable.
        """
        ...
