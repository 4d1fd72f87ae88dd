import asyncio
import logging
import mimetypes
from datetime import datetime
from pathlib import Path

from docsearch.core.exceptions import UnsupportedFileKindError

from .base import LoadedFile
from .docx_loader import DocxLoader
from .pdf_loader import PDFLoader
from .text_loader import TextLoader

logger = logging.getLogger(__name__)


class CompositeLoader:
    """Dispatches extraction to the loader registered for the file extension."""

    def __init__(self):
        self._loaders = [
            PDFLoader(),
            DocxLoader(),
            TextLoader(),
        ]

    def supports(self, file_path: Path) -> bool:
        return any(file_path.suffix.lower() in loader.extensions for loader in self._loaders)

    async def extract(self, file_path: Path) -> tuple[str, dict[str, str]]:
        """Extract text and merged metadata with a single read of the file."""
        loaded = await self._read(file_path)
        metadata = file_metadata(file_path)
        metadata.update(loaded.metadata)
        return loaded.text, metadata

    async def extract_text(self, file_path: Path) -> str:
        return (await self._read(file_path)).text

    async def extract_metadata(self, file_path: Path) -> dict[str, str]:
        _, metadata = await self.extract(file_path)
        return metadata

    async def _read(self, file_path: Path) -> LoadedFile:
        suffix = file_path.suffix.lower()
        loader = next((c for c in self._loaders if suffix in c.extensions), None)
        if loader is None:
            raise UnsupportedFileKindError(f"No extractor for {file_path.name}")

        try:
            return await asyncio.to_thread(loader.read, file_path)
        except Exception as e:
            logger.error(f"Failed to load {file_path}: {e}")
            raise UnsupportedFileKindError(f"Could not extract {file_path.name}: {e}") from e


def file_metadata(file_path: Path) -> dict[str, str]:
    """File-system attributes common to every kind."""
    stat = file_path.stat()
    metadata = {
        "Filename": file_path.name,
        "Extension": file_path.suffix.lstrip("."),
        "Size": f"{stat.st_size} bytes",
        "Modified": datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S"),
    }
    created = getattr(stat, "st_birthtime", None)
    if created is not None:
        metadata["Created"] = datetime.fromtimestamp(created).strftime("%Y-%m-%d %H:%M:%S")
    content_type, _ = mimetypes.guess_type(file_path.name)
    if content_type:
        metadata["ContentType"] = content_type
    return metadata
