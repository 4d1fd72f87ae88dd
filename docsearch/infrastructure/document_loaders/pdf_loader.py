import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .base import LoadedFile

logger = logging.getLogger(__name__)

_INFO_FIELDS = {
    "/Title": "Title",
    "/Author": "Author",
    "/Subject": "Subject",
    "/Creator": "Creator",
    "/Keywords": "Keywords",
}


class PDFLoader:
    """Extracts page text and document info from PDF files."""

    extensions = frozenset({".pdf"})

    def read(self, file_path: Path) -> LoadedFile:
        reader = PdfReader(file_path)

        pages = []
        for number, page in enumerate(reader.pages, 1):
            try:
                text = page.extract_text()
            except (PdfReadError, KeyError, ValueError) as e:
                logger.warning(f"Skipping unreadable page {number} of {file_path.name}: {e}")
                continue
            if text and text.strip():
                pages.append(text.strip())

        metadata = {"PageCount": str(len(reader.pages))}
        info = reader.metadata or {}
        for key, name in _INFO_FIELDS.items():
            value = info.get(key)
            if value:
                metadata[name] = str(value)

        return LoadedFile(text="\n\n".join(pages), metadata=metadata)
