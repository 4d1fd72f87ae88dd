"""Ingest service - extraction, access tokens and store insertion."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import (
    DocSearchError,
    DuplicateLocatorError,
    ResourceAccessDeniedError,
    UnsupportedFileKindError,
)
from ..models.document import Document, FileKind
from ..protocols.access_manager import AccessManagerProtocol
from ..protocols.extractor import ExtractorProtocol
from .document_store import DocumentStore
from .embedding_scheduler import EmbeddingScheduler

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Outcome of ingesting several files."""
    added: list[Document] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class IngestService:
    """Turns files into unembedded documents in the store."""

    def __init__(
        self,
        store: DocumentStore,
        extractor: ExtractorProtocol,
        access_manager: AccessManagerProtocol,
        scheduler: Optional[EmbeddingScheduler] = None,
        concurrency: int = 4,
        embed_on_add: bool = False,
    ):
        """Initialize ingest service.

        Args:
            store: Document store.
            extractor: Text extraction collaborator.
            access_manager: Issues tokens for re-reading files later.
            scheduler: Used to embed new documents right away.
            concurrency: Max files extracted at once.
            embed_on_add: Embed each document immediately after adding it.
        """
        self._store = store
        self._extractor = extractor
        self._access_manager = access_manager
        self._scheduler = scheduler
        self._concurrency = max(1, concurrency)
        self._embed_on_add = embed_on_add

    async def add_path(self, path: str | Path) -> Document:
        """Extract one file and add it to the store.

        Raises:
            UnsupportedFileKindError: Extraction declined the file.
            ResourceAccessDeniedError: File cannot be authorized for reading.
            DuplicateLocatorError: File is already in the store.
        """
        path = Path(path).expanduser().resolve()
        url = str(path)
        file_kind = FileKind.from_path(path)

        if file_kind == FileKind.UNKNOWN or not self._extractor.supports(path):
            raise UnsupportedFileKindError(f"Unsupported file: {path.name}")
        if self._store.has_url(url):
            raise DuplicateLocatorError(url)

        token = self._access_manager.grant_access(url)
        text, metadata = await self._access_manager.with_access(token, url, self._extract)

        document = Document.create(
            url=url,
            text=text,
            file_kind=file_kind,
            metadata=metadata,
            access_token=token,
        )
        self._store.add(document)

        if self._embed_on_add and self._scheduler is not None:
            await self._scheduler.embed_document(document.id)
            document = self._store.get(document.id)

        return document

    async def add_paths(self, paths: Iterable[str | Path]) -> IngestReport:
        """Ingest several files concurrently; failures are logged and collected."""
        semaphore = asyncio.Semaphore(self._concurrency)
        report = IngestReport()

        async def ingest(path: str | Path) -> None:
            async with semaphore:
                try:
                    report.added.append(await self.add_path(path))
                except DocSearchError as e:
                    logger.error(f"Failed to add {path}: {e}")
                    report.failed[str(path)] = f"{type(e).__name__}: {e}"

        await asyncio.gather(*(ingest(p) for p in paths))
        logger.info(f"Ingested {len(report.added)} files, {len(report.failed)} failed")
        return report

    async def add_folder(self, folder: str | Path, recursive: bool = True) -> IngestReport:
        """Ingest every supported file below folder."""
        folder = Path(folder).expanduser()
        if not folder.is_dir():
            logger.error(f"Folder not found: {folder}")
            return IngestReport()

        pattern = "**/*" if recursive else "*"
        paths = sorted(
            p for p in folder.glob(pattern)
            if p.is_file() and not p.name.startswith(".") and self._extractor.supports(p)
        )
        return await self.add_paths(paths)

    async def reingest(self, doc_id: str) -> Document:
        """Re-extract a document from its source through its stored token.

        The re-extracted content becomes a new document replacing the old
        one. On failure the store is left untouched.

        Raises:
            NotFoundError: Unknown id.
            ResourceAccessDeniedError: Token missing, stale or unresolvable.
        """
        old = self._store.get(doc_id)
        if old.access_token is None:
            raise ResourceAccessDeniedError(f"No access token stored for {old.name}")

        text, metadata = await self._access_manager.with_access(
            old.access_token, old.url, self._extract
        )
        document = Document.create(
            url=old.url,
            text=text,
            file_kind=old.file_kind,
            metadata=metadata,
            name=old.name,
            access_token=old.access_token,
        )
        self._store.remove([old.id])
        self._store.add(document)
        logger.info(f"Re-extracted {old.name}")
        return document

    async def _extract(self, path: Path) -> tuple[str, dict[str, str]]:
        return await self._extractor.extract(path)
