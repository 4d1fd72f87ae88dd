import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from docsearch.core.exceptions import PersistenceError
from docsearch.core.models.document import Document
from docsearch.core.models.events import StoreEvent

logger = logging.getLogger(__name__)


class JsonDocumentRepository:
    """Stores documents as one ordered JSON array."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def encode(documents: Sequence[Document]) -> str:
        """Serialize documents; absent optional fields are omitted."""
        return json.dumps([doc.to_dict() for doc in documents], ensure_ascii=False, indent=2)

    @staticmethod
    def decode(raw: str) -> list[Document]:
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("expected a JSON array")
            return [Document.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Invalid document data: {e}") from e

    def load(self) -> list[Document]:
        if not self._path.exists():
            logger.info(f"No document store at {self._path}, starting empty")
            return []
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read {self._path}: {e}") from e
        documents = self.decode(raw)
        logger.info(f"Loaded {len(documents)} documents from {self._path}")
        return documents

    def save(self, documents: Sequence[Document]) -> None:
        """Write atomically via a temp file in the same directory."""
        payload = self.encode(documents)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write {self._path}: {e}") from e
        logger.debug(f"Saved {len(documents)} documents to {self._path}")


class StorePersister:
    """Store listener that keeps the repository in sync with the store.

    Outside an event loop every mutation is saved right away. Inside one,
    mutations within `delay` seconds are coalesced into a single snapshot
    written from a worker thread, so a scheduler run neither rewrites the
    file per document nor blocks the loop. Call `flush()` before the loop
    shuts down.
    """

    def __init__(self, store, repository: JsonDocumentRepository, delay: float = 0.5):
        self._store = store
        self._repository = repository
        self._delay = delay
        self._dirty = False
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None

    def __call__(self, event: StoreEvent) -> None:
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save()
            return
        if self._task is None or self._task.done():
            self._wake = asyncio.Event()
            self._task = loop.create_task(self._save_later(self._wake))

    def save(self) -> None:
        self._dirty = False
        self._repository.save(self._store.snapshot())

    async def flush(self) -> None:
        """Write pending mutations now instead of after the delay.

        Raises:
            PersistenceError: Final write failed.
        """
        if self._task is not None:
            self._wake.set()
            await self._task
            self._task = None
        if self._dirty:
            await self._write()

    async def _save_later(self, wake: asyncio.Event) -> None:
        try:
            await asyncio.wait_for(wake.wait(), self._delay)
        except asyncio.TimeoutError:
            pass
        while self._dirty:
            try:
                await self._write()
            except PersistenceError as e:
                self._dirty = True
                logger.error(f"Failed to persist document store: {e}")
                return

    async def _write(self) -> None:
        self._dirty = False
        snapshot = self._store.snapshot()
        await asyncio.to_thread(self._repository.save, snapshot)
