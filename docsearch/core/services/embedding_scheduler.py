"""Embedding scheduler - bounded-concurrency batch embedding."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..exceptions import DocSearchError
from ..models.document import Document
from ..models.events import SchedulerProgress
from ..protocols.embedder import EmbedderProtocol
from ..protocols.text_generator import TextGeneratorProtocol
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

ProgressListener = Callable[[SchedulerProgress], None]


@dataclass
class SchedulerReport:
    """Outcome of one scheduler run. Not persisted."""
    embedded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: bool = False

    @property
    def total(self) -> int:
        return len(self.embedded) + len(self.failed)


class EmbeddingScheduler:
    """Brings every unembedded document in the store up to date."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbedderProtocol,
        summarizer: Optional[TextGeneratorProtocol] = None,
        batch_size: int = 5,
        batch_pause: float = 0.1,
    ):
        """Initialize scheduler.

        Args:
            store: Document store.
            embedder: Embedding client.
            summarizer: Optional summary generator, used for documents without summary.
            batch_size: Documents embedded concurrently per batch.
            batch_pause: Seconds to wait between batches.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._store = store
        self._embedder = embedder
        self._summarizer = summarizer
        self._batch_size = batch_size
        self._batch_pause = batch_pause
        self._running = False
        self._listeners: list[ProgressListener] = []

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register progress listener; returns unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def run(self) -> SchedulerReport:
        """Embed all documents lacking an embedding.

        Batches run sequentially; documents within a batch concurrently.
        Failed documents stay unembedded for a future run.

        Returns:
            Report with embedded and failed document ids.
        """
        if self._running:
            logger.warning("Embedding run already in progress, skipping")
            return SchedulerReport(skipped=True)

        pending = self._store.unembedded()
        report = SchedulerReport()
        self._running = True
        self._publish(report, len(pending))

        try:
            if not pending:
                logger.info("No documents need embeddings")
                return report

            for start in range(0, len(pending), self._batch_size):
                batch = pending[start : start + self._batch_size]
                await asyncio.gather(*(self._process(doc, report) for doc in batch))
                self._publish(report, len(pending))

                logger.info(
                    f"Embedded batch: {report.total}/{len(pending)} "
                    f"({len(report.failed)} failed)"
                )

                if start + self._batch_size < len(pending) and self._batch_pause > 0:
                    await asyncio.sleep(self._batch_pause)

            logger.info(
                f"Embedding complete: {len(report.embedded)} embedded, "
                f"{len(report.failed)} failed"
            )
            return report
        finally:
            self._running = False
            self._publish(report, len(pending))

    async def embed_document(self, doc_id: str) -> bool:
        """Embed one document right away if it has no embedding.

        Returns:
            True if the document is embedded afterwards.
        """
        doc = self._store.get(doc_id)
        if doc.embedding is not None:
            return True
        report = SchedulerReport()
        await self._process(doc, report)
        return doc_id in report.embedded

    async def reembed_all(self) -> SchedulerReport:
        """Drop all embeddings and run a full re-embedding pass."""
        self._store.reset_embeddings()
        return await self.run()

    async def _process(self, doc: Document, report: SchedulerReport) -> None:
        """Summarize (if needed), embed and store one document.

        Errors are isolated to this document.
        """
        try:
            summary = await self._summarize(doc)
            embedding = await self._embedder.embed(doc.full_text)
            self._store.update(doc.id, lambda current: current.with_embedding(embedding, summary))
        except DocSearchError as e:
            logger.error(f"Error generating embedding for {doc.name}: {e}")
            report.failed[doc.id] = f"{type(e).__name__}: {e}"
            return
        except Exception as e:
            logger.exception(f"Unexpected error embedding {doc.name}: {e}")
            report.failed[doc.id] = f"{type(e).__name__}: {e}"
            return
        report.embedded.append(doc.id)

    async def _summarize(self, doc: Document) -> Optional[str]:
        if self._summarizer is None or doc.summary is not None:
            return None
        try:
            summary = await self._summarizer.summarize(doc.text)
        except Exception as e:
            logger.warning(f"Summary failed for {doc.name}: {e}")
            return None
        return summary.strip() or None

    def _publish(self, report: SchedulerReport, total: int) -> None:
        progress = SchedulerProgress(
            running=self._running,
            completed=len(report.embedded),
            failed=len(report.failed),
            total=total,
        )
        for listener in list(self._listeners):
            try:
                listener(progress)
            except Exception as e:
                logger.error(f"Progress listener failed: {e}")
