"""Search service - semantic ranking with substring fallback."""

import asyncio
import logging
from typing import Optional, Sequence

from ..exceptions import EmbeddingError
from ..models.search import SearchMode, SearchState
from ..protocols.embedder import EmbedderProtocol
from ..protocols.text_generator import TextGeneratorProtocol
from ..strategies.scoring import SemanticRankingStrategy, SubstringMatchStrategy
from .document_store import DocumentStore

logger = logging.getLogger(__name__)


class SearchService:
    """Produces a similarity-ordered view of the store for a query."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbedderProtocol,
        enhancer: Optional[TextGeneratorProtocol] = None,
        min_query_length: int = 3,
    ):
        """Initialize search service.

        Args:
            store: Document store.
            embedder: Embedding client.
            enhancer: Optional query enhancement hook.
            min_query_length: Shorter queries skip semantic search.
        """
        self._store = store
        self._embedder = embedder
        self._enhancer = enhancer
        self._min_query_length = min_query_length

    async def search(
        self, query: str, cancel_event: Optional[asyncio.Event] = None
    ) -> SearchState:
        """Search documents.

        Args:
            query: Search query.
            cancel_event: Set by the caller when this search is superseded.

        Returns:
            New search state.

        Raises:
            asyncio.CancelledError: Search was superseded at a suspension point.
        """
        documents = self._store.snapshot()

        if not query:
            return SearchState.listing(documents)

        if len(query) < self._min_query_length:
            results = SubstringMatchStrategy(query).apply(documents)
            return SearchState(query=query, mode=SearchMode.SUBSTRING, results=tuple(results))

        enhanced = await self._enhance(query)
        self._check_cancelled(cancel_event)

        try:
            query_embedding = await self._embedder.embed(enhanced)
        except EmbeddingError as e:
            self._check_cancelled(cancel_event)
            logger.error(f"Error generating search embedding: {e}")
            results = SubstringMatchStrategy(query, include_summary=True).apply(documents)
            return SearchState(query=query, mode=SearchMode.FALLBACK, results=tuple(results))
        self._check_cancelled(cancel_event)

        state = self.rank(query, query_embedding, documents)
        logger.info(f"Search: ranked {len(state.results)}/{len(documents)} docs for '{query[:50]}'")
        return state

    def rank(
        self,
        query: str,
        query_embedding: Sequence[float],
        documents: Optional[Sequence] = None,
    ) -> SearchState:
        """Rank a snapshot against an already computed query embedding.

        Used to refresh results after the store changes without a new
        provider call.
        """
        if documents is None:
            documents = self._store.snapshot()
        results = SemanticRankingStrategy(query_embedding).apply(documents)
        return SearchState(
            query=query,
            mode=SearchMode.SEMANTIC,
            results=tuple(results),
            query_embedding=tuple(query_embedding),
        )

    async def _enhance(self, query: str) -> str:
        """Pass query through the enhancement hook, unchanged on failure."""
        if self._enhancer is None:
            return query
        try:
            enhanced = await self._enhancer.enhance_query(query)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Query enhancement failed, using original query: {e}")
            return query

        enhanced = enhanced.strip()
        if enhanced and enhanced != query:
            logger.debug(f"Enhanced search query: '{query}' -> '{enhanced}'")
        return enhanced or query

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError()
