import logging
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from ..models.document import Document
from ..models.search import RankedDocument

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 when the lengths differ, either vector has zero magnitude
    or a component is not finite.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if not (np.isfinite(va).all() and np.isfinite(vb).all()):
        return 0.0
    norm_product = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm_product == 0.0:
        return 0.0

    similarity = float(np.dot(va, vb)) / norm_product
    return max(-1.0, min(1.0, similarity))


class ScoringStrategy(ABC):
    """Base class for strategies turning a snapshot into ranked results."""

    @abstractmethod
    def apply(self, documents: Sequence[Document]) -> list[RankedDocument]:
        """Apply strategy to a store snapshot."""
        ...


class SemanticRankingStrategy(ScoringStrategy):
    """Rank embedded documents by similarity to the query embedding."""

    def __init__(self, query_embedding: Sequence[float]):
        """Initialize strategy.

        Args:
            query_embedding: Embedding of the (enhanced) query.
        """
        self._query_embedding = query_embedding

    def apply(self, documents: Sequence[Document]) -> list[RankedDocument]:
        """Score embedded documents; ties keep snapshot order."""
        scored = [
            RankedDocument(doc, cosine_similarity(self._query_embedding, doc.embedding))
            for doc in documents
            if doc.embedding is not None
        ]
        # list.sort is stable, so equal scores keep their relative order
        scored.sort(key=lambda r: r.score, reverse=True)

        if logger.isEnabledFor(logging.DEBUG) and scored:
            top_scores = ", ".join(f"{r.score:.3f}" for r in scored[:3])
            logger.debug(f"Semantic top-3 scores: [{top_scores}]")

        return scored


class SubstringMatchStrategy(ScoringStrategy):
    """Keep documents containing the query, in store order."""

    def __init__(self, query: str, include_summary: bool = False):
        """Initialize strategy.

        Args:
            query: Case-insensitive needle.
            include_summary: Also scan document summaries.
        """
        self._query = query
        self._include_summary = include_summary

    def apply(self, documents: Sequence[Document]) -> list[RankedDocument]:
        """Filter documents matching the query."""
        matched = [
            RankedDocument(doc)
            for doc in documents
            if doc.matches(self._query, include_summary=self._include_summary)
        ]
        logger.debug(f"Substring match: {len(matched)}/{len(documents)} for '{self._query}'")
        return matched
