"""Search domain models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .document import Document


class SearchMode(Enum):
    """How a search state was produced."""
    ALL = "all"              # empty query: unranked listing
    SUBSTRING = "substring"  # query too short for semantic search
    SEMANTIC = "semantic"    # ranked by cosine similarity
    FALLBACK = "fallback"    # embedding failed, substring match


@dataclass(frozen=True)
class RankedDocument:
    """Document with its similarity to the query, if ranked."""
    document: Document
    score: Optional[float] = None


@dataclass(frozen=True)
class SearchState:
    """Result of evaluating one query against a store snapshot."""
    query: str = ""
    mode: SearchMode = SearchMode.ALL
    results: tuple[RankedDocument, ...] = ()
    query_embedding: Optional[tuple[float, ...]] = None

    @classmethod
    def listing(cls, documents: Sequence[Document]) -> "SearchState":
        """Unranked state listing every document in store order."""
        return cls(results=tuple(RankedDocument(doc) for doc in documents))

    @property
    def ranked_ids(self) -> list[str]:
        return [r.document.id for r in self.results]

    @property
    def documents(self) -> list[Document]:
        return [r.document for r in self.results]

    def score_for(self, doc_id: str) -> Optional[float]:
        for r in self.results:
            if r.document.id == doc_id:
                return r.score
        return None
