"""Test helpers: fake collaborators and document factories."""

import asyncio
from dataclasses import replace
from typing import Optional, Sequence

from docsearch.core.models.document import Document, FileKind
from docsearch.core.strategies.scoring import cosine_similarity

TEST_SECRET = "test-secret-for-docsearch-access-tokens-0123456789"


class FakeEmbedder:
    """Embedder returning the vector of the first key contained in the text."""

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        failures: Optional[dict[str, Exception]] = None,
        default: Optional[list[float]] = None,
        delay: float = 0.0,
    ):
        self.vectors = vectors or {}
        self.failures = failures or {}
        self.default = default if default is not None else [0.0, 0.0, 1.0]
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            for key, error in self.failures.items():
                if key in text:
                    raise error
            for key, vector in self.vectors.items():
                if key in text:
                    return list(vector)
            return list(self.default)
        finally:
            self.in_flight -= 1

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)

    async def close(self) -> None:
        return None


class FakeTextGenerator:
    def __init__(self, summary: str = "short summary", enhanced: Optional[str] = None,
                 fail: bool = False):
        self.summary = summary
        self.enhanced = enhanced
        self.fail = fail
        self.summarized: list[str] = []
        self.enhanced_queries: list[str] = []

    async def summarize(self, text: str) -> str:
        self.summarized.append(text)
        if self.fail:
            raise RuntimeError("generator offline")
        return self.summary

    async def enhance_query(self, query: str) -> str:
        self.enhanced_queries.append(query)
        if self.fail:
            raise RuntimeError("generator offline")
        return self.enhanced if self.enhanced is not None else query

    async def close(self) -> None:
        return None


def make_document(
    text: str,
    name: Optional[str] = None,
    url: Optional[str] = None,
    file_kind: FileKind = FileKind.TEXT,
    embedding: Optional[Sequence[float]] = None,
    summary: Optional[str] = None,
    metadata: Optional[dict[str, str]] = None,
    access_token: Optional[str] = None,
) -> Document:
    name = name or f"{text.split()[0] if text else 'empty'}.txt"
    doc = Document.create(
        url=url or f"/docs/{name}",
        text=text,
        file_kind=file_kind,
        metadata=metadata,
        name=name,
        access_token=access_token,
    )
    return replace(
        doc,
        embedding=tuple(embedding) if embedding is not None else None,
        summary=summary,
    )
