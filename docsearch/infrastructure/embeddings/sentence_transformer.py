import asyncio
import logging
from functools import cached_property
from typing import Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from docsearch.core.exceptions import EmbeddingError
from docsearch.core.strategies.scoring import cosine_similarity

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """On-device embedding backend; no credential needed."""

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        self._model_name = model_name

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    async def embed(self, text: str) -> list[float]:
        try:
            vector = await asyncio.to_thread(self._encode, text)
        except (OSError, RuntimeError, ValueError) as e:
            raise EmbeddingError(f"Local embedding failed: {e}") from e
        return vector

    def _encode(self, text: str) -> list[float]:
        embedding = np.asarray(self.model.encode(text, convert_to_numpy=True), dtype=np.float32)
        if not np.isfinite(embedding).all():
            raise ValueError("model produced non-finite values")
        return embedding.tolist()

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)

    async def close(self) -> None:
        return None
