"""Tests for the on-device embedding backend."""

import numpy as np
import pytest

from docsearch.core.exceptions import EmbeddingError
from docsearch.infrastructure.embeddings.sentence_transformer import SentenceTransformerEmbedder


class StubModel:
    def __init__(self, fail=False):
        self.fail = fail
        self.texts = []

    def encode(self, text, convert_to_numpy=True):
        self.texts.append(text)
        if self.fail:
            raise RuntimeError("CUDA out of memory")
        return np.array([0.5, 0.25, 0.125], dtype=np.float64)


def make_embedder(model) -> SentenceTransformerEmbedder:
    embedder = SentenceTransformerEmbedder("stub-model")
    embedder.__dict__["model"] = model
    return embedder


@pytest.mark.asyncio
async def test_embed_returns_float_list():
    model = StubModel()
    embedder = make_embedder(model)

    vector = await embedder.embed("apple pie")

    assert vector == [0.5, 0.25, 0.125]
    assert model.texts == ["apple pie"]


@pytest.mark.asyncio
async def test_model_failure_is_embedding_error():
    embedder = make_embedder(StubModel(fail=True))

    with pytest.raises(EmbeddingError):
        await embedder.embed("apple pie")


def test_similarity():
    embedder = make_embedder(StubModel())

    assert embedder.similarity([1.0, 1.0], [2.0, 2.0]) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_non_finite_output_is_embedding_error():
    model = StubModel()
    model.encode = lambda text, convert_to_numpy=True: np.array([np.nan, 1.0])
    embedder = make_embedder(model)

    with pytest.raises(EmbeddingError):
        await embedder.embed("apple pie")
