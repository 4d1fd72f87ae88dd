"""Tests for the search service."""

import asyncio

import httpx
import pytest

from docsearch.core.models.search import SearchMode
from docsearch.core.services.embedding_scheduler import EmbeddingScheduler
from docsearch.core.services.search_service import SearchService
from docsearch.infrastructure.embeddings.openai_client import OpenAIEmbeddingClient

from .utils import FakeEmbedder, FakeTextGenerator, make_document

VECTORS = {
    "apple": [1.0, 0.0],
    "rocket": [0.0, 1.0],
    "dessert": [0.9, 0.1],
    "launch": [0.1, 0.9],
}


async def embedded_service(store, enhancer=None):
    embedder = FakeEmbedder(vectors=VECTORS)
    await EmbeddingScheduler(store, embedder, batch_pause=0).run()
    embedder.calls.clear()
    return SearchService(store, embedder, enhancer=enhancer), embedder


@pytest.mark.asyncio
async def test_empty_query_lists_all_in_store_order(apple_rocket_store):
    service, embedder = await embedded_service(apple_rocket_store)

    state = await service.search("")

    assert state.mode == SearchMode.ALL
    assert [d.name for d in state.documents] == ["Doc1", "Doc2"]
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_short_query_uses_substring_without_provider_call(apple_rocket_store):
    service, embedder = await embedded_service(apple_rocket_store)

    state = await service.search("pi")

    assert state.mode == SearchMode.SUBSTRING
    assert [d.name for d in state.documents] == ["Doc1"]
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_semantic_search_orders_by_similarity(apple_rocket_store):
    service, embedder = await embedded_service(apple_rocket_store)

    state = await service.search("dessert")

    assert state.mode == SearchMode.SEMANTIC
    assert [d.name for d in state.documents] == ["Doc1", "Doc2"]
    assert embedder.calls == ["dessert"]
    assert state.query_embedding == (0.9, 0.1)

    state = await service.search("launch")
    assert [d.name for d in state.documents] == ["Doc2", "Doc1"]


@pytest.mark.asyncio
async def test_semantic_search_excludes_unembedded(apple_rocket_store):
    service, _ = await embedded_service(apple_rocket_store)
    apple_rocket_store.add(make_document("fresh apple tart", name="Doc3"))

    state = await service.search("dessert")

    assert "Doc3" not in [d.name for d in state.documents]


@pytest.mark.asyncio
async def test_provider_failure_falls_back_to_substring(apple_rocket_store, network_error):
    service, embedder = await embedded_service(apple_rocket_store)
    embedder.failures["rocket"] = network_error

    state = await service.search("rocket")

    assert state.mode == SearchMode.FALLBACK
    assert [d.name for d in state.documents] == ["Doc2"]
    assert state.query_embedding is None


@pytest.mark.asyncio
async def test_fallback_matches_summary(store, network_error):
    store.add(make_document("plain body", name="notes.txt", summary="orbital mechanics primer"))
    service = SearchService(store, FakeEmbedder(failures={"orbital": network_error}))

    state = await service.search("orbital")

    assert [d.name for d in state.documents] == ["notes.txt"]


@pytest.mark.asyncio
async def test_enhanced_query_is_embedded(apple_rocket_store):
    enhancer = FakeTextGenerator(enhanced="apple dessert")
    service, embedder = await embedded_service(apple_rocket_store, enhancer=enhancer)

    state = await service.search("sweet things")

    assert enhancer.enhanced_queries == ["sweet things"]
    assert embedder.calls == ["apple dessert"]
    assert state.query == "sweet things"
    assert state.documents[0].name == "Doc1"


@pytest.mark.asyncio
async def test_enhancer_failure_uses_original_query(apple_rocket_store):
    service, embedder = await embedded_service(
        apple_rocket_store, enhancer=FakeTextGenerator(fail=True)
    )

    state = await service.search("dessert")

    assert embedder.calls == ["dessert"]
    assert state.mode == SearchMode.SEMANTIC


@pytest.mark.asyncio
async def test_cancelled_search_raises(apple_rocket_store):
    service, _ = await embedded_service(apple_rocket_store)
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(asyncio.CancelledError):
        await service.search("dessert", cancel_event=cancel_event)


@pytest.mark.asyncio
async def test_rank_reuses_query_embedding(apple_rocket_store):
    service, embedder = await embedded_service(apple_rocket_store)
    state = await service.search("launch")
    apple_rocket_store.remove([state.documents[0].id])

    refreshed = service.rank(state.query, state.query_embedding)

    assert [d.name for d in refreshed.documents] == ["Doc1"]
    assert embedder.calls == ["launch"]


@pytest.mark.asyncio
async def test_unrepresentable_query_vector_falls_back(apple_rocket_store):
    huge = "1" + "0" * 400

    def handler(request):
        return httpx.Response(200, content=('{"data": [{"embedding": [%s]}]}' % huge).encode())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = OpenAIEmbeddingClient(api_key="sk-test", client=http)
        state = await SearchService(apple_rocket_store, client).search("apple")

    assert state.mode == SearchMode.FALLBACK
    assert [d.name for d in state.documents] == ["Doc1"]
