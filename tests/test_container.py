"""Tests for dependency wiring."""

import logging

import pytest

from docsearch.config.settings import DEFAULT_ACCESS_SECRET, Settings
from docsearch.container import Container, configure_container
from docsearch.core.protocols import EmbedderProtocol, TextGeneratorProtocol
from docsearch.core.services import (
    DocumentStore,
    EmbeddingScheduler,
    IngestService,
    SearchController,
    SearchService,
)
from docsearch.infrastructure.embeddings.openai_client import OpenAIEmbeddingClient
from docsearch.infrastructure.llm.openai_text_generator import OpenAITextGenerator
from docsearch.infrastructure.persistence.json_repository import (
    JsonDocumentRepository,
    StorePersister,
)

from .utils import TEST_SECRET, make_document


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        embedding_api_key="sk-test",
        store_path=str(tmp_path / "documents.json"),
        access_secret=TEST_SECRET,
        llm_enabled=False,
    )


def test_services_resolve_as_singletons(settings):
    container = configure_container(settings)

    for service in (DocumentStore, EmbeddingScheduler, SearchService, SearchController, IngestService):
        assert container.resolve(service) is container.resolve(service)
    assert isinstance(container.resolve(EmbedderProtocol), OpenAIEmbeddingClient)
    assert container.resolve_optional(TextGeneratorProtocol) is None
    with pytest.raises(KeyError):
        container.resolve(TextGeneratorProtocol)


def test_store_is_persisted_and_reloaded(settings):
    container = configure_container(settings)
    doc = make_document("apple pie recipe")
    container.resolve(DocumentStore).add(doc)

    reloaded = JsonDocumentRepository(settings.store_path).load()
    assert reloaded == [doc]

    container = configure_container(settings)
    assert container.resolve(DocumentStore).snapshot() == (doc,)


def test_persistence_can_be_disabled(settings, tmp_path):
    settings.persist_on_mutate = False
    container = configure_container(settings)

    container.resolve(DocumentStore).add(make_document("apple pie recipe"))

    assert not (tmp_path / "documents.json").exists()


def test_text_generator_registered_when_llm_enabled(settings):
    settings.llm_enabled = True
    container = configure_container(settings)

    generator = container.resolve_optional(TextGeneratorProtocol)

    assert isinstance(generator, OpenAITextGenerator)
    assert container.resolve(EmbeddingScheduler)._summarizer is generator


def test_default_access_secret_logs_warning(settings, caplog):
    settings.access_secret = DEFAULT_ACCESS_SECRET

    with caplog.at_level(logging.WARNING, logger="docsearch.container"):
        configure_container(settings)

    assert "DOCSEARCH_ACCESS_SECRET" in caplog.text


def test_configured_access_secret_does_not_warn(settings, caplog):
    with caplog.at_level(logging.WARNING, logger="docsearch.container"):
        configure_container(settings)

    assert "access token secret" not in caplog.text


class Closable:
    def __init__(self, name, closed):
        self.name = name
        self.closed = closed

    async def close(self):
        self.closed.append(self.name)


class First:
    pass


class Second:
    pass


class Unused:
    pass


@pytest.mark.asyncio
async def test_close_only_touches_built_instances_in_reverse_order():
    closed = []
    container = Container()
    container.register(First, lambda: Closable("first", closed))
    container.register(Second, lambda: Closable("second", closed))
    container.register(Unused, lambda: Closable("unused", closed))

    container.resolve(First)
    container.resolve(Second)
    await container.close()

    assert closed == ["second", "first"]


def test_override_replaces_factory():
    container = Container()
    container.register(First, First)
    pinned = First()

    container.override(First, pinned)

    assert container.resolve(First) is pinned
    assert container.resolve_optional(Second) is None


@pytest.mark.asyncio
async def test_persister_flushes_mutations_made_inside_event_loop(settings):
    settings.persist_delay = 60
    container = configure_container(settings)
    store = container.resolve(DocumentStore)
    doc = make_document("apple pie recipe")

    store.add(doc)
    await container.resolve(StorePersister).flush()

    assert JsonDocumentRepository(settings.store_path).load() == [doc]
