import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from .config.settings import DEFAULT_ACCESS_SECRET, Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    """Lazily built, shared service instances keyed by interface.

    Every registration is built on first resolve and cached. Optional
    services (e.g. the text generator when no LLM is configured) are simply
    not registered and come back as None from `resolve_optional`.
    """

    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _instances: dict[type, Any] = field(default_factory=dict)

    def register(self, interface: type[T], factory: Callable[[], T]) -> None:
        self._factories[interface] = factory
        self._instances.pop(interface, None)

    def override(self, interface: type[T], instance: T) -> None:
        """Pin an already built instance, replacing any factory (for testing)."""
        self._factories[interface] = lambda: instance
        self._instances[interface] = instance

    def resolve(self, interface: type[T]) -> T:
        if interface not in self._instances:
            if interface not in self._factories:
                raise KeyError(f"No factory registered for {interface}")
            self._instances[interface] = self._factories[interface]()
        return self._instances[interface]

    def resolve_optional(self, interface: type[T]) -> Optional[T]:
        if interface not in self._factories:
            return None
        return self.resolve(interface)

    async def close(self) -> None:
        """Close built instances in reverse build order.

        Instances never resolved are left alone, so closing does not
        construct a client just to shut it down.
        """
        for interface, instance in reversed(list(self._instances.items())):
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.error(f"Failed to close {interface.__name__}: {e}")

    def reset(self) -> None:
        self._factories.clear()
        self._instances.clear()


container = Container()


def _build_embedder(settings: Settings):
    if settings.embedding_backend == "local":
        from .infrastructure.embeddings.sentence_transformer import (
            SentenceTransformerEmbedder,
        )

        return SentenceTransformerEmbedder(settings.local_embedding_model)

    from .infrastructure.embeddings.openai_client import OpenAIEmbeddingClient

    return OpenAIEmbeddingClient(
        api_key=settings.embedding_api_key,
        base_url=settings.embedding_base_url,
        model=settings.embedding_model,
        timeout=settings.embedding_timeout,
    )


def _build_text_generator(settings: Settings):
    from .infrastructure.llm.openai_text_generator import OpenAITextGenerator

    return OpenAITextGenerator(
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        api_key=settings.llm_api_key,
        summary_max_chars=settings.summary_max_chars,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.access_manager import AccessManagerProtocol
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.extractor import ExtractorProtocol
    from .core.protocols.repository import DocumentRepositoryProtocol
    from .core.protocols.text_generator import TextGeneratorProtocol
    from .core.services.document_store import DocumentStore
    from .core.services.embedding_scheduler import EmbeddingScheduler
    from .core.services.ingest_service import IngestService
    from .core.services.search_controller import SearchController
    from .core.services.search_service import SearchService
    from .infrastructure.access.token_access_manager import TokenAccessManager
    from .infrastructure.document_loaders import CompositeLoader
    from .infrastructure.persistence.json_repository import (
        JsonDocumentRepository,
        StorePersister,
    )

    container.reset()

    container.register(EmbedderProtocol, lambda: _build_embedder(settings))

    if settings.llm_enabled:
        container.register(
            TextGeneratorProtocol, lambda: _build_text_generator(settings)
        )

    container.register(ExtractorProtocol, CompositeLoader)

    if settings.access_secret == DEFAULT_ACCESS_SECRET:
        logger.warning(
            "Using the built-in access token secret, set DOCSEARCH_ACCESS_SECRET "
            "so access tokens cannot be forged"
        )

    container.register(
        AccessManagerProtocol,
        lambda: TokenAccessManager(
            secret=settings.access_secret,
            allowed_roots=settings.access_roots,
        ),
    )

    container.register(
        DocumentRepositoryProtocol,
        lambda: JsonDocumentRepository(settings.store_path),
    )

    def build_store() -> DocumentStore:
        repository = container.resolve(DocumentRepositoryProtocol)
        store = DocumentStore(repository.load())
        if settings.persist_on_mutate:
            persister = StorePersister(store, repository, delay=settings.persist_delay)
            store.subscribe(persister)
            container.override(StorePersister, persister)
        return store

    container.register(DocumentStore, build_store)

    container.register(
        EmbeddingScheduler,
        lambda: EmbeddingScheduler(
            store=container.resolve(DocumentStore),
            embedder=container.resolve(EmbedderProtocol),
            summarizer=container.resolve_optional(TextGeneratorProtocol),
            batch_size=settings.batch_size,
            batch_pause=settings.batch_pause,
        ),
    )

    container.register(
        SearchService,
        lambda: SearchService(
            store=container.resolve(DocumentStore),
            embedder=container.resolve(EmbedderProtocol),
            enhancer=container.resolve_optional(TextGeneratorProtocol),
            min_query_length=settings.min_query_length,
        ),
    )

    container.register(
        SearchController,
        lambda: SearchController(
            search_service=container.resolve(SearchService),
            quiet_window=settings.debounce_seconds,
        ),
    )

    container.register(
        IngestService,
        lambda: IngestService(
            store=container.resolve(DocumentStore),
            extractor=container.resolve(ExtractorProtocol),
            access_manager=container.resolve(AccessManagerProtocol),
            scheduler=container.resolve(EmbeddingScheduler),
            concurrency=settings.ingest_concurrency,
            embed_on_add=settings.embed_on_add,
        ),
    )

    logger.info("Container configured")
    return container
