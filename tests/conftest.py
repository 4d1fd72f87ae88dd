"""Shared test fixtures."""

import pytest

from docsearch.core.exceptions import NetworkError
from docsearch.core.services.document_store import DocumentStore

from .utils import make_document


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def apple_rocket_store() -> DocumentStore:
    """Store with an apple pie and a rocket engine document."""
    store = DocumentStore()
    store.add(make_document("apple pie recipe", name="Doc1"))
    store.add(make_document("rocket engine design", name="Doc2"))
    return store


@pytest.fixture
def network_error() -> NetworkError:
    return NetworkError("connection reset")
