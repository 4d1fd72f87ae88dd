"""Protocol interfaces for dependency injection."""
from .embedder import EmbedderProtocol
from .extractor import ExtractorProtocol
from .text_generator import TextGeneratorProtocol
from .access_manager import AccessManagerProtocol
from .repository import DocumentRepositoryProtocol

__all__ = [
    "EmbedderProtocol",
    "ExtractorProtocol",
    "TextGeneratorProtocol",
    "AccessManagerProtocol",
    "DocumentRepositoryProtocol",
]
