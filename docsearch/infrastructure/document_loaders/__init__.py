"""Document loader implementations."""
from .base import LoadedFile
from .pdf_loader import PDFLoader
from .docx_loader import DocxLoader
from .text_loader import TextLoader
from .composite_loader import CompositeLoader, file_metadata

__all__ = ["LoadedFile", "PDFLoader", "DocxLoader", "TextLoader", "CompositeLoader", "file_metadata"]
