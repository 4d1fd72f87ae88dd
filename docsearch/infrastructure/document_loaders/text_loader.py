from pathlib import Path

from docsearch.core.models.document import TEXT_EXTENSIONS

from .base import LoadedFile


class TextLoader:

    extensions = frozenset(TEXT_EXTENSIONS - {".docx"})

    def read(self, file_path: Path) -> LoadedFile:
        raw = file_path.read_bytes()
        try:
            return LoadedFile(text=raw.decode("utf-8"), metadata={"Encoding": "utf-8"})
        except UnicodeDecodeError:
            return LoadedFile(text=raw.decode("latin-1"), metadata={"Encoding": "latin-1"})
