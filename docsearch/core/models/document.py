"""Document domain models."""
import math
import mimetypes
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence


class FileKind(str, Enum):
    """Kind of file a document was extracted from."""
    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    UNKNOWN = "unknown"

    @classmethod
    def from_path(cls, path: Path) -> "FileKind":
        """Detect file kind from extension / mime type."""
        suffix = path.suffix.lower()
        if suffix in TEXT_EXTENSIONS:
            return cls.TEXT
        if suffix == ".pdf":
            return cls.PDF

        mime, _ = mimetypes.guess_type(path.name)
        if not mime:
            return cls.UNKNOWN
        major = mime.split("/", 1)[0]
        if major == "text":
            return cls.TEXT
        if major in ("image", "video", "audio"):
            return cls(major)
        return cls.UNKNOWN


TEXT_EXTENSIONS = {
    ".txt", ".md", ".markdown", ".rst", ".csv", ".json", ".yaml", ".yml",
    ".xml", ".html", ".htm", ".rtf", ".log", ".docx",
}


@dataclass(frozen=True)
class Document:
    """Unit of storage and search."""
    id: str
    name: str
    text: str
    url: str
    file_kind: FileKind = FileKind.UNKNOWN
    metadata: dict[str, str] = field(default_factory=dict)
    summary: Optional[str] = None
    embedding: Optional[tuple[float, ...]] = None
    access_token: Optional[str] = None

    @classmethod
    def create(
        cls,
        url: str,
        text: str,
        file_kind: FileKind = FileKind.UNKNOWN,
        metadata: dict[str, str] | None = None,
        name: str | None = None,
        access_token: str | None = None,
    ) -> "Document":
        """Create a new unembedded document with a fresh id."""
        return cls(
            id=uuid.uuid4().hex,
            name=name if name is not None else Path(url).name,
            text=text,
            url=url,
            file_kind=file_kind,
            metadata=dict(metadata or {}),
            access_token=access_token,
        )

    @property
    def is_embedded(self) -> bool:
        return self.embedding is not None

    @property
    def is_multimedia(self) -> bool:
        return self.file_kind in (FileKind.IMAGE, FileKind.VIDEO, FileKind.AUDIO)

    @property
    def metadata_string(self) -> str:
        """Metadata as `key: value` lines, sorted by key."""
        return "".join(f"{key}: {self.metadata[key]}\n" for key in sorted(self.metadata))

    @property
    def full_text(self) -> str:
        """Exact text submitted to the embedding provider."""
        return f"Metadata:\n{self.metadata_string}\nContent:\n{self.text}"

    def with_embedding(
        self, embedding: Sequence[float], summary: Optional[str] = None
    ) -> "Document":
        """Copy with embedding set; an existing summary is kept."""
        return replace(
            self,
            embedding=tuple(embedding),
            summary=self.summary if self.summary is not None else summary,
        )

    def without_embedding(self) -> "Document":
        return replace(self, embedding=None)

    def matches(self, query: str, include_summary: bool = False) -> bool:
        """Case-insensitive substring match on name and text (and summary)."""
        needle = query.lower()
        if needle in self.name.lower() or needle in self.text.lower():
            return True
        return include_summary and self.summary is not None and needle in self.summary.lower()

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the persisted key order; absent optionals omitted."""
        data: dict[str, Any] = {"id": self.id, "name": self.name, "text": self.text}
        if self.embedding is not None:
            data["embedding"] = list(self.embedding)
        data["url"] = self.url
        data["fileKind"] = self.file_kind.value
        data["metadata"] = dict(self.metadata)
        if self.summary is not None:
            data["summary"] = self.summary
        if self.access_token is not None:
            data["accessToken"] = self.access_token
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Inverse of `to_dict`.

        Embedding numbers are kept as decoded (ints stay ints) so that
        re-encoding reproduces the persisted text.

        Raises:
            KeyError: A required key is missing.
            ValueError: A field has the wrong type or a value is not finite.
        """
        for key in ("id", "name", "text", "url"):
            _require_str(data, key)
        for key in ("summary", "accessToken"):
            if data.get(key) is not None:
                _require_str(data, key)

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in metadata.items()
        ):
            raise ValueError("metadata must map strings to strings")

        embedding = data.get("embedding")
        return cls(
            id=data["id"],
            name=data["name"],
            text=data["text"],
            url=data["url"],
            file_kind=FileKind(data.get("fileKind", FileKind.UNKNOWN.value)),
            metadata=dict(metadata),
            summary=data.get("summary"),
            embedding=_decode_embedding(embedding) if embedding is not None else None,
            access_token=data.get("accessToken"),
        )


def _require_str(data: dict[str, Any], key: str) -> None:
    if not isinstance(data[key], str):
        raise ValueError(f"{key} must be a string")


def _decode_embedding(values: Any) -> tuple[float, ...]:
    if not isinstance(values, list):
        raise ValueError("embedding must be a list")
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"embedding contains non-numeric value {v!r}")
        try:
            finite = math.isfinite(v)
        except OverflowError:
            finite = False
        if not finite:
            raise ValueError("embedding contains a non-finite value")
    return tuple(values)
