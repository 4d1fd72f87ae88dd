from dataclasses import dataclass, field


@dataclass(frozen=True)
class LoadedFile:
    """Text and kind-specific metadata read from one file."""
    text: str
    metadata: dict[str, str] = field(default_factory=dict)
