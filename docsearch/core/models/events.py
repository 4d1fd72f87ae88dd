"""Change notifications published by the store and the scheduler."""
from dataclasses import dataclass
from enum import Enum


class StoreEventKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    UPDATED = "updated"
    CLEARED = "cleared"
    LOADED = "loaded"
    RESET = "reset"  # all embeddings dropped for a full re-embedding pass


@dataclass(frozen=True)
class StoreEvent:
    """Emitted after a store mutation."""
    kind: StoreEventKind
    ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class SchedulerProgress:
    """Progress of an embedding run, for progress UI."""
    running: bool
    completed: int = 0
    failed: int = 0
    total: int = 0
