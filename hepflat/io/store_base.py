from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import EventHeader, MCParticle


class Store(ABC):
    """Append-only, event-segmented record store.

    The contract used by :class:`hepflat.writer.CollectionWriter`:

    * ``create_named_collection`` / ``register_for_write`` once, up front;
    * ``append`` stages records for the current event;
    * ``commit_event`` writes everything staged as one event, atomically;
    * ``clear_collection`` drops whatever is staged;
    * ``finalize`` writes stream-level trailers and releases resources.

    Implementations raise their native errors (``OSError``, pyarrow errors);
    the writer wraps them.
    """

    format_name: str = ""

    def __init__(self) -> None:
        self.stream_name: str = ""
        self.collections: dict[str, list[MCParticle]] = {}
        self.registered: list[str] = []

    def create_named_collection(self, name: str, *, stream: str = "events") -> Any:
        if self.stream_name and stream != self.stream_name:
            raise ValueError(f"store already holds stream {self.stream_name!r}, not {stream!r}")
        self.stream_name = stream
        self.collections.setdefault(name, [])
        return name

    def register_for_write(self, name: str) -> None:
        if name not in self.collections:
            raise ValueError(f"No collection named {name!r}")
        if name not in self.registered:
            self.registered.append(name)

    def append(self, handle: Any, record: MCParticle) -> None:
        self.collections[handle].append(record)

    def clear_collection(self, handle: Any) -> None:
        self.collections[handle].clear()

    @abstractmethod
    def commit_event(self, header: Optional[EventHeader] = None) -> None:
        ...

    @abstractmethod
    def finalize(self) -> None:
        ...

    def _staged(self) -> dict[str, list[MCParticle]]:
        return {name: list(self.collections[name]) for name in self.registered}
