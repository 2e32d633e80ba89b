from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..models import EventHeader, MCParticle
from .store_base import Store


@dataclass
class StoredEvent:
    header: EventHeader
    collections: dict[str, list[MCParticle]] = field(default_factory=dict)


class MemoryStore(Store):
    """Keeps committed events in process memory."""

    format_name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self.events: list[StoredEvent] = []
        self.finalized = False

    def commit_event(self, header: Optional[EventHeader] = None) -> None:
        header = header or EventHeader(event_number=len(self.events))
        self.events.append(StoredEvent(header=header, collections=self._staged()))

    def finalize(self) -> None:
        self.finalized = True

    def collection(self, event: int, name: str) -> list[MCParticle]:
        return self.events[event].collections[name]
