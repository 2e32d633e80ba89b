from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from ..models import GenEvent


class Reader(ABC):
    @abstractmethod
    def iter_events(self, path: str) -> Iterator[GenEvent]:
        ...

    def read(self, path: str) -> list[GenEvent]:
        return list(self.iter_events(path))
