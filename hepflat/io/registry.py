from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..models import EventHeader, MCParticleCollection
from .reader_base import Reader
from .store_base import Store

CollectionReader = Callable[[str], Iterator[tuple[EventHeader, MCParticleCollection]]]


@dataclass(frozen=True)
class FormatHandlers:
    """What hepflat can do with a format.

    ``reader`` parses event graphs (inputs); ``store`` writes flat
    collections and ``collections`` reads them back (outputs).
    """

    reader: Optional[Callable[[], Reader]] = None
    store: Optional[Callable[..., Store]] = None
    collections: Optional[CollectionReader] = None


_REGISTRY: dict[str, FormatHandlers] = {}


def register(
    fmt: str,
    *,
    reader: Optional[Callable[[], Reader]] = None,
    store: Optional[Callable[..., Store]] = None,
    collections: Optional[CollectionReader] = None,
) -> None:
    _REGISTRY[fmt] = FormatHandlers(reader=reader, store=store, collections=collections)


def registered_formats() -> list[str]:
    return sorted(_REGISTRY)


def detect_format(filepath: str | Path) -> str:
    p = Path(filepath)
    suffixes = list(p.suffixes)
    if suffixes and suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    if not suffixes:
        raise ValueError(f"Cannot detect format from filename: {p}")
    ext = suffixes[-1].lower()
    ext_map = {
        ".hepmc": "hepmc3",
        ".hepmc3": "hepmc3",
        ".parquet": "parquet",
        ".pq": "parquet",
        ".jsonl": "jsonl",
        ".ndjson": "jsonl",
    }
    fmt = ext_map.get(ext)
    if fmt is None:
        raise ValueError(f"Unknown file extension '{ext}' in {p}")
    return fmt


def _handlers(fmt: str) -> FormatHandlers:
    if fmt not in _REGISTRY:
        raise ValueError(f"Unknown format: {fmt}")
    return _REGISTRY[fmt]


def get_reader(fmt: str) -> Reader:
    h = _handlers(fmt)
    if h.reader is None:
        raise ValueError(f"No reader registered for format: {fmt}")
    return h.reader()


def get_store(fmt: str, path: str, **kwargs) -> Store:
    h = _handlers(fmt)
    if h.store is None:
        raise ValueError(f"No store registered for format: {fmt}")
    return h.store(str(path), **kwargs)


def get_collection_reader(fmt: str) -> CollectionReader:
    h = _handlers(fmt)
    if h.collections is None:
        raise ValueError(f"Cannot read collections back from format: {fmt}")
    return h.collections
