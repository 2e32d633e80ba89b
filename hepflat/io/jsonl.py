"""JSON-lines store.

Layout::

    {"kind": "hepflat.stream.v1", "stream": ..., "collections": [...], "units": {...}}
    {"kind": "hepflat.event.v1", "event_number": 1, "signal_process_id": 20, "collections": {"MCParticles": [...]}}
    ...
    {"kind": "hepflat.trailer.v1", "n_events": N}

Each event line is written with a single ``write`` call and flushed, so a
crash never leaves half an event behind a complete line.
"""

from __future__ import annotations

import json
from typing import Iterator, Optional

from ..models import EventHeader, MCParticle, MCParticleCollection
from ..provenance import stable_json_dumps
from ..schema import schema_name
from ..units import OUTPUT_LENGTH_UNIT, OUTPUT_MOMENTUM_UNIT
from .store_base import Store

HEADER_KIND = "hepflat.stream.v1"
EVENT_KIND = "hepflat.event.v1"
TRAILER_KIND = "hepflat.trailer.v1"


class JSONLinesStore(Store):
    format_name = "jsonl"

    def __init__(self, path: str, *, metadata: Optional[dict] = None):
        super().__init__()
        self.path = str(path)
        self.metadata = dict(metadata or {})
        self.n_events = 0
        self._f = None

    def _open(self):
        if self._f is not None:
            return
        self._f = open(self.path, "w", encoding="utf-8")
        header = {
            "kind": HEADER_KIND,
            "schema": schema_name("jsonl", "columnar"),
            "stream": self.stream_name,
            "collections": list(self.registered),
            "units": {"momentum": OUTPUT_MOMENTUM_UNIT.value, "length": OUTPUT_LENGTH_UNIT.value},
            "metadata": self.metadata,
        }
        self._f.write(stable_json_dumps(header) + "\n")

    def commit_event(self, header: Optional[EventHeader] = None) -> None:
        header = header or EventHeader(event_number=self.n_events)
        self._open()
        line = {
            "kind": EVENT_KIND,
            "event_number": header.event_number,
            "signal_process_id": header.signal_process_id,
            "collections": {name: [r.to_dict() for r in recs] for name, recs in self._staged().items()},
        }
        self._f.write(stable_json_dumps(line) + "\n")
        self._f.flush()
        self.n_events += 1

    def finalize(self) -> None:
        self._open()
        try:
            self._f.write(stable_json_dumps({"kind": TRAILER_KIND, "n_events": self.n_events}) + "\n")
        finally:
            self._f.close()


def read_jsonl_header(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        first = f.readline()
    header = json.loads(first) if first.strip() else {}
    if header.get("kind") != HEADER_KIND:
        raise ValueError(f"{path}: not a hepflat JSON-lines stream")
    return header


def read_jsonl_collections(path: str) -> Iterator[tuple[EventHeader, MCParticleCollection]]:
    """Yield ``(header, collection)`` per event and collection."""
    read_jsonl_header(path)
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line:
                continue
            obj = json.loads(line)
            if obj.get("kind") != EVENT_KIND:
                continue
            header = EventHeader(int(obj["event_number"]), int(obj.get("signal_process_id", 0)))
            for name, recs in obj["collections"].items():
                coll = MCParticleCollection(name=name)
                coll.extend(MCParticle.from_dict(r) for r in recs)
                yield header, coll
