from __future__ import annotations

from typing import Iterator, Optional

from ..models import EventHeader, MCParticle, MCParticleCollection
from ..provenance import stable_json_dumps
from ..schema import schema_name
from ..units import OUTPUT_LENGTH_UNIT, OUTPUT_MOMENTUM_UNIT
from .store_base import Store

LAYOUTS = ("flat", "columnar")


def _require_pyarrow():
    try:
        import pyarrow as pa  # type: ignore
        import pyarrow.parquet as pq  # type: ignore
    except ImportError as e:
        raise ImportError("Parquet support requires 'pyarrow'. Install hepflat[parquet].") from e
    return pa, pq


_META_PREFIX = "hepflat."


def _md_get(md: dict[str, str], key: str, default=None):
    return md.get(f"{_META_PREFIX}{key}", default)


def _md_set(md: dict[str, str], key: str, value) -> None:
    md[f"{_META_PREFIX}{key}"] = str(value)


def _record_fields(pa) -> list:
    vec = [pa.float64()] * 3
    return [
        pa.field("pdg", pa.int32()),
        pa.field("generator_status", pa.int32()),
        pa.field("charge", pa.float64()),
        *(pa.field(n, t) for n, t in zip(("px", "py", "pz"), vec)),
        *(pa.field(n, t) for n, t in zip(("vx", "vy", "vz"), vec)),
        *(pa.field(n, t) for n, t in zip(("ex", "ey", "ez"), vec)),
        pa.field("time", pa.float64()),
        pa.field("parents", pa.list_(pa.int32())),
        pa.field("daughters", pa.list_(pa.int32())),
    ]


def _event_fields(pa) -> list:
    return [
        pa.field("event_index", pa.int64()),
        pa.field("event_number", pa.int64()),
        pa.field("signal_process_id", pa.int32()),
        pa.field("collection", pa.string()),
    ]


def arrow_schema(layout: str = "flat"):
    pa, _ = _require_pyarrow()
    if layout == "flat":
        return pa.schema(_event_fields(pa) + [pa.field("index", pa.int32())] + _record_fields(pa))
    if layout == "columnar":
        return pa.schema(_event_fields(pa) + [pa.field("particles", pa.list_(pa.struct(_record_fields(pa))))])
    raise ValueError(f"layout must be one of {', '.join(LAYOUTS)}, got {layout!r}")


class ParquetStore(Store):
    """Parquet store; every commit becomes one Parquet row group.

    ``layout="flat"`` writes one row per record, ``layout="columnar"`` one
    row per event and collection. Events with no records have no rows in
    the flat layout. ``event_index`` counts commits, so events that share
    an ``event_number`` stay apart.
    """

    format_name = "parquet"

    def __init__(self, path: str, *, layout: str = "flat", metadata: Optional[dict] = None):
        super().__init__()
        if layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {', '.join(LAYOUTS)}, got {layout!r}")
        self.path = str(path)
        self.layout = layout
        self.metadata = dict(metadata or {})
        self.n_events = 0
        self._writer = None
        self._schema = None

    def _open(self):
        if self._writer is not None:
            return
        pa, pq = _require_pyarrow()
        md: dict[str, str] = {}
        _md_set(md, "schema", schema_name("parquet", self.layout))
        _md_set(md, "stream", self.stream_name)
        _md_set(md, "collections", stable_json_dumps(self.registered))
        _md_set(md, "units", stable_json_dumps({"momentum": OUTPUT_MOMENTUM_UNIT.value, "length": OUTPUT_LENGTH_UNIT.value}))
        for k, v in self.metadata.items():
            md[str(k)] = str(v)
        self._schema = arrow_schema(self.layout).with_metadata(md)
        self._writer = pq.ParquetWriter(self.path, self._schema)

    def _rows(self, header: EventHeader) -> list[dict]:
        rows = []
        for name, records in self._staged().items():
            base = {
                "event_index": self.n_events,
                "event_number": header.event_number,
                "signal_process_id": header.signal_process_id,
                "collection": name,
            }
            if self.layout == "columnar":
                rows.append({**base, "particles": [r.to_dict() for r in records]})
            else:
                for i, r in enumerate(records):
                    rows.append({**base, "index": i, **r.to_dict()})
        return rows

    def commit_event(self, header: Optional[EventHeader] = None) -> None:
        pa, _ = _require_pyarrow()
        header = header or EventHeader(event_number=self.n_events)
        self._open()
        rows = self._rows(header)
        if rows:
            self._writer.write_table(pa.Table.from_pylist(rows, schema=self._schema))
        self.n_events += 1

    def finalize(self) -> None:
        self._open()
        self._writer.close()


def read_parquet_metadata(path: str) -> dict[str, str]:
    _, pq = _require_pyarrow()
    schema = pq.read_schema(path)
    md: dict[str, str] = {}
    for k, v in (schema.metadata or {}).items():
        md[k.decode("utf-8", "replace")] = v.decode("utf-8", "replace")
    return md


def read_parquet_collections(path: str) -> Iterator[tuple[EventHeader, MCParticleCollection]]:
    """Yield ``(header, collection)`` in the order they were committed."""
    _, pq = _require_pyarrow()
    table = pq.read_table(path)

    if "particles" in table.column_names:
        for row in table.to_pylist():
            header = EventHeader(int(row["event_number"]), int(row["signal_process_id"] or 0))
            coll = MCParticleCollection(name=row["collection"])
            coll.extend(MCParticle.from_dict(p) for p in (row["particles"] or []))
            yield header, coll
        return

    key = None
    current: Optional[MCParticleCollection] = None
    header = EventHeader()
    for row in table.to_pylist():
        row_key = (row["event_index"], row["collection"])
        if row_key != key:
            if current is not None:
                yield header, current
            key = row_key
            header = EventHeader(int(row["event_number"]), int(row["signal_process_id"] or 0))
            current = MCParticleCollection(name=row["collection"])
        current.append(MCParticle.from_dict(row))
    if current is not None:
        yield header, current
