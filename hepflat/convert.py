"""High-level conversion/read/write/info API."""

from __future__ import annotations

import itertools
import logging
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from .io.registry import detect_format, get_collection_reader, get_reader, get_store, register
from .models import EventHeader, GenEvent, MCParticleCollection
from .plugins import load_plugins
from .provenance import build_provenance, stable_json_dumps
from .records import convert_particle
from .relations import build_index_map, link
from .units import UNIT_POLICIES, output_scales
from .validation import ValidationReport, validate_stream
from .walk import particles_of
from .writer import CollectionWriter

# Ensure default handlers are registered
from .io.hepmc3 import HepMC3Reader
from .io.jsonl import JSONLinesStore, read_jsonl_collections
from .io.parquet import ParquetStore, read_parquet_collections

register("hepmc3", reader=lambda: HepMC3Reader())
register(
    "parquet",
    store=lambda path, columnar=False, metadata=None: ParquetStore(
        path, layout="columnar" if columnar else "flat", metadata=metadata
    ),
    collections=read_parquet_collections,
)
register(
    "jsonl",
    store=lambda path, columnar=False, metadata=None: JSONLinesStore(path, metadata=metadata),
    collections=read_jsonl_collections,
)

# Load third-party plugins (entry points) if present
load_plugins()

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ConversionConfig:
    """Options for turning event graphs into flat collections.

    Attributes:
        collection_name: Name of the output collection.
        stream_name: Name of the output stream (event category).
        units: ``"strict"`` refuses events not in GeV/mm; ``"convert"``
            rescales them.
        unknown_charge: Charge to record for unknown PDG IDs. ``None``
            makes an unknown PDG ID abort the event.
        validate: Check each event graph before converting it.
    """

    collection_name: str = "MCParticles"
    stream_name: str = "events"
    units: str = "strict"
    unknown_charge: Optional[float] = None
    validate: bool = False

    def __post_init__(self):
        if self.units not in UNIT_POLICIES:
            raise ValueError(f"units must be one of {', '.join(UNIT_POLICIES)}, got {self.units!r}")


DEFAULT_CONFIG = ConversionConfig()


def header_of(event: GenEvent) -> EventHeader:
    return EventHeader(event_number=event.event_number, signal_process_id=event.signal_process_id)


def convert_event(event: GenEvent, config: ConversionConfig = DEFAULT_CONFIG) -> MCParticleCollection:
    """Convert one event graph into a linked flat collection.

    Pass one converts every particle in walk order; pass two fills in the
    parents/daughters indices. Any error aborts the whole event, so the
    returned collection always has exactly one record per particle.
    """
    mscale, lscale = output_scales(event.momentum_unit, event.length_unit, policy=config.units)

    coll = MCParticleCollection(name=config.collection_name)
    order: list[int] = []
    for i, p in particles_of(event):
        logger.debug("Converting particle %d with PDG ID %d", i, p.pdg_id)
        coll.append(
            convert_particle(
                event,
                i,
                momentum_scale=mscale,
                length_scale=lscale,
                unknown_charge=config.unknown_charge,
            )
        )
        order.append(i)

    link(coll, build_index_map(order), event)
    return coll


def write_events(
    events: Iterable[GenEvent],
    writer: CollectionWriter,
    config: ConversionConfig = DEFAULT_CONFIG,
) -> int:
    """Convert and commit ``events`` one at a time; returns the number written.

    The writer is opened if needed but not finalized.
    """
    writer.open(config.stream_name, config.collection_name)
    n = 0
    for ev in events:
        coll = convert_event(ev, config)
        writer.extend(coll)
        writer.commit_event(header_of(ev))
        n += 1
    return n


def read(filepath: PathLike, format: Optional[str] = None) -> Iterator[GenEvent]:
    """Stream event graphs from an input file."""
    if format is None:
        format = detect_format(filepath)
    return get_reader(format).iter_events(str(filepath))


def read_collections(
    filepath: PathLike, format: Optional[str] = None
) -> Iterator[tuple[EventHeader, MCParticleCollection]]:
    """Stream ``(header, collection)`` pairs back from a written store."""
    if format is None:
        format = detect_format(filepath)
    return get_collection_reader(format)(str(filepath))


def write(
    filepath: PathLike,
    events: Iterable[GenEvent],
    format: Optional[str] = None,
    *,
    config: ConversionConfig = DEFAULT_CONFIG,
    **store_kwargs,
) -> int:
    """Convert ``events`` and write them to a new store at ``filepath``."""
    if format is None:
        format = detect_format(filepath)
    store = get_store(format, str(filepath), **store_kwargs)
    with CollectionWriter(store) as writer:
        return write_events(events, writer, config)


def convert(
    input_path: PathLike,
    output_path: PathLike,
    *,
    input_format: Optional[str] = None,
    output_format: Optional[str] = None,
    config: ConversionConfig = DEFAULT_CONFIG,
    max_events: int = -1,
    strict_validation: bool = False,
    quiet: bool = False,
    provenance: bool = True,
    **store_kwargs,
) -> dict:
    """Convert an event-graph file into a flat-collection store.

    Streaming: one event is read, converted and committed before the next
    one is touched.
    """
    if input_format is None:
        input_format = detect_format(input_path)
    if output_format is None:
        output_format = detect_format(output_path)

    reader = get_reader(input_format)

    if not quiet:
        print(f"Reading {input_format}: {input_path}", file=sys.stderr)

    ev_iter = reader.iter_events(str(input_path))
    if max_events >= 0:
        ev_iter = itertools.islice(ev_iter, max_events)

    report: Optional[ValidationReport] = None
    if config.validate:
        report = ValidationReport()
        ev_iter = validate_stream(ev_iter, report=report, strict=strict_validation)

    if provenance:
        import hepflat

        prov = build_provenance(
            tool_version=hepflat.__version__,
            input_path=input_path,
            output_path=output_path,
            input_format=input_format,
            output_format=output_format,
            argv=["hepflat", "convert", str(input_path), str(output_path)],
            config=asdict(config),
        )
        md = dict(store_kwargs.get("metadata") or {})
        md["hepflat_provenance"] = stable_json_dumps(prov)
        store_kwargs["metadata"] = md

    n_records = 0

    def _counting(it):
        nonlocal n_records
        for ev in it:
            n_records += len(ev.particles)
            yield ev

    if not quiet:
        print(f"Writing {output_format}: {output_path}", file=sys.stderr)

    n_output = write(output_path, _counting(ev_iter), format=output_format, config=config, **store_kwargs)

    if not quiet:
        print(f"  Wrote {n_output} events, {n_records} records", file=sys.stderr)
        if report is not None:
            print(f"  Validation: {report.summary()}", file=sys.stderr)

    return {
        "n_events": n_output,
        "n_records": n_records,
        "validation": report,
    }


def info(filepath: PathLike, format: Optional[str] = None) -> dict:
    """Summarise a written store."""
    if format is None:
        format = detect_format(filepath)

    total_records = 0
    collections: dict[str, int] = {}
    events_per_collection: dict[str, int] = {}
    pdg_counts: dict[int, int] = {}
    status_counts: dict[int, int] = {}

    # Readers yield one pair per committed event and collection; event
    # numbers need not be unique.
    for _, coll in read_collections(filepath, format=format):
        events_per_collection[coll.name] = events_per_collection.get(coll.name, 0) + 1
        total_records += len(coll)
        collections[coll.name] = collections.get(coll.name, 0) + len(coll)
        for r in coll:
            pdg_counts[r.pdg] = pdg_counts.get(r.pdg, 0) + 1
            status_counts[r.generator_status] = status_counts.get(r.generator_status, 0) + 1

    from .pdg import name as pdg_name

    n_events = max(events_per_collection.values(), default=0)
    top_pdg = sorted(pdg_counts.items(), key=lambda x: -x[1])[:20]
    top_named = [(pdg_name(pid), count) for pid, count in top_pdg]

    return {
        "format": format,
        "n_events": n_events,
        "total_records": total_records,
        "avg_records_per_event": total_records / max(1, n_events),
        "collections": collections,
        "top_particles": top_named,
        "status_counts": dict(sorted(status_counts.items())),
    }
