"""hepflat: flatten HepMC-style event graphs into EDM4hep-style particle collections."""

from __future__ import annotations

__version__ = "0.1.0"

from .convert import ConversionConfig, convert, convert_event, info, read, read_collections, write, write_events
from .errors import (
    AlreadyFinalized,
    DanglingRelationship,
    GraphError,
    HepflatError,
    UnitMismatch,
    UnknownParticleType,
    WriteFailure,
    WriterStateError,
)
from .models import EventHeader, FourVector, GenEvent, GenParticle, GenVertex, MCParticle, MCParticleCollection
from .validation import validate
from .writer import CollectionWriter, WriterState

__all__ = [
    "__version__",
    "convert",
    "convert_event",
    "read",
    "read_collections",
    "write",
    "write_events",
    "info",
    "validate",
    "ConversionConfig",
    "CollectionWriter",
    "WriterState",
    "GenEvent",
    "GenVertex",
    "GenParticle",
    "FourVector",
    "EventHeader",
    "MCParticle",
    "MCParticleCollection",
    "HepflatError",
    "GraphError",
    "UnknownParticleType",
    "DanglingRelationship",
    "UnitMismatch",
    "WriteFailure",
    "WriterStateError",
    "AlreadyFinalized",
]
