"""
Core data model for hepflat.

Two halves:

* the event graph (``GenEvent`` / ``GenVertex`` / ``GenParticle``), HepMC
  style. The event owns flat lists of vertices and particles and every
  relation is an integer index into those lists, so there are no reference
  cycles between particles and vertices.
* the flat output (``MCParticle`` / ``MCParticleCollection``), EDM4hep
  style. Relations are positional indices inside the owning collection.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .errors import GraphError
from .units import LengthUnit, MomentumUnit, length_unit, momentum_unit

Vector3 = tuple[float, float, float]


@dataclass(frozen=True)
class FourVector:
    """Four-vector (x, y, z, t).

    Used both for momenta (px, py, pz, E) and for vertex positions
    (x, y, z, t); ``px``/``py``/``pz``/``e`` are aliases.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    t: float = 0.0

    @property
    def px(self) -> float:
        return self.x

    @property
    def py(self) -> float:
        return self.y

    @property
    def pz(self) -> float:
        return self.z

    @property
    def e(self) -> float:
        return self.t

    @property
    def perp(self) -> float:
        """Transverse component."""
        return math.sqrt(self.x**2 + self.y**2)

    @property
    def m(self) -> float:
        """Invariant mass.

        m^2 = E^2 - |p|^2 can drift slightly negative for massless
        particles; small negative values are clamped to zero.
        """
        m2 = self.t**2 - self.x**2 - self.y**2 - self.z**2
        if m2 < 0 and abs(m2) < 1e-8:
            m2 = 0.0
        return math.sqrt(m2) if m2 >= 0 else -math.sqrt(-m2)

    def is_zero(self) -> bool:
        return self.x == 0.0 and self.y == 0.0 and self.z == 0.0 and self.t == 0.0

    def __add__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x + other.x, self.y + other.y, self.z + other.z, self.t + other.t)


@dataclass
class GenParticle:
    """A particle in the event graph.

    Attributes:
        momentum: Four-momentum (px, py, pz, E) in the event's units.
        pdg_id: PDG Monte Carlo particle ID.
        status: Generator status. Convention:
            1 = stable / final state
            2 = decayed
            3 = documentation / intermediate
        production_vertex: Index of the vertex whose outgoing list holds
            this particle (None for initial-state particles).
        end_vertex: Index of the vertex whose incoming list holds this
            particle (None for final-state particles).
    """

    momentum: FourVector
    pdg_id: int
    status: int
    production_vertex: Optional[int] = None
    end_vertex: Optional[int] = None


@dataclass
class GenVertex:
    """A vertex in the event graph.

    Attributes:
        position: Spacetime position (x, y, z, t) in the event's length unit.
        incoming: Indices of particles ending here.
        outgoing: Indices of particles produced here.
    """

    position: FourVector = field(default_factory=FourVector)
    incoming: list[int] = field(default_factory=list)
    outgoing: list[int] = field(default_factory=list)


@dataclass
class GenEvent:
    """A single generated event: a DAG of vertices and particles.

    The event owns all of its vertices and particles. Use the ``add_*``
    methods to build the graph so that back-references stay consistent.
    """

    signal_process_id: int = 0
    event_number: int = 0
    momentum_unit: MomentumUnit = MomentumUnit.GEV
    length_unit: LengthUnit = LengthUnit.MM
    particles: list[GenParticle] = field(default_factory=list)
    vertices: list[GenVertex] = field(default_factory=list)
    signal_vertex: Optional[int] = None
    weights: list[float] = field(default_factory=lambda: [1.0])

    # --- construction -------------------------------------------------------

    def use_units(self, momentum, length) -> None:
        self.momentum_unit = momentum_unit(momentum)
        self.length_unit = length_unit(length)

    def add_vertex(self, position: Optional[FourVector] = None) -> int:
        self.vertices.append(GenVertex(position=position or FourVector()))
        return len(self.vertices) - 1

    def add_particle(self, momentum: FourVector, pdg_id: int, status: int) -> int:
        self.particles.append(GenParticle(momentum=momentum, pdg_id=int(pdg_id), status=int(status)))
        return len(self.particles) - 1

    def add_particle_in(self, vertex: int, particle: int) -> None:
        v = self.vertex(vertex)
        p = self.particle(particle)
        if p.end_vertex is not None:
            if p.end_vertex == vertex:
                return
            raise GraphError(f"particle {particle} already ends at vertex {p.end_vertex}")
        if p.production_vertex == vertex:
            raise GraphError(f"particle {particle} cannot both start and end at vertex {vertex}")
        p.end_vertex = vertex
        v.incoming.append(particle)

    def add_particle_out(self, vertex: int, particle: int) -> None:
        v = self.vertex(vertex)
        p = self.particle(particle)
        if p.production_vertex is not None:
            if p.production_vertex == vertex:
                return
            raise GraphError(f"particle {particle} is already produced at vertex {p.production_vertex}")
        if p.end_vertex == vertex:
            raise GraphError(f"particle {particle} cannot both start and end at vertex {vertex}")
        p.production_vertex = vertex
        v.outgoing.append(particle)

    def set_signal_process_vertex(self, vertex: int) -> None:
        self.vertex(vertex)
        self.signal_vertex = vertex

    # --- lookup -------------------------------------------------------------

    def particle(self, index: int) -> GenParticle:
        if not 0 <= index < len(self.particles):
            raise GraphError(f"no particle with index {index} (event has {len(self.particles)})")
        return self.particles[index]

    def vertex(self, index: int) -> GenVertex:
        if not 0 <= index < len(self.vertices):
            raise GraphError(f"no vertex with index {index} (event has {len(self.vertices)})")
        return self.vertices[index]

    def production_vertex(self, particle: int) -> Optional[GenVertex]:
        v = self.particle(particle).production_vertex
        return None if v is None else self.vertex(v)

    def end_vertex(self, particle: int) -> Optional[GenVertex]:
        v = self.particle(particle).end_vertex
        return None if v is None else self.vertex(v)

    def mothers(self, particle: int) -> list[int]:
        v = self.production_vertex(particle)
        return list(v.incoming) if v is not None else []

    def daughters(self, particle: int) -> list[int]:
        v = self.end_vertex(particle)
        return list(v.outgoing) if v is not None else []

    @property
    def weight(self) -> float:
        """Primary event weight."""
        return self.weights[0] if self.weights else 1.0

    def __len__(self) -> int:
        return len(self.particles)


@dataclass(frozen=True)
class EventHeader:
    """Identity of one committed event."""

    event_number: int = 0
    signal_process_id: int = 0


@dataclass
class MCParticle:
    """One flattened particle record.

    Attributes:
        pdg: PDG particle ID.
        generator_status: Generator status code, copied verbatim.
        charge: Electric charge in units of e, derived from ``pdg``.
        momentum: (px, py, pz) in GeV. Energy is not stored.
        vertex: Production point (x, y, z) in mm.
        endpoint: End point (x, y, z) in mm.
        time: Production time (vertex t) in mm/c.
        parents: Indices of mother records in the same collection.
        daughters: Indices of daughter records in the same collection.
    """

    pdg: int
    generator_status: int
    charge: float
    momentum: Vector3
    vertex: Vector3 = (0.0, 0.0, 0.0)
    endpoint: Vector3 = (0.0, 0.0, 0.0)
    time: float = 0.0
    parents: list[int] = field(default_factory=list)
    daughters: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Flat dictionary for tabular stores."""
        return {
            "pdg": self.pdg,
            "generator_status": self.generator_status,
            "charge": self.charge,
            "px": self.momentum[0],
            "py": self.momentum[1],
            "pz": self.momentum[2],
            "vx": self.vertex[0],
            "vy": self.vertex[1],
            "vz": self.vertex[2],
            "ex": self.endpoint[0],
            "ey": self.endpoint[1],
            "ez": self.endpoint[2],
            "time": self.time,
            "parents": list(self.parents),
            "daughters": list(self.daughters),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "MCParticle":
        return cls(
            pdg=int(d["pdg"]),
            generator_status=int(d["generator_status"]),
            charge=float("nan") if d["charge"] is None else float(d["charge"]),
            momentum=(float(d["px"]), float(d["py"]), float(d["pz"])),
            vertex=(float(d.get("vx", 0.0)), float(d.get("vy", 0.0)), float(d.get("vz", 0.0))),
            endpoint=(float(d.get("ex", 0.0)), float(d.get("ey", 0.0)), float(d.get("ez", 0.0))),
            time=float(d.get("time", 0.0)),
            parents=[int(i) for i in (d.get("parents") or [])],
            daughters=[int(i) for i in (d.get("daughters") or [])],
        )


@dataclass
class MCParticleCollection:
    """Ordered, append-only collection of records for one event."""

    name: str = "MCParticles"
    records: list[MCParticle] = field(default_factory=list)

    def append(self, record: MCParticle) -> int:
        """Append a record and return its index."""
        self.records.append(record)
        return len(self.records) - 1

    def extend(self, records) -> None:
        for r in records:
            self.append(r)

    def clear(self) -> None:
        self.records.clear()

    def to_rows(self) -> list[dict]:
        return [r.to_dict() for r in self.records]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[MCParticle]:
        return iter(self.records)

    def __getitem__(self, idx):
        return self.records[idx]
