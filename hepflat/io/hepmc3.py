from __future__ import annotations

import gzip
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import GraphError
from ..models import FourVector, GenEvent
from .reader_base import Reader

logger = logging.getLogger(__name__)


def _open_text(path: str, mode: str = "r"):
    p = Path(path)
    if p.suffix == ".gz":
        return io.TextIOWrapper(gzip.open(p, mode + "b"), encoding="utf-8")
    return open(p, mode, encoding="utf-8")


# --- HepMC3 Asciiv3 ---------------------------------------------------------------------
#
# Records handled:
#   HepMC::Version / HepMC::Asciiv3-START_EVENT_LISTING / ...-END_EVENT_LISTING
#   E <evtno> <nvertices> <nparticles> [@ x y z t]      (event start)
#   U <mom_unit> <len_unit>
#   W <w1> <w2> ...
#   A <id> <name> <value...>                              (attributes; id 0 = event)
#   P <id> <mother> <pdg> <px> <py> <pz> <e> <m> <status>
#       mother < 0: production vertex id
#       mother > 0: id of the single incoming particle of an implicit vertex
#       mother = 0: no production vertex
#   V <id> <status> [<in1>,<in2>,...] [@ x y z t]
#
# Other record types (T, N, C, ...) are skipped.


@dataclass
class _RawParticle:
    pid: int
    mother: int
    pdg: int
    momentum: FourVector
    status: int


@dataclass
class _RawVertex:
    vid: int
    incoming: List[int] = field(default_factory=list)
    position: FourVector = field(default_factory=FourVector)


@dataclass
class _RawEvent:
    number: int = 0
    units: Tuple[str, str] = ("GEV", "MM")
    weights: List[float] = field(default_factory=lambda: [1.0])
    attributes: Dict[str, str] = field(default_factory=dict)
    particles: List[_RawParticle] = field(default_factory=list)
    vertices: Dict[int, _RawVertex] = field(default_factory=dict)
    # vertex keys in order of first appearance: int vertex id, or ("implicit", particle id)
    vertex_order: List[object] = field(default_factory=list)


def _parse_position(tokens: List[str]) -> FourVector:
    if len(tokens) < 4:
        raise ValueError("position needs 4 components")
    return FourVector(float(tokens[0]), float(tokens[1]), float(tokens[2]), float(tokens[3]))


def _parse_vertex(line: str) -> _RawVertex:
    head, _, pos = line.partition("@")
    lb, rb = head.find("["), head.find("]")
    parts = (head[:lb] if lb >= 0 else head).split()
    v = _RawVertex(vid=int(parts[1]))
    if lb >= 0 and rb > lb:
        v.incoming = [int(tok) for tok in head[lb + 1 : rb].replace(",", " ").split()]
    if pos.strip():
        v.position = _parse_position(pos.split())
    return v


def _parse_particle(line: str) -> _RawParticle:
    parts = line.split()
    if len(parts) < 10:
        raise ValueError("particle record needs 10 fields")
    return _RawParticle(
        pid=int(parts[1]),
        mother=int(parts[2]),
        pdg=int(parts[3]),
        momentum=FourVector(float(parts[4]), float(parts[5]), float(parts[6]), float(parts[7])),
        status=int(parts[9]),
    )


def _note_vertex(raw: _RawEvent, key: object) -> None:
    if key not in raw.vertex_order:
        raw.vertex_order.append(key)


def _build_event(raw: _RawEvent) -> GenEvent:
    ev = GenEvent(event_number=raw.number, weights=list(raw.weights))
    ev.use_units(*raw.units)

    p_index: Dict[int, int] = {}
    for rp in raw.particles:
        if rp.pid in p_index:
            raise GraphError(f"event {raw.number}: duplicate particle id {rp.pid}")
        p_index[rp.pid] = ev.add_particle(rp.momentum, rp.pdg, rp.status)

    def _pidx(pid: int) -> int:
        try:
            return p_index[pid]
        except KeyError:
            raise GraphError(f"event {raw.number}: reference to unknown particle {pid}") from None

    # Explicit vertex that already consumes a particle wins over an implicit one.
    explicit_end: Dict[int, int] = {}
    for v in raw.vertices.values():
        for pid in v.incoming:
            explicit_end[pid] = v.vid

    v_index: Dict[object, int] = {}
    for key in raw.vertex_order:
        if isinstance(key, tuple) and key[1] in explicit_end:
            continue
        if isinstance(key, int) and key not in raw.vertices:
            raise GraphError(f"event {raw.number}: reference to unknown vertex {key}")
        pos = raw.vertices[key].position if isinstance(key, int) else None
        v_index[key] = ev.add_vertex(pos)

    for vid, v in raw.vertices.items():
        for pid in v.incoming:
            ev.add_particle_in(v_index[vid], _pidx(pid))

    for rp in raw.particles:
        if rp.mother == 0:
            continue
        if rp.mother < 0:
            vidx = v_index[rp.mother]
        elif rp.mother in explicit_end:
            vidx = v_index[explicit_end[rp.mother]]
        else:
            vidx = v_index[("implicit", rp.mother)]
            ev.add_particle_in(vidx, _pidx(rp.mother))
        ev.add_particle_out(vidx, p_index[rp.pid])

    spid = raw.attributes.get("signal_process_id")
    if spid is not None:
        ev.signal_process_id = int(spid)
    svtx = raw.attributes.get("signal_process_vertex")
    if svtx is not None and int(svtx) in v_index:
        ev.set_signal_process_vertex(v_index[int(svtx)])
    return ev


def iter_hepmc3(path: str) -> Iterator[GenEvent]:
    """Iterate events from a HepMC3 ASCII (Asciiv3) file."""
    with _open_text(path) as f:
        raw: Optional[_RawEvent] = None
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#") or line.startswith("HepMC::"):
                continue

            tag = line.split(maxsplit=1)[0]

            if tag == "E":
                if raw is not None:
                    yield _build_event(raw)
                parts = line.split()
                raw = _RawEvent(number=int(parts[1]) if len(parts) > 1 else 0)
                continue

            if raw is None:
                # Run-level records before the first event (T, N, C, ...)
                continue

            try:
                if tag == "U":
                    parts = line.split()
                    raw.units = (parts[1], parts[2])
                elif tag == "W":
                    raw.weights = [float(tok) for tok in line.split()[1:]] or [1.0]
                elif tag == "A":
                    parts = line.split(maxsplit=3)
                    if len(parts) == 4 and int(parts[1]) == 0:
                        raw.attributes[parts[2]] = parts[3].strip()
                elif tag == "V":
                    v = _parse_vertex(line)
                    raw.vertices[v.vid] = v
                    _note_vertex(raw, v.vid)
                elif tag == "P":
                    p = _parse_particle(line)
                    raw.particles.append(p)
                    if p.mother < 0:
                        _note_vertex(raw, p.mother)
                    elif p.mother > 0:
                        _note_vertex(raw, ("implicit", p.mother))
                else:
                    logger.debug("%s:%d: skipping %s record", path, lineno, tag)
            except (ValueError, IndexError) as e:
                raise ValueError(f"{path}:{lineno}: malformed {tag} record: {e}") from e

        if raw is not None:
            yield _build_event(raw)


def read_hepmc3(path: str) -> List[GenEvent]:
    return list(iter_hepmc3(path))


class HepMC3Reader(Reader):
    def iter_events(self, path: str) -> Iterator[GenEvent]:
        return iter_hepmc3(path)


# --- writer -------------------------------------------------------------------------------


def _fmt_vertex(vid: int, incoming: Iterable[int], pos: FourVector) -> str:
    line = "V {} 0 [{}]".format(vid, ",".join(str(i) for i in incoming))
    if not pos.is_zero():
        line += " @ {:.17g} {:.17g} {:.17g} {:.17g}".format(pos.x, pos.y, pos.z, pos.t)
    return line


def write_hepmc3(path: str, events: Iterable[GenEvent]) -> int:
    """Write events as HepMC3 Asciiv3 and return how many were written.

    Particle ids are ``index + 1`` and vertex ids ``-(index + 1)``. Every
    vertex gets an explicit ``V`` record, emitted just before the first
    particle it produces.
    """
    n = 0
    with _open_text(path, "w") as f:
        f.write("HepMC::Version 3.02.05\n")
        f.write("HepMC::Asciiv3-START_EVENT_LISTING\n")
        for ev in events:
            f.write(f"E {ev.event_number} {len(ev.vertices)} {len(ev.particles)}\n")
            f.write(f"U {ev.momentum_unit.value} {ev.length_unit.value}\n")
            if ev.weights:
                f.write("W {}\n".format(" ".join(f"{w:.17g}" for w in ev.weights)))
            f.write(f"A 0 signal_process_id {ev.signal_process_id}\n")
            if ev.signal_vertex is not None:
                f.write(f"A 0 signal_process_vertex {-(ev.signal_vertex + 1)}\n")

            written = set()

            def _emit(vi: int) -> None:
                if vi in written:
                    return
                written.add(vi)
                v = ev.vertices[vi]
                f.write(_fmt_vertex(-(vi + 1), (i + 1 for i in v.incoming), v.position) + "\n")

            for i, p in enumerate(ev.particles):
                mother = 0
                if p.production_vertex is not None:
                    _emit(p.production_vertex)
                    mother = -(p.production_vertex + 1)
                mom = p.momentum
                f.write(
                    "P {id} {mo} {pdg} {px:.17g} {py:.17g} {pz:.17g} {e:.17g} {m:.17g} {st}\n".format(
                        id=i + 1,
                        mo=mother,
                        pdg=p.pdg_id,
                        px=mom.px,
                        py=mom.py,
                        pz=mom.pz,
                        e=mom.e,
                        m=mom.m,
                        st=p.status,
                    )
                )
            for vi in range(len(ev.vertices)):
                _emit(vi)
            n += 1
        f.write("HepMC::Asciiv3-END_EVENT_LISTING\n")
    return n
