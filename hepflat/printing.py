"""Human-readable dumps of event graphs and flat collections."""

from __future__ import annotations

from .models import GenEvent, MCParticleCollection
from .pdg import name as pdg_name

_RULE = "_" * 96


def _vid(index) -> str:
    return str(-(index + 1)) if index is not None else "0"


def _particle_line(prefix: str, event: GenEvent, i: int) -> str:
    p = event.particles[i]
    m = p.momentum
    return (
        f" {prefix} {i + 1:>6} {pdg_name(p.pdg_id):>10} {p.pdg_id:>8} "
        f"{m.px:+10.3e},{m.py:+10.3e},{m.pz:+10.3e},{m.e:+10.3e} {p.status:>4} {_vid(p.end_vertex):>7}"
    )


def format_event(event: GenEvent) -> str:
    """Vertex-by-vertex listing, in the spirit of HepMC's ``GenEvent::print``.

    Particle ids are ``index + 1`` and vertex ids ``-(index + 1)``, the same
    numbering the HepMC3 writer uses.
    """
    lines = [
        _RULE,
        f"GenEvent: #{event.event_number} ID={event.signal_process_id} "
        f"SignalProcessGenVertex: {_vid(event.signal_vertex)}",
        f" Momentum units: {event.momentum_unit.value} Position units: {event.length_unit.value}",
        f" Entries this event: {len(event.vertices)} vertices, {len(event.particles)} particles.",
        f" Weights: {event.weights}",
        "          Id       Name   PDG ID (        Px,        Py,        Pz,         E) Stat DecayVtx",
        _RULE,
    ]
    for vi, v in enumerate(event.vertices):
        pos = v.position
        head = f"GenVertex: {_vid(vi):>6}"
        if not pos.is_zero():
            head += f" (X,cT): {pos.x:+.2e},{pos.y:+.2e},{pos.z:+.2e},{pos.t:+.2e}"
        else:
            head += " (X,cT):0"
        lines.append(head)
        for i in v.incoming:
            lines.append(_particle_line("I:", event, i))
        for i in v.outgoing:
            lines.append(_particle_line("O:", event, i))
    orphans = [i for i, p in enumerate(event.particles) if p.production_vertex is None and p.end_vertex is None]
    if orphans:
        lines.append("Unattached particles:")
        for i in orphans:
            lines.append(_particle_line("-:", event, i))
    lines.append(_RULE)
    return "\n".join(lines)


def format_collection(collection: MCParticleCollection) -> str:
    lines = [
        f"Collection {collection.name}: {len(collection)} records",
        f" {'idx':>4} {'PDG':>8} {'stat':>4} {'charge':>7} {'px':>10} {'py':>10} {'pz':>10}  parents  daughters",
    ]
    for i, r in enumerate(collection):
        px, py, pz = r.momentum
        lines.append(
            f" {i:>4} {r.pdg:>8} {r.generator_status:>4} {r.charge:>+7.3f} "
            f"{px:>+10.3f} {py:>+10.3f} {pz:>+10.3f}  {r.parents}  {r.daughters}"
        )
    return "\n".join(lines)
