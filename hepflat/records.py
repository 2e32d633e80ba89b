"""Conversion of one graph particle into one flat record."""

from __future__ import annotations

from typing import Callable, Optional

from . import pdg
from .errors import UnknownParticleType
from .models import FourVector, GenEvent, MCParticle, Vector3

ChargeResolver = Callable[[int], float]


def _position(v: Optional[FourVector], scale: float) -> tuple[Vector3, float]:
    if v is None:
        return (0.0, 0.0, 0.0), 0.0
    if scale == 1.0:
        return (v.x, v.y, v.z), v.t
    return (v.x * scale, v.y * scale, v.z * scale), v.t * scale


def convert_particle(
    event: GenEvent,
    index: int,
    *,
    resolver: ChargeResolver = pdg.charge,
    momentum_scale: float = 1.0,
    length_scale: float = 1.0,
    unknown_charge: Optional[float] = None,
) -> MCParticle:
    """Build the ``MCParticle`` for ``event.particles[index]``.

    PDG ID and status are copied verbatim and the charge is derived from
    the PDG ID. Only the spatial momentum is kept. With unit scales of 1.0
    every component is passed through untouched.

    Relations (``parents`` / ``daughters``) are left empty; they can only
    be filled in once the whole collection exists, see
    :func:`hepflat.relations.link`.
    """
    p = event.particle(index)

    try:
        q = resolver(p.pdg_id)
    except UnknownParticleType:
        if unknown_charge is None:
            raise
        q = unknown_charge

    mom = p.momentum
    if momentum_scale == 1.0:
        momentum = (mom.px, mom.py, mom.pz)
    else:
        momentum = (mom.px * momentum_scale, mom.py * momentum_scale, mom.pz * momentum_scale)

    prod = event.production_vertex(index)
    end = event.end_vertex(index)
    vertex, time = _position(prod.position if prod is not None else None, length_scale)
    endpoint, _ = _position(end.position if end is not None else None, length_scale)

    return MCParticle(
        pdg=p.pdg_id,
        generator_status=p.status,
        charge=q,
        momentum=momentum,
        vertex=vertex,
        endpoint=endpoint,
        time=time,
    )

