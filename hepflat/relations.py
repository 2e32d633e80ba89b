"""Mother/daughter links as record indices.

Indices are positions in the final collection, so linking is the second
pass of a two-pass conversion: convert every particle first, remember where
each one landed, then resolve the links.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .errors import DanglingRelationship
from .models import GenEvent, MCParticle


def build_index_map(particle_indices: Iterable[int], *, offset: int = 0) -> dict[int, int]:
    """Map particle index -> record index for records appended in this order."""
    return {p: offset + i for i, p in enumerate(particle_indices)}


def _resolve(index_map: Mapping[int, int], particle: int, relatives: list[int], relation: str) -> list[int]:
    out = []
    for rel in relatives:
        try:
            out.append(index_map[rel])
        except KeyError:
            raise DanglingRelationship(particle, rel, relation) from None
    return out


def link(
    records: Sequence[MCParticle],
    index_map: Mapping[int, int],
    event: GenEvent,
) -> None:
    """Fill ``parents`` and ``daughters`` of ``records`` in place.

    Parents of a particle are the incoming particles of its production
    vertex; daughters are the outgoing particles of its end vertex. Both
    keep the vertex's order. Particles without a production (end) vertex
    get no parents (daughters).

    Raises:
        DanglingRelationship: a relative has no entry in ``index_map``.
    """
    for particle, ridx in index_map.items():
        rec = records[ridx]
        rec.parents = _resolve(index_map, particle, event.mothers(particle), "mother")
        rec.daughters = _resolve(index_map, particle, event.daughters(particle), "daughter")
