"""Traversal of the event graph."""

from __future__ import annotations

import heapq
from typing import Generic, Iterator, TypeVar

from .errors import GraphError
from .models import GenEvent, GenParticle, GenVertex

T = TypeVar("T")


class _Walk(Generic[T]):
    """Restartable lazy sequence of ``(index, item)`` pairs.

    Every ``iter()`` starts a fresh pass over the event in insertion order.
    Nothing is copied and the event is never modified.
    """

    def __init__(self, event: GenEvent, items: list[T]):
        self.event = event
        self._items = items

    def __iter__(self) -> Iterator[tuple[int, T]]:
        for i in range(len(self._items)):
            yield i, self._items[i]

    def __len__(self) -> int:
        return len(self._items)


class ParticleWalk(_Walk[GenParticle]):
    pass


class VertexWalk(_Walk[GenVertex]):
    pass


def particles_of(event: GenEvent) -> ParticleWalk:
    """All particles owned by ``event``, in the order they were added."""
    return ParticleWalk(event, event.particles)


def vertices_of(event: GenEvent) -> VertexWalk:
    return VertexWalk(event, event.vertices)


def topological_order(event: GenEvent) -> list[int]:
    """Particle indices ordered so that every mother precedes its daughters.

    Ties are broken by insertion order, so the result is deterministic.

    Raises:
        GraphError: the graph contains a cycle.
    """
    n = len(event.particles)
    n_mothers = [0] * n
    for i in range(n):
        n_mothers[i] = len(event.mothers(i))

    ready = [i for i in range(n) if n_mothers[i] == 0]
    heapq.heapify(ready)
    order: list[int] = []
    while ready:
        i = heapq.heappop(ready)
        order.append(i)
        for d in event.daughters(i):
            n_mothers[d] -= 1
            if n_mothers[d] == 0:
                heapq.heappush(ready, d)

    if len(order) != n:
        stuck = sorted(set(range(n)) - set(order))
        raise GraphError(f"event {event.event_number} graph has a cycle through particles {stuck}")
    return order
