"""Exception types raised by hepflat.

Every error derives from :class:`HepflatError` and also from the closest
builtin, so callers that only know about ``ValueError`` / ``OSError`` keep
working.
"""

from __future__ import annotations


class HepflatError(Exception):
    pass


class GraphError(HepflatError, ValueError):
    """Malformed event graph (bad index, particle attached twice, cycle)."""


class UnknownParticleType(HepflatError, ValueError):
    def __init__(self, pdg_id: int):
        super().__init__(f"Unknown/invalid PDG ID: {pdg_id}")
        self.pdg_id = pdg_id


class DanglingRelationship(HepflatError, LookupError):
    """A mother/daughter particle has no record in the current collection."""

    def __init__(self, particle: int, relative: int, relation: str):
        super().__init__(
            f"particle {particle}: {relation} particle {relative} was not converted "
            f"into the current collection"
        )
        self.particle = particle
        self.relative = relative
        self.relation = relation


class UnitMismatch(HepflatError, ValueError):
    pass


class WriteFailure(HepflatError, OSError):
    """The underlying store rejected an append or commit."""


class WriterStateError(HepflatError, RuntimeError):
    """A CollectionWriter operation was called in the wrong state."""


class AlreadyFinalized(WriterStateError):
    pass
