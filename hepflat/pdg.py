"""PDG helpers.

Charges come from scikit-hep ``particle``: ``particle.pdgid.three_charge``
decodes the charge from the digits of the PDG ID (the same scheme as
HepPDT's ``ParticleID::charge``), so it covers quarks, hadrons and ions
without a mass table. The decoding tables live in ``particle`` and are
read only, so the functions here are pure.
"""

from __future__ import annotations

from particle import Particle as _Particle
from particle.pdgid import is_valid as _is_valid
from particle.pdgid import three_charge as _three_charge

from .errors import UnknownParticleType

_UNSET = object()


def is_valid_pdg_id(pdg_id: int) -> bool:
    try:
        return bool(_is_valid(int(pdg_id)))
    except (TypeError, ValueError):
        return False


def three_charge(pdg_id: int) -> int:
    """Three times the electric charge.

    Raises:
        UnknownParticleType: ``pdg_id`` is not a valid PDG ID.
    """
    tc = _three_charge(int(pdg_id)) if is_valid_pdg_id(pdg_id) else None
    if tc is None:
        raise UnknownParticleType(pdg_id)
    return int(tc)


def charge(pdg_id: int, *, unknown=_UNSET) -> float:
    """Electric charge in units of e.

    For IDs the PDG scheme rejects, raise :class:`UnknownParticleType`, or
    return ``unknown`` when it is given (e.g. ``float("nan")``).
    """
    try:
        return three_charge(pdg_id) / 3.0
    except UnknownParticleType:
        if unknown is _UNSET:
            raise
        return unknown


def name(pdg_id: int) -> str:
    try:
        return _Particle.from_pdgid(pdg_id).name
    except Exception:
        return str(pdg_id)

