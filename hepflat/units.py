"""Physical unit handling.

HepMC events declare their momentum unit (GeV or MeV) and length unit
(mm or cm). The flat output schema is always GeV / mm.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from .errors import UnitMismatch


class MomentumUnit(str, Enum):
    MEV = "MEV"
    GEV = "GEV"


class LengthUnit(str, Enum):
    MM = "MM"
    CM = "CM"


OUTPUT_MOMENTUM_UNIT = MomentumUnit.GEV
OUTPUT_LENGTH_UNIT = LengthUnit.MM

_MOMENTUM_IN_MEV = {MomentumUnit.MEV: 1.0, MomentumUnit.GEV: 1000.0}
_LENGTH_IN_MM = {LengthUnit.MM: 1.0, LengthUnit.CM: 10.0}

UNIT_POLICIES = ("strict", "convert")


def momentum_unit(value) -> MomentumUnit:
    try:
        return MomentumUnit(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown momentum unit: {value!r}") from None


def length_unit(value) -> LengthUnit:
    try:
        return LengthUnit(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown length unit: {value!r}") from None


def momentum_factor(src: MomentumUnit, dst: MomentumUnit = OUTPUT_MOMENTUM_UNIT) -> float:
    """Multiplicative factor taking a momentum from ``src`` to ``dst``."""
    if src == dst:
        return 1.0
    return _MOMENTUM_IN_MEV[src] / _MOMENTUM_IN_MEV[dst]


def length_factor(src: LengthUnit, dst: LengthUnit = OUTPUT_LENGTH_UNIT) -> float:
    if src == dst:
        return 1.0
    return _LENGTH_IN_MM[src] / _LENGTH_IN_MM[dst]


def output_scales(
    mom: MomentumUnit,
    length: LengthUnit,
    *,
    policy: str = "strict",
) -> Tuple[float, float]:
    """Return (momentum_scale, length_scale) for writing an event.

    ``strict`` refuses events that are not already in the output units;
    ``convert`` returns the scaling factors instead.
    """
    if policy not in UNIT_POLICIES:
        raise ValueError(f"units policy must be one of {', '.join(UNIT_POLICIES)}, got {policy!r}")
    if policy == "strict":
        if mom != OUTPUT_MOMENTUM_UNIT or length != OUTPUT_LENGTH_UNIT:
            raise UnitMismatch(
                f"event uses {mom.value}/{length.value} but the output schema is "
                f"{OUTPUT_MOMENTUM_UNIT.value}/{OUTPUT_LENGTH_UNIT.value}; "
                "use units='convert' to rescale"
            )
        return 1.0, 1.0
    return momentum_factor(mom), length_factor(length)
