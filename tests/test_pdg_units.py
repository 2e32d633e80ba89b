import math

import pytest

from hepflat import pdg
from hepflat.errors import UnitMismatch, UnknownParticleType
from hepflat.units import LengthUnit, MomentumUnit, output_scales


@pytest.mark.parametrize(
    "pdg_id, expected",
    [
        (2212, 1.0),
        (22, 0.0),
        (-24, -1.0),
        (1, -1.0 / 3.0),
        (-2, -2.0 / 3.0),
        (11, -1.0),
        (-11, 1.0),
        (2112, 0.0),
    ],
)
def test_charge(pdg_id, expected):
    assert pdg.charge(pdg_id) == pytest.approx(expected)


def test_charge_is_deterministic():
    assert pdg.charge(-2) == pdg.charge(-2)


def test_unknown_pdg_raises():
    with pytest.raises(UnknownParticleType) as exc:
        pdg.charge(0)
    assert exc.value.pdg_id == 0
    assert isinstance(exc.value, ValueError)


def test_unknown_pdg_sentinel():
    assert math.isnan(pdg.charge(0, unknown=float("nan")))
    assert pdg.charge(0, unknown=0.0) == 0.0


def test_is_valid_pdg_id():
    assert pdg.is_valid_pdg_id(2212)
    assert not pdg.is_valid_pdg_id(0)
    assert not pdg.is_valid_pdg_id("not a number")


def test_name_falls_back_to_number():
    assert pdg.name(0) == "0"


def test_output_scales_strict():
    assert output_scales(MomentumUnit.GEV, LengthUnit.MM) == (1.0, 1.0)
    with pytest.raises(UnitMismatch):
        output_scales(MomentumUnit.MEV, LengthUnit.MM)
    with pytest.raises(UnitMismatch):
        output_scales(MomentumUnit.GEV, LengthUnit.CM)


def test_output_scales_convert():
    ms, ls = output_scales(MomentumUnit.MEV, LengthUnit.CM, policy="convert")
    assert ms == pytest.approx(1e-3)
    assert ls == pytest.approx(10.0)
    with pytest.raises(ValueError):
        output_scales(MomentumUnit.GEV, LengthUnit.MM, policy="guess")
