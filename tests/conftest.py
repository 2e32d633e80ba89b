"""Test fixtures.

HepMC3 input files are (re)generated under ``tests/fixtures/`` at
collection time so the suite does not depend on packaged data files.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from hepflat.example import build_example_event
from hepflat.models import FourVector, GenEvent

FIXTURES = Path(__file__).parent / "fixtures"


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _ensure_hepmc_fixtures(fixtures: Path) -> None:
    # Two events: the reference W- event in explicit-vertex form and a
    # two-body decay that uses an implicit vertex (mother = particle id).
    _write_text(
        fixtures / "w_decay.hepmc",
        """HepMC::Version 3.02.05
HepMC::Asciiv3-START_EVENT_LISTING
E 1 4 8
U GEV MM
W 1.0
A 0 signal_process_id 20
A 0 signal_process_vertex -3
P 1 0 2212 0 0 7000 7000 0.938 3
P 2 0 2212 0 0 -7000 7000 0.938 3
V -1 0 [1]
P 3 -1 1 0.750 -1.569 32.191 32.238 0 3
V -2 0 [2]
P 4 -2 -2 -3.047 -19.0 -54.629 57.920 0 3
V -3 0 [3,4]
P 5 -3 22 -3.813 0.113 -1.833 4.233 0 1
P 6 -3 -24 1.517 -20.68 -20.605 85.925 80.799 3
V -4 0 [6] @ 0.12 -0.3 0.05 0.004
P 7 -4 1 -2.445 28.816 6.082 29.552 0.01 1
P 8 -4 -2 3.962 -49.498 -26.687 56.373 0.006 1
E 2 1 3
U GEV MM
P 1 0 23 0 0 0 91.1876 91.1876 2
P 2 1 11 0 0 45.5938 45.5938 0.000511 1
P 3 1 -11 0 0 -45.5938 45.5938 0.000511 1
HepMC::Asciiv3-END_EVENT_LISTING
""",
    )

    _write_text(
        fixtures / "mev_cm.hepmc",
        """HepMC::Version 3.02.05
HepMC::Asciiv3-START_EVENT_LISTING
E 5 1 3
U MEV CM
P 1 0 23 0 0 0 91187.6 91187.6 3
V -1 0 [1] @ 1.0 2.0 3.0 4.0
P 2 -1 13 1000 0 45000 45011.1 105.7 1
P 3 -1 -13 -1000 0 -45000 45011.1 105.7 1
HepMC::Asciiv3-END_EVENT_LISTING
""",
    )


def pytest_configure(config):  # noqa: D401
    """Ensure fixtures exist before any tests run."""
    _ensure_hepmc_fixtures(FIXTURES)


@pytest.fixture
def example_event() -> GenEvent:
    return build_example_event()


@pytest.fixture
def six_particle_event() -> GenEvent:
    """Both protons annihilate at one vertex into gamma + W-, W- -> d u~.

    Particle indices: 0, 1 protons; 2 gamma; 3 W-; 4 d; 5 u~.
    """
    evt = GenEvent(signal_process_id=20, event_number=3)
    p1 = evt.add_particle(FourVector(0, 0, 7000, 7000), 2212, 3)
    p2 = evt.add_particle(FourVector(0, 0, -7000, 7000), 2212, 3)
    hard = evt.add_vertex()
    evt.add_particle_in(hard, p1)
    evt.add_particle_in(hard, p2)
    evt.add_particle_out(hard, evt.add_particle(FourVector(-3.813, 0.113, -1.833, 4.233), 22, 1))
    w = evt.add_particle(FourVector(1.517, -20.68, -20.605, 85.925), -24, 3)
    evt.add_particle_out(hard, w)
    decay = evt.add_vertex(FourVector(0.12, -0.3, 0.05, 0.004))
    evt.add_particle_in(decay, w)
    evt.add_particle_out(decay, evt.add_particle(FourVector(-2.445, 28.816, 6.082, 29.552), 1, 1))
    evt.add_particle_out(decay, evt.add_particle(FourVector(3.962, -49.498, -26.687, 56.373), -2, 1))
    evt.set_signal_process_vertex(hard)
    return evt
