"""The reference example event, built by hand.

Adapted from the HepMC example by Matt Dobbs::

         name status pdg_id  parent Px       Py    Pz       Energy      Mass
      1  !p+!    3   2212    0,0    0.000    0.000 7000.000 7000.000    0.938
      2  !p+!    3   2212    0,0    0.000    0.000-7000.000 7000.000    0.938
    =========================================================================
      3  !d!     3      1    1,1    0.750   -1.569   32.191   32.238    0.000
      4  !u~!    3     -2    2,2   -3.047  -19.000  -54.629   57.920    0.000
      5  !W-!    3    -24    1,2    1.517   -20.68  -20.605   85.925   80.799
      6  !gamma! 1     22    1,2   -3.813    0.113   -1.833    4.233    0.000
      7  !d!     1      1    5,5   -2.445   28.816    6.082   29.552    0.010
      8  !u~!    1     -2    5,5    3.962  -49.498  -26.687   56.373    0.006

Graph::

                           p7
     p1                   /
       \\v1__p3      p5---v4
             \\_v3_/       \\
             /    \\        p8
        v2__p4     \\
       /            p6
     p2
"""

from __future__ import annotations

from .models import FourVector, GenEvent


def build_example_event() -> GenEvent:
    """Signal process 20, event 1, GeV/mm; v3 is the signal vertex."""
    evt = GenEvent(signal_process_id=20, event_number=1)
    evt.use_units("GEV", "MM")

    v1 = evt.add_vertex()
    evt.add_particle_in(v1, evt.add_particle(FourVector(0, 0, 7000, 7000), 2212, 3))
    v2 = evt.add_vertex()
    evt.add_particle_in(v2, evt.add_particle(FourVector(0, 0, -7000, 7000), 2212, 3))

    p3 = evt.add_particle(FourVector(0.750, -1.569, 32.191, 32.238), 1, 3)
    evt.add_particle_out(v1, p3)
    p4 = evt.add_particle(FourVector(-3.047, -19.0, -54.629, 57.920), -2, 3)
    evt.add_particle_out(v2, p4)

    v3 = evt.add_vertex()
    evt.add_particle_in(v3, p3)
    evt.add_particle_in(v3, p4)
    evt.add_particle_out(v3, evt.add_particle(FourVector(-3.813, 0.113, -1.833, 4.233), 22, 1))
    p5 = evt.add_particle(FourVector(1.517, -20.68, -20.605, 85.925), -24, 3)
    evt.add_particle_out(v3, p5)

    v4 = evt.add_vertex(FourVector(0.12, -0.3, 0.05, 0.004))
    evt.add_particle_in(v4, p5)
    evt.add_particle_out(v4, evt.add_particle(FourVector(-2.445, 28.816, 6.082, 29.552), 1, 1))
    evt.add_particle_out(v4, evt.add_particle(FourVector(3.962, -49.498, -26.687, 56.373), -2, 1))

    evt.set_signal_process_vertex(v3)
    return evt
