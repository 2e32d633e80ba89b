import pytest

from hepflat.errors import GraphError
from hepflat.models import FourVector, GenEvent, MCParticle, MCParticleCollection
from hepflat.units import LengthUnit, MomentumUnit
from hepflat.walk import particles_of, topological_order, vertices_of


def test_graph_back_references(example_event):
    ev = example_event
    assert len(ev) == 8
    assert len(ev.vertices) == 4
    assert ev.signal_vertex == 2
    assert ev.particles[0].production_vertex is None
    assert ev.particles[0].end_vertex == 0
    assert ev.mothers(4) == [2, 3]  # gamma from d u~
    assert ev.daughters(5) == [6, 7]
    assert ev.mothers(0) == []
    assert ev.daughters(7) == []


def test_add_particle_in_is_idempotent_for_same_vertex():
    ev = GenEvent()
    v = ev.add_vertex()
    p = ev.add_particle(FourVector(0, 0, 1, 1), 22, 1)
    ev.add_particle_in(v, p)
    ev.add_particle_in(v, p)
    assert ev.vertices[v].incoming == [p]


def test_particle_cannot_end_at_two_vertices():
    ev = GenEvent()
    v1 = ev.add_vertex()
    v2 = ev.add_vertex()
    p = ev.add_particle(FourVector(), 22, 1)
    ev.add_particle_in(v1, p)
    with pytest.raises(GraphError):
        ev.add_particle_in(v2, p)


def test_particle_cannot_start_and_end_at_same_vertex():
    ev = GenEvent()
    v = ev.add_vertex()
    p = ev.add_particle(FourVector(), 22, 1)
    ev.add_particle_out(v, p)
    with pytest.raises(GraphError):
        ev.add_particle_in(v, p)


def test_bad_indices_raise_graph_error():
    ev = GenEvent()
    with pytest.raises(GraphError):
        ev.particle(0)
    with pytest.raises(GraphError):
        ev.set_signal_process_vertex(3)


def test_use_units_accepts_strings():
    ev = GenEvent()
    ev.use_units("mev", "cm")
    assert ev.momentum_unit is MomentumUnit.MEV
    assert ev.length_unit is LengthUnit.CM
    with pytest.raises(ValueError):
        ev.use_units("TeV", "mm")


def test_walks_are_restartable(example_event):
    walk = particles_of(example_event)
    first = [i for i, _ in walk]
    second = [i for i, _ in walk]
    assert first == second == list(range(8))
    assert len(walk) == 8
    assert [i for i, _ in vertices_of(example_event)] == [0, 1, 2, 3]


def test_walk_of_empty_event():
    assert list(particles_of(GenEvent())) == []


def test_topological_order_puts_mothers_first(example_event):
    order = topological_order(example_event)
    pos = {p: i for i, p in enumerate(order)}
    for i in range(len(example_event)):
        for m in example_event.mothers(i):
            assert pos[m] < pos[i]


def test_topological_order_detects_cycle():
    ev = GenEvent()
    a = ev.add_particle(FourVector(), 22, 2)
    b = ev.add_particle(FourVector(), 22, 2)
    v1 = ev.add_vertex()
    v2 = ev.add_vertex()
    ev.add_particle_out(v1, a)
    ev.add_particle_in(v2, a)
    ev.add_particle_out(v2, b)
    ev.add_particle_in(v1, b)
    with pytest.raises(GraphError):
        topological_order(ev)


def test_four_vector_mass():
    assert FourVector(0, 0, 3, 5).m == pytest.approx(4.0)
    assert FourVector(0, 0, 10, 10).m == 0.0
    assert (FourVector(1, 2, 3, 4) + FourVector(1, 1, 1, 1)) == FourVector(2, 3, 4, 5)


def test_record_dict_round_trip():
    rec = MCParticle(pdg=-24, generator_status=3, charge=-1.0, momentum=(1.0, 2.0, 3.0),
                     vertex=(0.1, 0.2, 0.3), time=0.4, parents=[0, 1], daughters=[4])
    assert MCParticle.from_dict(rec.to_dict()) == rec


def test_collection_append_returns_index():
    coll = MCParticleCollection()
    rec = MCParticle(pdg=22, generator_status=1, charge=0.0, momentum=(0.0, 0.0, 1.0))
    assert coll.append(rec) == 0
    assert coll.append(rec) == 1
    assert len(coll) == 2
    coll.clear()
    assert len(coll) == 0
