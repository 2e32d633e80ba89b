import importlib
import json

import pytest

import hepflat
from hepflat.convert import convert_event
from hepflat.io.jsonl import EVENT_KIND, HEADER_KIND, TRAILER_KIND, JSONLinesStore, read_jsonl_header
from hepflat.models import EventHeader, GenEvent
from hepflat.writer import CollectionWriter

try:
    importlib.import_module("pyarrow")
    HAS_PYARROW = True
except Exception:
    HAS_PYARROW = False

needs_pyarrow = pytest.mark.skipif(not HAS_PYARROW, reason="pyarrow not installed; parquet tests skipped")


def _events(example_event, six_particle_event):
    return [six_particle_event, GenEvent(event_number=7), example_event]


# --- jsonl -----------------------------------------------------------------------------


def test_jsonl_layout(tmp_path, example_event, six_particle_event):
    out = tmp_path / "out.jsonl"
    n = hepflat.write(out, _events(example_event, six_particle_event))
    assert n == 3

    lines = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
    assert [obj["kind"] for obj in lines] == [HEADER_KIND, EVENT_KIND, EVENT_KIND, EVENT_KIND, TRAILER_KIND]
    assert lines[0]["stream"] == "events"
    assert lines[0]["collections"] == ["MCParticles"]
    assert lines[0]["units"] == {"momentum": "GEV", "length": "MM"}
    assert lines[-1]["n_events"] == 3
    assert lines[2]["collections"]["MCParticles"] == []


def test_jsonl_read_back(tmp_path, example_event, six_particle_event):
    out = tmp_path / "out.jsonl"
    events = _events(example_event, six_particle_event)
    hepflat.write(out, events)

    back = list(hepflat.read_collections(out))
    assert [h for h, _ in back] == [
        EventHeader(3, 20),
        EventHeader(7, 0),
        EventHeader(1, 20),
    ]
    for (_, coll), ev in zip(back, events):
        assert coll.name == "MCParticles"
        assert coll.records == convert_event(ev).records


def test_jsonl_empty_stream_has_header_and_trailer(tmp_path):
    out = tmp_path / "empty.jsonl"
    with CollectionWriter(JSONLinesStore(str(out))) as w:
        w.open("events", "MCParticles")
    header = read_jsonl_header(str(out))
    assert header["collections"] == ["MCParticles"]
    assert list(hepflat.read_collections(out)) == []


def test_jsonl_rejects_foreign_file(tmp_path):
    other = tmp_path / "other.jsonl"
    other.write_text('{"hello": 1}\n', encoding="utf-8")
    with pytest.raises(ValueError):
        list(hepflat.read_collections(other))


# --- parquet ---------------------------------------------------------------------------


@needs_pyarrow
def test_parquet_flat_round_trip(tmp_path, example_event, six_particle_event):
    from hepflat.io.parquet import read_parquet_metadata

    out = tmp_path / "flat.parquet"
    hepflat.write(out, _events(example_event, six_particle_event))

    back = list(hepflat.read_collections(out))
    # the flat layout has no rows for an empty event
    assert [h.event_number for h, _ in back] == [3, 1]
    assert back[0][1].records == convert_event(six_particle_event).records
    assert back[1][1].records == convert_event(example_event).records

    md = read_parquet_metadata(str(out))
    assert md["hepflat.schema"] == "hepflat.mcparticle.v1.flat"
    assert md["hepflat.stream"] == "events"
    assert json.loads(md["hepflat.collections"]) == ["MCParticles"]


@needs_pyarrow
def test_parquet_columnar_keeps_empty_events(tmp_path, example_event, six_particle_event):
    from hepflat.io.parquet import read_parquet_metadata

    out = tmp_path / "columnar.parquet"
    events = _events(example_event, six_particle_event)
    hepflat.write(out, events, columnar=True, metadata={"run": "42"})

    back = list(hepflat.read_collections(out))
    assert [h.event_number for h, _ in back] == [3, 7, 1]
    for (_, coll), ev in zip(back, events):
        assert coll.records == convert_event(ev).records

    md = read_parquet_metadata(str(out))
    assert md["hepflat.schema"] == "hepflat.mcparticle.v1.columnar"
    assert md["run"] == "42"


@needs_pyarrow
def test_parquet_row_group_per_event(tmp_path, example_event, six_particle_event):
    import pyarrow.parquet as pq

    out = tmp_path / "flat.parquet"
    hepflat.write(out, [six_particle_event, example_event])
    pf = pq.ParquetFile(str(out))
    assert pf.num_row_groups == 2
    assert pf.metadata.num_rows == 14


@needs_pyarrow
def test_parquet_schema_types():
    import pyarrow as pa

    from hepflat.io.parquet import arrow_schema

    schema = arrow_schema("flat")
    assert schema.field("px").type == pa.float64()
    assert schema.field("parents").type == pa.list_(pa.int32())
    with pytest.raises(ValueError):
        arrow_schema("wide")


@needs_pyarrow
def test_parquet_empty_stream_is_readable(tmp_path):
    from hepflat.io.parquet import ParquetStore

    out = tmp_path / "empty.parquet"
    with CollectionWriter(ParquetStore(str(out))) as w:
        w.open("events", "MCParticles")
    assert list(hepflat.read_collections(out)) == []


def test_info(tmp_path, example_event, six_particle_event):
    out = tmp_path / "out.jsonl"
    hepflat.write(out, _events(example_event, six_particle_event))
    summary = hepflat.info(out)
    assert summary["format"] == "jsonl"
    assert summary["n_events"] == 3
    assert summary["total_records"] == 14
    assert summary["collections"] == {"MCParticles": 14}
    assert summary["status_counts"] == {1: 6, 3: 8}


def _same_number(example_event, six_particle_event):
    six_particle_event.event_number = 0
    example_event.event_number = 0
    return [six_particle_event, example_event]


@needs_pyarrow
@pytest.mark.parametrize("columnar", [False, True])
def test_parquet_events_sharing_a_number_stay_apart(tmp_path, columnar, example_event, six_particle_event):
    out = tmp_path / "same.parquet"
    events = _same_number(example_event, six_particle_event)
    assert hepflat.write(out, events, columnar=columnar) == 2

    back = list(hepflat.read_collections(out))
    assert len(back) == 2
    assert [len(coll) for _, coll in back] == [6, 8]
    for (header, coll), ev in zip(back, events):
        assert header.event_number == 0
        assert coll.records == convert_event(ev).records


@needs_pyarrow
def test_parquet_info_counts_events_sharing_a_number(tmp_path, example_event, six_particle_event):
    out = tmp_path / "same.parquet"
    hepflat.write(out, _same_number(example_event, six_particle_event))
    summary = hepflat.info(out)
    assert summary["n_events"] == 2
    assert summary["avg_records_per_event"] == pytest.approx(7.0)


def test_jsonl_info_counts_events_sharing_a_number(tmp_path, example_event, six_particle_event):
    out = tmp_path / "same.jsonl"
    hepflat.write(out, _same_number(example_event, six_particle_event))
    summary = hepflat.info(out)
    assert summary["n_events"] == 2
    assert summary["total_records"] == 14
    assert summary["avg_records_per_event"] == pytest.approx(7.0)


def _reject_constant(name):
    raise ValueError(f"non-standard JSON constant {name}")


def test_jsonl_unknown_charge_nan_is_strict_json(tmp_path, six_particle_event):
    import math

    six_particle_event.particles[2].pdg_id = 0
    out = tmp_path / "nan.jsonl"
    hepflat.write(out, [six_particle_event], config=hepflat.ConversionConfig(unknown_charge=float("nan")))

    for line in out.read_text(encoding="utf-8").splitlines():
        json.loads(line, parse_constant=_reject_constant)

    (_, coll), = list(hepflat.read_collections(out))
    assert math.isnan(coll[2].charge)
    assert coll[3].charge == -1.0


def test_parquet_is_an_optional_extra(monkeypatch):
    import sys

    from hepflat.doctor import doctor_report
    from hepflat.io.parquet import _require_pyarrow

    monkeypatch.setitem(sys.modules, "pyarrow", None)
    monkeypatch.setitem(sys.modules, "pyarrow.parquet", None)
    with pytest.raises(ImportError, match=r"hepflat\[parquet\]"):
        _require_pyarrow()

    rep = doctor_report()
    assert rep["summary"] == "hepflat doctor: OK"
    check = next(c for c in rep["checks"] if c["name"].startswith("pyarrow"))
    assert check["detail"] == "not installed (jsonl only)"
