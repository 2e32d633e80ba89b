import json
from pathlib import Path

import pytest

import hepflat
from hepflat.cli import main

FIXTURES = Path(__file__).parent / "fixtures"
W_DECAY = FIXTURES / "w_decay.hepmc"
MEV_CM = FIXTURES / "mev_cm.hepmc"


def test_convert_api_embeds_provenance(tmp_path):
    out = tmp_path / "out.jsonl"
    result = hepflat.convert(W_DECAY, out, quiet=True)
    assert result["n_events"] == 2
    assert result["n_records"] == 11
    assert result["validation"] is None

    header = json.loads(out.read_text(encoding="utf-8").splitlines()[0])
    prov = json.loads(header["metadata"]["hepflat_provenance"])
    assert prov["tool"] == "hepflat"
    assert prov["input"]["format"] == "hepmc3"
    assert len(prov["input"]["sha256"]) == 64
    assert prov["config"]["collection_name"] == "MCParticles"


def test_convert_api_max_events_and_validate(tmp_path):
    out = tmp_path / "out.jsonl"
    result = hepflat.convert(
        W_DECAY, out, quiet=True, max_events=1, config=hepflat.ConversionConfig(validate=True)
    )
    assert result["n_events"] == 1
    assert result["validation"].is_valid


def test_cli_convert(tmp_path, capsys):
    out = tmp_path / "out.jsonl"
    rc = main(["convert", str(W_DECAY), str(out), "--collection", "GenParticles"])
    assert rc == 0
    err = capsys.readouterr().err
    assert "Wrote 2 events" in err
    names = {coll.name for _, coll in hepflat.read_collections(out)}
    assert names == {"GenParticles"}


def test_cli_convert_units(tmp_path, capsys):
    out = tmp_path / "out.jsonl"
    assert main(["convert", str(MEV_CM), str(out), "-q"]) == 1
    assert "Error:" in capsys.readouterr().err

    assert main(["convert", str(MEV_CM), str(out), "-q", "--units", "convert"]) == 0
    (_, coll), = list(hepflat.read_collections(out))
    assert coll[1].momentum[2] == pytest.approx(45.0)


def test_cli_convert_missing_input(tmp_path, capsys):
    rc = main(["convert", str(tmp_path / "nope.hepmc"), str(tmp_path / "out.jsonl"), "-q"])
    assert rc == 1


def test_cli_example(tmp_path, capsys):
    out = tmp_path / "example.jsonl"
    hepmc = tmp_path / "example.hepmc"
    assert main(["example", str(out), "--hepmc", str(hepmc)]) == 0
    printed = capsys.readouterr().out
    assert "GenEvent: #1 ID=20" in printed
    assert "Collection MCParticles: 8 records" in printed

    (header, coll), = list(hepflat.read_collections(out))
    assert header.event_number == 1
    assert len(coll) == 8
    assert len(list(hepflat.read(hepmc))) == 1


def test_cli_show(capsys):
    assert main(["show", str(W_DECAY), "--max-events", "1", "--flat"]) == 0
    out = capsys.readouterr().out
    assert "GenEvent: #1" in out
    assert "GenEvent: #2" not in out
    assert "Collection MCParticles: 8 records" in out


def test_cli_info_json(tmp_path, capsys):
    out = tmp_path / "out.jsonl"
    main(["convert", str(W_DECAY), str(out), "-q"])
    capsys.readouterr()
    assert main(["info", str(out), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["n_events"] == 2
    assert data["total_records"] == 11


def test_cli_validate(capsys):
    assert main(["validate", str(W_DECAY)]) == 0
    assert "Validation: 0 errors" in capsys.readouterr().out


def test_cli_schema_show(capsys):
    assert main(["schema", "show", "--json"]) == 0
    names = [s["name"] for s in json.loads(capsys.readouterr().out)]
    assert "hepflat.mcparticle.v1.flat" in names


def test_cli_doctor(capsys):
    assert main(["doctor", "--json"]) == 0
    rep = json.loads(capsys.readouterr().out)
    assert rep["summary"] == "hepflat doctor: OK"


def test_cli_no_command(capsys):
    assert main([]) == 0
