from __future__ import annotations

from typing import Any, Dict, List


KNOWN_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "hepflat.mcparticle.v1.flat": {
        "format": "parquet",
        "layout": "flat",
        "description": "record-per-row table; parents/daughters as list<int32> columns.",
    },
    "hepflat.mcparticle.v1.columnar": {
        "format": "parquet",
        "layout": "columnar",
        "description": "event-per-row with a particles list-of-struct column.",
    },
    "hepflat.mcparticle.v1.jsonl": {
        "format": "jsonl",
        "layout": "columnar",
        "description": "header line, one JSON line per event, trailer line.",
    },
}


def list_schemas() -> List[Dict[str, Any]]:
    out = []
    for name, meta in sorted(KNOWN_SCHEMAS.items()):
        out.append({"name": name, **meta})
    return out


def schema_name(fmt: str, layout: str) -> str:
    for name, meta in KNOWN_SCHEMAS.items():
        if meta["format"] == fmt and meta["layout"] == layout:
            return name
    raise ValueError(f"No schema for format={fmt!r} layout={layout!r}")
