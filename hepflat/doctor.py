from __future__ import annotations

from typing import Any, Dict, List


def doctor_report() -> Dict[str, Any]:
    checks: List[Dict[str, Any]] = []

    # Core import
    try:
        import hepflat  # noqa: F401
        checks.append({"name": "hepflat import", "ok": True, "detail": f"version {hepflat.__version__}"})
    except ImportError as e:
        checks.append({"name": "hepflat import", "ok": False, "detail": str(e)})

    try:
        import particle

        checks.append({"name": "particle (pdg charges)", "ok": True, "detail": f"version {particle.__version__}"})
    except ImportError as e:
        checks.append({"name": "particle (pdg charges)", "ok": False, "detail": str(e)})

    try:
        import pyarrow

        checks.append({"name": "pyarrow (parquet store)", "ok": True, "detail": f"version {pyarrow.__version__}"})
    except ImportError:
        checks.append({"name": "pyarrow (parquet store)", "ok": True, "detail": "not installed (jsonl only)"})

    from .io.registry import registered_formats

    checks.append({"name": "formats", "ok": True, "detail": ", ".join(registered_formats())})

    ok_all = all(c["ok"] for c in checks)
    summary = "hepflat doctor: OK" if ok_all else "hepflat doctor: FAIL"

    return {"summary": summary, "checks": checks}
