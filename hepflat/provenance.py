from __future__ import annotations

import hashlib
import json
import math
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def _sha256_file(path: str | Path, *, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            b = f.read(chunk_size)
            if not b:
                break
            h.update(b)
    return h.hexdigest()


def _git_sha(repo_root: str | Path | None = None) -> str:
    """Best-effort git SHA for provenance.

    Returns empty string if not in a git worktree or git is unavailable.
    """
    try:
        cwd = str(repo_root) if repo_root is not None else None
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], cwd=cwd, stderr=subprocess.DEVNULL)
        return out.decode("utf-8").strip()
    except (OSError, subprocess.CalledProcessError):
        return ""


def _repo_root_from_here() -> Optional[Path]:
    # Walk upwards from this file; if a .git exists, treat that as root.
    p = Path(__file__).resolve()
    for parent in [p.parent] + list(p.parents):
        if (parent / ".git").exists():
            return parent
    return None


def build_provenance(
    *,
    tool_version: str,
    input_path: str | Path | None,
    output_path: str | Path,
    input_format: str,
    output_format: str,
    argv: list[str],
    config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Describe how an output file was produced.

    ``input_path`` may be None for events built in memory (no checksum).
    """
    repo_root = _repo_root_from_here()
    prov: Dict[str, Any] = {
        "tool": "hepflat",
        "tool_version": tool_version,
        "git_sha": _git_sha(repo_root) if repo_root is not None else "",
        "utc_timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "input": {
            "path": str(input_path) if input_path is not None else "",
            "sha256": _sha256_file(input_path) if input_path is not None else "",
            "format": input_format,
        },
        "output": {
            "path": str(output_path),
            "format": output_format,
        },
        "argv": argv,
    }
    if config:
        prov["config"] = config
    return prov


def _json_safe(obj: Any) -> Any:
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


def stable_json_dumps(obj: Any) -> str:
    """Deterministic, strictly valid JSON for hashing / embedding.

    NaN and infinities (e.g. an ``unknown_charge`` sentinel) become ``null``.
    """
    return json.dumps(_json_safe(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
