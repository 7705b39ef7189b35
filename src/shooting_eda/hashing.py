"""
Provenance sidecars for pipeline outputs.

Each table or model a script writes gets `<stem>_metadata.json` in
METADATA_DIR recording the sha256 of every input file, a digest of the
params it ran with, the git commit and the library versions. Two outputs
with equal sidecar digests were produced from the same data and settings.
"""

import hashlib
import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from shooting_eda.io_utils import atomic_write_json
from shooting_eda.logging_utils import get_versions
from shooting_eda.paths import METADATA_DIR, PROJECT_ROOT

CHUNK_SIZE = 1 << 20


def hash_file(path: Union[str, Path]) -> str:
    """sha256 hex digest of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hash_dict(d: Mapping[str, Any]) -> str:
    """sha256 of the mapping's JSON form; key order does not matter."""
    canonical = json.dumps(d, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def git_commit() -> Optional[str]:
    """HEAD of the project checkout, or None outside git."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=PROJECT_ROOT,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    return result.stdout.strip() if result.returncode == 0 else None


def describe_inputs(inputs: Mapping[str, Union[str, Path]]) -> Dict[str, Dict[str, Any]]:
    """Path and sha256 per named input. A missing file gets sha256 None."""
    described = {}
    for name, path in inputs.items():
        path = Path(path)
        described[name] = {
            "path": str(path),
            "sha256": hash_file(path) if path.exists() else None,
        }
    return described


def write_metadata_sidecar(
    output_path: Union[str, Path],
    inputs: Mapping[str, Union[str, Path]],
    config: Mapping[str, Any],
    run_id: str,
    extra: Optional[Dict[str, Any]] = None,
    metadata_dir: Optional[Path] = None,
) -> Path:
    """
    Write the sidecar for output_path and return the sidecar's path.

    Args:
        output_path: The table/model file being described
        inputs: Name -> path of every file the output was derived from
        config: Parameters of the run (stored in full and as a digest)
        run_id: Run identifier shared with the JSONL log
        extra: Stage facts such as row counts, dropped rows or fit statistics
        metadata_dir: Sidecar directory; defaults to METADATA_DIR
    """
    output_path = Path(output_path)
    metadata = {
        "output_file": str(output_path),
        "run_id": run_id,
        "created_utc": datetime.now(timezone.utc).isoformat(),
        "inputs": describe_inputs(inputs),
        "config_digest": hash_dict(config),
        "config": dict(config),
        "git_commit": git_commit(),
        "versions": get_versions(),
    }
    if extra:
        metadata["extra"] = extra

    sidecar_path = Path(metadata_dir or METADATA_DIR) / f"{output_path.stem}_metadata.json"
    atomic_write_json(metadata, sidecar_path)
    return sidecar_path
