"""
Reading and atomically writing pipeline files.

Every stage output goes through `atomic_write`: bytes land in a hidden
sibling temp file that replaces the target only once fully written, so an
interrupted run never leaves a truncated parquet/CSV/JSON behind.
Parquet holds the interim and series tables; CSV is the export format.
"""

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
import yaml

from shooting_eda.paths import CONFIG_DIR

# suffix -> (file mode, DataFrame writer, pandas reader)
TABLE_FORMATS = {
    ".parquet": ("wb", "to_parquet", pd.read_parquet),
    ".csv": ("w", "to_csv", pd.read_csv),
}


@contextmanager
def atomic_write(target_path: Union[str, Path], mode: str = "w"):
    """
    Yield a handle on a temp file beside target_path; move it into place on success.

    On error the temp file is removed and an existing target is untouched.

    Example:
        with atomic_write(RAW_DIR / "shootings.csv", mode="wb") as f:
            f.write(response.content)
    """
    target_path = Path(target_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target_path.name}.", dir=target_path.parent)
    tmp_path = Path(tmp_name)
    try:
        # newline="" keeps pandas' CSV line endings as written
        with os.fdopen(fd, mode, newline=None if "b" in mode else "") as f:
            yield f
        tmp_path.replace(target_path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def _table_format(path: Path):
    try:
        return TABLE_FORMATS[path.suffix.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported table format {path.suffix!r}; expected one of {list(TABLE_FORMATS)}"
        ) from None


def atomic_write_df(df: pd.DataFrame, target_path: Union[str, Path], **kwargs) -> None:
    """Write df as parquet or CSV (by suffix); kwargs go to the pandas writer."""
    target_path = Path(target_path)
    mode, writer, _ = _table_format(target_path)
    with atomic_write(target_path, mode=mode) as f:
        getattr(df, writer)(f, **kwargs)


def atomic_write_json(data: Any, target_path: Union[str, Path]) -> None:
    """Indented JSON; timestamps and other non-JSON values are written via str()."""
    with atomic_write(target_path) as f:
        json.dump(data, f, indent=2, default=str)


def read_df(path: Union[str, Path], **kwargs) -> pd.DataFrame:
    path = Path(path)
    _, _, reader = _table_format(path)
    return reader(path, **kwargs)


def read_json(path: Union[str, Path]) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_params(config_dir: Optional[Path] = None) -> dict:
    """Parse params.yml from config_dir (default: the project's configs/)."""
    path = Path(config_dir or CONFIG_DIR) / "params.yml"
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)
