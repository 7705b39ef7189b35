"""
Filesystem layout of the shooting EDA pipeline.

    configs/params.yml           run parameters
    data/raw/                    CSV snapshot + _manifest.json
    data/interim/                cleaned and enriched incident rows
    data/processed/series/       base incidents/deaths series
    data/processed/tables/       rankings, heat map, trends, quality report
    data/processed/models/       regression input and fitted model
    data/processed/metadata/     <stem>_metadata.json sidecars
    logs/                        one JSONL file per script run

Scripts take every location from here; none build '../' paths themselves.
"""

from pathlib import Path
from typing import Optional

# `.project-root` ships with the checkout; pyproject.toml covers editable installs
ROOT_MARKERS = (".project-root", "pyproject.toml")


def find_project_root(start: Optional[Path] = None) -> Path:
    """
    Nearest ancestor of `start` (default: this module) holding a root marker.

    Raises:
        FileNotFoundError: If no ancestor has one
    """
    start = Path(start or __file__).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in ROOT_MARKERS):
            return candidate
    raise FileNotFoundError(f"No project root marker {ROOT_MARKERS} above {start}")


PROJECT_ROOT = find_project_root()

CONFIG_DIR = PROJECT_ROOT / "configs"
LOGS_DIR = PROJECT_ROOT / "logs"

RAW_DIR = PROJECT_ROOT / "data" / "raw"
INTERIM_DIR = PROJECT_ROOT / "data" / "interim"
PROCESSED_DIR = PROJECT_ROOT / "data" / "processed"

SERIES_DIR = PROCESSED_DIR / "series"
TABLES_DIR = PROCESSED_DIR / "tables"
MODELS_DIR = PROCESSED_DIR / "models"
METADATA_DIR = PROCESSED_DIR / "metadata"

MANIFEST_PATH = RAW_DIR / "_manifest.json"
