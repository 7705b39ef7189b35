#!/usr/bin/env python3
"""
01_fetch_shootings.py

Fetch the NYPD Shooting Incident (Historic) CSV from NYC Open Data.

A failed download aborts the run; there is no retry and nothing is written.

Outputs:
- data/raw/nypd_shooting_incidents.csv (raw snapshot)
- data/raw/_manifest.json (updated with provenance)

Data Source:
- https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from datetime import datetime, timezone

from shooting_eda.hashing import hash_file
from shooting_eda.io_utils import atomic_write_json, load_params, read_json
from shooting_eda.loader import (
    DATASET_ID,
    REQUEST_TIMEOUT,
    SOURCE_URL,
    fetch_csv,
    load_raw_incidents,
)
from shooting_eda.logging_utils import get_logger
from shooting_eda.paths import MANIFEST_PATH, RAW_DIR

SCRIPT_NAME = "01_fetch_shootings"


def main():
    """Main entry point."""
    with get_logger(SCRIPT_NAME) as logger:
        logger.info(f"Starting {SCRIPT_NAME}.py")

        config = load_params()
        logger.log_config(config)

        source = config.get("source", {})
        url = source.get("url", SOURCE_URL)
        timeout = source.get("request_timeout_s", REQUEST_TIMEOUT)
        raw_path = RAW_DIR / source.get("raw_filename", "nypd_shooting_incidents.csv")

        try:
            timestamp = datetime.now(timezone.utc)

            fetch_csv(url, raw_path, timeout=timeout, logger=logger)

            # Parse once so a corrupt download fails here, not three scripts later
            df = load_raw_incidents(raw_path)
            logger.info(f"Parsed {len(df):,} rows, {df.shape[1]} columns")

            manifest_path = MANIFEST_PATH
            if manifest_path.exists():
                manifest = read_json(manifest_path)
            else:
                manifest = {"downloads": []}

            provenance = {
                "source": source.get("name", "NYPD Shooting Incident Data (Historic)"),
                "dataset_id": source.get("dataset_id", DATASET_ID),
                "url": url,
                "download_timestamp": timestamp.isoformat(),
                "filename": raw_path.name,
                "file_path": str(raw_path),
                "sha256": hash_file(raw_path),
                "row_count": len(df),
                "columns": list(df.columns),
            }

            manifest["downloads"].append(provenance)
            manifest["last_updated"] = timestamp.isoformat()

            atomic_write_json(manifest, manifest_path)
            logger.info(f"Updated manifest: {manifest_path}")

            logger.log_outputs({"raw_shootings": str(raw_path)})
            logger.log_metrics({
                "rows": len(df),
                "unique_incidents": int(df["INCIDENT_KEY"].nunique()),
                "columns": df.shape[1],
            })

            logger.info(f"SUCCESS: Fetched {len(df):,} shooting victim rows")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
