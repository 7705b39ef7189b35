#!/usr/bin/env python3
"""
02_clean_shootings.py

Clean the raw shooting snapshot.

- Drop X/Y coordinates, lat/lon, Lon_Lat, PRECINCT, JURISDICTION_CODE
- Parse OCCUR_DATE (MM/DD/YYYY), derive OCCUR_YEAR and OCCUR_DATETIME
- Coerce STATISTICAL_MURDER_FLAG to bool

Malformed dates fail the run unless cleaning.on_bad_dates is "skip".

Inputs:
- data/raw/nypd_shooting_incidents.csv

Outputs:
- data/interim/shootings_clean.parquet
- data/processed/tables/data_quality.json
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from shooting_eda.analysis import compute_quality_metrics
from shooting_eda.cleaning import clean_incidents
from shooting_eda.hashing import write_metadata_sidecar
from shooting_eda.io_utils import atomic_write_df, atomic_write_json, load_params
from shooting_eda.loader import load_raw_incidents
from shooting_eda.logging_utils import get_logger
from shooting_eda.paths import INTERIM_DIR, RAW_DIR, TABLES_DIR

SCRIPT_NAME = "02_clean_shootings"


def main():
    """Main entry point."""
    with get_logger(SCRIPT_NAME) as logger:
        logger.info(f"Starting {SCRIPT_NAME}.py")

        config = load_params()
        logger.log_config(config)

        raw_path = RAW_DIR / config["source"]["raw_filename"]
        clean_path = INTERIM_DIR / config["outputs"]["cleaned"]
        quality_path = TABLES_DIR / "data_quality.json"
        on_bad_dates = config.get("cleaning", {}).get("on_bad_dates", "raise")

        logger.log_inputs({"raw_shootings": str(raw_path)})

        try:
            raw_df = load_raw_incidents(raw_path)
            logger.info(f"Loaded {len(raw_df):,} raw rows")

            clean_df, stats = clean_incidents(raw_df, on_error=on_bad_dates, logger=logger)

            atomic_write_df(clean_df, clean_path, index=False)
            logger.info(f"Saved: {clean_path}")

            quality = compute_quality_metrics(clean_df)
            atomic_write_json(quality, quality_path)
            logger.info(f"Saved: {quality_path}")

            write_metadata_sidecar(
                output_path=clean_path,
                inputs={"raw_shootings": str(raw_path)},
                config=config,
                run_id=logger.run_id,
                extra=stats,
            )

            logger.log_outputs({
                "cleaned": str(clean_path),
                "data_quality": str(quality_path),
            })
            logger.log_metrics({
                **stats,
                "unique_incidents": quality["unique_incidents"],
                "date_min": quality.get("date_min"),
                "date_max": quality.get("date_max"),
            })

            logger.info(f"SUCCESS: Cleaned {stats['rows_out']:,} rows")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
