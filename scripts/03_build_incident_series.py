#!/usr/bin/env python3
"""
03_build_incident_series.py

Enrich cleaned incidents and build the base incidents/deaths series.

- OCCUR_DAY: weekday name
- OCCUR_HOUR_CAT: Late Night / Early Morning / Morning / Afternoon /
  Early Night / Evening
- Series keyed by (year, day, hour category, date, time, murder flag) with
  distinct incident and death counts

Inputs:
- data/interim/shootings_clean.parquet

Outputs:
- data/interim/shootings_enriched.parquet
- data/processed/series/incident_series.parquet (+ .csv)
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from shooting_eda.aggregation import build_incident_series, enrich_incidents
from shooting_eda.hashing import write_metadata_sidecar
from shooting_eda.io_utils import atomic_write_df, load_params, read_df
from shooting_eda.logging_utils import get_logger
from shooting_eda.paths import INTERIM_DIR, SERIES_DIR

SCRIPT_NAME = "03_build_incident_series"


def main():
    """Main entry point."""
    with get_logger(SCRIPT_NAME) as logger:
        logger.info(f"Starting {SCRIPT_NAME}.py")

        config = load_params()
        logger.log_config(config)

        clean_path = INTERIM_DIR / config["outputs"]["cleaned"]
        enriched_path = INTERIM_DIR / config["outputs"]["enriched"]
        series_path = SERIES_DIR / config["outputs"]["series"]

        logger.log_inputs({"cleaned": str(clean_path)})

        try:
            clean_df = read_df(clean_path)
            logger.info(f"Loaded {len(clean_df):,} cleaned rows")

            enriched = enrich_incidents(clean_df)
            atomic_write_df(enriched, enriched_path, index=False)
            logger.info(f"Saved: {enriched_path}")

            series = build_incident_series(enriched)
            atomic_write_df(series, series_path, index=False)
            atomic_write_df(series, series_path.with_suffix(".csv"), index=False)
            logger.info(f"Saved: {series_path}")

            hour_mix = (
                enriched["OCCUR_HOUR_CAT"].value_counts(normalize=True).round(4).to_dict()
            )
            metrics = {
                "enriched_rows": len(enriched),
                "series_buckets": len(series),
                "total_incidents": int(series["incidents"].sum()),
                "total_deaths": int(series["deaths"].sum()),
                "hour_category_share": {str(k): v for k, v in hour_mix.items()},
            }

            write_metadata_sidecar(
                output_path=series_path,
                inputs={"cleaned": str(clean_path)},
                config=config,
                run_id=logger.run_id,
                extra=metrics,
            )

            logger.log_outputs({
                "enriched": str(enriched_path),
                "incident_series": str(series_path),
            })
            logger.log_metrics(metrics)

            logger.info(f"SUCCESS: Built {len(series):,} series buckets")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
