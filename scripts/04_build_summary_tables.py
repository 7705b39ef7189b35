#!/usr/bin/env python3
"""
04_build_summary_tables.py

Descriptive tables and chart-ready matrices from the incident series.

Outputs (data/processed/tables/):
- incidents_by_day.csv, deaths_by_day.csv
- incidents_by_hour.csv, deaths_by_hour.csv
- day_hour_heatmap.csv (long, 42 cells) + day_hour_<value>_wide.csv
- yearly_trend.csv
- borough_summary.csv
- peak_summary.json
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from shooting_eda.analysis import (
    borough_summary,
    heatmap_matrix,
    peak_summary,
    pivot_heatmap,
    rank_by_day,
    rank_by_hour,
    yearly_trend,
)
from shooting_eda.hashing import write_metadata_sidecar
from shooting_eda.io_utils import atomic_write_df, atomic_write_json, load_params, read_df
from shooting_eda.logging_utils import get_logger
from shooting_eda.paths import INTERIM_DIR, SERIES_DIR, TABLES_DIR

SCRIPT_NAME = "04_build_summary_tables"

HEATMAP_VALUES = ["incidents", "deaths", "fatality_rate"]


def main():
    """Main entry point."""
    with get_logger(SCRIPT_NAME) as logger:
        logger.info(f"Starting {SCRIPT_NAME}.py")

        config = load_params()
        logger.log_config(config)

        series_path = SERIES_DIR / config["outputs"]["series"]
        enriched_path = INTERIM_DIR / config["outputs"]["enriched"]
        inputs = {"incident_series": str(series_path), "enriched": str(enriched_path)}
        logger.log_inputs(inputs)

        try:
            series = read_df(series_path)
            enriched = read_df(enriched_path)

            outputs = {}

            for value in ("incidents", "deaths"):
                path = TABLES_DIR / f"{value}_by_day.csv"
                atomic_write_df(rank_by_day(series, value), path, index=False)
                outputs[f"{value}_by_day"] = str(path)

                path = TABLES_DIR / f"{value}_by_hour.csv"
                atomic_write_df(rank_by_hour(series, value), path, index=False)
                outputs[f"{value}_by_hour"] = str(path)

            matrix = heatmap_matrix(series)
            path = TABLES_DIR / "day_hour_heatmap.csv"
            atomic_write_df(matrix, path, index=False)
            outputs["day_hour_heatmap"] = str(path)

            for value in HEATMAP_VALUES:
                path = TABLES_DIR / f"day_hour_{value}_wide.csv"
                atomic_write_df(pivot_heatmap(matrix, value), path)
                outputs[f"day_hour_{value}_wide"] = str(path)

            trend = yearly_trend(series)
            path = TABLES_DIR / "yearly_trend.csv"
            atomic_write_df(trend, path, index=False)
            outputs["yearly_trend"] = str(path)

            boroughs = borough_summary(enriched)
            path = TABLES_DIR / "borough_summary.csv"
            atomic_write_df(boroughs, path, index=False)
            outputs["borough_summary"] = str(path)

            peaks = {
                "incidents": peak_summary(series, "incidents"),
                "deaths": peak_summary(series, "deaths"),
            }
            path = TABLES_DIR / "peak_summary.json"
            atomic_write_json(peaks, path)
            outputs["peak_summary"] = str(path)

            pct_total = float(matrix["incidents_pct"].sum())
            if abs(pct_total - 100.0) > 0.5:
                logger.warning(f"Heat-map incident shares sum to {pct_total:.2f}%")

            metrics = {
                "heatmap_cells": len(matrix),
                "heatmap_incidents_pct_total": pct_total,
                "years": len(trend),
                "boroughs": len(boroughs),
            }

            write_metadata_sidecar(
                output_path=TABLES_DIR / "day_hour_heatmap.csv",
                inputs=inputs,
                config=config,
                run_id=logger.run_id,
                extra=metrics,
            )

            logger.log_outputs(outputs)
            logger.log_metrics(metrics)

            logger.info(f"SUCCESS: Wrote {len(outputs)} summary tables")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
