#!/usr/bin/env python3
"""
05_fit_fatality_model.py

Fit the fatality-rate OLS model.

    fatality_rate ~ incidents + deaths

on one row per (day type, hour category, borough). The day type follows
regression.legacy_day_type in params.yml.

Inputs:
- data/interim/shootings_enriched.parquet

Outputs (data/processed/models/):
- regression_input.csv
- fatality_model.json (coefficients, significance, fit stats, residuals)
- fatality_model_coefficients.csv
- predicted_vs_actual.csv
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from shooting_eda.hashing import write_metadata_sidecar
from shooting_eda.io_utils import atomic_write_df, atomic_write_json, load_params, read_df
from shooting_eda.logging_utils import get_logger
from shooting_eda.paths import INTERIM_DIR, MODELS_DIR
from shooting_eda.regression import (
    build_regression_input,
    fit_fatality_model,
    predicted_vs_actual,
)

SCRIPT_NAME = "05_fit_fatality_model"


def main():
    """Main entry point."""
    with get_logger(SCRIPT_NAME) as logger:
        logger.info(f"Starting {SCRIPT_NAME}.py")

        config = load_params()
        logger.log_config(config)

        enriched_path = INTERIM_DIR / config["outputs"]["enriched"]
        legacy_day_type = bool(config.get("regression", {}).get("legacy_day_type", False))
        logger.log_inputs({"enriched": str(enriched_path)})

        if legacy_day_type:
            logger.warning("legacy_day_type enabled: every row will be classified 'Weekday'")

        try:
            enriched = read_df(enriched_path)

            reg_input = build_regression_input(enriched, legacy_day_type=legacy_day_type)
            logger.info(f"Regression input: {len(reg_input):,} rows")

            result = fit_fatality_model(reg_input)
            comparison = predicted_vs_actual(reg_input, result)

            input_path = MODELS_DIR / "regression_input.csv"
            model_path = MODELS_DIR / "fatality_model.json"
            coef_path = MODELS_DIR / "fatality_model_coefficients.csv"
            comparison_path = MODELS_DIR / "predicted_vs_actual.csv"

            atomic_write_df(reg_input, input_path, index=False)
            atomic_write_json(
                {**result.to_dict(), "legacy_day_type": legacy_day_type},
                model_path,
            )
            atomic_write_df(result.coefficients, coef_path, index=False)
            atomic_write_df(comparison, comparison_path, index=False)

            model_stats = {
                "n_obs": result.n_obs,
                "r_squared": result.r_squared,
                "r_squared_adj": result.r_squared_adj,
                "f_pvalue": result.f_pvalue,
            }
            logger.log_model_stats(model_stats)

            for row in result.coefficients.itertuples():
                logger.info(
                    f"  {row.term}: {row.estimate:.6f} "
                    f"(se {row.std_error:.6f}, p {row.p_value:.4g}) {row.significance}"
                )

            write_metadata_sidecar(
                output_path=model_path,
                inputs={"enriched": str(enriched_path)},
                config=config,
                run_id=logger.run_id,
                extra=model_stats,
            )

            logger.log_outputs({
                "regression_input": str(input_path),
                "fatality_model": str(model_path),
                "coefficients": str(coef_path),
                "predicted_vs_actual": str(comparison_path),
            })

            logger.info(f"SUCCESS: R^2 = {result.r_squared:.4f} on {result.n_obs} rows")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
