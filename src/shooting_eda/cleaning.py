"""
Cleaner stage: project raw rows onto the fixed record layout and type them.

- Drop the seven location/jurisdiction columns (projection onto KEPT_COLUMNS)
- OCCUR_DATE: MM/DD/YYYY text -> calendar date (datetime64, midnight)
- OCCUR_YEAR: calendar year of OCCUR_DATE
- OCCUR_DATETIME: OCCUR_DATE text + OCCUR_TIME text parsed together
- STATISTICAL_MURDER_FLAG: boolean-like text -> bool

Malformed dates or times fail the run by default (on_error="raise"). With
on_error="skip" the offending rows are dropped and counted instead.
"""

from typing import Dict, Tuple

import numpy as np
import pandas as pd

from shooting_eda.schemas import (
    CLEANED_COLUMNS,
    CLEANED_SCHEMA,
    FATAL_FLAG,
    INCIDENT_KEY,
    KEPT_COLUMNS,
    SchemaError,
    validate_schema,
)
from shooting_eda.time_utils import combine_date_time, parse_dates


ON_ERROR_POLICIES = ("raise", "skip")

FLAG_VALUES = {
    "true": True,
    "false": False,
    "t": True,
    "f": False,
    "y": True,
    "n": False,
    "yes": True,
    "no": False,
    "1": True,
    "0": False,
}


def normalize_strings(series: pd.Series) -> pd.Series:
    """Strip whitespace; blank strings become NA."""
    return series.astype("string").str.strip().replace({"": pd.NA})


def drop_unused_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Project onto KEPT_COLUMNS.

    Optional descriptive columns missing from the input are added as NA so
    downstream stages always see the same layout.
    """
    return df.reindex(columns=KEPT_COLUMNS).copy()


def parse_fatal_flag(series: pd.Series) -> pd.Series:
    """
    Coerce a boolean-like column to bool.

    Raises:
        SchemaError: On missing or unrecognised values
    """
    if pd.api.types.is_bool_dtype(series):
        return series.astype(bool)

    text = series.astype("string").str.strip().str.lower()
    parsed = text.map(FLAG_VALUES)

    invalid = parsed.isna()
    if invalid.any():
        bad = series[invalid].unique()[:5]
        raise SchemaError(f"Unrecognised {FATAL_FLAG} values: {list(bad)}")

    return parsed.astype(bool)


def parse_occurrence_dates(
    df: pd.DataFrame,
    on_error: str = "raise",
) -> Tuple[pd.DataFrame, int]:
    """
    Add typed OCCUR_DATE, OCCUR_YEAR and OCCUR_DATETIME.

    Args:
        df: Projected frame with OCCUR_DATE/OCCUR_TIME as text
        on_error: 'raise' or 'skip'

    Returns:
        (frame, number of rows dropped for malformed date/time text)

    Raises:
        ValueError: If on_error='raise' and any date/time fails to parse
    """
    if on_error not in ON_ERROR_POLICIES:
        raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}")

    df = df.copy()
    date_text = normalize_strings(df["OCCUR_DATE"])
    time_text = normalize_strings(df["OCCUR_TIME"])

    errors = "raise" if on_error == "raise" else "coerce"
    if on_error == "raise" and (date_text.isna().any() or time_text.isna().any()):
        raise ValueError("Missing OCCUR_DATE/OCCUR_TIME values")

    occur_date = parse_dates(date_text, errors=errors)
    occur_datetime = combine_date_time(date_text, time_text, errors=errors)

    valid = occur_date.notna() & occur_datetime.notna()
    dropped = int((~valid).sum())

    df["OCCUR_DATE"] = occur_date
    df["OCCUR_TIME"] = time_text
    df["OCCUR_DATETIME"] = occur_datetime
    df = df[valid.to_numpy()].copy()

    df["OCCUR_TIME"] = df["OCCUR_TIME"].astype(str)
    df["OCCUR_YEAR"] = df["OCCUR_DATE"].dt.year.astype("int64")

    return df, dropped


def assert_datetime_consistent(df: pd.DataFrame) -> None:
    """
    OCCUR_DATETIME's date part must equal OCCUR_DATE.

    Raises:
        SchemaError: On any mismatch
    """
    mismatch = df["OCCUR_DATETIME"].dt.normalize() != df["OCCUR_DATE"]
    if mismatch.any():
        raise SchemaError(f"{int(mismatch.sum())} rows where OCCUR_DATETIME date != OCCUR_DATE")


def clean_incidents(
    df: pd.DataFrame,
    on_error: str = "raise",
    logger=None,
) -> Tuple[pd.DataFrame, Dict[str, int]]:
    """
    Run the full cleaning stage.

    Returns:
        (cleaned frame in CLEANED_COLUMNS order, stats dict)
    """
    if on_error not in ON_ERROR_POLICIES:
        raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}")

    n_in = len(df)
    df = drop_unused_columns(df)

    df[INCIDENT_KEY] = normalize_strings(df[INCIDENT_KEY])
    missing_key = df[INCIDENT_KEY].isna()
    if missing_key.any():
        if on_error == "raise":
            raise SchemaError(f"{int(missing_key.sum())} rows missing {INCIDENT_KEY}")
        df = df[~missing_key.to_numpy()].copy()
    df[INCIDENT_KEY] = df[INCIDENT_KEY].astype(str)

    df, dropped_dates = parse_occurrence_dates(df, on_error=on_error)
    df[FATAL_FLAG] = parse_fatal_flag(df[FATAL_FLAG])

    df["BORO"] = normalize_strings(df["BORO"]).to_numpy(dtype=object, na_value=np.nan)

    df = df[CLEANED_COLUMNS].reset_index(drop=True)

    assert_datetime_consistent(df)
    validate_schema(df, CLEANED_SCHEMA, context="clean_incidents")

    stats = {
        "rows_in": n_in,
        "rows_out": len(df),
        "dropped_missing_key": int(missing_key.sum()),
        "dropped_bad_dates": dropped_dates,
    }

    if logger is not None:
        logger.info(
            f"Cleaned {n_in:,} rows -> {len(df):,} rows",
            extra=stats,
        )
        if dropped_dates:
            logger.warning(f"Skipped {dropped_dates:,} rows with malformed date/time text")

    return df, stats
