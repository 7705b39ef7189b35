"""
Enricher stage: temporal features and distinct-incident aggregation.

One incident can span several rows (one per victim), so every count here is
a count of distinct INCIDENT_KEYs, never of rows. `aggregate` makes a single
pass over the records, keeping per-key sets of seen incident keys and of
fatal incident keys.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set, Tuple

import pandas as pd

from shooting_eda.cleaning import parse_fatal_flag
from shooting_eda.schemas import (
    ENRICHED_SCHEMA,
    FATAL_FLAG,
    INCIDENT_KEY,
    INCIDENT_SERIES_SCHEMA,
    SERIES_KEYS,
    SchemaError,
    validate_bucket_counts,
    validate_schema,
)
from shooting_eda.time_utils import categorize_hours, day_of_week


COUNT_COLUMNS = ["incidents", "deaths"]


# =============================================================================
# Enrichment
# =============================================================================

def enrich_incidents(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add OCCUR_DAY (weekday name) and OCCUR_HOUR_CAT (six-way hour bucket).

    Args:
        df: Cleaned incidents (typed OCCUR_DATE and OCCUR_DATETIME)

    Returns:
        Enriched copy, validated against ENRICHED_SCHEMA
    """
    df = df.copy()
    df["OCCUR_DAY"] = day_of_week(df["OCCUR_DATE"])
    df["OCCUR_HOUR_CAT"] = categorize_hours(df["OCCUR_DATETIME"].dt.hour)

    validate_schema(df, ENRICHED_SCHEMA, context="enrich_incidents")
    return df


# =============================================================================
# Distinct-count Aggregation
# =============================================================================

@dataclass
class BucketAccumulator:
    """Running distinct incident keys for one group."""
    incidents: Set[str] = field(default_factory=set)
    deaths: Set[str] = field(default_factory=set)

    def add(self, incident_key: str, fatal: bool) -> None:
        self.incidents.add(incident_key)
        if fatal:
            self.deaths.add(incident_key)


def _key_value(value):
    # NaN != NaN, so missing keys are normalised to one hashable sentinel
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return value


def _restore_key_dtypes(
    out: pd.DataFrame,
    records: pd.DataFrame,
    group_keys: Sequence[str],
) -> pd.DataFrame:
    for key in group_keys:
        source = records[key]
        if isinstance(source.dtype, pd.CategoricalDtype):
            out[key] = pd.Categorical(
                out[key],
                categories=source.cat.categories,
                ordered=source.cat.ordered,
            )
        elif pd.api.types.is_datetime64_any_dtype(source):
            out[key] = pd.to_datetime(out[key])
        elif pd.api.types.is_bool_dtype(source) and out[key].notna().all():
            out[key] = out[key].astype(bool)
        elif pd.api.types.is_integer_dtype(source) and out[key].notna().all():
            out[key] = out[key].astype(source.dtype)
    return out


def aggregate(records: pd.DataFrame, group_keys: Iterable[str]) -> pd.DataFrame:
    """
    Group records by group_keys and count distinct incidents and deaths.

    incidents = distinct INCIDENT_KEYs in the group
    deaths    = distinct INCIDENT_KEYs in the group whose fatal flag is true

    Rows with a missing key value are grouped together under that missing
    value rather than dropped.

    Args:
        records: Enriched (or cleaned) incident rows
        group_keys: Column names forming the bucket key

    Returns:
        One row per bucket: key columns + incidents + deaths, sorted by key

    Raises:
        SchemaError: If a key column is missing, or the fatal flag has
            missing or unrecognised values
    """
    group_keys = list(group_keys)
    missing = [k for k in group_keys + [INCIDENT_KEY, FATAL_FLAG] if k not in records.columns]
    if missing:
        raise SchemaError(f"Cannot aggregate, missing columns: {missing}")

    buckets: Dict[Tuple, BucketAccumulator] = defaultdict(BucketAccumulator)

    key_columns = [records[k].to_numpy(dtype=object) for k in group_keys]
    incident_keys = records[INCIDENT_KEY].to_numpy(dtype=object)
    # Boolean-like text is coerced; missing or unknown values raise SchemaError
    fatal_flags = parse_fatal_flag(records[FATAL_FLAG]).to_numpy(dtype=bool)

    for i, (incident_key, fatal) in enumerate(zip(incident_keys, fatal_flags)):
        key = tuple(_key_value(col[i]) for col in key_columns)
        buckets[key].add(incident_key, bool(fatal))

    rows: List[Tuple] = [
        key + (len(acc.incidents), len(acc.deaths))
        for key, acc in buckets.items()
    ]
    out = pd.DataFrame(rows, columns=group_keys + COUNT_COLUMNS)
    out[COUNT_COLUMNS] = out[COUNT_COLUMNS].astype("int64")

    out = _restore_key_dtypes(out, records, group_keys)
    if group_keys and len(out):
        out = out.sort_values(group_keys, kind="stable", na_position="last")

    return out.reset_index(drop=True)


def build_incident_series(enriched: pd.DataFrame) -> pd.DataFrame:
    """
    Base incidents/deaths series keyed by
    (year, day, hour category, date, time, fatal flag).
    """
    series = aggregate(enriched, SERIES_KEYS)
    validate_schema(series, INCIDENT_SERIES_SCHEMA, context="build_incident_series")
    validate_bucket_counts(series, context="build_incident_series")
    return series


def summarize(series: pd.DataFrame, by: Sequence[str]) -> pd.DataFrame:
    """
    Re-aggregate a bucket table by summing incidents and deaths.

    Only observed key combinations are returned.
    """
    by = list(by)
    return (
        series.groupby(by, observed=True, sort=True, dropna=False)[COUNT_COLUMNS]
        .sum()
        .reset_index()
    )
