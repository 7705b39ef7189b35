"""
Analyzer stage: summary tables and chart-ready matrices.

Every function here is read-only over the base incident series (or the
enriched records) and returns a new DataFrame or dict. Nothing is plotted;
a renderer consumes these tables.
"""

from typing import Dict, Optional

import numpy as np
import pandas as pd

from shooting_eda.aggregation import COUNT_COLUMNS, aggregate, summarize
from shooting_eda.schemas import INCIDENT_KEY
from shooting_eda.time_utils import DAY_ORDER, HOUR_CATEGORY_ORDER, hour_from_time_text


# =============================================================================
# Rates
# =============================================================================

def fatality_rate(
    deaths: pd.Series,
    incidents: pd.Series,
    fill: float = np.nan,
) -> pd.Series:
    """
    deaths / incidents, with `fill` where incidents is 0.

    Never divides by zero: zero-incident rows are masked before the division.
    """
    deaths = pd.Series(deaths, dtype="float64")
    incidents = pd.Series(incidents, dtype="float64")
    rate = deaths.div(incidents.where(incidents > 0))
    if not pd.isna(fill):
        rate = rate.fillna(fill)
    return rate


def _check_value(value: str) -> None:
    if value not in COUNT_COLUMNS:
        raise ValueError(f"value must be one of {COUNT_COLUMNS}, got {value!r}")


# =============================================================================
# Ranking Tables
# =============================================================================

def rank_by_day(series: pd.DataFrame, value: str = "incidents") -> pd.DataFrame:
    """
    Sum `value` per weekday, sorted descending.

    Ties keep weekday order (stable sort).
    """
    _check_value(value)
    table = summarize(series, ["OCCUR_DAY"])[["OCCUR_DAY", value]]
    table["OCCUR_DAY"] = table["OCCUR_DAY"].astype(str)
    return (
        table.sort_values(value, ascending=False, kind="stable")
        .reset_index(drop=True)
    )


def rank_by_hour(series: pd.DataFrame, value: str = "incidents") -> pd.DataFrame:
    """Sum `value` per hour of day (0-23, from OCCUR_TIME), sorted descending."""
    _check_value(value)
    frame = series.assign(OCCUR_HOUR=hour_from_time_text(series["OCCUR_TIME"]))
    table = summarize(frame, ["OCCUR_HOUR"])[["OCCUR_HOUR", value]]
    return (
        table.sort_values(value, ascending=False, kind="stable")
        .reset_index(drop=True)
    )


# =============================================================================
# Heat-map Matrices
# =============================================================================

def heatmap_matrix(series: pd.DataFrame) -> pd.DataFrame:
    """
    Day-of-week x hour-category grid (7 x 6 = 42 cells, long format).

    Columns:
        OCCUR_DAY, OCCUR_HOUR_CAT, incidents, deaths, fatality_rate
        (0 for empty cells), and incidents_pct / deaths_pct /
        fatality_rate_pct = round(cell / sum of all cells, 4) * 100.
    """
    grid = pd.MultiIndex.from_product(
        [DAY_ORDER, HOUR_CATEGORY_ORDER],
        names=["OCCUR_DAY", "OCCUR_HOUR_CAT"],
    )

    frame = series.assign(
        OCCUR_DAY=series["OCCUR_DAY"].astype(str),
        OCCUR_HOUR_CAT=series["OCCUR_HOUR_CAT"].astype(str),
    )
    cells = (
        frame.groupby(["OCCUR_DAY", "OCCUR_HOUR_CAT"])[COUNT_COLUMNS]
        .sum()
        .reindex(grid, fill_value=0)
        .reset_index()
    )
    cells[COUNT_COLUMNS] = cells[COUNT_COLUMNS].astype("int64")
    cells["fatality_rate"] = fatality_rate(cells["deaths"], cells["incidents"], fill=0.0)

    for col in ("incidents", "deaths", "fatality_rate"):
        total = cells[col].sum()
        if total > 0:
            cells[f"{col}_pct"] = (cells[col] / total).round(4) * 100
        else:
            cells[f"{col}_pct"] = 0.0

    return cells


def pivot_heatmap(matrix: pd.DataFrame, value: str = "incidents") -> pd.DataFrame:
    """Wide 7 x 6 frame (days as rows, hour categories as columns) for one value."""
    return (
        matrix.pivot(index="OCCUR_DAY", columns="OCCUR_HOUR_CAT", values=value)
        .reindex(index=DAY_ORDER, columns=HOUR_CATEGORY_ORDER)
    )


# =============================================================================
# Trends
# =============================================================================

def yearly_trend(series: pd.DataFrame) -> pd.DataFrame:
    """Incidents, deaths and fatality rate per year; zero-incident years removed."""
    trend = summarize(series, ["OCCUR_YEAR"])
    trend = trend[trend["incidents"] > 0].copy()
    trend["fatality_rate"] = fatality_rate(trend["deaths"], trend["incidents"])
    return trend.sort_values("OCCUR_YEAR").reset_index(drop=True)


# =============================================================================
# Borough and Dataset Summaries
# =============================================================================

def borough_summary(enriched: pd.DataFrame) -> pd.DataFrame:
    """Distinct incidents, deaths, fatality rate and incident share per borough."""
    table = aggregate(enriched, ["BORO"])
    table["fatality_rate"] = fatality_rate(table["deaths"], table["incidents"])
    total = table["incidents"].sum()
    table["incident_share"] = table["incidents"] / total if total > 0 else 0.0
    return (
        table.sort_values("incidents", ascending=False, kind="stable")
        .reset_index(drop=True)
    )


def compute_quality_metrics(df: pd.DataFrame, top_n: int = 5) -> Dict[str, object]:
    """Row counts, date coverage, missingness and top boroughs of a cleaned frame."""
    missing = (
        df.isna().mean().sort_values(ascending=False).round(4).to_dict()
    )
    metrics: Dict[str, object] = {
        "records": int(len(df)),
        "unique_incidents": int(df[INCIDENT_KEY].nunique()),
        "missing_fraction": missing,
    }
    if "OCCUR_DATETIME" in df.columns and len(df):
        metrics["date_min"] = str(df["OCCUR_DATETIME"].min())
        metrics["date_max"] = str(df["OCCUR_DATETIME"].max())
    if "BORO" in df.columns:
        metrics["top_boroughs"] = df["BORO"].value_counts().head(top_n).to_dict()
    return metrics


def peak_summary(series: pd.DataFrame, value: str = "incidents") -> Optional[Dict[str, object]]:
    """
    Busiest and quietest weekday and hour of day, with their shares of the total.

    Returns None for an empty series.
    """
    _check_value(value)
    total = series[value].sum()
    if total == 0:
        return None

    by_day = rank_by_day(series, value)
    by_hour = rank_by_hour(series, value)

    return {
        "value": value,
        "total": int(total),
        "busiest_day": str(by_day["OCCUR_DAY"].iloc[0]),
        "busiest_day_share": float(by_day[value].iloc[0] / total),
        "quietest_day": str(by_day["OCCUR_DAY"].iloc[-1]),
        "quietest_day_share": float(by_day[value].iloc[-1] / total),
        "busiest_hour": int(by_hour["OCCUR_HOUR"].iloc[0]),
        "busiest_hour_share": float(by_hour[value].iloc[0] / total),
        "quietest_hour": int(by_hour["OCCUR_HOUR"].iloc[-1]),
        "quietest_hour_share": float(by_hour[value].iloc[-1] / total),
    }
