"""
Date/time parsing and temporal bucketing for shooting incidents.

Occurrence dates arrive as MM/DD/YYYY text and times as HH:MM:SS text, both
in local New York time. Timestamps are kept naive: the source publishes wall
clock times, and localizing would fail on times inside the spring-forward gap.

Hour categories (all 24 hours covered exactly once):

    1-4    Late Night
    5-8    Early Morning
    9-12   Morning
    13-16  Afternoon
    17-20  Early Night
    21-23, 0  Evening
"""

from typing import List, Tuple

import pandas as pd


DATE_FORMAT = "%m/%d/%Y"
DATETIME_FORMAT = "%m/%d/%Y %H:%M:%S"

# Display order for heat-map axes
DAY_ORDER: List[str] = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]

HOUR_CATEGORY_ORDER: List[str] = [
    "Late Night",
    "Early Morning",
    "Morning",
    "Afternoon",
    "Early Night",
    "Evening",
]

WEEKEND_DAYS = ("Saturday", "Sunday")

# (first hour, last hour, label); midnight is folded into Evening below
HOUR_CATEGORY_BINS: List[Tuple[int, int, str]] = [
    (1, 4, "Late Night"),
    (5, 8, "Early Morning"),
    (9, 12, "Morning"),
    (13, 16, "Afternoon"),
    (17, 20, "Early Night"),
    (21, 23, "Evening"),
]


# =============================================================================
# Hour Categories
# =============================================================================

def hour_category(hour: int) -> str:
    """
    Map an hour of day (0-23) to its hour-category label.

    Raises:
        ValueError: If hour is outside 0-23
    """
    hour = int(hour)
    if hour < 0 or hour > 23:
        raise ValueError(f"Hour out of range 0-23: {hour}")

    if hour == 0:
        return "Evening"

    for first, last, label in HOUR_CATEGORY_BINS:
        if first <= hour <= last:
            return label

    raise ValueError(f"No hour category for hour {hour}")


HOUR_TO_CATEGORY = {hour: hour_category(hour) for hour in range(24)}


def categorize_hours(hours: pd.Series) -> pd.Series:
    """
    Vectorised hour_category over a Series of integer hours.

    Returns:
        Ordered categorical Series using HOUR_CATEGORY_ORDER

    Raises:
        ValueError: If any hour is missing or outside 0-23
    """
    hours = pd.Series(hours)
    labels = hours.map(HOUR_TO_CATEGORY)

    invalid = labels.isna()
    if invalid.any():
        bad = hours[invalid].unique()[:5]
        raise ValueError(f"Cannot categorize hours: {list(bad)}")

    return pd.Series(
        pd.Categorical(labels, categories=HOUR_CATEGORY_ORDER, ordered=True),
        index=hours.index,
        name=hours.name,
    )


def hour_from_time_text(times: pd.Series) -> pd.Series:
    """Extract the integer hour from HH:MM:SS text."""
    parsed = pd.to_datetime(times, format="%H:%M:%S", errors="raise")
    return parsed.dt.hour


# =============================================================================
# Date Parsing
# =============================================================================

def parse_dates(
    values: pd.Series,
    fmt: str = DATE_FORMAT,
    errors: str = "raise",
) -> pd.Series:
    """
    Parse date text with a fixed format.

    Args:
        values: Series of date strings
        fmt: strptime format
        errors: 'raise' fails on the first bad value; 'coerce' yields NaT

    Returns:
        datetime64 Series
    """
    return pd.to_datetime(values, format=fmt, errors=errors)


def combine_date_time(
    date_text: pd.Series,
    time_text: pd.Series,
    errors: str = "raise",
) -> pd.Series:
    """
    Concatenate MM/DD/YYYY date text with HH:MM:SS time text and parse.

    Returns:
        datetime64 Series of combined timestamps
    """
    combined = date_text.str.strip() + " " + time_text.str.strip()
    return pd.to_datetime(combined, format=DATETIME_FORMAT, errors=errors)


def day_of_week(dates: pd.Series) -> pd.Series:
    """
    Weekday name for each date.

    Returns:
        Ordered categorical Series using DAY_ORDER (Sunday first)
    """
    names = pd.to_datetime(dates).dt.day_name()
    return pd.Series(
        pd.Categorical(names, categories=DAY_ORDER, ordered=True),
        index=dates.index,
        name=dates.name,
    )


def is_weekend(day_names: pd.Series) -> pd.Series:
    """Boolean Series, True for Saturday and Sunday."""
    return day_names.astype(str).isin(WEEKEND_DAYS)
