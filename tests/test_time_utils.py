"""
Tests for hour categories, weekday names and date/time parsing.

Hour categories must be total over 0-23, with midnight folded into Evening
alongside 21-23.
"""

from collections import Counter

import pandas as pd
import pytest

from shooting_eda.time_utils import (
    DAY_ORDER,
    HOUR_CATEGORY_ORDER,
    categorize_hours,
    combine_date_time,
    day_of_week,
    hour_category,
    hour_from_time_text,
    is_weekend,
    parse_dates,
)


class TestHourCategory:
    """Tests for the scalar hour -> label mapping."""

    def test_every_hour_maps_to_exactly_one_label(self):
        """Six buckets of four hours cover the whole day."""
        labels = [hour_category(h) for h in range(24)]
        assert set(labels) == set(HOUR_CATEGORY_ORDER)
        # Six buckets of four hours each
        assert Counter(labels) == {label: 4 for label in HOUR_CATEGORY_ORDER}

    @pytest.mark.parametrize("hour", [0, 21, 22, 23])
    def test_midnight_and_late_evening_are_evening(self, hour):
        """Hour 0 joins 21-23 in Evening."""
        assert hour_category(hour) == "Evening"

    @pytest.mark.parametrize(
        "hour,expected",
        [
            (1, "Late Night"),
            (4, "Late Night"),
            (5, "Early Morning"),
            (8, "Early Morning"),
            (9, "Morning"),
            (12, "Morning"),
            (13, "Afternoon"),
            (16, "Afternoon"),
            (17, "Early Night"),
            (20, "Early Night"),
        ],
    )
    def test_bucket_boundaries(self, hour, expected):
        """Each bucket starts and ends on the documented hours."""
        assert hour_category(hour) == expected

    @pytest.mark.parametrize("hour", [-1, 24, 99])
    def test_out_of_range_raises(self, hour):
        """Hours outside 0-23 are rejected."""
        with pytest.raises(ValueError):
            hour_category(hour)


class TestCategorizeHours:
    """Tests for the vectorised mapping."""

    def test_returns_ordered_categorical(self):
        """The vectorised mapping returns an ordered categorical."""
        result = categorize_hours(pd.Series([0, 2, 13]))
        assert isinstance(result.dtype, pd.CategoricalDtype)
        assert result.cat.ordered
        assert list(result.cat.categories) == HOUR_CATEGORY_ORDER
        assert list(result.astype(str)) == ["Evening", "Late Night", "Afternoon"]

    def test_matches_scalar_function(self):
        """Vectorised and scalar mappings agree for every hour."""
        hours = pd.Series(range(24))
        result = categorize_hours(hours)
        assert list(result.astype(str)) == [hour_category(h) for h in range(24)]

    def test_invalid_hour_raises(self):
        """Any invalid hour in the column is rejected."""
        with pytest.raises(ValueError):
            categorize_hours(pd.Series([3, 24]))

    def test_keeps_index(self):
        """The input index is preserved."""
        hours = pd.Series([5, 6], index=[10, 20])
        assert list(categorize_hours(hours).index) == [10, 20]


class TestParsing:
    """Tests for date and time text parsing."""

    def test_parse_mm_dd_yyyy(self):
        """MM/DD/YYYY text parses to the right date."""
        result = parse_dates(pd.Series(["01/02/2015", "12/31/2020"]))
        assert result.iloc[0] == pd.Timestamp(2015, 1, 2)
        assert result.iloc[1] == pd.Timestamp(2020, 12, 31)

    def test_wrong_format_raises(self):
        """ISO dates are rejected under the default policy."""
        with pytest.raises(ValueError):
            parse_dates(pd.Series(["2015-01-02"]))

    def test_wrong_format_coerces_to_nat(self):
        """Coerce turns unparseable dates into NaT."""
        result = parse_dates(pd.Series(["2015-01-02", "01/02/2015"]), errors="coerce")
        assert pd.isna(result.iloc[0])
        assert result.iloc[1] == pd.Timestamp(2015, 1, 2)

    def test_combine_date_time(self):
        """Date and time text combine into one timestamp."""
        result = combine_date_time(pd.Series(["01/01/2015"]), pd.Series(["02:30:00"]))
        assert result.iloc[0] == pd.Timestamp(2015, 1, 1, 2, 30, 0)

    def test_combine_bad_time_raises(self):
        """An impossible time is rejected."""
        with pytest.raises(ValueError):
            combine_date_time(pd.Series(["01/01/2015"]), pd.Series(["25:00:00"]))

    def test_hour_from_time_text(self):
        """The hour is read from HH:MM:SS text."""
        result = hour_from_time_text(pd.Series(["00:15:00", "22:00:00"]))
        assert list(result) == [0, 22]


class TestDayOfWeek:
    """Tests for weekday naming."""

    def test_known_dates(self):
        """Known calendar dates give the right weekday names."""
        dates = pd.Series(pd.to_datetime(["2015-01-01", "2023-01-01", "2023-01-07"]))
        result = day_of_week(dates)
        assert list(result.astype(str)) == ["Thursday", "Sunday", "Saturday"]

    def test_sunday_first_ordering(self):
        """Weekday categories start on Sunday."""
        result = day_of_week(pd.Series(pd.to_datetime(["2023-01-02"])))
        assert list(result.cat.categories) == DAY_ORDER
        assert DAY_ORDER[0] == "Sunday"

    def test_is_weekend(self):
        """Only Saturday and Sunday are weekend days."""
        days = pd.Series(["Saturday", "Sunday", "Monday", "Friday"])
        assert list(is_weekend(days)) == [True, True, False, False]
