"""
Tests for the cleaning stage.

Coverage includes:
- Fixed column projection (seven columns dropped)
- Typed OCCUR_DATE / OCCUR_YEAR / OCCUR_DATETIME
- Murder flag coercion
- Bad-date policy: raise (default) vs skip
"""

import pandas as pd
import pytest

from shooting_eda.cleaning import (
    clean_incidents,
    drop_unused_columns,
    parse_fatal_flag,
    parse_occurrence_dates,
)
from shooting_eda.schemas import (
    CLEANED_COLUMNS,
    DROPPED_COLUMNS,
    KEPT_COLUMNS,
    SchemaError,
)


class TestDropUnusedColumns:
    """Tests for the column projection."""

    def test_drops_exactly_seven_columns(self, make_raw_frame):
        """The seven location/jurisdiction columns are removed."""
        raw = make_raw_frame([{}])
        projected = drop_unused_columns(raw)
        assert len(DROPPED_COLUMNS) == 7
        for col in DROPPED_COLUMNS:
            assert col not in projected.columns
        assert list(projected.columns) == KEPT_COLUMNS

    def test_missing_optional_columns_are_added(self, make_raw_frame):
        """Absent descriptive columns are added as NA."""
        raw = make_raw_frame([{}]).drop(columns=["PERP_RACE", "VIC_RACE"])
        projected = drop_unused_columns(raw)
        assert list(projected.columns) == KEPT_COLUMNS
        assert projected["PERP_RACE"].isna().all()


class TestFatalFlag:
    """Tests for boolean-like flag coercion."""

    def test_text_values(self):
        """Boolean-like text maps case-insensitively to bool."""
        result = parse_fatal_flag(pd.Series(["true", "FALSE", " Y ", "n", "1", "0"]))
        assert list(result) == [True, False, True, False, True, False]
        assert result.dtype == bool

    def test_real_booleans_pass_through(self):
        """Real booleans are kept as they are."""
        result = parse_fatal_flag(pd.Series([True, False]))
        assert list(result) == [True, False]

    def test_unrecognised_value_raises(self):
        """Unknown flag text is a schema error."""
        with pytest.raises(SchemaError):
            parse_fatal_flag(pd.Series(["true", "maybe"]))

    def test_missing_value_raises(self):
        """A missing flag is a schema error."""
        with pytest.raises(SchemaError):
            parse_fatal_flag(pd.Series(["true", None]))


class TestParseOccurrenceDates:
    """Tests for date/time typing and the bad-date policy."""

    def test_typed_columns(self, make_raw_frame):
        """Date, year and datetime columns are typed."""
        raw = drop_unused_columns(make_raw_frame([
            {"OCCUR_DATE": "07/04/2019", "OCCUR_TIME": "23:59:59"},
        ]))
        df, dropped = parse_occurrence_dates(raw)
        assert dropped == 0
        assert df["OCCUR_DATE"].iloc[0] == pd.Timestamp(2019, 7, 4)
        assert df["OCCUR_YEAR"].iloc[0] == 2019
        assert df["OCCUR_DATETIME"].iloc[0] == pd.Timestamp(2019, 7, 4, 23, 59, 59)

    def test_bad_date_raises_by_default(self, make_raw_frame):
        """A malformed date fails the run by default."""
        raw = drop_unused_columns(make_raw_frame([
            {"OCCUR_DATE": "2019-07-04"},
        ]))
        with pytest.raises(ValueError):
            parse_occurrence_dates(raw)

    def test_bad_date_skipped_and_counted(self, make_raw_frame):
        """Under skip, malformed dates and times are dropped and counted."""
        raw = drop_unused_columns(make_raw_frame([
            {"INCIDENT_KEY": "1", "OCCUR_DATE": "2019-07-04"},
            {"INCIDENT_KEY": "2", "OCCUR_DATE": "07/04/2019", "OCCUR_TIME": "25:00:00"},
            {"INCIDENT_KEY": "3", "OCCUR_DATE": "07/04/2019"},
        ]))
        df, dropped = parse_occurrence_dates(raw, on_error="skip")
        assert dropped == 2
        assert list(df["INCIDENT_KEY"]) == ["3"]

    def test_unknown_policy_raises(self, make_raw_frame):
        """Only raise and skip are accepted policies."""
        raw = drop_unused_columns(make_raw_frame([{}]))
        with pytest.raises(ValueError):
            parse_occurrence_dates(raw, on_error="ignore")


class TestCleanIncidents:
    """Tests for the full cleaning stage."""

    def test_output_layout(self, example_raw):
        """Cleaned rows follow CLEANED_COLUMNS."""
        cleaned, stats = clean_incidents(example_raw)
        assert list(cleaned.columns) == CLEANED_COLUMNS
        assert stats["rows_in"] == 3
        assert stats["rows_out"] == 3

    def test_datetime_date_matches_occur_date(self, mixed_raw):
        """OCCUR_DATETIME and OCCUR_YEAR agree with OCCUR_DATE."""
        cleaned, _ = clean_incidents(mixed_raw)
        assert (cleaned["OCCUR_DATETIME"].dt.normalize() == cleaned["OCCUR_DATE"]).all()
        assert (cleaned["OCCUR_YEAR"] == cleaned["OCCUR_DATE"].dt.year).all()

    def test_flag_is_boolean(self, example_raw):
        """The murder flag is a bool column after cleaning."""
        cleaned, _ = clean_incidents(example_raw)
        assert cleaned["STATISTICAL_MURDER_FLAG"].dtype == bool
        assert list(cleaned["STATISTICAL_MURDER_FLAG"]) == [False, False, True]

    def test_missing_incident_key_raises(self, make_raw_frame):
        """A blank incident key fails the run by default."""
        raw = make_raw_frame([{"INCIDENT_KEY": ""}, {"INCIDENT_KEY": "7"}])
        with pytest.raises(SchemaError):
            clean_incidents(raw)

    def test_skip_policy_drops_bad_rows(self, make_raw_frame):
        """Under skip, blank keys and bad dates are dropped and counted."""
        raw = make_raw_frame([
            {"INCIDENT_KEY": ""},
            {"INCIDENT_KEY": "7", "OCCUR_DATE": "not a date"},
            {"INCIDENT_KEY": "8"},
        ])
        cleaned, stats = clean_incidents(raw, on_error="skip")
        assert list(cleaned["INCIDENT_KEY"]) == ["8"]
        assert stats["dropped_missing_key"] == 1
        assert stats["dropped_bad_dates"] == 1

    def test_blank_borough_becomes_missing(self, make_raw_frame):
        """Whitespace-only boroughs become NA; others are stripped."""
        raw = make_raw_frame([{"BORO": "  "}, {"INCIDENT_KEY": "2", "BORO": " QUEENS "}])
        cleaned, _ = clean_incidents(raw)
        assert pd.isna(cleaned["BORO"].iloc[0])
        assert cleaned["BORO"].iloc[1] == "QUEENS"
