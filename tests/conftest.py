"""
Shared fixtures: small synthetic raw frames in the source CSV layout.
"""

import pandas as pd
import pytest

from shooting_eda.aggregation import enrich_incidents
from shooting_eda.cleaning import clean_incidents
from shooting_eda.schemas import RAW_COLUMNS


RAW_DEFAULTS = {
    "INCIDENT_KEY": "1000",
    "OCCUR_DATE": "01/01/2015",
    "OCCUR_TIME": "02:30:00",
    "BORO": "BRONX",
    "LOC_OF_OCCUR_DESC": "OUTSIDE",
    "PRECINCT": "40",
    "JURISDICTION_CODE": "0",
    "LOC_CLASSFCTN_DESC": "STREET",
    "LOCATION_DESC": "(null)",
    "STATISTICAL_MURDER_FLAG": "false",
    "PERP_AGE_GROUP": "UNKNOWN",
    "PERP_SEX": "U",
    "PERP_RACE": "UNKNOWN",
    "VIC_AGE_GROUP": "25-44",
    "VIC_SEX": "M",
    "VIC_RACE": "BLACK",
    "X_COORD_CD": "1006343",
    "Y_COORD_CD": "234270",
    "Latitude": "40.8",
    "Longitude": "-73.9",
    "Lon_Lat": "POINT (-73.9 40.8)",
}


def build_raw_frame(rows):
    """Raw-layout DataFrame; each row dict overrides RAW_DEFAULTS."""
    records = []
    for row in rows:
        record = dict(RAW_DEFAULTS)
        record.update(row)
        records.append(record)
    return pd.DataFrame(records, columns=RAW_COLUMNS)


@pytest.fixture
def make_raw_frame():
    """Factory fixture for raw frames."""
    return build_raw_frame


@pytest.fixture
def example_raw():
    """Two incidents, one of them with a duplicate victim row."""
    return build_raw_frame([
        {"INCIDENT_KEY": "A", "OCCUR_DATE": "01/01/2015", "OCCUR_TIME": "02:30:00",
         "STATISTICAL_MURDER_FLAG": "false"},
        {"INCIDENT_KEY": "A", "OCCUR_DATE": "01/01/2015", "OCCUR_TIME": "02:30:00",
         "STATISTICAL_MURDER_FLAG": "false"},
        {"INCIDENT_KEY": "B", "OCCUR_DATE": "01/01/2015", "OCCUR_TIME": "22:00:00",
         "STATISTICAL_MURDER_FLAG": "true"},
    ])


@pytest.fixture
def mixed_raw():
    """Forty victim rows spread over boroughs, weekdays and all hours."""
    boroughs = ["BRONX", "BROOKLYN", "MANHATTAN", "QUEENS", "STATEN ISLAND"]
    rows = []
    for i in range(40):
        # Every fourth row is a second victim of the previous incident
        j = i - 1 if i % 4 == 3 else i
        day = 1 + (j % 14)
        hour = (j * 5) % 24
        rows.append({
            "INCIDENT_KEY": str(1000 + j),
            "OCCUR_DATE": f"01/{day:02d}/20{15 + j % 3}",
            "OCCUR_TIME": f"{hour:02d}:15:00",
            "BORO": boroughs[j % len(boroughs)],
            "STATISTICAL_MURDER_FLAG": "true" if i % 3 == 0 else "false",
        })
    return build_raw_frame(rows)


@pytest.fixture
def mixed_enriched(mixed_raw):
    cleaned, _ = clean_incidents(mixed_raw, on_error="skip")
    return enrich_incidents(cleaned)
