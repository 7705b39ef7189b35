"""
Schema definitions and validation for every pipeline stage.

Record layouts are fixed: the cleaner projects onto CLEANED_COLUMNS rather
than dropping columns by runtime lookup, and each stage output is validated
(columns, dtypes, NA rules, allowed values) before it is written.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Set

import pandas as pd

from shooting_eda.time_utils import DAY_ORDER, HOUR_CATEGORY_ORDER


# =============================================================================
# Schema Definition
# =============================================================================

@dataclass
class ColumnSpec:
    """Specification for a single column."""
    name: str
    dtype: Optional[str] = None  # "string", "int", "float", "bool", "datetime", "category"
    nullable: bool = True
    unique: bool = False
    allowed_values: Optional[Set[Any]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None


@dataclass
class Schema:
    """Schema specification for a DataFrame."""
    name: str
    columns: List[ColumnSpec]
    required_columns: List[str] = field(default_factory=list)
    min_rows: int = 0

    def __post_init__(self):
        if not self.required_columns:
            self.required_columns = [c.name for c in self.columns]

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]


class SchemaError(Exception):
    """Raised when schema validation fails."""
    pass


# =============================================================================
# Source Columns
# =============================================================================

INCIDENT_KEY = "INCIDENT_KEY"
FATAL_FLAG = "STATISTICAL_MURDER_FLAG"

RAW_COLUMNS: List[str] = [
    "INCIDENT_KEY",
    "OCCUR_DATE",
    "OCCUR_TIME",
    "BORO",
    "LOC_OF_OCCUR_DESC",
    "PRECINCT",
    "JURISDICTION_CODE",
    "LOC_CLASSFCTN_DESC",
    "LOCATION_DESC",
    "STATISTICAL_MURDER_FLAG",
    "PERP_AGE_GROUP",
    "PERP_SEX",
    "PERP_RACE",
    "VIC_AGE_GROUP",
    "VIC_SEX",
    "VIC_RACE",
    "X_COORD_CD",
    "Y_COORD_CD",
    "Latitude",
    "Longitude",
    "Lon_Lat",
]

# Columns the pipeline needs from the raw file; the rest are optional
REQUIRED_RAW_COLUMNS: List[str] = [
    "INCIDENT_KEY",
    "OCCUR_DATE",
    "OCCUR_TIME",
    "BORO",
    "STATISTICAL_MURDER_FLAG",
]

# Point geography is redundant with BORO; precinct/jurisdiction are not
# used by the temporal analysis
DROPPED_COLUMNS: List[str] = [
    "X_COORD_CD",
    "Y_COORD_CD",
    "Latitude",
    "Longitude",
    "Lon_Lat",
    "PRECINCT",
    "JURISDICTION_CODE",
]

KEPT_COLUMNS: List[str] = [c for c in RAW_COLUMNS if c not in DROPPED_COLUMNS]

CLEANED_COLUMNS: List[str] = KEPT_COLUMNS + ["OCCUR_YEAR", "OCCUR_DATETIME"]

ENRICHED_COLUMNS: List[str] = CLEANED_COLUMNS + ["OCCUR_DAY", "OCCUR_HOUR_CAT"]

# Key of the base incidents/deaths series
SERIES_KEYS: List[str] = [
    "OCCUR_YEAR",
    "OCCUR_DAY",
    "OCCUR_HOUR_CAT",
    "OCCUR_DATE",
    "OCCUR_TIME",
    "STATISTICAL_MURDER_FLAG",
]

DAY_TYPES = {"Weekday", "Weekend"}


# =============================================================================
# Stage Schemas
# =============================================================================

RAW_SCHEMA = Schema(
    name="raw_incidents",
    columns=[ColumnSpec(c) for c in REQUIRED_RAW_COLUMNS],
)

CLEANED_SCHEMA = Schema(
    name="cleaned_incidents",
    columns=[
        ColumnSpec("INCIDENT_KEY", dtype="string", nullable=False),
        ColumnSpec("OCCUR_DATE", dtype="datetime", nullable=False),
        ColumnSpec("OCCUR_TIME", dtype="string", nullable=False),
        ColumnSpec("BORO", dtype="string"),
        ColumnSpec("STATISTICAL_MURDER_FLAG", dtype="bool", nullable=False),
        ColumnSpec("OCCUR_YEAR", dtype="int", nullable=False),
        ColumnSpec("OCCUR_DATETIME", dtype="datetime", nullable=False),
    ],
    required_columns=CLEANED_COLUMNS,
)

ENRICHED_SCHEMA = Schema(
    name="enriched_incidents",
    columns=CLEANED_SCHEMA.columns + [
        ColumnSpec("OCCUR_DAY", nullable=False, allowed_values=set(DAY_ORDER)),
        ColumnSpec(
            "OCCUR_HOUR_CAT", nullable=False, allowed_values=set(HOUR_CATEGORY_ORDER)
        ),
    ],
    required_columns=ENRICHED_COLUMNS,
)

BUCKET_COUNT_COLUMNS = [
    ColumnSpec("incidents", dtype="int", nullable=False, min_value=0),
    ColumnSpec("deaths", dtype="int", nullable=False, min_value=0),
]

INCIDENT_SERIES_SCHEMA = Schema(
    name="incident_series",
    columns=[ColumnSpec(k) for k in SERIES_KEYS] + BUCKET_COUNT_COLUMNS,
)

REGRESSION_INPUT_SCHEMA = Schema(
    name="regression_input",
    columns=[
        ColumnSpec("DAY_TYPE", nullable=False, allowed_values=DAY_TYPES),
        ColumnSpec(
            "OCCUR_HOUR_CAT", nullable=False, allowed_values=set(HOUR_CATEGORY_ORDER)
        ),
        ColumnSpec("BORO"),
        ColumnSpec("incidents", dtype="int", nullable=False, min_value=1),
        ColumnSpec("deaths", dtype="int", nullable=False, min_value=0),
        ColumnSpec("fatality_rate", dtype="float", nullable=False, min_value=0, max_value=1),
    ],
)


# =============================================================================
# Validation Functions
# =============================================================================

def _dtype_matches(col: pd.Series, dtype: str) -> bool:
    if dtype == "string":
        return pd.api.types.is_string_dtype(col) or pd.api.types.is_object_dtype(col)
    if dtype == "int":
        return pd.api.types.is_integer_dtype(col)
    if dtype == "float":
        return pd.api.types.is_float_dtype(col)
    if dtype == "bool":
        return pd.api.types.is_bool_dtype(col)
    if dtype == "datetime":
        return pd.api.types.is_datetime64_any_dtype(col)
    if dtype == "category":
        return isinstance(col.dtype, pd.CategoricalDtype)
    raise ValueError(f"Unknown dtype in schema: {dtype}")


def validate_column(
    df: pd.DataFrame,
    spec: ColumnSpec,
    context: str = "",
) -> List[str]:
    """
    Validate a single column against its specification.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    col_name = spec.name

    if col_name not in df.columns:
        errors.append(f"Missing column: {col_name}")
        return errors

    col = df[col_name]

    if spec.dtype is not None and not _dtype_matches(col, spec.dtype):
        errors.append(f"Column {col_name}: expected {spec.dtype}, got {col.dtype}")

    if not spec.nullable and col.isna().any():
        na_count = col.isna().sum()
        errors.append(f"Column {col_name}: {na_count} NA values not allowed")

    if spec.unique and col.duplicated().any():
        dup_count = col.duplicated().sum()
        errors.append(f"Column {col_name}: {dup_count} duplicate values not allowed")

    if spec.allowed_values is not None:
        invalid = ~col.astype(object).isin(spec.allowed_values) & col.notna()
        if invalid.any():
            invalid_vals = col[invalid].unique()[:5]
            errors.append(f"Column {col_name}: invalid values {list(invalid_vals)}")

    if spec.min_value is not None:
        below_min = (col < spec.min_value) & col.notna()
        if below_min.any():
            errors.append(f"Column {col_name}: values below min {spec.min_value}")

    if spec.max_value is not None:
        above_max = (col > spec.max_value) & col.notna()
        if above_max.any():
            errors.append(f"Column {col_name}: values above max {spec.max_value}")

    return errors


def validate_schema(
    df: pd.DataFrame,
    schema: Schema,
    context: str = "",
    raise_on_error: bool = True,
) -> List[str]:
    """
    Validate a DataFrame against a schema.

    Args:
        df: DataFrame to validate
        schema: Schema specification
        context: Optional context for error messages
        raise_on_error: If True, raise SchemaError on validation failure

    Returns:
        List of error messages (empty if valid)

    Raises:
        SchemaError: If raise_on_error=True and validation fails
    """
    errors = []
    ctx = f" ({context})" if context else ""

    if len(df) < schema.min_rows:
        errors.append(f"Expected at least {schema.min_rows} rows, got {len(df)}{ctx}")

    missing = [c for c in schema.required_columns if c not in df.columns]
    if missing:
        errors.append(f"Missing required columns: {missing}{ctx}")

    for col_spec in schema.columns:
        if col_spec.name in missing:
            continue
        errors.extend(validate_column(df, col_spec, context))

    if errors and raise_on_error:
        raise SchemaError(f"Schema validation failed for '{schema.name}':\n" + "\n".join(errors))

    return errors


def validate_bucket_counts(df: pd.DataFrame, context: str = "") -> None:
    """
    Check that deaths never exceed incidents in any bucket.

    Raises:
        SchemaError: If any bucket has deaths > incidents
    """
    bad = df["deaths"] > df["incidents"]
    if bad.any():
        raise SchemaError(
            f"{int(bad.sum())} buckets have deaths > incidents ({context})"
        )

