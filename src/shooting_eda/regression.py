"""
Fatality-rate regression.

Regression input is one row per (day type, hour category, borough) with
summed incidents and deaths and fatality_rate = deaths / incidents. An OLS
model `fatality_rate ~ incidents + deaths` is then fitted with statsmodels.

Day type: the historical analysis tested the *date* value against
"Saturday"/"Sunday", which never matches, so every row came out "Weekday".
By default the weekday name is tested instead; `legacy_day_type=True`
reproduces the old classification for output parity.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from shooting_eda.aggregation import aggregate, summarize
from shooting_eda.analysis import fatality_rate
from shooting_eda.schemas import REGRESSION_INPUT_SCHEMA, validate_schema
from shooting_eda.time_utils import HOUR_CATEGORY_ORDER, WEEKEND_DAYS, is_weekend


FORMULA = "fatality_rate ~ incidents + deaths"
MIN_OBSERVATIONS = 4

REGRESSION_KEYS = ["DAY_TYPE", "OCCUR_HOUR_CAT", "BORO"]


# =============================================================================
# Regression Input
# =============================================================================

def derive_day_type(frame: pd.DataFrame, legacy: bool = False) -> pd.Series:
    """
    'Weekend' or 'Weekday' per row.

    Args:
        frame: Rows carrying OCCUR_DAY (and OCCUR_DATE when legacy=True)
        legacy: Compare OCCUR_DATE against weekday names, as the historical
            analysis did. Always yields 'Weekday'.
    """
    if legacy:
        weekend = frame["OCCUR_DATE"].astype(object).isin(WEEKEND_DAYS)
    else:
        weekend = is_weekend(frame["OCCUR_DAY"])
    return pd.Series(
        np.where(weekend, "Weekend", "Weekday"),
        index=frame.index,
        name="DAY_TYPE",
    )


def build_regression_input(
    enriched: pd.DataFrame,
    legacy_day_type: bool = False,
) -> pd.DataFrame:
    """
    One row per (DAY_TYPE, OCCUR_HOUR_CAT, BORO).

    Distinct incidents/deaths are first counted per (date, weekday, hour
    category, borough), then summed per day type. Rows with zero incidents
    are dropped before the rate is computed.
    """
    buckets = aggregate(enriched, ["OCCUR_DATE", "OCCUR_DAY", "OCCUR_HOUR_CAT", "BORO"])
    buckets["DAY_TYPE"] = derive_day_type(buckets, legacy=legacy_day_type)

    reg_input = summarize(buckets, REGRESSION_KEYS)
    reg_input["OCCUR_HOUR_CAT"] = reg_input["OCCUR_HOUR_CAT"].astype(str)
    reg_input = reg_input[reg_input["incidents"] > 0].copy()
    reg_input["fatality_rate"] = fatality_rate(reg_input["deaths"], reg_input["incidents"])

    reg_input = reg_input.reset_index(drop=True)
    validate_schema(reg_input, REGRESSION_INPUT_SCHEMA, context="build_regression_input")
    return reg_input


# =============================================================================
# Model Fit
# =============================================================================

def significance_code(p_value: float) -> str:
    """Conventional significance stars for a p-value."""
    if pd.isna(p_value):
        return ""
    if p_value < 0.001:
        return "***"
    if p_value < 0.01:
        return "**"
    if p_value < 0.05:
        return "*"
    if p_value < 0.1:
        return "."
    return ""


def residual_summary(residuals: pd.Series) -> Dict[str, float]:
    """Five-number summary of model residuals."""
    q = np.quantile(np.asarray(residuals, dtype=float), [0.0, 0.25, 0.5, 0.75, 1.0])
    return {
        "min": float(q[0]),
        "q1": float(q[1]),
        "median": float(q[2]),
        "q3": float(q[3]),
        "max": float(q[4]),
    }


@dataclass
class FatalityModelResult:
    """Fitted OLS model plus the statistics a report needs."""
    formula: str
    n_obs: int
    coefficients: pd.DataFrame
    r_squared: float
    r_squared_adj: float
    f_statistic: float
    f_pvalue: float
    residuals: Dict[str, float]
    model: Any = field(repr=False, default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formula": self.formula,
            "n_obs": self.n_obs,
            "r_squared": self.r_squared,
            "r_squared_adj": self.r_squared_adj,
            "f_statistic": self.f_statistic,
            "f_pvalue": self.f_pvalue,
            "residuals": self.residuals,
            "coefficients": self.coefficients.to_dict(orient="records"),
        }


def fit_fatality_model(reg_input: pd.DataFrame) -> FatalityModelResult:
    """
    Fit `fatality_rate ~ incidents + deaths` by ordinary least squares.

    Raises:
        ValueError: If fewer than MIN_OBSERVATIONS usable rows remain
    """
    data = reg_input.dropna(subset=["fatality_rate", "incidents", "deaths"])
    if len(data) < MIN_OBSERVATIONS:
        raise ValueError(
            f"Need at least {MIN_OBSERVATIONS} rows to fit {FORMULA!r}, got {len(data)}"
        )

    model = smf.ols(FORMULA, data=data).fit()

    coefficients = pd.DataFrame({
        "term": model.params.index,
        "estimate": model.params.to_numpy(),
        "std_error": model.bse.to_numpy(),
        "t_value": model.tvalues.to_numpy(),
        "p_value": model.pvalues.to_numpy(),
    })
    coefficients["significance"] = coefficients["p_value"].map(significance_code)

    return FatalityModelResult(
        formula=FORMULA,
        n_obs=int(model.nobs),
        coefficients=coefficients,
        r_squared=float(model.rsquared),
        r_squared_adj=float(model.rsquared_adj),
        f_statistic=float(model.fvalue) if model.fvalue is not None else float("nan"),
        f_pvalue=float(model.f_pvalue) if model.f_pvalue is not None else float("nan"),
        residuals=residual_summary(model.resid),
        model=model,
    )


def predicted_vs_actual(
    reg_input: pd.DataFrame,
    result: FatalityModelResult,
) -> pd.DataFrame:
    """
    Mean actual vs mean predicted fatality rate per hour category.

    Rows follow HOUR_CATEGORY_ORDER; categories with no data are omitted.
    """
    frame = reg_input.copy()
    frame["predicted"] = result.model.predict(frame)

    table = (
        frame.groupby("OCCUR_HOUR_CAT")
        .agg(
            actual=("fatality_rate", "mean"),
            predicted=("predicted", "mean"),
            rows=("fatality_rate", "size"),
        )
        .reindex(pd.Index(HOUR_CATEGORY_ORDER, name="OCCUR_HOUR_CAT"))
        .dropna(subset=["actual"])
        .reset_index()
    )
    table["rows"] = table["rows"].astype("int64")
    table["difference"] = table["predicted"] - table["actual"]
    return table
