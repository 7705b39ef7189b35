"""
Loader stage: fetch the raw NYPD shooting CSV and read it into a DataFrame.

This is a one-shot batch job, so a failed download or an unparseable file
aborts the run. There is no retry and no partial result.
"""

from pathlib import Path
from typing import Union

import pandas as pd
import requests

from shooting_eda.io_utils import atomic_write
from shooting_eda.schemas import RAW_SCHEMA, validate_schema


# NYPD Shooting Incident Data (Historic), NYC Open Data
SOURCE_URL = (
    "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
)
DATASET_ID = "833y-fsy8"
REQUEST_TIMEOUT = 120  # seconds


def fetch_csv(
    url: str,
    target_path: Union[str, Path],
    timeout: int = REQUEST_TIMEOUT,
    logger=None,
) -> Path:
    """
    Download a CSV snapshot to target_path.

    The body is written atomically, so a failed request never leaves a
    truncated file behind.

    Raises:
        requests.exceptions.RequestException: On any network or HTTP error
    """
    target_path = Path(target_path)

    if logger is not None:
        logger.info(f"Downloading {url}")

    response = requests.get(url, timeout=timeout)
    response.raise_for_status()

    with atomic_write(target_path, mode="wb") as f:
        f.write(response.content)

    if logger is not None:
        logger.info(
            f"Saved {len(response.content):,} bytes to {target_path}",
            extra={"bytes": len(response.content), "path": str(target_path)},
        )

    return target_path


def load_raw_incidents(source: Union[str, Path], **kwargs) -> pd.DataFrame:
    """
    Read raw incident rows from a local CSV path or a URL.

    Every column is read as text so incident keys keep their exact form and
    dates/times reach the cleaner unparsed. Empty cells become NA.

    Raises:
        SchemaError: If a required column is missing
    """
    kwargs.setdefault("dtype", str)
    kwargs.setdefault("keep_default_na", True)

    df = pd.read_csv(source, **kwargs)
    df.columns = df.columns.str.strip()

    validate_schema(df, RAW_SCHEMA, context=str(source))
    return df
