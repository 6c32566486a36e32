import logging
import os
import re
from typing import Dict, List, Set

import pandas as pd

from config import (
    COLUMN_ALIASES,
    EV_TYPE_LEVELS,
    RANGE_COLUMN,
    TYPE_COLUMN,
    ZERO_RANGE_IS_MISSING,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [RANGE_COLUMN, TYPE_COLUMN]


def load_csv(path: str) -> pd.DataFrame:
    """Loads a CSV with a header row."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Data file not found: {path}")
    df = pd.read_csv(path, na_values=['', 'NA', 'null'], low_memory=False)
    logger.info(f"Loaded {len(df)} rows and {len(df.columns)} columns from {path}")
    return df


# === Column names ===

def _snake_case(name: str) -> str:
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', str(name))
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'[^0-9a-zA-Z]+', '_', name)
    return name.strip('_').lower()


def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """Returns a copy with lower snake case, de-duplicated column names."""
    used: Set[str] = set()
    cleaned: List[str] = []
    for column in df.columns:
        base = _snake_case(column) or "x"
        base = COLUMN_ALIASES.get(base, base)
        name, suffix = base, 1
        while name in used:
            suffix += 1
            name = f"{base}_{suffix}"
        used.add(name)
        cleaned.append(name)
    out = df.copy()
    out.columns = cleaned
    return out


# === Validation ===

def _normalize_ev_type(value) -> str:
    if pd.isna(value):
        raise ValueError(f"Missing {TYPE_COLUMN} value")
    level = EV_TYPE_LEVELS.get(str(value).strip())
    if level is None:
        raise ValueError(f"Unknown {TYPE_COLUMN} value: {value!r}")
    return level


def prepare_dataset(df: pd.DataFrame) -> pd.DataFrame:
    """Validates required columns and coerces range and EV type to their canonical form."""
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    out = df.copy()
    try:
        out[RANGE_COLUMN] = pd.to_numeric(out[RANGE_COLUMN], errors='raise')
    except (TypeError, ValueError) as e:
        raise ValueError(f"Non-numeric {RANGE_COLUMN} value: {e}") from e
    if (out[RANGE_COLUMN] < 0).any():
        raise ValueError(f"Negative {RANGE_COLUMN} values found")

    valid = out[RANGE_COLUMN].notna() & (out[RANGE_COLUMN] != 0)
    out[TYPE_COLUMN] = out[TYPE_COLUMN].astype(object)
    out.loc[valid, TYPE_COLUMN] = out.loc[valid, TYPE_COLUMN].map(_normalize_ev_type)
    return out


# === Filtering ===

def count_zero_range(df: pd.DataFrame) -> int:
    return int((df[RANGE_COLUMN] == 0).sum())


def drop_zero_range(df: pd.DataFrame, zero_is_missing: bool = ZERO_RANGE_IS_MISSING) -> pd.DataFrame:
    """Drops rows without a usable electric range.

    Missing ranges are always dropped. With ``zero_is_missing`` a range of
    exactly 0 is treated as missing too.
    """
    keep = df[RANGE_COLUMN].notna()
    if zero_is_missing:
        keep &= df[RANGE_COLUMN] != 0
    out = df.loc[keep].reset_index(drop=True)
    logger.info(f"Kept {len(out)} of {len(df)} rows with a valid {RANGE_COLUMN}")
    return out


def data_snapshot(df: pd.DataFrame) -> Dict:
    """Returns a snapshot of the data quality: shape, missing values, data types"""
    return {
        "shape": df.shape,
        "columns": list(df.columns),
        "missing_values": df.isna().sum().to_dict(),
        "dtypes": df.dtypes.apply(str).to_dict(),
    }
