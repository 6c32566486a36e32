import logging
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from config import (
    FUNNEL_BINS,
    FUNNEL_THRESH_INFREQ,
    HISTOGRAM_BINS,
    RANGE_BIN_EDGES,
    RANGE_COLUMN,
    TYPE_COLUMN,
)

logger = logging.getLogger(__name__)

OTHER_LEVEL = "-OTHER"
DEFAULT_EDGES = {RANGE_COLUMN: RANGE_BIN_EDGES}


# === Summaries ===

def group_means(df: pd.DataFrame) -> pd.DataFrame:
    """Mean electric range per EV type."""
    return (
        df.groupby(TYPE_COLUMN, sort=True)[RANGE_COLUMN]
        .mean()
        .rename("avg_electric_range")
        .reset_index()
    )


def range_histogram(df: pd.DataFrame, bins: int = HISTOGRAM_BINS) -> pd.DataFrame:
    """Counts per EV type over bin edges shared by all rows."""
    if df.empty:
        raise ValueError("Cannot build a histogram of an empty dataset")
    edges = np.histogram_bin_edges(df[RANGE_COLUMN].to_numpy(dtype=float), bins=bins)
    frames = []
    for level, group in df.groupby(TYPE_COLUMN, sort=True):
        counts, _ = np.histogram(group[RANGE_COLUMN].to_numpy(dtype=float), bins=edges)
        frames.append(pd.DataFrame({
            TYPE_COLUMN: level,
            "bin_left": edges[:-1],
            "bin_right": edges[1:],
            "count": counts,
        }))
    return pd.concat(frames, ignore_index=True)


def summarize_columns(df: pd.DataFrame) -> pd.DataFrame:
    rows = []
    for column in df.columns:
        series = df[column]
        row = {
            "column": column,
            "type": "numeric" if pd.api.types.is_numeric_dtype(series) else "categorical",
            "n_missing": int(series.isna().sum()),
            "n_unique": int(series.nunique()),
            "mean": np.nan,
            "sd": np.nan,
            "min": np.nan,
            "max": np.nan,
        }
        if row["type"] == "numeric" and series.notna().any():
            row.update(mean=series.mean(), sd=series.std(), min=series.min(), max=series.max())
        rows.append(row)
    return pd.DataFrame(rows)


# === Correlation funnel ===

def _format_edge(value: float) -> str:
    if np.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    return f"{value:g}"


def _bin_labels(column: str, edges: Sequence[float]) -> List[str]:
    return [f"{column}__{_format_edge(lo)}_{_format_edge(hi)}" for lo, hi in zip(edges[:-1], edges[1:])]


def _quantile_edges(series: pd.Series, n_bins: int) -> List[float]:
    probs = np.linspace(0, 1, n_bins + 1)[1:-1]
    return sorted(set(series.quantile(probs).tolist()))


def discretize(series: pd.Series, inner_edges: Sequence[float]) -> pd.DataFrame:
    """One 0/1 column per left-closed bin ``[lo, hi)``, outer edges at -Inf/Inf."""
    edges = [-np.inf] + sorted(set(float(e) for e in inner_edges)) + [np.inf]
    labels = _bin_labels(series.name, edges)
    binned = pd.cut(series, bins=edges, labels=labels, right=False)
    return pd.get_dummies(binned).reindex(columns=labels, fill_value=False).astype(int)


def _one_hot(series: pd.Series, thresh_infreq: float) -> pd.DataFrame:
    values = series.astype(str)
    shares = values.value_counts(normalize=True)
    rare = shares[shares < thresh_infreq].index
    values = values.where(~values.isin(rare), OTHER_LEVEL)
    levels = [lvl for lvl in shares.index if lvl not in rare]
    if len(rare):
        levels.append(OTHER_LEVEL)
    dummies = pd.get_dummies(values).reindex(columns=levels, fill_value=False).astype(int)
    dummies.columns = [f"{series.name}__{lvl}" for lvl in levels]
    return dummies


def binarize(
    df: pd.DataFrame,
    n_bins: int = FUNNEL_BINS,
    thresh_infreq: float = FUNNEL_THRESH_INFREQ,
    edges: Optional[Mapping[str, Sequence[float]]] = None,
) -> pd.DataFrame:
    """Turns every column into 0/1 indicator columns.

    Rows with any missing value are dropped first. Numeric columns with more
    than ``n_bins`` distinct values are cut into bins: explicit inner
    ``edges`` when given for the column, quantile edges otherwise. All other
    columns are one-hot encoded with levels rarer than ``thresh_infreq``
    lumped together.
    """
    edges = dict(DEFAULT_EDGES if edges is None else edges)
    complete = df.dropna().reset_index(drop=True)
    if complete.empty:
        raise ValueError("No complete rows left to binarize")

    parts = []
    for column in complete.columns:
        series = complete[column]
        numeric = pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)
        if column in edges:
            parts.append(discretize(series, edges[column]))
        elif numeric and series.nunique() > n_bins:
            parts.append(discretize(series, _quantile_edges(series, n_bins)))
        else:
            parts.append(_one_hot(series, thresh_infreq))
    binary = pd.concat(parts, axis=1)
    logger.info(f"Binarized {len(complete.columns)} columns into {binary.shape[1]} indicators over {len(binary)} rows")
    return binary


def correlate(binary: pd.DataFrame, target: str) -> pd.DataFrame:
    """Ranks indicator columns by absolute Pearson correlation with ``target``."""
    if target not in binary.columns:
        raise ValueError(f"Target column not found: {target}")
    if binary[target].nunique() < 2:
        raise ValueError(f"Target column is constant: {target}")

    varying = binary.loc[:, binary.nunique() > 1]
    correlations = varying.corrwith(varying[target])
    ranked = pd.DataFrame({
        "indicator": correlations.index,
        "correlation": correlations.to_numpy(),
    })
    split = ranked["indicator"].str.split("__", n=1, expand=True)
    ranked.insert(0, "feature", split[0])
    ranked.insert(1, "bin", split[1])
    order = ranked["correlation"].abs().sort_values(ascending=False, kind="stable").index
    return ranked.loc[order].reset_index(drop=True)


def correlation_funnel(df: pd.DataFrame, target: str, **kwargs) -> pd.DataFrame:
    return correlate(binarize(df, **kwargs), target)


def explore(df: pd.DataFrame, bins: int = HISTOGRAM_BINS) -> Dict:
    """Runs the exploratory summaries over an already filtered dataset."""
    return {
        "group_means": group_means(df),
        "histogram": range_histogram(df, bins=bins),
        "columns": summarize_columns(df),
    }
