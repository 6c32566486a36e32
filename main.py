import json
import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Optional

import pandas as pd

from analysis.explorer import correlation_funnel, explore
from analysis.loader import (
    clean_names,
    count_zero_range,
    data_snapshot,
    drop_zero_range,
    load_csv,
    prepare_dataset,
)
from analysis.regression import FittedModel, Metrics, SeedLike, fit_and_evaluate
from analysis.reporter import print_summary, save_plots, write_pdf
from config import (
    DATA_PATH,
    FUNNEL_BINS,
    FUNNEL_THRESH_INFREQ,
    HISTOGRAM_BINS,
    RANGE_BIN_EDGES,
    RANGE_COLUMN,
    REPORTS_DIR,
    SEED,
    TOP_RANGE_CUTOFF,
    TRAIN_FRACTION,
)
from utils.formatting import sanitize_for_json

logger = logging.getLogger(__name__)

FUNNEL_TARGET = f"{RANGE_COLUMN}__{TOP_RANGE_CUTOFF}_Inf"


@dataclass(frozen=True)
class ReportResult:
    snapshot: Dict
    zero_range_count: int
    n_filtered: int
    group_means: pd.DataFrame
    histogram: pd.DataFrame
    columns: pd.DataFrame
    funnel: pd.DataFrame
    n_train: int
    n_test: int
    model: FittedModel
    metrics: Metrics
    artifacts: Dict[str, str]


def build_report(
    data_path: str = DATA_PATH,
    reports_dir: str = REPORTS_DIR,
    seed: SeedLike = SEED,
    train_fraction: float = TRAIN_FRACTION,
    render: bool = True,
) -> ReportResult:
    """Runs load, exploration, regression and rendering once, in order."""
    # === Step 1: Load and clean ===
    raw = clean_names(load_csv(data_path))
    snapshot = data_snapshot(raw)
    prepared = prepare_dataset(raw)
    zero_range_count = count_zero_range(prepared)
    logger.info(f"{zero_range_count} vehicles have an electric range of 0")
    filtered = drop_zero_range(prepared)

    # === Step 2: Explore ===
    summaries = explore(filtered, bins=HISTOGRAM_BINS)
    funnel = correlation_funnel(
        filtered,
        FUNNEL_TARGET,
        n_bins=FUNNEL_BINS,
        thresh_infreq=FUNNEL_THRESH_INFREQ,
        edges={RANGE_COLUMN: RANGE_BIN_EDGES},
    )

    # === Step 3: Regression ===
    fitted = fit_and_evaluate(filtered, train_fraction=train_fraction, seed=seed)

    result = ReportResult(
        snapshot=snapshot,
        zero_range_count=zero_range_count,
        n_filtered=len(filtered),
        group_means=summaries["group_means"],
        histogram=summaries["histogram"],
        columns=summaries["columns"],
        funnel=funnel,
        n_train=len(fitted["train"]),
        n_test=len(fitted["test"]),
        model=fitted["model"],
        metrics=fitted["metrics"],
        artifacts={},
    )
    if not render:
        return result

    # === Step 4: Render ===
    plots = save_plots(result.histogram, result.group_means, funnel, reports_dir)
    sample = filtered.sample(min(5, len(filtered)), random_state=SEED)
    artifacts = dict(plots)
    artifacts["pdf"] = write_pdf(result, plots, reports_dir, sample=sample)
    artifacts["summary"] = write_summary(result, reports_dir)
    logger.info(f"Report written to {artifacts['pdf']}")
    return replace(result, artifacts=artifacts)


def write_summary(result: ReportResult, reports_dir: str, timestamp: Optional[str] = None) -> str:
    timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
    path = os.path.join(reports_dir, f"report_summary_{timestamp}.json")
    payload = sanitize_for_json({
        "snapshot": {k: v for k, v in result.snapshot.items() if k != "dtypes"},
        "zero_range_count": result.zero_range_count,
        "n_filtered": result.n_filtered,
        "group_means": result.group_means,
        "histogram": result.histogram,
        "columns": result.columns,
        "funnel": result.funnel,
        "n_train": result.n_train,
        "n_test": result.n_test,
        "coefficients": result.model.to_frame(),
        "metrics": result.metrics,
    })
    with open(path, "w") as fh:
        fh.write(json.dumps(payload, indent=2) + "\n")
    return path


def run() -> ReportResult:
    result = build_report()
    print_summary(result)
    return result
