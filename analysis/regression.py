import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import train_test_split

from config import RANGE_COLUMN, SEED, TRAIN_FRACTION, TYPE_COLUMN

logger = logging.getLogger(__name__)

INTERCEPT = "(Intercept)"

SeedLike = Union[int, np.random.RandomState]


class DegenerateDesignError(ValueError):
    """Raised when the training data cannot identify the regression coefficients."""


@dataclass(frozen=True)
class Coefficient:
    term: str
    estimate: float
    std_error: float
    statistic: float
    p_value: float


@dataclass(frozen=True)
class FittedModel:
    reference_level: str
    intercept: float
    offsets: Mapping[str, float]
    coefficients: Tuple[Coefficient, ...]
    n_obs: int

    @property
    def levels(self) -> Tuple[str, ...]:
        return (self.reference_level,) + tuple(self.offsets)

    def level_mean(self, level: str) -> float:
        if level == self.reference_level:
            return self.intercept
        if level not in self.offsets:
            raise ValueError(f"Level not seen at fit time: {level!r}")
        return self.intercept + self.offsets[level]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([vars(c) for c in self.coefficients])


@dataclass(frozen=True)
class Metrics:
    rmse: float
    mae: float
    rsq: float

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([{"rmse": self.rmse, "mae": self.mae, "rsq": self.rsq}])


# --- Split ---
def split(
    df: pd.DataFrame,
    train_fraction: float = TRAIN_FRACTION,
    seed: SeedLike = SEED,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Seeded random train/test partition of the rows of ``df``.

    ``seed`` is an int or a ``numpy.random.RandomState``; the same int always
    yields the same partition.
    """
    if df.empty:
        raise ValueError("Cannot split an empty dataset")
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be between 0 and 1, got {train_fraction}")
    n_train = int(np.floor(len(df) * train_fraction))
    if n_train == 0 or n_train == len(df):
        raise ValueError(f"Split of {len(df)} rows at {train_fraction} leaves an empty partition")

    train, test = train_test_split(df, train_size=n_train, random_state=seed)
    logger.info(f"Split {len(df)} rows into {len(train)} training and {len(test)} testing rows")
    return train, test


# --- Fit ---
def _design(levels: pd.Series, others: Sequence[str]) -> pd.DataFrame:
    indicators = pd.DataFrame(
        {f"{TYPE_COLUMN}{lvl}": (levels == lvl).astype(float).to_numpy() for lvl in others}
    )
    return sm.add_constant(indicators, has_constant="add").rename(columns={"const": INTERCEPT})


def fit(train: pd.DataFrame) -> FittedModel:
    """OLS of electric range on a treatment coded EV type."""
    if train.empty:
        raise DegenerateDesignError("Training set is empty")
    levels = sorted(train[TYPE_COLUMN].unique())
    if len(levels) < 2:
        raise DegenerateDesignError(
            f"Need at least 2 distinct {TYPE_COLUMN} levels to fit, got {levels}"
        )

    reference, others = levels[0], levels[1:]
    X = _design(train[TYPE_COLUMN].reset_index(drop=True), others)
    y = train[RANGE_COLUMN].astype(float).reset_index(drop=True)
    result = sm.OLS(y, X).fit()

    coefficients = tuple(
        Coefficient(
            term=term,
            estimate=float(result.params[term]),
            std_error=float(result.bse[term]),
            statistic=float(result.tvalues[term]),
            p_value=float(result.pvalues[term]),
        )
        for term in X.columns
    )
    offsets = {lvl: float(result.params[f"{TYPE_COLUMN}{lvl}"]) for lvl in others}
    model = FittedModel(
        reference_level=reference,
        intercept=float(result.params[INTERCEPT]),
        offsets=MappingProxyType(offsets),
        coefficients=coefficients,
        n_obs=int(result.nobs),
    )
    logger.info(f"Fitted OLS on {model.n_obs} rows: intercept={model.intercept:.2f}, offsets={offsets}")
    return model


# --- Predict ---
def predict(model: FittedModel, test: pd.DataFrame) -> np.ndarray:
    return np.array([model.level_mean(level) for level in test[TYPE_COLUMN]], dtype=float)


# --- Evaluate ---
def evaluate(predicted: Sequence[float], actual: Sequence[float]) -> Metrics:
    predicted = np.asarray(predicted, dtype=float)
    actual = np.asarray(actual, dtype=float)
    if len(predicted) != len(actual):
        raise ValueError("Predicted and actual series must be same length")
    if len(actual) == 0:
        raise ValueError("Cannot evaluate an empty testing set")

    metrics = Metrics(
        rmse=float(np.sqrt(mean_squared_error(actual, predicted))),
        mae=float(mean_absolute_error(actual, predicted)),
        # undefined (nan or -inf) when the testing ranges are all equal
        rsq=float(r2_score(actual, predicted, force_finite=False)),
    )
    logger.info(f"Test metrics: rmse={metrics.rmse:.3f}, mae={metrics.mae:.3f}, rsq={metrics.rsq:.3f}")
    return metrics


def fit_and_evaluate(
    df: pd.DataFrame,
    train_fraction: float = TRAIN_FRACTION,
    seed: SeedLike = SEED,
) -> Dict:
    """Split, fit on the training rows and evaluate on the testing rows."""
    train, test = split(df, train_fraction=train_fraction, seed=seed)
    model = fit(train)
    predicted = predict(model, test)
    metrics = evaluate(predicted, test[RANGE_COLUMN])
    return {
        "train": train,
        "test": test,
        "model": model,
        "predicted": predicted,
        "metrics": metrics,
    }
