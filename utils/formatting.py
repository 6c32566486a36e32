import dataclasses
import os
from types import MappingProxyType

import numpy as np
import pandas as pd


def sanitize_for_json(data):
    """Recursively converts frames, numpy scalars and dataclasses to JSON-safe values; NaN/inf become None."""
    if isinstance(data, pd.DataFrame):
        return [sanitize_for_json(row) for row in data.to_dict(orient="records")]
    elif isinstance(data, pd.Series):
        return sanitize_for_json(data.to_dict())
    elif dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {f.name: sanitize_for_json(getattr(data, f.name)) for f in dataclasses.fields(data)}
    elif isinstance(data, (dict, MappingProxyType)):
        return {str(k): sanitize_for_json(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [sanitize_for_json(item) for item in data]
    elif isinstance(data, np.ndarray):
        return sanitize_for_json(data.tolist())
    elif isinstance(data, (np.integer, np.floating, np.bool_)):
        return sanitize_for_json(data.item())
    elif isinstance(data, float):
        if np.isnan(data) or np.isinf(data):
            return None
        return data
    elif isinstance(data, os.PathLike):
        return os.fspath(data)
    return data


def format_output(data) -> str:
    if isinstance(data, str):
        return data
    elif isinstance(data, list):
        return "\n".join(map(str, data))
    elif isinstance(data, dict):
        return "\n".join([f"{k}: {v}" for k, v in data.items()])
    return str(data)
