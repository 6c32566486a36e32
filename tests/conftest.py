"""
Pytest configuration and shared fixtures.

The synthetic fleet mirrors the published EV population data: battery
electric vehicles averaging 250 miles, plug-in hybrids averaging 83 miles,
and a handful of vehicles with a range of 0 (the missing-data sentinel).
"""

from itertools import cycle, islice
from pathlib import Path

import pandas as pd
import pytest

N_PER_TYPE = 50
N_ZERO = 10


def _rows(label_bev: str, label_phev: str):
    rows = []
    bev_makes = cycle(["TESLA", "NISSAN", "CHEVROLET"])
    phev_makes = cycle(["TOYOTA", "BMW", "FORD"])
    years = cycle(range(2015, 2025))
    for i in range(N_PER_TYPE):
        rows.append({
            "make": next(bev_makes),
            "model_year": next(years),
            "electric_range": 240 if i % 2 == 0 else 260,
            "e_v_type": label_bev,
        })
    for i in range(N_PER_TYPE):
        rows.append({
            "make": next(phev_makes),
            "model_year": next(years),
            "electric_range": 73 if i % 2 == 0 else 93,
            "e_v_type": label_phev,
        })
    for make in islice(cycle(["KIA", "TESLA"]), N_ZERO):
        rows.append({
            "make": make,
            "model_year": next(years),
            "electric_range": 0,
            "e_v_type": label_bev,
        })
    return rows


@pytest.fixture
def ev_frame() -> pd.DataFrame:
    """Clean-named, canonical-level frame including zero-range rows."""
    return pd.DataFrame(_rows("battery_electric", "plug_in_hybrid"))


@pytest.fixture
def filtered_frame(ev_frame) -> pd.DataFrame:
    return ev_frame[ev_frame["electric_range"] != 0].reset_index(drop=True)


@pytest.fixture
def ev_csv(tmp_path) -> Path:
    """Raw CSV with the published headers and EV type labels."""
    df = pd.DataFrame(_rows(
        "Battery Electric Vehicle (BEV)",
        "Plug-in Hybrid Electric Vehicle (PHEV)",
    ))
    df.insert(0, "VIN (1-10)", [f"5YJ3E1EA{i:04d}" for i in range(len(df))])
    df = df.rename(columns={
        "make": "Make",
        "model_year": "Model Year",
        "electric_range": "Electric Range",
        "e_v_type": "EV Type",
    })
    path = tmp_path / "data.csv"
    df.to_csv(path, index=False)
    return path
