import os
from dotenv import load_dotenv

load_dotenv()

# === Paths ===
DATA_PATH = os.getenv("EV_DATA_PATH", "data.csv")
REPORTS_DIR = os.getenv("EV_REPORTS_DIR", "pdf_reports")
LOG_LEVEL = os.getenv("EV_LOG_LEVEL", "INFO")

# === Columns ===
RANGE_COLUMN = "electric_range"
TYPE_COLUMN = "e_v_type"
COLUMN_ALIASES = {
    "ev_type": TYPE_COLUMN,
    "electric_vehicle_type": TYPE_COLUMN,
}

# Canonical EV type levels and the published labels that map onto them
EV_TYPE_LEVELS = {
    "battery_electric": "battery_electric",
    "Battery Electric Vehicle (BEV)": "battery_electric",
    "BEV": "battery_electric",
    "plug_in_hybrid": "plug_in_hybrid",
    "Plug-in Hybrid Electric Vehicle (PHEV)": "plug_in_hybrid",
    "PHEV": "plug_in_hybrid",
}

# A range of 0 miles is a missing-data sentinel, not a real vehicle.
ZERO_RANGE_IS_MISSING = True

# === Regression ===
SEED = 123
TRAIN_FRACTION = 0.8

# === Exploration ===
HISTOGRAM_BINS = 25
TOP_RANGE_CUTOFF = 215
RANGE_BIN_EDGES = (TOP_RANGE_CUTOFF,)
FUNNEL_BINS = 4
FUNNEL_THRESH_INFREQ = 0.01
FUNNEL_TOP_N = 15
