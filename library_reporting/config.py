"""Configuration and constants for the library reporting service."""

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("DATA_PATH", str(Path(__file__).resolve().parent.parent / "data" / "library")))

REPORTS_DIR = Path(os.environ.get("REPORTS_DIR", str(BASE_DIR / "reports")))

DB_PATH = Path(os.environ.get("DB_PATH", str(BASE_DIR / "library.db")))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

DEFAULT_FORMAT = "xlsx"
DEFAULT_TOP_N = 5

# Sentinel used when a leaderboard has no entries
NO_ENTRY = "None"

DATE_FORMAT = "%Y-%m-%d"
