"""Configuration for the budget engine and dashboard.

Paths and tunable rates can be overridden through environment variables.
The resolution depth and simulation caps are fixed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

DATA_DIR = Path(os.getenv("BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))
SEED_PATH = Path(os.getenv("BUDGET_SEED_PATH", DATA_DIR / "seed.json"))

# Longest percent-of-reference chain followed before giving up with 0
MAX_RESOLUTION_DEPTH = 50

# 50 years, month by month
MAX_PROJECTION_MONTHS = 600

DEFAULT_ANNUAL_RETURN = float(os.getenv("BUDGET_DEFAULT_RETURN", "0.07"))
DEFAULT_WITHDRAWAL_RATE = float(os.getenv("BUDGET_WITHDRAWAL_RATE", "0.04"))

LOG_LEVEL = os.getenv("BUDGET_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Attach a stream handler to the root logger unless one is already set."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level or LOG_LEVEL)


def get_seed_path() -> str:
    return str(SEED_PATH)
