# stockestimate/config.py
"""
Global settings and default values for StockEstimate.
"""

import os
from dataclasses import dataclass, field
from typing import Dict


# Default path of the SQLite file holding the stock document
DB_PATH = os.environ.get("STOCKESTIMATE_DB") or os.path.join(os.getcwd(), "stockestimate.db")

# Key of the stock document inside the key/value table
DOCUMENT_KEY = "stock-data"


def _default_shifts() -> Dict[str, int]:
    return {"EVA": 2, "EVR": 2}


@dataclass
class DefaultConfig:
    """Default values for system parameters."""
    shifts: Dict[str, int] = field(default_factory=_default_shifts)  # shifts per production line
    unit: str = "bags"
    category: str = "Chemical"
    snapshot_limit: int = 90  # most recent snapshots kept
    critical_days: float = 3.0
    warning_days: float = 10.0
    low_days: float = 20.0
    days_per_month: float = 30.0  # fixed month, not calendar accurate


# Global instance of the defaults
DEFAULTS = DefaultConfig()
