"""Feedlot cost and growth accounting.

This package tracks what each animal in a feedlot has cost, how fast it is
growing, how much feed is left, and what it is projected to earn.

Subpackages:
- feedlot.core: Configuration, calendar-day helpers, record store client, units
- feedlot.data: Entity records, farm snapshots, record store access
- feedlot.engine: Census, growth, ration cost, cost allocation, stock, projections
- feedlot.cli: Command-line tools
"""

# Re-export common items for convenience
from feedlot.core import settings
from feedlot.data import FarmSnapshot, RecordStore, load_snapshot, save_snapshot

__all__ = [
    "settings",
    "FarmSnapshot",
    "RecordStore",
    "load_snapshot",
    "save_snapshot",
]

__version__ = "0.1.0"
