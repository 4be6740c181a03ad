"""Data modules - entity records, farm snapshots, record store access."""

from feedlot.data.records import (
    Animal,
    AnimalStatus,
    Feed,
    GeneralExpense,
    Ration,
    RationItem,
    VeterinaryRecord,
    Weighing,
)
from feedlot.data.snapshot import FarmSnapshot, load_snapshot, save_snapshot
from feedlot.data.store import RecordStore

__all__ = [
    "Animal",
    "AnimalStatus",
    "Weighing",
    "Feed",
    "Ration",
    "RationItem",
    "VeterinaryRecord",
    "GeneralExpense",
    "FarmSnapshot",
    "load_snapshot",
    "save_snapshot",
    "RecordStore",
]
