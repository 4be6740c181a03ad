"""In-memory snapshot of one farm's records, and its local JSON cache.

Every engine function takes a FarmSnapshot. ``as_of`` is the day the
snapshot treats as "today" (open-ended rations and active animals run up to
and including it), so re-running the engine on a saved snapshot gives the
same answer on any later day.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from functools import cached_property
from pathlib import Path

from feedlot.core import get_cache_dir
from feedlot.data.records import (
    Animal,
    Feed,
    GeneralExpense,
    Ration,
    VeterinaryRecord,
    Weighing,
)

DEFAULT_CACHE_FILE = "snapshot.json"


@dataclass
class FarmSnapshot:
    """All records of one farm at a point in time."""

    farm_id: str
    as_of: date
    animals: list[Animal] = field(default_factory=list)
    weighings: list[Weighing] = field(default_factory=list)
    feeds: list[Feed] = field(default_factory=list)
    rations: list[Ration] = field(default_factory=list)
    veterinary_records: list[VeterinaryRecord] = field(default_factory=list)
    general_expenses: list[GeneralExpense] = field(default_factory=list)

    @cached_property
    def feeds_by_id(self) -> dict[str, Feed]:
        return {f.id: f for f in self.feeds}

    @cached_property
    def animals_by_id(self) -> dict[str, Animal]:
        return {a.id: a for a in self.animals}

    @cached_property
    def _weighings_by_animal(self) -> dict[str, list[Weighing]]:
        grouped: dict[str, list[Weighing]] = defaultdict(list)
        for w in self.weighings:
            grouped[w.animal_id].append(w)
        for items in grouped.values():
            # Stable sort: same-day weighings keep their store order
            items.sort(key=lambda w: w.weigh_date)
        return dict(grouped)

    def weighings_for(self, animal_id: str) -> list[Weighing]:
        """Weighings of one animal, sorted ascending by date."""
        return list(self._weighings_by_animal.get(animal_id, []))

    @classmethod
    def from_rows(
        cls,
        farm_id: str,
        as_of: date,
        animals: list[dict] | None = None,
        weighings: list[dict] | None = None,
        feeds: list[dict] | None = None,
        rations: list[dict] | None = None,
        veterinary_records: list[dict] | None = None,
        general_expenses: list[dict] | None = None,
    ) -> FarmSnapshot:
        """Build a snapshot from raw store rows, dropping rows that cannot be used."""
        return cls(
            farm_id=farm_id,
            as_of=as_of,
            animals=[Animal.from_row(r) for r in animals or []],
            weighings=[w for w in (Weighing.from_row(r) for r in weighings or []) if w is not None],
            feeds=[Feed.from_row(r) for r in feeds or []],
            rations=[Ration.from_row(r) for r in rations or []],
            veterinary_records=[
                v for v in (VeterinaryRecord.from_row(r) for r in veterinary_records or []) if v is not None
            ],
            general_expenses=[GeneralExpense.from_row(r) for r in general_expenses or []],
        )

    def to_dict(self) -> dict:
        return {
            "farm_id": self.farm_id,
            "as_of": self.as_of.isoformat(),
            "animals": [a.to_row() for a in self.animals],
            "weighings": [w.to_row() for w in self.weighings],
            "feeds": [f.to_row() for f in self.feeds],
            "rations": [r.to_row() for r in self.rations],
            "veterinary_records": [v.to_row() for v in self.veterinary_records],
            "general_expenses": [e.to_row() for e in self.general_expenses],
        }


def save_snapshot(snapshot: FarmSnapshot, cache_path: Path | None = None) -> Path:
    """Write a snapshot to the local cache (default .cache/snapshot.json)."""
    if cache_path is None:
        cache_path = get_cache_dir() / DEFAULT_CACHE_FILE

    data = snapshot.to_dict()
    data["fetched_at"] = datetime.now(UTC).isoformat()

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_path, "w") as f:
        json.dump(data, f, indent=2)
    return cache_path


def load_snapshot(cache_path: Path | None = None, as_of: date | None = None) -> FarmSnapshot:
    """Load a cached snapshot.

    Args:
        cache_path: Snapshot file (default .cache/snapshot.json)
        as_of: Override the snapshot's "today"

    Raises:
        FileNotFoundError: If the cache file does not exist
    """
    if cache_path is None:
        cache_path = get_cache_dir() / DEFAULT_CACHE_FILE

    with open(cache_path) as f:
        data = json.load(f)

    return FarmSnapshot.from_rows(
        farm_id=str(data.get("farm_id", "")),
        as_of=as_of or date.fromisoformat(data["as_of"]),
        animals=data.get("animals"),
        weighings=data.get("weighings"),
        feeds=data.get("feeds"),
        rations=data.get("rations"),
        veterinary_records=data.get("veterinary_records"),
        general_expenses=data.get("general_expenses"),
    )
