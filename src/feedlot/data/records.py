"""Entity records read from the record store.

Rows arrive as dicts using the store's column names (``birth_date`` is the
registration date, ``current_weight`` the registration weight,
``passive_date`` the deactivation date, ``content`` the ration line items).
Each ``from_row`` normalises one row: ids become strings, numbers that are
missing or unparseable become 0.0 and dates that are missing or unparseable
become None. Normalisation never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from feedlot.core.dates import to_day


class AnimalStatus(Enum):
    ACTIVE = "active"
    PASSIVE = "passive"


def _float(value: object) -> float:
    """Parse a numeric column, 0.0 if missing or invalid."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _id(value: object) -> str | None:
    """Normalise an id column to a string (store ids may be ints or uuids)."""
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class Animal:
    """An animal on the farm."""

    id: str
    tag_number: str = ""
    group_id: str | None = None
    registration_date: date | None = None
    registration_weight: float = 0.0
    purchase_price: float = 0.0
    current_weight: float = 0.0
    status: AnimalStatus = AnimalStatus.ACTIVE
    deactivation_date: date | None = None

    @property
    def is_passive(self) -> bool:
        return self.status is AnimalStatus.PASSIVE

    def lifetime_end(self, today: date) -> date | None:
        """Last day of the animal's feeding lifetime.

        The deactivation date for passive animals, today for active ones.
        A passive animal with no recorded deactivation date has no lifetime
        (None).
        """
        if not self.is_passive:
            return today
        return self.deactivation_date

    @classmethod
    def from_row(cls, row: dict) -> Animal:
        status = AnimalStatus.PASSIVE if str(row.get("status") or "").lower() == "passive" else AnimalStatus.ACTIVE
        registration_weight = _float(row.get("current_weight"))
        last_weight = _float(row.get("last_weight_kg")) or registration_weight
        return cls(
            id=str(row.get("id")),
            tag_number=str(row.get("tag_number") or ""),
            group_id=_id(row.get("group_id")),
            registration_date=to_day(row.get("birth_date")),
            registration_weight=registration_weight,
            purchase_price=_float(row.get("purchase_price")),
            current_weight=last_weight,
            status=status,
            deactivation_date=to_day(row.get("passive_date")) if status is AnimalStatus.PASSIVE else None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "tag_number": self.tag_number,
            "group_id": self.group_id,
            "birth_date": self.registration_date.isoformat() if self.registration_date else None,
            "current_weight": self.registration_weight,
            "last_weight_kg": self.current_weight,
            "purchase_price": self.purchase_price,
            "status": self.status.value,
            "passive_date": self.deactivation_date.isoformat() if self.deactivation_date else None,
        }


@dataclass
class Weighing:
    """A single weight observation."""

    animal_id: str
    weigh_date: date
    weight_kg: float
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> Weighing | None:
        """Build from a row, or None when the row has no animal or no usable date."""
        animal_id = _id(row.get("animal_id"))
        weigh_date = to_day(row.get("weigh_date"))
        if animal_id is None or weigh_date is None:
            return None
        return cls(
            animal_id=animal_id,
            weigh_date=weigh_date,
            weight_kg=_float(row.get("weight_kg")),
            id=_id(row.get("id")),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "animal_id": self.animal_id,
            "weigh_date": self.weigh_date.isoformat(),
            "weight_kg": self.weight_kg,
        }


@dataclass
class Feed:
    """A feed in stock."""

    id: str
    name: str = ""
    price_per_kg: float = 0.0
    initial_stock_kg: float = 0.0
    current_stock_kg: float = 0.0
    bag_weight_kg: float = 0.0

    @classmethod
    def from_row(cls, row: dict) -> Feed:
        return cls(
            id=str(row.get("id")),
            name=str(row.get("name") or ""),
            price_per_kg=_float(row.get("price_per_kg")),
            initial_stock_kg=_float(row.get("initial_stock_kg")),
            current_stock_kg=_float(row.get("current_stock_kg")),
            bag_weight_kg=_float(row.get("bag_weight")),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price_per_kg": self.price_per_kg,
            "initial_stock_kg": self.initial_stock_kg,
            "current_stock_kg": self.current_stock_kg,
            "bag_weight": self.bag_weight_kg,
        }


@dataclass
class RationItem:
    """Daily amount of one feed for one animal."""

    feed_id: str
    amount_kg: float


@dataclass
class Ration:
    """A feeding plan assigned to a group for a date range."""

    id: str
    name: str = ""
    group_id: str | None = None
    items: list[RationItem] = field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def from_row(cls, row: dict) -> Ration:
        content = row.get("content") or row.get("ration_items") or []
        items = []
        if isinstance(content, list):
            for item in content:
                if not isinstance(item, dict):
                    continue
                feed_id = _id(item.get("feed_id"))
                if feed_id is None:
                    continue
                items.append(RationItem(feed_id=feed_id, amount_kg=_float(item.get("amount"))))
        return cls(
            id=str(row.get("id")),
            name=str(row.get("name") or ""),
            group_id=_id(row.get("group_id")),
            items=items,
            start_date=to_day(row.get("start_date")),
            end_date=to_day(row.get("end_date")),
        )

    def is_running_on(self, day: date) -> bool:
        """Whether the ration is assigned on the given day (open ends count as running)."""
        if self.start_date is not None and self.start_date > day:
            return False
        return self.end_date is None or self.end_date >= day

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "group_id": self.group_id,
            "content": [{"feed_id": i.feed_id, "amount": i.amount_kg} for i in self.items],
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass
class VeterinaryRecord:
    """Cost of a veterinary procedure on one animal."""

    animal_id: str
    procedure_date: date | None
    cost: float
    procedure_name: str = ""
    notes: str = ""

    @classmethod
    def from_row(cls, row: dict) -> VeterinaryRecord | None:
        animal_id = _id(row.get("animal_id"))
        if animal_id is None:
            return None
        return cls(
            animal_id=animal_id,
            procedure_date=to_day(row.get("process_date")),
            cost=_float(row.get("cost")),
            procedure_name=str(row.get("procedure_name") or ""),
            notes=str(row.get("notes") or ""),
        )

    def to_row(self) -> dict:
        return {
            "animal_id": self.animal_id,
            "process_date": self.procedure_date.isoformat() if self.procedure_date else None,
            "cost": self.cost,
            "procedure_name": self.procedure_name,
            "notes": self.notes,
        }


@dataclass
class GeneralExpense:
    """Farm-wide overhead expense, distributed across the active population."""

    expense_date: date | None
    amount: float
    category: str = ""
    description: str = ""

    @classmethod
    def from_row(cls, row: dict) -> GeneralExpense:
        return cls(
            expense_date=to_day(row.get("expense_date")),
            amount=_float(row.get("amount")),
            category=str(row.get("category") or ""),
            description=str(row.get("description") or ""),
        )

    def to_row(self) -> dict:
        return {
            "expense_date": self.expense_date.isoformat() if self.expense_date else None,
            "amount": self.amount,
            "category": self.category,
            "description": self.description,
        }
