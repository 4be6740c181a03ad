"""Shared test fixtures and snapshot builders."""

import sys
from datetime import date
from pathlib import Path

import pytest
import respx
from tenacity import wait_none

# Add src/ to path so tests can import feedlot
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from feedlot.core import client  # noqa: E402
from feedlot.core.config import settings  # noqa: E402
from feedlot.data.records import (  # noqa: E402
    Animal,
    AnimalStatus,
    Feed,
    GeneralExpense,
    Ration,
    RationItem,
    VeterinaryRecord,
    Weighing,
)
from feedlot.data.snapshot import FarmSnapshot  # noqa: E402


def make_animal(
    animal_id: str = "a1",
    group_id: str | None = "g1",
    registered: date | None = date(2026, 1, 1),
    weight: float = 300.0,
    purchase_price: float = 0.0,
    passive_on: date | None = None,
    passive: bool | None = None,
    tag: str | None = None,
) -> Animal:
    """Create an animal; passing passive_on makes it passive."""
    is_passive = passive if passive is not None else passive_on is not None
    return Animal(
        id=animal_id,
        tag_number=tag or f"TR{animal_id}",
        group_id=group_id,
        registration_date=registered,
        registration_weight=weight,
        purchase_price=purchase_price,
        current_weight=weight,
        status=AnimalStatus.PASSIVE if is_passive else AnimalStatus.ACTIVE,
        deactivation_date=passive_on,
    )


def make_feed(
    feed_id: str = "f1",
    price: float = 10.0,
    initial: float = 1000.0,
    current: float | None = None,
    bag: float = 50.0,
) -> Feed:
    return Feed(
        id=feed_id,
        name=f"Feed {feed_id}",
        price_per_kg=price,
        initial_stock_kg=initial,
        current_stock_kg=initial if current is None else current,
        bag_weight_kg=bag,
    )


def make_ration(
    ration_id: str = "r1",
    group_id: str | None = "g1",
    items: dict[str, float] | None = None,
    start: date | None = date(2026, 1, 1),
    end: date | None = None,
) -> Ration:
    """Create a ration from a feed_id -> kg/day mapping."""
    return Ration(
        id=ration_id,
        name=f"Ration {ration_id}",
        group_id=group_id,
        items=[RationItem(feed_id=f, amount_kg=kg) for f, kg in (items or {"f1": 2.0}).items()],
        start_date=start,
        end_date=end,
    )


def make_weighing(animal_id: str, day: date, kg: float) -> Weighing:
    return Weighing(animal_id=animal_id, weigh_date=day, weight_kg=kg)


def make_expense(day: date | None, amount: float, category: str = "labour") -> GeneralExpense:
    return GeneralExpense(expense_date=day, amount=amount, category=category)


def make_vet(animal_id: str, cost: float, day: date | None = date(2026, 1, 5)) -> VeterinaryRecord:
    return VeterinaryRecord(animal_id=animal_id, procedure_date=day, cost=cost, procedure_name="vaccination")


def make_snapshot(as_of: date = date(2026, 1, 31), **collections) -> FarmSnapshot:
    return FarmSnapshot(farm_id="farm-1", as_of=as_of, **collections)


@pytest.fixture
def mock_store():
    """Mock record store responses."""
    with respx.mock(base_url=settings.store_url) as mock:
        yield mock


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    """Retry immediately in tests."""
    monkeypatch.setattr(client.request_with_retry.retry, "wait", wait_none())


@pytest.fixture
def sample_rows():
    """Raw store rows for a small farm."""
    return {
        "animals": [
            {
                "id": 1,
                "tag_number": "TR001",
                "group_id": 10,
                "birth_date": "2026-01-01",
                "current_weight": "300",
                "last_weight_kg": 320,
                "purchase_price": 40000,
                "status": "active",
                "passive_date": None,
            },
            {
                "id": 2,
                "tag_number": "TR002",
                "group_id": None,
                "birth_date": "2026-01-10T08:00:00Z",
                "current_weight": 280,
                "purchase_price": None,
                "status": "passive",
                "passive_date": "2026-01-20",
            },
        ],
        "weighings": [
            {"id": 7, "animal_id": 1, "weigh_date": "2026-01-11", "weight_kg": 320},
            {"id": 8, "animal_id": 1, "weigh_date": None, "weight_kg": 330},
        ],
        "feeds": [
            {
                "id": 5,
                "name": "Barley",
                "price_per_kg": 12.5,
                "initial_stock_kg": 2000,
                "current_stock_kg": 1500,
                "bag_weight": 50,
            }
        ],
        "rations": [
            {
                "id": 3,
                "name": "Finishing",
                "group_id": 10,
                "content": [{"feed_id": 5, "amount": 4}, {"feed_id": None, "amount": 1}],
                "start_date": "2026-01-01",
                "end_date": None,
            }
        ],
        "veterinary_records": [
            {"animal_id": 1, "process_date": "2026-01-03", "cost": "750", "procedure_name": "vaccination"},
        ],
        "general_expenses": [
            {"expense_date": "2026-01-15", "amount": 1000, "category": "labour", "description": "wages"},
        ],
    }
