"""Report rows built from a snapshot.

Inventory, weighing day, feed stock, veterinary costs by day, the weight
tracking table and the single-animal profile.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import TypedDict

from feedlot.core.dates import days_between
from feedlot.data.records import Animal, VeterinaryRecord
from feedlot.data.snapshot import FarmSnapshot
from feedlot.engine.census import census
from feedlot.engine.costs import allocate_costs
from feedlot.engine.growth import interval_gains, lifetime_rate
from feedlot.engine.rations import daily_consumption


class InventoryRow(TypedDict):
    """One animal in the inventory report."""

    animal_id: str
    tag_number: str
    group_id: str | None
    status: str
    registration_date: str | None
    registration_weight: float
    last_weigh_date: str | None
    last_weight: float | None
    lifetime_gcaa: float | None


def inventory_report(snapshot: FarmSnapshot) -> list[InventoryRow]:
    """Registration and latest weighing of every animal, with lifetime GCAA."""
    rows = []
    for animal in snapshot.animals:
        weighings = snapshot.weighings_for(animal.id)
        last = weighings[-1] if weighings else None
        rows.append(
            InventoryRow(
                animal_id=animal.id,
                tag_number=animal.tag_number,
                group_id=animal.group_id,
                status=animal.status.value,
                registration_date=animal.registration_date.isoformat() if animal.registration_date else None,
                registration_weight=animal.registration_weight,
                last_weigh_date=last.weigh_date.isoformat() if last else None,
                last_weight=last.weight_kg if last else None,
                lifetime_gcaa=lifetime_rate(animal, weighings),
            )
        )
    return rows


# -----------------------------------------------------------------------------
# Weighing Day
# -----------------------------------------------------------------------------


@dataclass
class WeighingDayRow:
    """One weighing on the report day, compared with the previous and first weighings."""

    animal_id: str
    tag_number: str
    weight_kg: float
    previous_date: date | None = None
    previous_weight: float | None = None
    days_since_previous: int | None = None
    gain_kg: float | None = None
    period_gcaa: float | None = None
    first_date: date | None = None
    first_weight: float | None = None
    total_gcaa: float | None = None


@dataclass
class WeighingDayReport:
    day: date
    rows: list[WeighingDayRow] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def average_weight(self) -> float:
        return sum(r.weight_kg for r in self.rows) / len(self.rows) if self.rows else 0.0

    @property
    def average_gain(self) -> float:
        gains = [r.gain_kg for r in self.rows if r.gain_kg is not None]
        return sum(gains) / len(gains) if gains else 0.0

    @property
    def average_period_gcaa(self) -> float:
        rates = [r.period_gcaa for r in self.rows if r.period_gcaa is not None]
        return sum(rates) / len(rates) if rates else 0.0


def weighing_day_report(snapshot: FarmSnapshot, day: date) -> WeighingDayReport:
    """Compare each weighing taken on `day` with the animal's previous and first weighings.

    Weighings of animals missing from the snapshot are left out.
    """
    report = WeighingDayReport(day=day)
    for animal in snapshot.animals:
        history = snapshot.weighings_for(animal.id)
        for index, current in enumerate(history):
            if current.weigh_date != day:
                continue
            row = WeighingDayRow(animal_id=animal.id, tag_number=animal.tag_number, weight_kg=current.weight_kg)

            if index > 0:
                previous = history[index - 1]
                days = days_between(previous.weigh_date, current.weigh_date)
                row.previous_date = previous.weigh_date
                row.previous_weight = previous.weight_kg
                row.days_since_previous = days
                row.gain_kg = current.weight_kg - previous.weight_kg
                row.period_gcaa = row.gain_kg / days if days > 0 else None

                first = history[0]
                total_days = days_between(first.weigh_date, current.weigh_date)
                row.first_date = first.weigh_date
                row.first_weight = first.weight_kg
                row.total_gcaa = (current.weight_kg - first.weight_kg) / total_days if total_days > 0 else None

            report.rows.append(row)
    return report


# -----------------------------------------------------------------------------
# Feed Stock
# -----------------------------------------------------------------------------


class FeedStockRow(TypedDict):
    """Stock position of one feed."""

    feed_id: str
    name: str
    current_stock_kg: float
    initial_stock_kg: float
    price_per_kg: float
    stock_value: float
    daily_consumption_kg: float
    days_remaining: int | None
    bags_remaining: int | None
    percent_remaining: float | None


def current_daily_consumption(snapshot: FarmSnapshot) -> dict[str, float]:
    """Kilograms of each feed used per day by the rations running on snapshot.as_of."""
    totals: dict[str, float] = {}
    for ration in snapshot.rations:
        if ration.group_id is None or not ration.is_running_on(snapshot.as_of):
            continue
        head_count = census(snapshot.animals, snapshot.as_of, ration.group_id).count
        for feed_id, kg in daily_consumption(ration, head_count).items():
            totals[feed_id] = totals.get(feed_id, 0.0) + kg
    return totals


def feed_stock_report(snapshot: FarmSnapshot) -> list[FeedStockRow]:
    """Current stock, value and days of cover for every feed."""
    usage = current_daily_consumption(snapshot)
    rows = []
    for feed in snapshot.feeds:
        daily = usage.get(feed.id, 0.0)
        stock = feed.current_stock_kg
        rows.append(
            FeedStockRow(
                feed_id=feed.id,
                name=feed.name,
                current_stock_kg=stock,
                initial_stock_kg=feed.initial_stock_kg,
                price_per_kg=feed.price_per_kg,
                stock_value=stock * feed.price_per_kg,
                daily_consumption_kg=daily,
                days_remaining=int(stock // daily) if daily > 0 else None,
                bags_remaining=int(stock // feed.bag_weight_kg) if feed.bag_weight_kg > 0 else None,
                percent_remaining=stock / feed.initial_stock_kg * 100 if feed.initial_stock_kg > 0 else None,
            )
        )
    return rows


# -----------------------------------------------------------------------------
# Veterinary
# -----------------------------------------------------------------------------

# Tag shown for records whose animal is no longer in the snapshot
UNKNOWN_TAG = "unknown"


@dataclass
class VeterinaryLine:
    animal_id: str
    tag_number: str
    procedure_name: str
    notes: str
    cost: float


@dataclass
class VeterinaryDay:
    """Procedures performed on one day. day is None for undated records."""

    day: date | None
    records: list[VeterinaryLine] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(r.cost for r in self.records)


@dataclass
class VeterinaryReport:
    days: list[VeterinaryDay] = field(default_factory=list)

    @property
    def count(self) -> int:
        return sum(len(d.records) for d in self.days)

    @property
    def total(self) -> float:
        return sum(d.total for d in self.days)


def _veterinary_line(snapshot: FarmSnapshot, record: VeterinaryRecord) -> VeterinaryLine:
    animal = snapshot.animals_by_id.get(record.animal_id)
    return VeterinaryLine(
        animal_id=record.animal_id,
        tag_number=animal.tag_number if animal else UNKNOWN_TAG,
        procedure_name=record.procedure_name,
        notes=record.notes,
        cost=record.cost,
    )


def veterinary_report(snapshot: FarmSnapshot) -> VeterinaryReport:
    """All veterinary records grouped by day, newest day first.

    Records keep their store order within a day. Undated records come last.
    """
    by_day: dict[date | None, list[VeterinaryLine]] = defaultdict(list)
    for record in snapshot.veterinary_records:
        by_day[record.procedure_date].append(_veterinary_line(snapshot, record))

    dated = sorted((d for d in by_day if d is not None), reverse=True)
    days = [VeterinaryDay(day=d, records=by_day[d]) for d in dated]
    if None in by_day:
        days.append(VeterinaryDay(day=None, records=by_day[None]))
    return VeterinaryReport(days=days)


def daily_veterinary_report(snapshot: FarmSnapshot, day: date | None = None) -> VeterinaryDay:
    """Veterinary records of a single day.

    Args:
        day: Day to report (default: the most recent day with records)
    """
    if day is None:
        dated = [r.procedure_date for r in snapshot.veterinary_records if r.procedure_date is not None]
        if not dated:
            return VeterinaryDay(day=None)
        day = max(dated)
    return VeterinaryDay(
        day=day,
        records=[_veterinary_line(snapshot, r) for r in snapshot.veterinary_records if r.procedure_date == day],
    )


# -----------------------------------------------------------------------------
# Weight Tracking
# -----------------------------------------------------------------------------


class WeightTrackingRow(TypedDict):
    """One animal's weights, keyed by ISO weighing date."""

    animal_id: str
    tag_number: str
    weights: dict[str, float]


@dataclass
class WeightTracking:
    dates: list[str] = field(default_factory=list)
    rows: list[WeightTrackingRow] = field(default_factory=list)


def weight_tracking(snapshot: FarmSnapshot) -> WeightTracking:
    """Weighings pivoted to one row per animal and one column per date.

    Only animals with at least one weighing get a row. When an animal was
    weighed twice on the same day the later record wins.
    """
    table = WeightTracking()
    dates: set[str] = set()
    for animal in snapshot.animals:
        weighings = snapshot.weighings_for(animal.id)
        if not weighings:
            continue
        weights = {w.weigh_date.isoformat(): w.weight_kg for w in weighings}
        dates.update(weights)
        table.rows.append(WeightTrackingRow(animal_id=animal.id, tag_number=animal.tag_number, weights=weights))
    table.dates = sorted(dates)
    return table


# -----------------------------------------------------------------------------
# Animal Profile
# -----------------------------------------------------------------------------

DEFAULT_LIVE_PRICE = 300.0
DEFAULT_PROFILE_CARCASS_PRICE = 450.0
DEFAULT_PROFILE_YIELD_PERCENT = 58.0


def find_animal(snapshot: FarmSnapshot, identifier: str) -> Animal | None:
    """Find an animal by id, or by tag number (case-insensitive)."""
    animal = snapshot.animals_by_id.get(identifier)
    if animal is not None:
        return animal
    wanted = identifier.strip().lower()
    for animal in snapshot.animals:
        if animal.tag_number.lower() == wanted:
            return animal
    return None


@dataclass
class ProfileWeighing:
    """A weighing with the gain since the one before it (zero for the first)."""

    weigh_date: date
    weight_kg: float
    gain_kg: float = 0.0
    days: int = 0
    gcaa: float = 0.0


@dataclass
class AnimalProfile:
    """Everything known about one animal, histories newest first."""

    animal: Animal
    last_weight: float
    average_gcaa: float | None
    last_gcaa: float | None
    live_value: float
    carcass_value: float
    total_cost: float
    weighings: list[ProfileWeighing] = field(default_factory=list)
    veterinary: list[VeterinaryRecord] = field(default_factory=list)

    @property
    def veterinary_total(self) -> float:
        return sum(r.cost for r in self.veterinary)


def animal_profile(
    snapshot: FarmSnapshot,
    animal_id: str,
    live_price: float = DEFAULT_LIVE_PRICE,
    carcass_price: float = DEFAULT_PROFILE_CARCASS_PRICE,
    yield_percent: float = DEFAULT_PROFILE_YIELD_PERCENT,
) -> AnimalProfile | None:
    """Weighing and veterinary history, growth, value and cost of one animal.

    average_gcaa is the gain from the first to the last weighing spread over
    the days on the farm (at least one). It is None without a registration
    date or weighings.

    Returns:
        The profile, or None if the animal is not in the snapshot
    """
    animal = snapshot.animals_by_id.get(animal_id)
    if animal is None:
        return None

    ordered = snapshot.weighings_for(animal.id)
    history = [ProfileWeighing(weigh_date=ordered[0].weigh_date, weight_kg=ordered[0].weight_kg)] if ordered else []
    for gain in interval_gains(ordered):
        history.append(
            ProfileWeighing(
                weigh_date=gain.end_date,
                weight_kg=gain.end_weight,
                gain_kg=gain.gain_kg,
                days=gain.days,
                gcaa=gain.rate,
            )
        )

    last_weight = ordered[-1].weight_kg if ordered else animal.current_weight
    average_gcaa = None
    if ordered and animal.registration_date is not None:
        days_on_farm = max(1, days_between(animal.registration_date, snapshot.as_of))
        average_gcaa = (last_weight - ordered[0].weight_kg) / days_on_farm

    veterinary = sorted(
        (r for r in snapshot.veterinary_records if r.animal_id == animal.id),
        key=lambda r: r.procedure_date or date.min,
        reverse=True,
    )
    costs = next(b for b in allocate_costs(snapshot) if b.animal_id == animal.id)

    return AnimalProfile(
        animal=animal,
        last_weight=last_weight,
        average_gcaa=average_gcaa,
        last_gcaa=history[-1].gcaa if len(history) > 1 else None,
        live_value=last_weight * live_price,
        carcass_value=last_weight * yield_percent / 100 * carcass_price,
        total_cost=costs.total,
        weighings=list(reversed(history)),
        veterinary=veterinary,
    )
