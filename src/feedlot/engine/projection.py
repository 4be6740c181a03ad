"""
Projection of weight, cost and profit to a sale target.

Each animal is grown forward at a constant GCAA until it reaches either a
target weight or a target date. Every projected day costs the group's
current daily ration plus a per-animal share of farm overhead. The animal
is then valued as carcass (weight x yield x carcass price) or live
(weight x live price), and profit is that value minus everything spent on
it so far plus the projected extra cost.

A GCAA of zero or less would make a weight target unreachable, so it is
replaced by MIN_GCAA to keep day counts finite.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from feedlot.core.dates import days_between
from feedlot.data.records import GeneralExpense
from feedlot.data.snapshot import FarmSnapshot
from feedlot.engine.census import active_animals
from feedlot.engine.costs import allocate_costs
from feedlot.engine.growth import interval_gains
from feedlot.engine.rations import group_daily_costs

# Substitute for non-positive growth rates (kg/day)
MIN_GCAA = 0.001

# Days per month when converting monthly overhead to daily
DAYS_PER_MONTH = 30

DEFAULT_TARGET_WEIGHT_KG = 725.0
DEFAULT_CUSTOM_GCAA = 1.5
DEFAULT_YIELD_PERCENT = 58.0
DEFAULT_CARCASS_PRICE = 560.0


class TargetMode(Enum):
    WEIGHT = "weight"
    DATE = "date"


class GcaaSource(Enum):
    LAST = "last"  # the animal's most recent weighing interval
    CUSTOM = "custom"  # one farm-wide rate


class Valuation(Enum):
    CARCASS = "carcass"
    LIVE = "live"


class OverheadMode(Enum):
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


@dataclass
class ProjectionSettings:
    """Operator inputs for a projection run."""

    mode: TargetMode = TargetMode.WEIGHT
    target_weight_kg: float = DEFAULT_TARGET_WEIGHT_KG
    target_date: date | None = None
    gcaa_source: GcaaSource = GcaaSource.CUSTOM
    custom_gcaa: float = DEFAULT_CUSTOM_GCAA
    valuation: Valuation = Valuation.CARCASS
    yield_percent: float = DEFAULT_YIELD_PERCENT
    carcass_price_per_kg: float = DEFAULT_CARCASS_PRICE
    live_price_per_kg: float = 0.0
    overhead_mode: OverheadMode = OverheadMode.LAST_MONTH
    custom_monthly_overhead: float = 0.0


@dataclass
class Projection:
    """Projected outcome for one animal."""

    days_needed: float
    projected_weight: float
    incremental_cost: float
    sale_value: float
    profit: float
    target_date: date
    gcaa: float
    current_weight: float
    existing_cost: float
    daily_cost: float
    animal_id: str | None = None
    tag_number: str = ""
    group_id: str | None = None


@dataclass
class ProjectionSummary:
    count: int = 0
    average_profit: float = 0.0
    total_profit: float = 0.0
    total_incremental_cost: float = 0.0
    total_sale_value: float = 0.0
    # Projected head count per group_id (None for animals with no group)
    by_group: dict[str | None, int] = field(default_factory=dict)


def effective_gcaa(gcaa: float | None) -> float:
    """Growth rate safe to divide by: MIN_GCAA when missing or not positive."""
    if gcaa is None or gcaa <= 0:
        return MIN_GCAA
    return gcaa


def sale_value(weight_kg: float, settings: ProjectionSettings) -> float:
    """Value of an animal of the given live weight."""
    if settings.valuation is Valuation.LIVE:
        return weight_kg * settings.live_price_per_kg
    return weight_kg * (settings.yield_percent / 100) * settings.carcass_price_per_kg


def project(
    current_weight: float,
    gcaa: float | None,
    daily_ration_cost: float,
    daily_overhead_per_animal: float,
    existing_total_cost: float,
    settings: ProjectionSettings,
    today: date,
) -> Projection:
    """Project one animal to the configured target.

    Args:
        current_weight: Latest known weight (kg)
        gcaa: Daily gain to project with (kg/day); non-positive uses MIN_GCAA
        daily_ration_cost: Per-animal daily ration cost of the animal's group
        daily_overhead_per_animal: Per-animal daily overhead estimate
        existing_total_cost: Cost accumulated so far
        settings: Target and valuation settings
        today: Day the projection starts from

    Returns:
        Projection with days needed, projected weight, cost, value and profit
    """
    rate = effective_gcaa(gcaa)

    if settings.mode is TargetMode.DATE:
        target_date = settings.target_date or today
        days_needed = float(max(0, days_between(today, target_date)))
        projected_weight = current_weight + days_needed * rate
    else:
        days_needed = max(0.0, (settings.target_weight_kg - current_weight) / rate)
        projected_weight = max(current_weight, settings.target_weight_kg)
        target_date = today + timedelta(days=round(days_needed))

    daily_cost = daily_ration_cost + daily_overhead_per_animal
    incremental_cost = days_needed * daily_cost
    value = sale_value(projected_weight, settings)

    return Projection(
        days_needed=days_needed,
        projected_weight=projected_weight,
        incremental_cost=incremental_cost,
        sale_value=value,
        profit=value - (existing_total_cost + incremental_cost),
        target_date=target_date,
        gcaa=rate,
        current_weight=current_weight,
        existing_cost=existing_total_cost,
        daily_cost=daily_cost,
    )


def daily_overhead_per_animal(
    expenses: Iterable[GeneralExpense],
    animal_count: int,
    settings: ProjectionSettings,
    today: date,
) -> float:
    """Per-animal daily overhead estimate.

    LAST_MONTH mode uses the expenses dated within the month ending today;
    CUSTOM mode uses settings.custom_monthly_overhead. The monthly figure is
    spread over the animals (at least one) and over DAYS_PER_MONTH days.
    """
    if settings.overhead_mode is OverheadMode.CUSTOM:
        monthly = settings.custom_monthly_overhead
    else:
        month_start = _one_month_before(today)
        monthly = sum(
            e.amount for e in expenses if e.expense_date is not None and month_start <= e.expense_date <= today
        )
    return monthly / max(animal_count, 1) / DAYS_PER_MONTH


def _one_month_before(d: date) -> date:
    year, month = (d.year, d.month - 1) if d.month > 1 else (d.year - 1, 12)
    # Clamp the day for shorter months (e.g. March 31 -> February 28)
    for day in (d.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


def project_farm(
    snapshot: FarmSnapshot,
    settings: ProjectionSettings,
    group_ids: Iterable[str | None] | None = None,
) -> list[Projection]:
    """Project every animal active on snapshot.as_of.

    Args:
        snapshot: Farm snapshot
        settings: Target and valuation settings
        group_ids: Only project these groups (None selects animals with no group)
    """
    today = snapshot.as_of
    animals = active_animals(snapshot.animals, today)
    if group_ids is not None:
        wanted = set(group_ids)
        animals = [a for a in animals if a.group_id in wanted]

    existing = {b.animal_id: b.total for b in allocate_costs(snapshot)}
    ration_costs = group_daily_costs(snapshot.rations, snapshot.feeds_by_id, today)
    overhead = daily_overhead_per_animal(
        snapshot.general_expenses,
        len(active_animals(snapshot.animals, today)),
        settings,
        today,
    )

    projections = []
    for animal in animals:
        weighings = snapshot.weighings_for(animal.id)
        current_weight = weighings[-1].weight_kg if weighings else animal.current_weight

        if settings.gcaa_source is GcaaSource.LAST:
            intervals = interval_gains(weighings)
            gcaa = intervals[-1].rate if intervals else None
        else:
            gcaa = settings.custom_gcaa

        result = project(
            current_weight=current_weight,
            gcaa=gcaa,
            daily_ration_cost=ration_costs.get(animal.group_id, 0.0) if animal.group_id else 0.0,
            daily_overhead_per_animal=overhead,
            existing_total_cost=existing.get(animal.id, 0.0),
            settings=settings,
            today=today,
        )
        result.animal_id = animal.id
        result.tag_number = animal.tag_number
        result.group_id = animal.group_id
        projections.append(result)
    return projections


def summarize_projections(projections: Iterable[Projection]) -> ProjectionSummary:
    """Count, average and total profit of a set of projections."""
    summary = ProjectionSummary()
    for p in projections:
        summary.count += 1
        summary.total_profit += p.profit
        summary.total_incremental_cost += p.incremental_cost
        summary.total_sale_value += p.sale_value
        summary.by_group[p.group_id] = summary.by_group.get(p.group_id, 0) + 1
    if summary.count:
        summary.average_profit = summary.total_profit / summary.count
    return summary
