"""
Cost allocation: what each animal has cost the farm so far.

An animal's total cost has four parts:

- purchase: its purchase price
- feed: for every ration assigned to its group, the ration's daily cost
  times the days the ration and the animal's lifetime overlap
- veterinary: the sum of its veterinary records
- overhead: its share of every general expense, split evenly across the
  animals on the farm on the expense date

No part is ever negative. Durations that come out negative (a ration that
ends before it starts) count as zero days.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from feedlot.core.dates import days_between_inclusive, intersect
from feedlot.data.records import Animal
from feedlot.data.snapshot import FarmSnapshot
from feedlot.engine.census import active_animals
from feedlot.engine.rations import daily_ration_cost

# Display label for animals with no group (they are keyed on None)
UNGROUPED = "ungrouped"


@dataclass
class CostBreakdown:
    """Accumulated cost of one animal."""

    animal_id: str
    tag_number: str
    group_id: str | None
    purchase: float = 0.0
    feed: float = 0.0
    veterinary: float = 0.0
    overhead: float = 0.0

    @property
    def total(self) -> float:
        return self.purchase + self.feed + self.veterinary + self.overhead

    @property
    def group_label(self) -> str:
        return self.group_id if self.group_id is not None else UNGROUPED


@dataclass
class GroupCostSummary:
    """Summed cost of a set of animals.

    group_id is None for the animals with no group, and for farm totals.
    """

    group_id: str | None
    label: str = ""
    animal_count: int = 0
    purchase: float = 0.0
    feed: float = 0.0
    veterinary: float = 0.0
    overhead: float = 0.0
    total: float = 0.0

    def __post_init__(self):
        if not self.label:
            self.label = self.group_id if self.group_id is not None else UNGROUPED

    @property
    def average_total(self) -> float:
        return self.total / self.animal_count if self.animal_count > 0 else 0.0

    def add(self, breakdown: CostBreakdown) -> None:
        self.animal_count += 1
        self.purchase += breakdown.purchase
        self.feed += breakdown.feed
        self.veterinary += breakdown.veterinary
        self.overhead += breakdown.overhead
        self.total += breakdown.total


def _non_negative(value: float, what: str, animal_id: str) -> float:
    if value < 0:
        logger.warning("Negative {} ({}) for animal {}; counted as 0", what, value, animal_id)
        return 0.0
    return value


def feed_cost(animal: Animal, snapshot: FarmSnapshot) -> float:
    """Feed cost of one animal over its lifetime so far.

    Each ration of the animal's group is charged for the days where the
    ration interval [start or registration, end or today] overlaps the
    animal's lifetime [registration, deactivation or today].
    """
    if animal.group_id is None or animal.registration_date is None:
        return 0.0
    lifetime_end = animal.lifetime_end(snapshot.as_of)
    if lifetime_end is None:
        return 0.0

    total = 0.0
    for ration in snapshot.rations:
        if ration.group_id != animal.group_id:
            continue
        overlap = intersect(
            ration.start_date or animal.registration_date,
            ration.end_date or snapshot.as_of,
            animal.registration_date,
            lifetime_end,
        )
        if overlap is None:
            continue
        total += daily_ration_cost(ration, snapshot.feeds_by_id) * days_between_inclusive(overlap.start, overlap.end)
    return total


def overhead_shares(snapshot: FarmSnapshot) -> dict[str, float]:
    """Distribute every general expense across the animals active on its date.

    Returns:
        Dict of animal_id -> accumulated overhead share. Animals that were
        never active on an expense date are absent.
    """
    shares: dict[str, float] = defaultdict(float)
    for expense in snapshot.general_expenses:
        if expense.expense_date is None:
            logger.debug("Skipping general expense with no date ({})", expense.amount)
            continue
        present = active_animals(snapshot.animals, expense.expense_date)
        if not present:
            logger.debug("No active animals on {}; expense of {} not distributed", expense.expense_date, expense.amount)
            continue
        share = expense.amount / len(present)
        for animal in present:
            shares[animal.id] += share
    return dict(shares)


def allocate_costs(snapshot: FarmSnapshot) -> list[CostBreakdown]:
    """Cost breakdown for every animal in the snapshot, in snapshot order."""
    vet_costs: dict[str, float] = defaultdict(float)
    for record in snapshot.veterinary_records:
        vet_costs[record.animal_id] += record.cost

    shares = overhead_shares(snapshot)

    breakdowns = []
    for animal in snapshot.animals:
        breakdowns.append(
            CostBreakdown(
                animal_id=animal.id,
                tag_number=animal.tag_number,
                group_id=animal.group_id,
                purchase=_non_negative(animal.purchase_price, "purchase price", animal.id),
                feed=_non_negative(feed_cost(animal, snapshot), "feed cost", animal.id),
                veterinary=_non_negative(vet_costs.get(animal.id, 0.0), "veterinary cost", animal.id),
                overhead=_non_negative(shares.get(animal.id, 0.0), "overhead share", animal.id),
            )
        )
    return breakdowns


def group_costs(breakdowns: Iterable[CostBreakdown]) -> list[GroupCostSummary]:
    """Sum breakdowns per group. Animals without a group are summed under group_id None.

    Returns:
        One summary per group, sorted by group id, with the ungrouped summary last
    """
    groups: dict[str | None, GroupCostSummary] = {}
    for breakdown in breakdowns:
        key = breakdown.group_id
        if key not in groups:
            groups[key] = GroupCostSummary(group_id=key)
        groups[key].add(breakdown)
    return [groups[k] for k in sorted(groups, key=lambda k: (k is None, k or ""))]


def farm_cost_totals(breakdowns: Iterable[CostBreakdown]) -> GroupCostSummary:
    """Grand total across all animals."""
    totals = GroupCostSummary(group_id=None, label="all")
    for breakdown in breakdowns:
        totals.add(breakdown)
    return totals
