"""
Growth metrics (GCAA - average daily live-weight gain, kg/day).

Two rates are derived from an animal's weighing history:

- Interval rate: gain between consecutive weighings divided by the days
  between them. The latest one ("last GCAA") drives projections.
- Lifetime rate: gain from the registration weight to the latest weighing,
  divided by the days since registration.

Weighings arrive at irregular intervals, possibly several on the same day.
A zero-day gap yields a rate of 0.0 rather than a division error, and
animals with no weighings report "no data" (None) instead of failing.
"""

from dataclasses import dataclass, field
from datetime import date

from feedlot.core.dates import days_between
from feedlot.data.records import Animal, Weighing
from feedlot.data.snapshot import FarmSnapshot


@dataclass(frozen=True)
class IntervalGain:
    """Growth between two consecutive weighings."""

    start_date: date
    end_date: date
    start_weight: float
    end_weight: float
    days: int
    gain_kg: float
    rate: float


@dataclass
class GrowthMetric:
    """Growth summary for one animal."""

    animal_id: str
    lifetime_rate: float | None
    last_interval_rate: float | None
    last_weight: float
    last_weigh_date: date | None
    intervals: list[IntervalGain] = field(default_factory=list)

    @property
    def interval_rates(self) -> list[float]:
        return [i.rate for i in self.intervals]


def interval_gains(weighings: list[Weighing]) -> list[IntervalGain]:
    """Gain and rate for each consecutive pair of weighings.

    Args:
        weighings: One animal's weighings (sorted here by date; input order is irrelevant)

    Returns:
        One IntervalGain per consecutive pair, oldest first
    """
    ordered = sorted(weighings, key=lambda w: w.weigh_date)
    gains = []
    for prev, curr in zip(ordered, ordered[1:]):
        days = days_between(prev.weigh_date, curr.weigh_date)
        gain = curr.weight_kg - prev.weight_kg
        gains.append(
            IntervalGain(
                start_date=prev.weigh_date,
                end_date=curr.weigh_date,
                start_weight=prev.weight_kg,
                end_weight=curr.weight_kg,
                days=days,
                gain_kg=gain,
                rate=gain / days if days > 0 else 0.0,
            )
        )
    return gains


def lifetime_rate(animal: Animal, weighings: list[Weighing]) -> float | None:
    """Average daily gain since registration, or None when there is no data.

    The baseline is the registration weight, or the first weighing when no
    registration weight was recorded.
    """
    if not weighings or animal.registration_date is None:
        return None
    ordered = sorted(weighings, key=lambda w: w.weigh_date)
    last = ordered[-1]
    baseline = animal.registration_weight or ordered[0].weight_kg
    days = days_between(animal.registration_date, last.weigh_date)
    if days <= 0:
        return None
    return (last.weight_kg - baseline) / days


def calculate_growth(animal: Animal, weighings: list[Weighing]) -> GrowthMetric:
    """Growth metrics for one animal."""
    ordered = sorted(weighings, key=lambda w: w.weigh_date)
    intervals = interval_gains(ordered)
    last = ordered[-1] if ordered else None
    return GrowthMetric(
        animal_id=animal.id,
        lifetime_rate=lifetime_rate(animal, ordered),
        last_interval_rate=intervals[-1].rate if intervals else None,
        last_weight=last.weight_kg if last else animal.current_weight,
        last_weigh_date=last.weigh_date if last else None,
        intervals=intervals,
    )


def calculate_farm_growth(snapshot: FarmSnapshot) -> dict[str, GrowthMetric]:
    """Growth metrics for every animal in the snapshot, keyed by animal id.

    Weighings of animals that are not in the snapshot are ignored.
    """
    return {a.id: calculate_growth(a, snapshot.weighings_for(a.id)) for a in snapshot.animals}
