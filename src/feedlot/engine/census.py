"""Population census: which animals are on the farm on a given day.

An animal counts on day D when it was registered on or before D and is
either still active or was deactivated after D. Deactivation is exclusive:
the animal stops counting on the day it is deactivated.

Group membership and status can change at any day boundary, so a census is
always taken for one specific day and never reused for another.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from feedlot.data.records import Animal


class _AnyGroup:
    def __repr__(self) -> str:
        return "ANY_GROUP"


# Census over the whole farm. group_id=None means ungrouped animals only.
ANY_GROUP = _AnyGroup()


@dataclass(frozen=True)
class Census:
    """Result of a census for one day."""

    day: date
    group_id: str | None | _AnyGroup
    animal_ids: frozenset[str]

    @property
    def count(self) -> int:
        return len(self.animal_ids)


def is_active_on(animal: Animal, day: date) -> bool:
    """Whether the animal counts as on the farm on the given day."""
    if animal.registration_date is None or animal.registration_date > day:
        return False
    if not animal.is_passive:
        return True
    # Passive with no deactivation date: never counted
    return animal.deactivation_date is not None and animal.deactivation_date > day


def active_animals(
    animals: Iterable[Animal],
    day: date,
    group_id: str | None | _AnyGroup = ANY_GROUP,
) -> list[Animal]:
    """Animals active on the given day, optionally restricted to one group."""
    return [
        a
        for a in animals
        if (group_id is ANY_GROUP or a.group_id == group_id) and is_active_on(a, day)
    ]


def census(
    animals: Iterable[Animal],
    day: date,
    group_id: str | None | _AnyGroup = ANY_GROUP,
) -> Census:
    """Take a census of the farm (or one group) on the given day."""
    members = active_animals(animals, day, group_id)
    return Census(day=day, group_id=group_id, animal_ids=frozenset(a.id for a in members))
