"""Ration cost and consumption.

A ration lists daily per-animal amounts of each feed. Its daily cost is the
sum of amount x feed price. A line item whose feed no longer exists
contributes nothing (feeds can be deleted after a ration is created).
"""

from collections import defaultdict
from datetime import date

from loguru import logger

from feedlot.data.records import Feed, Ration


def daily_ration_cost(ration: Ration, feeds_by_id: dict[str, Feed]) -> float:
    """Daily cost of feeding one animal on this ration.

    Args:
        ration: The ration
        feeds_by_id: Current feeds, id -> Feed

    Returns:
        Cost per animal per day in the farm currency
    """
    cost = 0.0
    for item in ration.items:
        feed = feeds_by_id.get(item.feed_id)
        if feed is None:
            logger.debug("Ration {} references missing feed {}", ration.id, item.feed_id)
            continue
        cost += item.amount_kg * feed.price_per_kg
    return cost


def daily_consumption(ration: Ration, head_count: int) -> dict[str, float]:
    """Kilograms of each feed the ration uses per day for head_count animals.

    Returns:
        Dict of feed_id -> kg/day (empty when head_count <= 0)
    """
    consumption: dict[str, float] = defaultdict(float)
    if head_count <= 0:
        return {}
    for item in ration.items:
        if item.amount_kg:
            consumption[item.feed_id] += item.amount_kg * head_count
    return dict(consumption)


def group_daily_costs(rations: list[Ration], feeds_by_id: dict[str, Feed], as_of: date) -> dict[str, float]:
    """Per-animal daily feed cost of each group, from rations running on as_of.

    A group on several concurrent rations pays for all of them.
    """
    costs: dict[str, float] = defaultdict(float)
    for ration in rations:
        if ration.group_id is None or not ration.is_running_on(as_of):
            continue
        costs[ration.group_id] += daily_ration_cost(ration, feeds_by_id)
    return dict(costs)
