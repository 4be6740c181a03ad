"""
Feed stock recalculation from the full ration history.

Current stock is rebuilt from scratch rather than decremented day by day:

    current_stock = max(0, initial_stock - everything the rations ever consumed)

Consumption is replayed one calendar day at a time. On each day of a
ration's interval the ration's group is counted, so animals joining or
leaving the group change the consumption from that day on. Days with no
animals consume nothing.

Because the result depends only on the snapshot, running the recalculation
twice gives the same stock. That is also the recovery path when a previous
write-back was interrupted partway: run it again.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date

from loguru import logger

from feedlot.core.client import RecordStoreError, RetryableError
from feedlot.core.dates import iter_days
from feedlot.data.snapshot import FarmSnapshot
from feedlot.data.store import RecordStore
from feedlot.engine.census import census
from feedlot.engine.rations import daily_consumption

# Stock is written rounded to this many decimals (grams)
STOCK_DECIMALS = 3


@dataclass(frozen=True)
class StockChange:
    """Recalculated stock of one feed."""

    feed_id: str
    feed_name: str
    initial_stock_kg: float
    consumed_kg: float
    previous_stock_kg: float
    new_stock_kg: float

    @property
    def clamped(self) -> bool:
        """Consumption exceeded the initial stock (stock floored at 0)."""
        return self.consumed_kg > self.initial_stock_kg

    @property
    def written_stock_kg(self) -> float:
        """The value stored for this feed."""
        return round(self.new_stock_kg, STOCK_DECIMALS)

    @property
    def changed(self) -> bool:
        return self.written_stock_kg != round(self.previous_stock_kg, STOCK_DECIMALS)


@dataclass
class StockRecalculation:
    """Result of a full stock recalculation."""

    farm_id: str
    as_of: date
    changes: list[StockChange] = field(default_factory=list)
    # Consumption charged to feeds that are not in the snapshot (deleted feeds)
    orphaned_consumption: dict[str, float] = field(default_factory=dict)

    @property
    def new_stock(self) -> dict[str, float]:
        return {c.feed_id: c.new_stock_kg for c in self.changes}


@dataclass
class StockWriteReport:
    """Outcome of writing recalculated stock back to the store."""

    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class PartialStockWriteError(RecordStoreError):
    """Some feeds were written and some were not.

    The store is left with a mix of old and new values. Re-running the full
    recalculation is safe and brings every feed up to date.
    """

    def __init__(self, report: StockWriteReport):
        self.report = report
        failed = ", ".join(sorted(report.failed))
        super().__init__(
            f"Stock write failed for {len(report.failed)} feed(s) ({failed}); "
            f"{len(report.written)} written. Re-run the recalculation to finish."
        )


def calculate_consumption(snapshot: FarmSnapshot) -> dict[str, float]:
    """Total kilograms of each feed consumed by all rations up to snapshot.as_of.

    Rations with no group or no start date are skipped.
    """
    totals: dict[str, float] = defaultdict(float)
    for ration in snapshot.rations:
        if ration.group_id is None or ration.start_date is None:
            logger.debug("Skipping ration {} ({}): no group or start date", ration.id, ration.name)
            continue

        end = ration.end_date or snapshot.as_of
        for day in iter_days(ration.start_date, end):
            head_count = census(snapshot.animals, day, ration.group_id).count
            if head_count == 0:
                continue
            for feed_id, kg in daily_consumption(ration, head_count).items():
                totals[feed_id] += kg
    return dict(totals)


def recalculate_stock(snapshot: FarmSnapshot) -> StockRecalculation:
    """Recompute current stock of every feed from its initial stock."""
    consumed = calculate_consumption(snapshot)
    result = StockRecalculation(farm_id=snapshot.farm_id, as_of=snapshot.as_of)

    for feed in snapshot.feeds:
        used = consumed.get(feed.id, 0.0)
        change = StockChange(
            feed_id=feed.id,
            feed_name=feed.name,
            initial_stock_kg=feed.initial_stock_kg,
            consumed_kg=used,
            previous_stock_kg=feed.current_stock_kg,
            new_stock_kg=max(0.0, feed.initial_stock_kg - used),
        )
        if change.clamped:
            logger.warning(
                "Feed {} ({}): consumption {:.2f} kg exceeds initial stock {:.2f} kg; stock set to 0",
                feed.id,
                feed.name,
                used,
                feed.initial_stock_kg,
            )
        result.changes.append(change)

    result.orphaned_consumption = {fid: kg for fid, kg in consumed.items() if fid not in snapshot.feeds_by_id}
    for feed_id, kg in result.orphaned_consumption.items():
        logger.debug("Consumption of {:.2f} kg charged to missing feed {}", kg, feed_id)
    return result


async def apply_stock_recalculation(
    store: RecordStore,
    result: StockRecalculation,
    force: bool = False,
) -> StockWriteReport:
    """Write recalculated stock back to the store, one feed at a time.

    Unchanged feeds are skipped unless force is set. A failed write does not
    stop the remaining ones.

    Raises:
        PartialStockWriteError: If any write failed
    """
    report = StockWriteReport()
    for change in result.changes:
        if not force and not change.changed:
            report.unchanged.append(change.feed_id)
            continue
        try:
            await store.update_feed_stock(change.feed_id, change.written_stock_kg)
        except (RecordStoreError, RetryableError) as e:
            logger.error("Failed to write stock for feed {}: {}", change.feed_id, e)
            report.failed[change.feed_id] = str(e)
            continue
        report.written.append(change.feed_id)

    if report.failed:
        raise PartialStockWriteError(report)
    return report


async def recalculate_and_persist(
    store: RecordStore,
    farm_id: str,
    as_of: date | None = None,
    dry_run: bool = False,
    force: bool = False,
) -> tuple[StockRecalculation, StockWriteReport | None]:
    """Fetch a fresh snapshot, recalculate stock, and write it back.

    Args:
        force: Write every feed, even those whose stored stock already matches

    Returns:
        (recalculation, write report). The report is None for a dry run.
    """
    snapshot = await store.fetch_snapshot(farm_id, as_of=as_of)
    result = recalculate_stock(snapshot)
    if dry_run:
        return result, None
    report = await apply_stock_recalculation(store, result, force=force)
    logger.info(
        "Stock recalculated for farm {}: {} written, {} unchanged",
        farm_id,
        len(report.written),
        len(report.unchanged),
    )
    return result, report
