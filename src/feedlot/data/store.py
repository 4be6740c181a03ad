"""Record store access: snapshot fetch and feed stock write-back.

The engine needs read access to six collections scoped by farm, and write
access to a single column, ``feeds.current_stock_kg``. Everything else in
the store is owned by other applications.
"""

import asyncio
from datetime import date

from loguru import logger

from feedlot.core import get_rows, request_with_retry, settings
from feedlot.core.client import RecordStoreError, eq
from feedlot.data.snapshot import FarmSnapshot

# Collection name -> row order. Every order ends on the unique id so that
# limit/offset pages never skip or repeat rows sharing a date.
COLLECTIONS = {
    "animals": "id.asc",
    "weighings": "weigh_date.asc,id.asc",
    "feeds": "id.asc",
    "rations": "id.asc",
    "veterinary_records": "process_date.asc,id.asc",
    "general_expenses": "expense_date.asc,id.asc",
}


class RecordStore:
    """PostgREST-style record store for one deployment.

    Args:
        base_url: Store URL (default settings.store_url)
        api_key: Store API key (default settings.store_api_key)
        page_size: Rows per request when paginating (default settings.page_size)
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        page_size: int | None = None,
    ):
        self.base_url = base_url or settings.store_url
        self.api_key = api_key if api_key is not None else settings.store_api_key
        self.page_size = page_size or settings.page_size

    async def fetch_collection(self, collection: str, farm_id: str, filters: dict | None = None) -> list[dict]:
        """Fetch every row of a collection for one farm, following pages.

        Args:
            collection: Collection name, e.g. "animals"
            farm_id: Farm to scope the query to
            filters: Extra equality filters, column -> value

        Returns:
            All matching rows
        """
        params = {"select": "*", "farm_id": eq(farm_id)}
        for column, value in (filters or {}).items():
            params[column] = eq(value)
        order = COLLECTIONS.get(collection)
        if order:
            params["order"] = order

        rows: list[dict] = []
        offset = 0
        while True:
            page = await get_rows(
                collection,
                params={**params, "limit": self.page_size, "offset": offset},
                base_url=self.base_url,
                api_key=self.api_key,
            )
            rows.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.debug("Fetched {} rows from {} for farm {}", len(rows), collection, farm_id)
        return rows

    async def fetch_snapshot(self, farm_id: str, as_of: date | None = None) -> FarmSnapshot:
        """Fetch all six collections for a farm and build a snapshot.

        Args:
            farm_id: Farm identifier
            as_of: Day treated as "today" (default: today)
        """
        names = list(COLLECTIONS)
        results = await asyncio.gather(*(self.fetch_collection(name, farm_id) for name in names))
        rows = dict(zip(names, results, strict=True))

        snapshot = FarmSnapshot.from_rows(farm_id=farm_id, as_of=as_of or date.today(), **rows)
        logger.info(
            "Loaded farm {}: {} animals, {} weighings, {} feeds, {} rations",
            farm_id,
            len(snapshot.animals),
            len(snapshot.weighings),
            len(snapshot.feeds),
            len(snapshot.rations),
        )
        return snapshot

    async def update_feed_stock(self, feed_id: str, current_stock_kg: float) -> dict:
        """Overwrite one feed's current stock.

        Returns:
            The updated row as returned by the store

        Raises:
            RecordStoreError: If the store rejects the update or the feed does not exist
        """
        response = await request_with_retry(
            "PATCH",
            "feeds",
            params={"id": eq(feed_id)},
            json={"current_stock_kg": current_stock_kg},
            base_url=self.base_url,
            api_key=self.api_key,
        )
        try:
            rows = response.json()
        except ValueError:
            rows = []
        if isinstance(rows, list) and not rows:
            raise RecordStoreError(f"Feed {feed_id} not found")
        return rows[0] if isinstance(rows, list) else rows
