"""Tests for the record store client and RecordStore."""

import json
from datetime import date

import httpx
import pytest

from feedlot.core import client
from feedlot.core.client import RecordStoreError, RetryableError
from feedlot.data.store import COLLECTIONS, RecordStore


class TestRequest:
    """Tests for the low-level request helpers."""

    async def test_sends_api_key_headers(self, mock_store):
        route = mock_store.get("/animals").mock(return_value=httpx.Response(200, json=[]))

        await client.get_rows("animals", api_key="secret")

        request = route.calls[0].request
        assert request.headers["apikey"] == "secret"
        assert request.headers["authorization"] == "Bearer secret"
        assert request.headers["accept"] == "application/json"

    async def test_patch_asks_for_representation(self, mock_store):
        route = mock_store.patch("/feeds").mock(return_value=httpx.Response(200, json=[]))

        await client.request("PATCH", "feeds", json={"current_stock_kg": 1})

        assert route.calls[0].request.headers["prefer"] == "return=representation"

    async def test_retries_server_errors(self, mock_store):
        route = mock_store.get("/feeds").mock(
            side_effect=[httpx.Response(503), httpx.Response(200, json=[{"id": 1}])]
        )

        rows = await client.get_rows("feeds")

        assert rows == [{"id": 1}]
        assert route.call_count == 2

    async def test_gives_up_after_max_retries(self, mock_store):
        route = mock_store.get("/feeds").mock(return_value=httpx.Response(500, text="boom"))

        with pytest.raises(RetryableError, match="HTTP 500"):
            await client.get_rows("feeds")

        assert route.call_count == client.MAX_RETRIES

    async def test_client_errors_are_not_retried(self, mock_store):
        route = mock_store.get("/feeds").mock(return_value=httpx.Response(401, text="bad key"))

        with pytest.raises(RecordStoreError, match="401"):
            await client.get_rows("feeds")

        assert route.call_count == 1

    async def test_connection_errors_are_retried(self, mock_store):
        route = mock_store.get("/feeds").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(RetryableError, match="Connection failed"):
            await client.get_rows("feeds")

        assert route.call_count == client.MAX_RETRIES

    async def test_rejects_non_list_body(self, mock_store):
        mock_store.get("/feeds").mock(return_value=httpx.Response(200, json={"message": "hello"}))

        with pytest.raises(RecordStoreError, match="Expected a list"):
            await client.get_rows("feeds")


class TestFetchCollection:
    """Tests for RecordStore.fetch_collection."""

    async def test_scoped_by_farm_and_ordered(self, mock_store):
        route = mock_store.get("/weighings").mock(return_value=httpx.Response(200, json=[]))

        await RecordStore().fetch_collection("weighings", "farm-1")

        params = route.calls[0].request.url.params
        assert params["farm_id"] == "eq.farm-1"
        assert params["order"] == "weigh_date.asc,id.asc"
        assert params["select"] == "*"

    async def test_extra_filters(self, mock_store):
        route = mock_store.get("/animals").mock(return_value=httpx.Response(200, json=[]))

        await RecordStore().fetch_collection("animals", "farm-1", filters={"status": "active"})

        assert route.calls[0].request.url.params["status"] == "eq.active"

    async def test_follows_pages(self, mock_store):
        route = mock_store.get("/animals").mock(
            side_effect=[
                httpx.Response(200, json=[{"id": 1}, {"id": 2}]),
                httpx.Response(200, json=[{"id": 3}, {"id": 4}]),
                httpx.Response(200, json=[{"id": 5}]),
            ]
        )

        rows = await RecordStore(page_size=2).fetch_collection("animals", "farm-1")

        assert [r["id"] for r in rows] == [1, 2, 3, 4, 5]
        offsets = [call.request.url.params["offset"] for call in route.calls]
        assert offsets == ["0", "2", "4"]
        assert route.calls[0].request.url.params["limit"] == "2"

    @pytest.mark.parametrize("collection", list(COLLECTIONS))
    def test_order_ends_on_unique_id(self, collection):
        assert COLLECTIONS[collection].split(",")[-1] == "id.asc"

    async def test_rows_sharing_a_date_are_paged_once_each(self, mock_store):
        """The store breaks ties arbitrarily per request unless told to sort on id."""
        rows = [{"id": f"e{i}", "expense_date": "2026-01-15", "amount": 100} for i in range(5)]
        calls = []

        def serve(request):
            columns = [part.split(".")[0] for part in request.url.params["order"].split(",")]
            tied = list(reversed(rows)) if len(calls) % 2 else list(rows)
            ordered = sorted(tied, key=lambda r: tuple(r[c] for c in columns))
            offset = int(request.url.params["offset"])
            limit = int(request.url.params["limit"])
            calls.append(offset)
            return httpx.Response(200, json=ordered[offset : offset + limit])

        mock_store.get("/general_expenses").mock(side_effect=serve)

        fetched = await RecordStore(page_size=2).fetch_collection("general_expenses", "farm-1")

        assert calls == [0, 2, 4]
        assert sorted(r["id"] for r in fetched) == [f"e{i}" for i in range(5)]


class TestFetchSnapshot:
    """Tests for RecordStore.fetch_snapshot."""

    async def test_builds_snapshot_from_all_collections(self, mock_store, sample_rows):
        for name in COLLECTIONS:
            mock_store.get(f"/{name}").mock(return_value=httpx.Response(200, json=sample_rows[name]))

        snapshot = await RecordStore().fetch_snapshot("farm-1", as_of=date(2026, 1, 31))

        assert snapshot.farm_id == "farm-1"
        assert snapshot.as_of == date(2026, 1, 31)
        assert [a.id for a in snapshot.animals] == ["1", "2"]
        assert len(snapshot.weighings) == 1  # undated weighing dropped
        assert snapshot.feeds_by_id["5"].price_per_kg == 12.5
        assert snapshot.rations[0].group_id == "10"
        assert len(snapshot.veterinary_records) == 1
        assert snapshot.general_expenses[0].amount == 1000


class TestUpdateFeedStock:
    """Tests for RecordStore.update_feed_stock."""

    async def test_patches_current_stock(self, mock_store):
        route = mock_store.patch("/feeds").mock(
            return_value=httpx.Response(200, json=[{"id": "f1", "current_stock_kg": 812.5}])
        )

        row = await RecordStore().update_feed_stock("f1", 812.5)

        request = route.calls[0].request
        assert request.url.params["id"] == "eq.f1"
        assert json.loads(request.content) == {"current_stock_kg": 812.5}
        assert row["current_stock_kg"] == 812.5

    async def test_missing_feed(self, mock_store):
        mock_store.patch("/feeds").mock(return_value=httpx.Response(200, json=[]))

        with pytest.raises(RecordStoreError, match="not found"):
            await RecordStore().update_feed_stock("gone", 1.0)
