from __future__ import annotations

import threading
from unittest.mock import MagicMock

import httpx
import pytest

from listing_optimizer.app.domain.errors import OptimizationStoreError
from listing_optimizer.app.domain.models import GeneratedListing, ListingContent
from listing_optimizer.app.infra.db.memory_repo import InMemoryOptimizationStore
from listing_optimizer.app.infra.db.supabase_optimizations_repo import SupabaseOptimizationStore

ORIGINAL = ListingContent(
    title="T",
    bullets=["b1", "b2"],
    description="D",
    image_ref="https://images.example.com/B000TEST01.jpg",
)
OPTIMIZED = GeneratedListing(title="OT", bullets=["ob1"], description="OD", keywords=["k1", "k2"])

STORED_ROW = {
    "id": "6f1c5a1e-8e3c-4b0e-9d55-0a4c1f0f2b11",
    "asin": "B000TEST01",
    "original_title": "T",
    "original_bullets": ["b1", "b2"],
    "original_description": "D",
    "optimized_title": "OT",
    "optimized_bullets": ["ob1"],
    "optimized_description": "OD",
    "keywords": ["k1", "k2"],
    "image_url": "https://images.example.com/B000TEST01.jpg",
    "created_at": "2024-01-15T12:00:00Z",
}


class TestInMemoryOptimizationStore:
    def test_append_assigns_id_and_timestamp(self) -> None:
        store = InMemoryOptimizationStore()

        record = store.append("B000TEST01", ORIGINAL, OPTIMIZED)

        assert record.id
        assert record.created_at is not None
        assert record.created_at.tzinfo is not None
        assert record.original == ORIGINAL
        assert record.optimized == ListingContent(title="OT", bullets=["ob1"], description="OD")
        assert record.keywords == ["k1", "k2"]

    def test_query_filters(self) -> None:
        store = InMemoryOptimizationStore()
        store.append("B000TEST01", ORIGINAL, OPTIMIZED)
        store.append("B000TEST02", ORIGINAL, OPTIMIZED)

        assert len(store.query()) == 2
        assert [r.asin for r in store.query(asin="B000TEST02")] == ["B000TEST02"]
        assert store.query(asin="B000NOPE00") == []

    def test_concurrent_appends_all_land(self) -> None:
        store = InMemoryOptimizationStore()

        threads = [
            threading.Thread(target=store.append, args=("B000TEST01", ORIGINAL, OPTIMIZED))
            for _ in range(20)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        records = store.query()
        assert len(records) == 20
        assert len({r.id for r in records}) == 20


def _mock_client(data: list[dict] | None = None) -> MagicMock:
    client = MagicMock()
    result = MagicMock()
    result.data = data
    table = client.table.return_value
    table.insert.return_value.execute.return_value = result
    select = table.select.return_value
    select.order.return_value.execute.return_value = result
    select.eq.return_value.order.return_value.execute.return_value = result
    return client


class TestSupabaseOptimizationStore:
    def test_client_is_required(self) -> None:
        with pytest.raises(TypeError):
            SupabaseOptimizationStore()

    def test_append_inserts_flat_row(self) -> None:
        client = _mock_client([STORED_ROW])
        store = SupabaseOptimizationStore(client)

        record = store.append("B000TEST01", ORIGINAL, OPTIMIZED)

        client.table.assert_called_with("optimizations")
        inserted = client.table.return_value.insert.call_args[0][0]
        assert inserted == {
            "asin": "B000TEST01",
            "original_title": "T",
            "original_bullets": ["b1", "b2"],
            "original_description": "D",
            "optimized_title": "OT",
            "optimized_bullets": ["ob1"],
            "optimized_description": "OD",
            "keywords": ["k1", "k2"],
            "image_url": "https://images.example.com/B000TEST01.jpg",
        }
        assert record.id == STORED_ROW["id"]
        assert record.created_at is not None
        assert record.created_at.year == 2024
        assert record.image_ref == "https://images.example.com/B000TEST01.jpg"

    def test_append_without_returned_row_fails(self) -> None:
        store = SupabaseOptimizationStore(_mock_client([]))

        with pytest.raises(OptimizationStoreError) as exc_info:
            store.append("B000TEST01", ORIGINAL, OPTIMIZED)

        assert exc_info.value.operation == "append"

    def test_append_network_error(self) -> None:
        client = _mock_client()
        client.table.return_value.insert.return_value.execute.side_effect = httpx.ConnectError("refused")
        store = SupabaseOptimizationStore(client)

        with pytest.raises(OptimizationStoreError) as exc_info:
            store.append("B000TEST01", ORIGINAL, OPTIMIZED)

        assert "refused" in str(exc_info.value)

    def test_query_all_orders_newest_first(self) -> None:
        client = _mock_client([STORED_ROW])
        store = SupabaseOptimizationStore(client)

        records = store.query()

        client.table.return_value.select.return_value.order.assert_called_once_with("created_at", desc=True)
        assert len(records) == 1
        assert records[0].optimized.bullets == ["ob1"]

    def test_query_by_asin(self) -> None:
        client = _mock_client([STORED_ROW])
        store = SupabaseOptimizationStore(client, table_name="listing_history")

        records = store.query(asin="B000TEST01")

        client.table.assert_called_with("listing_history")
        client.table.return_value.select.return_value.eq.assert_called_once_with("asin", "B000TEST01")
        assert records[0].asin == "B000TEST01"

    def test_query_with_null_columns(self) -> None:
        row = dict(STORED_ROW, original_bullets=None, keywords=None, image_url=None, created_at=None)
        store = SupabaseOptimizationStore(_mock_client([row]))

        record = store.query()[0]

        assert record.original.bullets == []
        assert record.keywords == []
        assert record.image_ref is None
        assert record.created_at is None

    def test_query_empty(self) -> None:
        assert SupabaseOptimizationStore(_mock_client(None)).query(asin="B000NOPE00") == []

    def test_query_timeout(self) -> None:
        client = _mock_client()
        client.table.return_value.select.return_value.order.return_value.execute.side_effect = TimeoutError("slow")
        store = SupabaseOptimizationStore(client)

        with pytest.raises(OptimizationStoreError) as exc_info:
            store.query()

        assert exc_info.value.operation == "query"
