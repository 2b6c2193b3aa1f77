"""
test_batch_preview.py - Tests for concurrent bulk pricing previews

Tests:
- One request per loan, results keyed by loan id
- A failed loan is absent from the result and logged
- Dict pricing payloads are accepted
- An item with invalid pricing is dropped without failing the batch
"""

import asyncio
import logging

from pricing import batch_preview_pricing
from schemas.loan import PricingUpdate
from tests.fakes import FakePricingClient


class TestBatchPreview:
    """Tests for batch_preview_pricing."""

    def test_failed_item_is_omitted(self, caplog):
        """Three items with the second failing yield two previews."""
        client = FakePricingClient(fail_for=["L2"])
        items = [
            ("L1", PricingUpdate(base_rate=5.0, spread=1.0)),
            ("L2", PricingUpdate(base_rate=5.0, spread=2.0)),
            ("L3", PricingUpdate(base_rate=5.0, spread=3.0)),
        ]

        with caplog.at_level(logging.WARNING):
            results = asyncio.run(batch_preview_pricing(client, items))

        assert set(results) == {"L1", "L3"}
        assert results["L3"].effective_rate == 8.0
        assert len(client.calls) == 3
        assert "Batch preview failed for loan L2" in caplog.text

    def test_requests_run_concurrently(self):
        """Three requests of 100ms each finish well under their serial total."""
        client = FakePricingClient(delays=[0.1, 0.1, 0.1])
        items = [(loan_id, {"baseRate": 5.0, "spread": 1.0}) for loan_id in ("L1", "L2", "L3")]

        async def scenario():
            loop = asyncio.get_running_loop()
            started = loop.time()
            results = await batch_preview_pricing(client, items)
            return results, loop.time() - started

        results, elapsed = asyncio.run(scenario())

        assert len(results) == 3
        assert elapsed < 0.25

    def test_empty_batch(self):
        assert asyncio.run(batch_preview_pricing(FakePricingClient(), [])) == {}


    def test_invalid_pricing_only_drops_its_item(self, caplog):
        client = FakePricingClient()
        items = [
            ("L1", {"baseRate": 5.0, "spread": 1.0}),
            ("L2", {"baseRate": "abc"}),
        ]

        with caplog.at_level(logging.WARNING):
            results = asyncio.run(batch_preview_pricing(client, items))

        assert set(results) == {"L1"}
        assert results["L1"].effective_rate == 6.0
        assert [call[0] for call in client.calls] == ["L1"]
        assert "Batch preview failed for loan L2" in caplog.text
