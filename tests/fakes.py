"""
fakes.py - Test doubles for the pricing client engine

Provides:
- make_loan: LoanResponse builder with sensible defaults
- FakePricingClient: async preview client that records calls, with
  per-call delays and per-loan failures
- FakeSnapshotClient: in-memory get_snapshot for playback tests
"""

import asyncio
from datetime import date, datetime
from typing import Dict, List, Optional

from schemas.loan import LoanResponse, LoanPricing, FeeResponse, InvoiceResponse
from schemas.preview import FullPreviewResponse, PricingPreviewResponse
from schemas.snapshot import SnapshotDetail, SnapshotSummary
from pricing import ApiError


def make_loan(
    loan_id: str = "L1",
    loan_number: Optional[str] = None,
    currency: str = "USD",
    total_amount: float = 100000.0,
    base_rate: float = 5.0,
    spread: float = 1.5,
    status: str = "active",
    pricing_status: str = "priced",
    start_date: date = date(2026, 1, 1),
    maturity_date: date = date(2026, 7, 1),
    borrower_name: str = "Acme Trading",
    fees: Optional[List[FeeResponse]] = None,
    invoices: Optional[List[InvoiceResponse]] = None,
) -> LoanResponse:
    return LoanResponse(
        id=loan_id,
        loan_number=loan_number or f"LN-{loan_id}",
        customer_id="C1",
        borrower_id=f"B-{loan_id}",
        borrower_name=borrower_name,
        total_amount=total_amount,
        currency=currency,
        status=status,
        pricing_status=pricing_status,
        start_date=start_date,
        maturity_date=maturity_date,
        pricing=LoanPricing(base_rate=base_rate, spread=spread, effective_rate=base_rate + spread),
        fees=fees or [],
        invoices=invoices or [],
    )


def make_fee(fee_id: str = "F1", loan_id: str = "L1", fee_config_id: str = "FC1",
             amount: float = 1000.0, name: str = "Arrangement Fee", code: str = "ARR") -> FeeResponse:
    return FeeResponse(
        id=fee_id,
        loan_id=loan_id,
        fee_config_id=fee_config_id,
        code=code,
        name=name,
        calculation_type="flat",
        flat_amount=amount,
        calculated_amount=amount,
        currency="USD",
    )


def make_invoice(invoice_id: str, loan_id: str, invoice_number: str, buyer_name: str,
                 amount: float = 1000.0) -> InvoiceResponse:
    return InvoiceResponse(
        id=invoice_id,
        loan_id=loan_id,
        invoice_number=invoice_number,
        buyer_name=buyer_name,
        amount=amount,
        currency="USD",
        due_date=date(2026, 3, 1),
        status="pending",
    )


class FakePricingClient:
    """
    Async stand-in for PricingApiClient's preview methods.

    delays are consumed one per call (0 once exhausted); loans in fail_for
    raise ApiError. Results echo the requested pricing so tests can tell
    which request produced a cached preview.
    """

    def __init__(self, delays=(), fail_for=()):
        self.calls: List[tuple] = []
        self.delays = list(delays)
        self.fail_for = set(fail_for)

    async def _respond(self, loan_id):
        delay = self.delays.pop(0) if self.delays else 0
        if delay:
            await asyncio.sleep(delay)
        if loan_id in self.fail_for:
            raise ApiError("Calculation service unavailable", status_code=503)

    @staticmethod
    def _rate(pricing):
        if pricing is None:
            return 6.5
        return (pricing.base_rate or 0) + (pricing.spread or 0)

    async def preview_full_loan_state(self, loan_id, pricing=None, fee_changes=None):
        self.calls.append((loan_id, pricing, fee_changes))
        await self._respond(loan_id)
        rate = self._rate(pricing)
        return FullPreviewResponse(
            effective_rate=rate,
            interest_amount=rate * 100,
            total_fees=1000.0,
            original_total_fees=1000.0,
            net_proceeds=99000.0 - rate * 100,
            original_net_proceeds=98350.0,
        )

    async def preview_pricing(self, loan_id, pricing):
        self.calls.append((loan_id, pricing, None))
        await self._respond(loan_id)
        rate = self._rate(pricing)
        return PricingPreviewResponse(
            effective_rate=rate,
            interest_amount=rate * 100,
            total_fees=1000.0,
            net_proceeds=99000.0 - rate * 100,
        )


def make_snapshot(snapshot_id: str, timestamp: datetime, loans: List[dict]) -> SnapshotDetail:
    return SnapshotDetail(
        id=snapshot_id,
        customer_id="C1",
        timestamp=timestamp,
        user_id="system",
        user_name="System",
        summary={},
        loans=loans,
    )


class FakeSnapshotClient:
    """Serves snapshots from memory; ids in fail_for raise ApiError."""

    def __init__(self, snapshots: Dict[str, SnapshotDetail], fail_for=()):
        self.snapshots = snapshots
        self.fail_for = set(fail_for)
        self.requested: List[str] = []

    def get_snapshot(self, snapshot_id: str) -> SnapshotDetail:
        self.requested.append(snapshot_id)
        if snapshot_id in self.fail_for or snapshot_id not in self.snapshots:
            raise ApiError(f"Snapshot with ID {snapshot_id} not found", status_code=404)
        return self.snapshots[snapshot_id]

    def summaries(self) -> List[SnapshotSummary]:
        return [
            SnapshotSummary(**s.model_dump(exclude={"loans"}))
            for s in self.snapshots.values()
        ]
