# pricing/live_calculation.py
"""
Live pricing previews for loans with pending edits.

Each call to calculate_preview() schedules one asyncio task per loan: a
debounce sleep followed by a preview-full request. A newer call for the same
loan cancels the older task whether it is still sleeping or already awaiting
the server, so a superseded result is never written. Different loans never
interfere with each other.

Failures are logged and leave the previously cached preview in place; they
never reach the caller.

Usage:
     async with LiveCalculation(ledger, client, loans=loans) as live:
          ledger.track_field_change(loan.id, "pricing.baseRate", "Base Rate", 5.0, 5.25)
          live.calculate_preview(loan.id)
          ...
          preview = live.get_preview(loan.id)
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from dotenv import load_dotenv

from schemas.loan import LoanResponse, PricingUpdate
from schemas.preview import FeeAddPreview, FeeUpdatePreview, FeeDeletePreview, FeeChangesPreview
from .api_client import call_client
from .change_ledger import ChangeLedger, FeeChangeKind, LedgerSnapshot

load_dotenv()

logger = logging.getLogger(__name__)

PREVIEW_DEBOUNCE_MS = int(os.getenv("PREVIEW_DEBOUNCE_MS", "150"))

# Ledger field paths that feed the pricing override
PRICING_FIELDS = {
     "pricing.baseRate": "base_rate",
     "pricing.spread": "spread",
}


@dataclass(frozen=True)
class PreviewResult:
     """Server-computed totals for one loan under its pending edits."""
     loan_id: str
     effective_rate: float
     interest_amount: float
     total_fees: float
     net_proceeds: float
     original_total_fees: Optional[float] = None
     original_net_proceeds: Optional[float] = None

     @classmethod
     def from_response(cls, loan_id: str, response: Any) -> "PreviewResult":
          return cls(
               loan_id=loan_id,
               effective_rate=response.effective_rate,
               interest_amount=response.interest_amount,
               total_fees=response.total_fees,
               net_proceeds=response.net_proceeds,
               original_total_fees=getattr(response, "original_total_fees", None),
               original_net_proceeds=getattr(response, "original_net_proceeds", None),
          )


def as_pricing(pricing: Union[PricingUpdate, Mapping[str, Any], None]) -> Optional[PricingUpdate]:
     """Accept a PricingUpdate or a snake/camelCase dict."""
     if pricing is None or isinstance(pricing, PricingUpdate):
          return pricing
     return PricingUpdate.model_validate(dict(pricing))


def build_fee_changes(state: LedgerSnapshot, loan_id: str) -> Optional[FeeChangesPreview]:
     """
     Project a loan's pending fee changes onto the preview payload: adds by
     fee config, updates by fee id and new calculated amount, deletes by fee
     id. Empty lists are omitted; None when nothing remains.
     """
     adds, updates, deletes = [], [], []
     for change in state.fee_changes_for_loan(loan_id):
          if change.kind == FeeChangeKind.ADD and change.fee_config_id:
               adds.append(FeeAddPreview(fee_config_id=change.fee_config_id))
          elif change.kind == FeeChangeKind.UPDATE and change.fee_id:
               amount = (change.updates or {}).get("calculated_amount")
               if amount is not None:
                    updates.append(FeeUpdatePreview(fee_id=change.fee_id, calculated_amount=amount))
          elif change.kind == FeeChangeKind.DELETE and change.fee_id:
               deletes.append(FeeDeletePreview(fee_id=change.fee_id))

     if not (adds or updates or deletes):
          return None
     return FeeChangesPreview(
          adds=adds or None,
          updates=updates or None,
          deletes=deletes or None,
     )


def build_pending_pricing(state: LedgerSnapshot, loan: Optional[LoanResponse], loan_id: str) -> Optional[PricingUpdate]:
     """
     Pricing implied by the ledger, completed with the loan's stored values
     so a single pending field is never sent on its own. None when no pricing
     field is pending.
     """
     pending = {}
     for field_path, attr in PRICING_FIELDS.items():
          change = state.find_change(loan_id, field_path)
          if change is not None:
               pending[attr] = change.new_value
     if not pending:
          return None

     if loan is not None:
          pending.setdefault("base_rate", loan.pricing.base_rate)
          pending.setdefault("spread", loan.pricing.spread)
     return PricingUpdate(**pending)


def merge_pricing(explicit: Optional[PricingUpdate], pending: Optional[PricingUpdate]) -> Optional[PricingUpdate]:
     """Explicit override fields win; pending pricing fills the rest."""
     if explicit is None and pending is None:
          return None
     merged = pending.model_dump(exclude_none=True) if pending is not None else {}
     if explicit is not None:
          merged.update(explicit.model_dump(exclude_none=True))
     return PricingUpdate(**merged)


class LiveCalculation:
     """
     Per-loan debounced preview reconciler.

     Args:
          ledger: Pending edits; read through ledger.snapshot() when a task fires
          client: Object with preview_full_loan_state(loan_id, pricing, fee_changes)
          loans: Current loans, used to complete partial pending pricing
          debounce_ms: Quiet period before a preview request is sent
     """

     def __init__(
          self,
          ledger: ChangeLedger,
          client,
          loans: Optional[Iterable[LoanResponse]] = None,
          debounce_ms: int = PREVIEW_DEBOUNCE_MS,
     ):
          self._ledger = ledger
          self._client = client
          self._debounce = debounce_ms / 1000
          self._loans: Dict[str, LoanResponse] = {}
          self._previews: Dict[str, PreviewResult] = {}
          self._pending: Dict[str, asyncio.Task] = {}
          self.set_loans(loans or [])

     async def __aenter__(self) -> "LiveCalculation":
          return self

     async def __aexit__(self, exc_type, exc, tb) -> None:
          tasks = list(self._pending.values())
          self.close()
          if tasks:
               await asyncio.gather(*tasks, return_exceptions=True)

     def set_loans(self, loans: Iterable[LoanResponse]) -> None:
          self._loans = {loan.id: loan for loan in loans}

     @property
     def previews(self) -> Mapping[str, PreviewResult]:
          return MappingProxyType(dict(self._previews))

     @property
     def pending_loan_ids(self):
          return frozenset(self._pending)

     def get_preview(self, loan_id: str) -> Optional[PreviewResult]:
          return self._previews.get(loan_id)

     # ------------------------------------------------------------------
     # Scheduling
     # ------------------------------------------------------------------

     def calculate_preview(
          self,
          loan_id: str,
          pricing: Union[PricingUpdate, Mapping[str, Any], None] = None,
     ) -> asyncio.Task:
          """
          Schedule a preview for a loan, replacing any preview already
          scheduled or in flight for it. Must be called from the event loop.
          """
          self._cancel(loan_id)
          task = asyncio.get_running_loop().create_task(
               self._run(loan_id, as_pricing(pricing)),
               name=f"preview-{loan_id}",
          )
          self._pending[loan_id] = task
          return task

     def recalculate_for_fee_changes(self, loan_id: str) -> asyncio.Task:
          return self.calculate_preview(loan_id, None)

     def clear_preview(self, loan_id: str) -> None:
          self._cancel(loan_id)
          self._previews.pop(loan_id, None)

     def clear_all_previews(self) -> None:
          self.close()
          self._previews.clear()

     def close(self) -> None:
          """Cancel every scheduled and in-flight preview."""
          for task in self._pending.values():
               task.cancel()
          self._pending.clear()

     async def wait_idle(self) -> None:
          """Wait until every preview scheduled so far has settled."""
          while self._pending:
               await asyncio.gather(*list(self._pending.values()), return_exceptions=True)

     def _cancel(self, loan_id: str) -> None:
          task = self._pending.pop(loan_id, None)
          if task is not None:
               task.cancel()

     # ------------------------------------------------------------------
     # Execution
     # ------------------------------------------------------------------

     def resolve_request(self, loan_id: str, pricing: Optional[PricingUpdate]):
          """Pricing and fee payloads for a loan from the current ledger state."""
          state = self._ledger.snapshot()
          pending = build_pending_pricing(state, self._loans.get(loan_id), loan_id)
          return merge_pricing(pricing, pending), build_fee_changes(state, loan_id)

     async def _run(self, loan_id: str, pricing: Optional[PricingUpdate]) -> None:
          try:
               await asyncio.sleep(self._debounce)
               merged_pricing, fee_changes = self.resolve_request(loan_id, pricing)
               response = await call_client(
                    self._client.preview_full_loan_state, loan_id, merged_pricing, fee_changes
               )
               self._previews[loan_id] = PreviewResult.from_response(loan_id, response)
          except Exception as exc:
               logger.error("Preview calculation failed for loan %s: %s", loan_id, exc)
          finally:
               if self._pending.get(loan_id) is asyncio.current_task():
                    del self._pending[loan_id]
