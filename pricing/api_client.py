# pricing/api_client.py
"""
HTTP client for the loan pricing API.

Wraps a requests Session. Every non-success response (and every transport
failure) is raised as ApiError carrying the server's message, or
"HTTP <status>" when the body has none.

The client is blocking; async callers go through call_client(), which runs
blocking methods in a worker thread and awaits coroutine methods directly.
"""
import asyncio
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from dotenv import load_dotenv

from schemas.loan import (
     LoanResponse,
     PricingUpdate,
     BatchUpdateItem,
     BatchUpdateResponse,
     FeeCreate,
     FeeUpdate,
)
from schemas.preview import FeeChangesPreview, FullPreviewRequest, FullPreviewResponse, PricingPreviewResponse
from schemas.snapshot import SnapshotCreate, SnapshotSummary, SnapshotDetail, SnapshotListResponse

load_dotenv()

logger = logging.getLogger(__name__)

PRICING_API_URL = os.getenv("PRICING_API_URL", "http://localhost:10000/api")
PRICING_API_TIMEOUT = float(os.getenv("PRICING_API_TIMEOUT", "10"))


class ApiError(Exception):
     """Non-success response from the pricing API."""

     def __init__(self, message: str, status_code: Optional[int] = None):
          super().__init__(message)
          self.message = message
          self.status_code = status_code


async def call_client(method: Callable, *args, **kwargs) -> Any:
     """Await a client method without blocking the event loop."""
     if asyncio.iscoroutinefunction(method):
          return await method(*args, **kwargs)
     return await asyncio.to_thread(method, *args, **kwargs)


class PricingApiClient:
     """
     Client for /api/loans, /api/fee-configs and /api/snapshots.

     Args:
          base_url: API root, e.g. http://localhost:10000/api
          timeout: Per-request timeout in seconds
          session: requests-compatible session (defaults to a new requests.Session)
          user_id, user_name: Sent as X-User-Id / X-User-Name for the audit trail
     """

     def __init__(
          self,
          base_url: str = PRICING_API_URL,
          timeout: float = PRICING_API_TIMEOUT,
          session=None,
          user_id: Optional[str] = None,
          user_name: Optional[str] = None,
     ):
          self.base_url = base_url.rstrip("/")
          self.timeout = timeout
          self.session = session if session is not None else requests.Session()
          self.headers = {"Content-Type": "application/json"}
          if user_id:
               self.headers["X-User-Id"] = user_id
          if user_name:
               self.headers["X-User-Name"] = user_name

     def close(self) -> None:
          self.session.close()

     # ------------------------------------------------------------------
     # Transport
     # ------------------------------------------------------------------

     def _request(self, method: str, path: str, payload: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
          url = f"{self.base_url}{path}"
          if params:
               params = {k: v for k, v in params.items() if v is not None}
          try:
               response = self.session.request(
                    method,
                    url,
                    json=payload,
                    params=params or None,
                    headers=self.headers,
                    timeout=self.timeout,
               )
          except requests.RequestException as exc:
               logger.error("%s %s failed: %s", method, url, exc)
               raise ApiError(str(exc)) from exc

          if response.status_code >= 400:
               raise ApiError(self._error_message(response), status_code=response.status_code)

          if not response.content:
               return None
          return response.json()

     @staticmethod
     def _error_message(response) -> str:
          fallback = f"HTTP {response.status_code}"
          try:
               body = response.json()
          except ValueError:
               return fallback
          if isinstance(body, dict):
               for key in ("message", "detail", "error"):
                    value = body.get(key)
                    if isinstance(value, str) and value:
                         return value
          return fallback

     # ------------------------------------------------------------------
     # Pricing previews
     # ------------------------------------------------------------------

     def preview_full_loan_state(
          self,
          loan_id: str,
          pricing: Optional[PricingUpdate] = None,
          fee_changes: Optional[FeeChangesPreview] = None,
     ) -> FullPreviewResponse:
          """Recalculate a loan under pending pricing and fee changes."""
          body = FullPreviewRequest(pricing=pricing, fee_changes=fee_changes)
          data = self._request("POST", f"/loans/{loan_id}/preview-full", body.to_payload())
          return FullPreviewResponse.model_validate(data)

     def preview_pricing(self, loan_id: str, pricing: PricingUpdate) -> PricingPreviewResponse:
          data = self._request("POST", f"/loans/{loan_id}/preview-pricing", pricing.to_payload())
          return PricingPreviewResponse.model_validate(data)

     # ------------------------------------------------------------------
     # Loans and fees
     # ------------------------------------------------------------------

     def get_loans(
          self,
          customer_id: Optional[str] = None,
          currency: Optional[str] = None,
          status: Optional[str] = None,
     ) -> List[LoanResponse]:
          data = self._request(
               "GET", "/loans",
               params={"customerId": customer_id, "currency": currency, "status": status},
          )
          return [LoanResponse.model_validate(item) for item in data]

     def get_loan(self, loan_id: str) -> LoanResponse:
          return LoanResponse.model_validate(self._request("GET", f"/loans/{loan_id}"))

     def batch_update_loans(self, items: Sequence[BatchUpdateItem]) -> BatchUpdateResponse:
          data = self._request("PUT", "/loans/batch", [item.to_payload() for item in items])
          return BatchUpdateResponse.model_validate(data)

     def add_fee(self, loan_id: str, fee: FeeCreate) -> LoanResponse:
          return LoanResponse.model_validate(self._request("POST", f"/loans/{loan_id}/fees", fee.to_payload()))

     def update_fee(self, loan_id: str, fee_id: str, updates: FeeUpdate) -> LoanResponse:
          data = self._request("PUT", f"/loans/{loan_id}/fees/{fee_id}", updates.to_payload())
          return LoanResponse.model_validate(data)

     def remove_fee(self, loan_id: str, fee_id: str) -> LoanResponse:
          return LoanResponse.model_validate(self._request("DELETE", f"/loans/{loan_id}/fees/{fee_id}"))

     # ------------------------------------------------------------------
     # Snapshots
     # ------------------------------------------------------------------

     def get_snapshots(self, customer_id: str, limit: int = 50, skip: int = 0) -> SnapshotListResponse:
          data = self._request(
               "GET", "/snapshots",
               params={"customerId": customer_id, "limit": limit, "skip": skip},
          )
          return SnapshotListResponse.model_validate(data)

     def get_snapshot(self, snapshot_id: str) -> SnapshotDetail:
          return SnapshotDetail.model_validate(self._request("GET", f"/snapshots/{snapshot_id}"))

     def create_snapshot(self, snapshot: SnapshotCreate) -> SnapshotSummary:
          return SnapshotSummary.model_validate(self._request("POST", "/snapshots", snapshot.to_payload()))
