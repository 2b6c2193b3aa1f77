# pricing/batch_preview.py
"""
Batch pricing preview for bulk edits.

One preview-pricing request per loan, all issued concurrently. No debounce
and no shared state with LiveCalculation. A loan whose request fails, or
whose pricing does not validate, is absent from the result: absent means
"could not compute", never "no change".
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from schemas.loan import PricingUpdate
from .api_client import call_client
from .live_calculation import PreviewResult, as_pricing

logger = logging.getLogger(__name__)

PricingLike = Union[PricingUpdate, Mapping[str, Any]]


async def _preview_one(client, loan_id: str, pricing: PricingLike) -> Optional[PreviewResult]:
     try:
          response = await call_client(client.preview_pricing, loan_id, as_pricing(pricing))
          return PreviewResult.from_response(loan_id, response)
     except Exception as exc:
          logger.warning("Batch preview failed for loan %s: %s", loan_id, exc)
          return None


async def batch_preview_pricing(client, items: Iterable[Tuple[str, PricingLike]]) -> Dict[str, PreviewResult]:
     """
     Preview pricing for many loans at once.

     Args:
          client: Object with preview_pricing(loan_id, pricing)
          items: (loan_id, pricing) pairs; pricing as PricingUpdate or a camelCase/snake_case mapping

     Returns:
          Previews keyed by loan id, failed items omitted
     """
     results = await asyncio.gather(
          *(_preview_one(client, loan_id, pricing) for loan_id, pricing in items)
     )
     return {result.loan_id: result for result in results if result is not None}
