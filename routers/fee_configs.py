# routers/fee_configs.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from models import FeeConfig
from schemas.loan import FeeConfigResponse

router = APIRouter(prefix="/api/fee-configs", tags=["fee-configs"])


@router.get(
     "",
     response_model=List[FeeConfigResponse],
     summary="List fee templates"
)
def list_fee_configs(
     include_inactive: bool = Query(False, alias="includeInactive"),
     db: Session = Depends(get_session),
):
     """Fee templates available for adding fees, in display order."""
     query = db.query(FeeConfig)
     if not include_inactive:
          query = query.filter(FeeConfig.is_active.is_(True))
     configs = query.order_by(FeeConfig.sort_order, FeeConfig.code).all()
     return [
          FeeConfigResponse(
               id=c.id,
               code=c.code,
               name=c.name,
               fee_type=c.fee_type,
               calculation_type=c.calculation_type.value,
               default_flat_amount=c.default_flat_amount,
               default_rate=c.default_rate,
               default_basis_amount=c.default_basis_amount.value if c.default_basis_amount else None,
               default_tiers=c.default_tiers,
               is_active=c.is_active,
               sort_order=c.sort_order,
          )
          for c in configs
     ]
