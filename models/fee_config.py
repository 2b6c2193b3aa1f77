# models/fee_config.py
"""
FeeConfig model - admin-configurable fee templates.

A pending "add fee" edit only carries the template id; the amount is derived
from the template defaults at preview time and copied onto a Fee on commit.
"""
import enum
from sqlalchemy import Column, String, Float, Boolean, Integer, JSON, Enum
from .base import Base, generate_id


class FeeCalculationType(str, enum.Enum):
     """How a fee amount is derived."""
     FLAT = "flat"
     PERCENTAGE = "percentage"
     TIERED = "tiered"


class FeeBasis(str, enum.Enum):
     """Amount a percentage or tiered fee is applied to."""
     PRINCIPAL = "principal"
     OUTSTANDING = "outstanding"
     TOTAL_INVOICES = "total_invoices"


class FeeConfig(Base):
     __tablename__ = "fee_configs"

     id = Column(String(36), primary_key=True, default=generate_id)
     code = Column(String(20), unique=True, nullable=False, index=True)  # ARR, COMM, FAC, LATE
     name = Column(String(255), nullable=False)
     fee_type = Column(String(50), nullable=False, default="arrangement")
     calculation_type = Column(
          Enum(FeeCalculationType, name="fee_calculation_type", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False,
          default=FeeCalculationType.FLAT
     )

     # Defaults copied onto a loan fee when added
     default_flat_amount = Column(Float, nullable=True)
     default_rate = Column(Float, nullable=True)  # decimal fraction, 0.01 = 1%
     default_basis_amount = Column(
          Enum(FeeBasis, name="fee_basis", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=True
     )
     default_tiers = Column(JSON, nullable=True)  # [{"minAmount", "maxAmount", "rate"}]

     is_active = Column(Boolean, default=True, nullable=False)
     sort_order = Column(Integer, default=0, nullable=False)

     def __repr__(self):
          return f"<FeeConfig(id={self.id}, code='{self.code}', type='{self.calculation_type.value}')>"
