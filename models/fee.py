# models/fee.py
from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, JSON, Enum, func
from sqlalchemy.orm import relationship
from .base import Base, generate_id
from .fee_config import FeeCalculationType, FeeBasis


class Fee(Base):
     """
     Fee applied to a loan, derived from a FeeConfig.

     calculated_amount is computed by the backend and is the fee's
     contribution to the loan's total_fees.
     """
     __tablename__ = "fees"

     id = Column(String(36), primary_key=True, default=generate_id)
     loan_id = Column(
          String(36),
          ForeignKey("loans.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     fee_config_id = Column(String(36), ForeignKey("fee_configs.id"), nullable=True)
     code = Column(String(20), nullable=False)
     name = Column(String(255), nullable=False)
     calculation_type = Column(
          Enum(FeeCalculationType, name="loan_fee_calculation_type", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False
     )

     flat_amount = Column(Float, nullable=True)
     rate = Column(Float, nullable=True)  # decimal fraction
     basis_amount = Column(
          Enum(FeeBasis, name="loan_fee_basis", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=True
     )
     tiers = Column(JSON, nullable=True)

     calculated_amount = Column(Float, nullable=False, default=0)
     currency = Column(String(3), nullable=False)
     is_waived = Column(Boolean, default=False, nullable=False)
     is_overridden = Column(Boolean, default=False, nullable=False)

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     loan = relationship("Loan", back_populates="fees")

     def __repr__(self):
          return f"<Fee(id={self.id}, code='{self.code}', amount={self.calculated_amount})>"
