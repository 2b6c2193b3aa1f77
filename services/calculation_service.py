# services/calculation_service.py
"""
Calculation Service - core financial calculations for loan pricing.

Single source of truth for:
- Effective rate (base rate + spread)
- Day count conventions (30/360, actual/360, actual/365)
- Interest (simple and compound)
- Fees (flat, percentage, tiered)
- Net proceeds
- Previews of pending pricing and fee edits (nothing is persisted)

Pricing rates are percentages (5.25 = 5.25%); fee rates are decimal
fractions (0.01 = 1%).

Usage:
     recalculate_loan(loan)
     preview = preview_full_loan_state(loan, PricingUpdate(base_rate=5.5), fee_changes, configs)
"""
import logging
import math
from datetime import date
from typing import Iterable, Optional, List, Dict, Any

from models import Loan, Fee, FeeConfig
from models.fee_config import FeeCalculationType, FeeBasis
from models.loan import DayCountConvention, AccrualMethod
from schemas.loan import PricingUpdate
from schemas.preview import FeeChangesPreview

logger = logging.getLogger(__name__)


def round2(value: float) -> float:
     """Round to 2 decimal places (currency amounts)."""
     return round(value, 2)


def round4(value: float) -> float:
     """Round to 4 decimal places (rates)."""
     return round(value, 4)


def _enum_value(value) -> Optional[str]:
     return value.value if hasattr(value, "value") else value


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

def calculate_effective_rate(base_rate: float, spread: float) -> float:
     """effective_rate = base_rate + spread"""
     return round4(base_rate + spread)


def days_between(start_date: date, end_date: date) -> int:
     """Whole calendar days from start_date to end_date (negative if reversed)."""
     return (end_date - start_date).days


def calculate_day_count_fraction(start_date: date, end_date: date, convention) -> float:
     """
     Year fraction between two dates under a day count convention.

     Args:
          start_date: Start of the accrual period
          end_date: End of the accrual period
          convention: "30/360", "actual/360" or "actual/365"

     Returns:
          Fraction of a year; 0 for an unknown convention
     """
     convention = _enum_value(convention)

     if convention == DayCountConvention.THIRTY_360.value:
          # 30/360 bond basis
          d1, d2 = start_date.day, end_date.day
          if d1 == 31:
               d1 = 30
          if d2 == 31 and d1 >= 30:
               d2 = 30
          days = (
               (end_date.year - start_date.year) * 360
               + (end_date.month - start_date.month) * 30
               + (d2 - d1)
          )
          return days / 360

     if convention in (DayCountConvention.ACTUAL_360.value, DayCountConvention.ACTUAL_365.value):
          days = math.ceil(days_between(start_date, end_date))
          basis = 360 if convention == DayCountConvention.ACTUAL_360.value else 365
          return days / basis

     return 0.0


def calculate_simple_interest(principal: float, rate_percent: float, day_count_fraction: float) -> float:
     """interest = principal * (rate / 100) * day_count_fraction"""
     return round2(principal * (rate_percent / 100) * day_count_fraction)


def calculate_compound_interest(principal: float, rate_percent: float, day_count_fraction: float) -> float:
     """Annual compounding over a fractional number of years."""
     compound_amount = principal * math.pow(1 + rate_percent / 100, day_count_fraction)
     return round2(compound_amount - principal)


def _interest_for(principal: float, rate_percent: float, start_date, end_date,
                  convention, accrual_method) -> float:
     fraction = calculate_day_count_fraction(start_date, end_date, convention)
     if _enum_value(accrual_method) == AccrualMethod.COMPOUND.value:
          return calculate_compound_interest(principal, rate_percent, fraction)
     return calculate_simple_interest(principal, rate_percent, fraction)


def calculate_interest_amount(loan: Loan) -> float:
     """Interest over the loan's start-to-maturity period at its effective rate."""
     return _interest_for(
          loan.total_amount,
          loan.effective_rate,
          loan.start_date,
          loan.maturity_date,
          loan.day_count_convention or DayCountConvention.ACTUAL_365,
          loan.accrual_method or AccrualMethod.SIMPLE,
     )


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

def _basis_amount(loan: Loan, basis) -> float:
     basis = _enum_value(basis) or FeeBasis.PRINCIPAL.value
     if basis == FeeBasis.OUTSTANDING.value:
          return loan.outstanding_amount or 0
     if basis == FeeBasis.TOTAL_INVOICES.value:
          return loan.total_invoice_amount or 0
     return loan.total_amount


def calculate_tiered_amount(amount: float, tiers: Optional[List[Dict[str, Any]]]) -> float:
     """
     Marginal tiered fee: each tier's rate applies to the slice of the
     amount that falls inside [minAmount, maxAmount).
     """
     if not tiers:
          return 0.0

     sorted_tiers = sorted(tiers, key=lambda t: t.get("minAmount", 0))
     total_fee = 0.0
     remaining = amount

     for tier in sorted_tiers:
          if remaining <= 0:
               break
          tier_max = tier.get("maxAmount")
          tier_max = math.inf if tier_max is None else tier_max
          tier_range = tier_max - tier.get("minAmount", 0)
          in_tier = min(remaining, tier_range)
          if in_tier > 0:
               total_fee += in_tier * tier.get("rate", 0)
               remaining -= in_tier

     return round2(total_fee)


def calculate_fee_amount(fee: Fee, loan: Loan) -> float:
     """Contribution of a single fee to the loan's total fees."""
     if fee.is_waived:
          return 0.0

     calculation_type = _enum_value(fee.calculation_type)
     if calculation_type == FeeCalculationType.FLAT.value:
          return fee.flat_amount or 0.0
     if calculation_type == FeeCalculationType.PERCENTAGE.value:
          return round2(_basis_amount(loan, fee.basis_amount) * (fee.rate or 0))
     if calculation_type == FeeCalculationType.TIERED.value:
          return calculate_tiered_amount(_basis_amount(loan, fee.basis_amount), fee.tiers)
     return 0.0


def calculate_total_fees(loan: Loan) -> float:
     """Refresh each fee's calculated_amount and return the sum."""
     total = 0.0
     for fee in loan.fees:
          fee.calculated_amount = calculate_fee_amount(fee, loan)
          total += fee.calculated_amount
     return round2(total)


def calculate_fee_from_config(config: FeeConfig, loan_amount: float) -> float:
     """Amount a fee would carry if added to a loan from its config defaults."""
     calculation_type = _enum_value(config.calculation_type)
     if calculation_type == FeeCalculationType.FLAT.value:
          return config.default_flat_amount or 0.0
     if calculation_type == FeeCalculationType.PERCENTAGE.value:
          return round2(loan_amount * (config.default_rate or 0))
     if calculation_type == FeeCalculationType.TIERED.value:
          return calculate_tiered_amount(loan_amount, config.default_tiers)
     return 0.0


def calculate_net_proceeds(principal: float, interest_amount: float, total_fees: float) -> float:
     """net_proceeds = principal - interest - fees"""
     return round2(principal - interest_amount - total_fees)


def calculate_total_invoice_amount(loan: Loan) -> float:
     """Sum of invoice face values; invoices are booked in the loan currency."""
     total = 0.0
     for invoice in loan.invoices:
          if invoice.currency != loan.currency:
               logger.warning(
                    "Invoice %s is in %s but loan %s is in %s; counting at face value",
                    invoice.invoice_number, invoice.currency, loan.loan_number, loan.currency,
               )
          total += invoice.amount
     return round2(total)


# ---------------------------------------------------------------------------
# Recalculation and previews
# ---------------------------------------------------------------------------

def recalculate_loan(loan: Loan) -> None:
     """
     Recalculate all derived fields for a loan in place.

     Call whenever pricing, fees or invoices change.
     """
     loan.effective_rate = calculate_effective_rate(loan.base_rate, loan.spread)
     if loan.invoices:
          loan.total_invoice_amount = calculate_total_invoice_amount(loan)
     loan.total_fees = calculate_total_fees(loan)
     loan.interest_amount = calculate_interest_amount(loan)
     loan.net_proceeds = calculate_net_proceeds(
          loan.total_amount,
          loan.interest_amount,
          loan.total_fees,
     )


def preview_pricing(loan: Loan, pricing: PricingUpdate) -> dict:
     """
     Preview pricing without saving.

     Fields missing from pricing fall back to the loan's stored values.
     Fees are not affected by a pricing-only preview.

     Returns:
          dict with effective_rate, interest_amount, total_fees, net_proceeds
     """
     base_rate = pricing.base_rate if pricing.base_rate is not None else (loan.base_rate or 0)
     spread = pricing.spread if pricing.spread is not None else (loan.spread or 0)
     effective_rate = calculate_effective_rate(base_rate, spread)

     if loan.start_date is None or loan.maturity_date is None:
          # Without dates there is nothing to accrue over; keep the stored interest
          interest_amount = loan.interest_amount or 0
     else:
          interest_amount = _interest_for(
               loan.total_amount,
               effective_rate,
               loan.start_date,
               loan.maturity_date,
               loan.day_count_convention or DayCountConvention.ACTUAL_365,
               loan.accrual_method or AccrualMethod.SIMPLE,
          )
          if math.isnan(interest_amount):
               interest_amount = loan.interest_amount or 0

     return {
          "effective_rate": effective_rate,
          "interest_amount": interest_amount,
          "total_fees": loan.total_fees,
          "net_proceeds": calculate_net_proceeds(loan.total_amount, interest_amount, loan.total_fees),
     }


def preview_full_loan_state(
     loan: Loan,
     pricing: Optional[PricingUpdate] = None,
     fee_changes: Optional[FeeChangesPreview] = None,
     fee_configs: Iterable[FeeConfig] = (),
) -> dict:
     """
     Preview a loan's totals under pending pricing and fee edits.

     - delete: subtracts the fee's prior contribution
     - update: replaces the fee's prior contribution with the new calculated_amount
     - add: adds the amount derived from the fee config defaults
     Unknown fee ids and fee configs are skipped.

     Args:
          loan: Loan as currently stored
          pricing: Optional pricing override
          fee_changes: Optional pending fee changes
          fee_configs: FeeConfigs referenced by fee_changes.adds

     Returns:
          dict with effective_rate, interest_amount, original_interest_amount,
          total_fees, original_total_fees, net_proceeds, original_net_proceeds
     """
     original_total_fees = loan.total_fees
     total_fees = loan.total_fees

     if fee_changes is not None:
          for delete in fee_changes.deletes or []:
               fee = loan.find_fee(delete.fee_id)
               if fee is not None:
                    total_fees -= fee.calculated_amount

          for update in fee_changes.updates or []:
               fee = loan.find_fee(update.fee_id)
               if fee is not None:
                    total_fees = total_fees - fee.calculated_amount + update.calculated_amount

          configs_by_id = {config.id: config for config in fee_configs}
          for add in fee_changes.adds or []:
               config = configs_by_id.get(add.fee_config_id)
               if config is not None:
                    total_fees += calculate_fee_from_config(config, loan.total_amount)

     total_fees = round2(total_fees)

     effective_rate = loan.effective_rate
     interest_amount = loan.interest_amount
     if pricing is not None:
          pricing_preview = preview_pricing(loan, pricing)
          effective_rate = pricing_preview["effective_rate"]
          interest_amount = pricing_preview["interest_amount"]

     return {
          "effective_rate": effective_rate,
          "interest_amount": interest_amount,
          "original_interest_amount": loan.interest_amount,
          "total_fees": total_fees,
          "original_total_fees": original_total_fees,
          "net_proceeds": calculate_net_proceeds(loan.total_amount, interest_amount, total_fees),
          "original_net_proceeds": loan.net_proceeds,
     }
