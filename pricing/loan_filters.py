# pricing/loan_filters.py
"""
Loan filtering and facet counts.

Filters are ANDed; an unset filter imposes no constraint. Facet counts are
always computed over the unfiltered loans so they stay stable as filters
narrow the visible set.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Union

from schemas.loan import LoanResponse

# Classification order; the first matching bucket wins at the 30/60/90 day marks
MATURITY_BUCKETS = ("overdue", "this_week", "this_month", "next_month", "next_quarter", "later")

# Filter ranges in days until maturity, (min, max) inclusive; None is unbounded
BUCKET_RANGES = {
     "overdue": (None, -1),
     "this_week": (0, 7),
     "this_month": (0, 30),
     "next_month": (31, 60),
     "next_quarter": (61, 90),
     "later": (91, None),
}

DateLike = Union[date, datetime, str]


@dataclass
class LoanFilters:
     search: str = ""
     currency: Optional[str] = None
     status: Optional[str] = None
     pricing_status: Optional[str] = None
     min_amount: Optional[float] = None
     max_amount: Optional[float] = None
     maturity_bucket: Optional[str] = None
     date_start: Optional[date] = None
     date_end: Optional[date] = None

     def __post_init__(self):
          if self.maturity_bucket is not None and self.maturity_bucket not in MATURITY_BUCKETS:
               raise ValueError(f"Unknown maturity bucket: {self.maturity_bucket}")


@dataclass
class FilterCounts:
     total: int = 0
     filtered: int = 0
     currencies: Dict[str, int] = field(default_factory=dict)
     statuses: Dict[str, int] = field(default_factory=dict)
     pricing_statuses: Dict[str, int] = field(default_factory=dict)


@dataclass
class FilterResult:
     loans: List[LoanResponse]
     counts: FilterCounts


def _to_date(value: DateLike) -> date:
     if isinstance(value, datetime):
          return value.date()
     if isinstance(value, date):
          return value
     return datetime.fromisoformat(value).date()


def has_active_filters(filters: LoanFilters) -> bool:
     return (
          filters.search != ""
          or filters.currency is not None
          or filters.status is not None
          or filters.pricing_status is not None
          or filters.min_amount is not None
          or filters.max_amount is not None
          or filters.maturity_bucket is not None
          or filters.date_start is not None
          or filters.date_end is not None
     )


def get_days_until(target: DateLike, today: Optional[date] = None) -> int:
     """Whole days from today's midnight to the target's midnight (negative if past)."""
     if today is None:
          today = date.today()
     return (_to_date(target) - _to_date(today)).days


def get_maturity_bucket(maturity_date: DateLike, today: Optional[date] = None) -> str:
     days = get_days_until(maturity_date, today)
     if days < 0:
          return "overdue"
     if days <= 7:
          return "this_week"
     if days <= 30:
          return "this_month"
     if days <= 60:
          return "next_month"
     if days <= 90:
          return "next_quarter"
     return "later"


def matches_maturity_bucket(maturity_date: DateLike, bucket: str, today: Optional[date] = None) -> bool:
     """
     Whether the loan falls inside the bucket's inclusive day range.

     this_week lies inside this_month, so a loan due in 3 days matches both
     filters while get_maturity_bucket labels it this_week only.
     """
     days = get_days_until(maturity_date, today)
     low, high = BUCKET_RANGES[bucket]
     return (low is None or days >= low) and (high is None or days <= high)


def _matches_search(loan: LoanResponse, search: str) -> bool:
     needle = search.lower()
     fields = [
          loan.loan_number,
          loan.borrower_name,
          loan.currency,
          loan.status,
          loan.pricing_status,
     ]
     for invoice in loan.invoices:
          fields.append(invoice.invoice_number)
          fields.append(invoice.buyer_name)
     return any(value and needle in value.lower() for value in fields)


def _matches(loan: LoanResponse, filters: LoanFilters, today: Optional[date]) -> bool:
     if filters.search and not _matches_search(loan, filters.search):
          return False
     if filters.currency and loan.currency != filters.currency:
          return False
     if filters.status and loan.status != filters.status:
          return False
     if filters.pricing_status and loan.pricing_status != filters.pricing_status:
          return False
     if filters.min_amount is not None and loan.total_amount < filters.min_amount:
          return False
     if filters.max_amount is not None and loan.total_amount > filters.max_amount:
          return False
     if filters.maturity_bucket and not matches_maturity_bucket(loan.maturity_date, filters.maturity_bucket, today):
          return False
     if filters.date_start is not None and loan.maturity_date < filters.date_start:
          return False
     if filters.date_end is not None and loan.maturity_date > filters.date_end:
          return False
     return True


def filter_loans(loans: Sequence[LoanResponse], filters: LoanFilters, today: Optional[date] = None) -> List[LoanResponse]:
     return [loan for loan in loans if _matches(loan, filters, today)]


def calculate_filter_counts(loans: Sequence[LoanResponse]) -> FilterCounts:
     """Facet counts over the given (unfiltered) loans."""
     counts = FilterCounts(total=len(loans), filtered=len(loans))
     for loan in loans:
          counts.currencies[loan.currency] = counts.currencies.get(loan.currency, 0) + 1
          counts.statuses[loan.status] = counts.statuses.get(loan.status, 0) + 1
          counts.pricing_statuses[loan.pricing_status] = counts.pricing_statuses.get(loan.pricing_status, 0) + 1
     return counts


def apply_filters(loans: Sequence[LoanResponse], filters: LoanFilters, today: Optional[date] = None) -> FilterResult:
     filtered = filter_loans(loans, filters, today)
     counts = calculate_filter_counts(loans)
     counts.filtered = len(filtered)
     return FilterResult(loans=filtered, counts=counts)
