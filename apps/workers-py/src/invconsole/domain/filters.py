"""Filtered invoice view and its roll-up statistics."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Union

from . import constants
from .dates import parse_date
from .models import Invoice

ALL = "all"
KIND_CHOICES = (ALL, "gst", "po")

MonthSpec = Union[int, str]
YearSpec = Union[int, str]


@dataclass(frozen=True)
class InvoiceFilter:
    month: MonthSpec = ALL
    year: YearSpec = ALL
    kind: str = ALL

    def __post_init__(self):
        object.__setattr__(self, "month", parse_month(self.month))
        object.__setattr__(self, "year", parse_year(self.year))
        kind = str(self.kind or ALL).strip().lower()
        if kind not in KIND_CHOICES:
            raise ValueError(f"kind must be one of {', '.join(KIND_CHOICES)}")
        object.__setattr__(self, "kind", kind)

    @property
    def is_all(self) -> bool:
        return self.month == ALL and self.year == ALL and self.kind == ALL


def parse_month(value: MonthSpec) -> MonthSpec:
    if value is None or str(value).strip().lower() in ("", ALL):
        return ALL
    month = int(value)
    if month < 1 or month > 12:
        raise ValueError("month must be between 1 and 12")
    return month


def parse_year(value: YearSpec) -> YearSpec:
    if value is None or str(value).strip().lower() in ("", ALL):
        return ALL
    return int(value)


def matches(invoice: Invoice, flt: InvoiceFilter) -> bool:
    if flt.month != ALL or flt.year != ALL:
        issued = parse_date(invoice.date)
        if issued is None:
            return False
        if flt.month != ALL and issued.month != flt.month:
            return False
        if flt.year != ALL and issued.year != flt.year:
            return False
    if flt.kind == "gst" and not invoice.gst:
        return False
    if flt.kind == "po" and not invoice.po:
        return False
    return True


def filter_invoices(invoices: Sequence[Invoice], flt: InvoiceFilter) -> List[Invoice]:
    """Conjunction of month, year and type-flag matches; order is preserved."""
    if flt.is_all:
        return list(invoices)
    return [inv for inv in invoices if matches(inv, flt)]


@dataclass
class InvoiceStats:
    total_value: float = 0
    count: int = 0
    average_sale: float = 0
    by_status: Dict[str, int] = field(default_factory=dict)


def aggregate(invoices: Iterable[Invoice]) -> InvoiceStats:
    items = list(invoices)
    total_value = sum((inv.total_amount or 0 for inv in items), 0)
    count = len(items)
    statuses = Counter(inv.paid_status for inv in items)
    return InvoiceStats(
        total_value=total_value,
        count=count,
        average_sale=total_value / count if count else 0,
        by_status={status: statuses.get(status, 0) for status in constants.PAID_STATUSES},
    )


def available_years(invoices: Iterable[Invoice]) -> List[int]:
    years = set()
    for inv in invoices:
        issued = parse_date(inv.date)
        if issued is not None:
            years.add(issued.year)
    return sorted(years, reverse=True)
