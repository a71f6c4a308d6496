"""Ledger state, month periods and aggregation."""

from expense_ledger.ledger.aggregator import (
    category_stats,
    distinct_categories,
    filter_by_category,
    grand_total,
)
from expense_ledger.ledger.filters import FilterSelection
from expense_ledger.ledger.periods import Period, month_range
from expense_ledger.ledger.state import LedgerState

__all__ = [
    "FilterSelection",
    "LedgerState",
    "Period",
    "category_stats",
    "distinct_categories",
    "filter_by_category",
    "grand_total",
    "month_range",
]
