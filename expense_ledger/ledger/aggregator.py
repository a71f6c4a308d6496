"""
Expense Aggregation

Pure functions deriving what the screen shows from the loaded records:
the period total, the per-category breakdown, the category list and the
filtered view.

Nothing here touches storage or session state. Same input, same output.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from expense_ledger.models.expense import CategoryStat, ExpenseRecord


def grand_total(records: Sequence[ExpenseRecord]) -> Decimal:
    """Sum of all amounts; Decimal(0) when there are no records."""
    return sum((record.amount for record in records), Decimal(0))


def category_stats(records: Sequence[ExpenseRecord]) -> list[CategoryStat]:
    """
    Group records by category and compute total, count and share.

    Sorted by total descending, then category name ascending so that
    equal totals always come out in the same order. Empty when the grand
    total is not positive.
    """
    total = grand_total(records)
    if total <= 0:
        return []

    groups: dict[str, list[Decimal]] = {}
    for record in records:
        groups.setdefault(record.category, []).append(record.amount)

    stats = [
        CategoryStat(
            category=category,
            total=sum(amounts, Decimal(0)),
            count=len(amounts),
            percentage=float(sum(amounts, Decimal(0)) / total * 100),
        )
        for category, amounts in groups.items()
    ]
    stats.sort(key=lambda stat: stat.category)
    stats.sort(key=lambda stat: stat.total, reverse=True)
    return stats


def distinct_categories(records: Sequence[ExpenseRecord]) -> list[str]:
    """Categories present in the records, sorted ascending."""
    return sorted({record.category for record in records})


def filter_by_category(
    records: Sequence[ExpenseRecord],
    category: Optional[str],
) -> Sequence[ExpenseRecord]:
    """
    Records in the given category.

    None means no filter and returns the input as-is. Matching is exact
    and case-sensitive; categories are normalized when written.
    """
    if category is None:
        return records
    return [record for record in records if record.category == category]
