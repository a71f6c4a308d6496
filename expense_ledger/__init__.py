"""
Expense Ledger - Source Package

The state and aggregation core of a personal expense tracker: monthly
totals, per-category breakdowns and category filtering over a per-user
remote ledger.

DESIGN PRINCIPLES:
1. Validate first, then write remotely, then change local state
2. One session per signed-in user, never reused
3. Derived views are pure functions of the loaded records
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
