"""
Month periods.

A Period is one calendar month. Its range runs from the first millisecond of
day 1 to the last millisecond of the month's final day, in naive local time,
matching what the remote ledger is queried with.
"""

import calendar
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def month_range(year: int, month: int) -> tuple[datetime, datetime]:
    """
    Inclusive (start, end) boundaries for a calendar month.

    Raises:
        ValueError: If month is outside 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be in 1..12, got {month}")

    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, 0, 0, 0, 0)
    end = datetime(year, month, last_day, 23, 59, 59, 999000)
    return start, end


class Period(BaseModel):
    """A (year, month) pair identifying the month in view."""
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def current(cls, today: Optional[date] = None) -> "Period":
        today = today or date.today()
        return cls(year=today.year, month=today.month)

    @classmethod
    def of(cls, ts: datetime) -> "Period":
        return cls(year=ts.year, month=ts.month)

    @property
    def range(self) -> tuple[datetime, datetime]:
        return month_range(self.year, self.month)

    @property
    def label(self) -> str:
        return f"{self.month:02d}/{self.year}"

    def contains(self, ts: datetime) -> bool:
        start, end = self.range
        return start <= ts <= end

    # previous() and next() raise ValueError when stepping outside years 1-9999
    def previous(self) -> "Period":
        if self.month == 1:
            return Period(year=self.year - 1, month=12)
        return Period(year=self.year, month=self.month - 1)

    def next(self) -> "Period":
        if self.month == 12:
            return Period(year=self.year + 1, month=1)
        return Period(year=self.year, month=self.month + 1)
