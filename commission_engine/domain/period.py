from __future__ import annotations

import calendar
from datetime import date
from enum import Enum
from typing import Iterable

from commission_engine.domain.revenue import MonthWindow


class RecordStatus(str, Enum):
    DRAFT = "DRAFT"
    FINALIZED = "FINALIZED"


class PeriodStatus(str, Enum):
    DRAFT = "DRAFT"
    LOCKED = "LOCKED"


class PeriodAction(str, Enum):
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"


def period_start(year: int, month: int) -> date:
    """First day of the month; the stored identity of a period."""
    return date(year, month, 1)


def month_window(period: date) -> MonthWindow:
    last_day = calendar.monthrange(period.year, period.month)[1]
    return MonthWindow(start=period, end=date(period.year, period.month, last_day))


def derive_period_status(locked_flags: Iterable[bool]) -> PeriodStatus:
    """A month is LOCKED as soon as any of its records is locked.

    A month without records is DRAFT. Lock and unlock flip every record of
    the month in one transaction, so "any" and "all" agree in practice; "any"
    is the safer reading when they don't.
    """
    return PeriodStatus.LOCKED if any(locked_flags) else PeriodStatus.DRAFT
