from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable

from commission_engine.domain.tiers import round_half_up


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"


@dataclass(frozen=True, slots=True)
class LedgerTransaction:
    """A revenue fact as reported by the transaction ledger."""

    id: str
    type: str
    status: str
    amount: int
    date: date
    category: str = ""
    description: str = ""
    project_id: str | None = None
    performer_id: str | None = None
    requester_id: str | None = None
    tax_amount: int | None = None
    tax_inclusive: bool = False

    def is_attributed_to(self, employee_id: str) -> bool:
        return employee_id in (self.performer_id, self.requester_id)


ExclusionRule = Callable[[LedgerTransaction], bool]


@dataclass(frozen=True, slots=True)
class KeywordExclusionRule:
    """Excludes transactions whose category or description mentions a keyword.

    Matching is case-insensitive substring search over
    ``category + " " + description``. Conservative by nature: a false match
    drops revenue rather than inflating it.
    """

    keywords: tuple[str, ...]

    @classmethod
    def from_keywords(cls, keywords: Iterable[str]) -> KeywordExclusionRule:
        return cls(tuple(k.lower() for k in keywords if k and k.strip()))

    def __call__(self, txn: LedgerTransaction) -> bool:
        text = f"{txn.category or ''} {txn.description or ''}".lower()
        return any(keyword in text for keyword in self.keywords)


@dataclass(frozen=True, slots=True)
class NetRevenueRule:
    """Turns one eligible transaction into commission-eligible net revenue.

    - excluded transactions count as 0
    - an explicit positive tax amount is subtracted from the amount
    - otherwise a tax-inclusive amount is divided by (1 + inclusive_tax_rate)
      and rounded half-up to whole units
    - otherwise the amount counts as is
    """

    inclusive_tax_rate: Decimal
    excludes: ExclusionRule = field(default=lambda txn: False)

    def net_amount(self, txn: LedgerTransaction) -> int:
        if self.excludes(txn):
            return 0
        if txn.tax_amount is not None and txn.tax_amount > 0:
            return txn.amount - txn.tax_amount
        if txn.tax_inclusive:
            return round_half_up(Decimal(txn.amount) / (1 + self.inclusive_tax_rate))
        return txn.amount


@dataclass(frozen=True, slots=True)
class MonthWindow:
    """Inclusive date range of one calendar month."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end
