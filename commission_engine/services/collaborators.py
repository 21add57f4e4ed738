"""Narrow contracts for the systems the commission engine reads from.

None of these are owned here: the engine only ever reads through them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from commission_engine.domain.revenue import LedgerTransaction


@dataclass(frozen=True, slots=True)
class EmployeeAssignment:
    employee_id: str
    policy_code: str | None


class EmployeeDirectory(Protocol):
    def list_with_policy(self) -> list[EmployeeAssignment]:
        """Employees together with the commission policy code of their role."""
        ...


class TransactionLedger(Protocol):
    def query_paid_income(self, start: date, end: date) -> list[LedgerTransaction]:
        """Paid income transactions dated within [start, end]."""
        ...


class ProjectRegistry(Protocol):
    def sales_participants(self, project_id: str) -> list[str]:
        """Employee ids credited as sales on the project.

        Raises:
            AggregationError: If the project's attribution cannot be resolved.
        """
        ...
