import time

from commission_engine.core.config import settings
from commission_engine.domain.revenue import (
    KeywordExclusionRule,
    LedgerTransaction,
    MonthWindow,
    NetRevenueRule,
    TransactionStatus,
    TransactionType,
)
from commission_engine.errors import AggregationTimeoutError
from commission_engine.services.collaborators import ProjectRegistry


def default_net_revenue_rule() -> NetRevenueRule:
    """Net revenue rule built from the configured tax rate and exclusion vocabulary."""
    return NetRevenueRule(
        inclusive_tax_rate=settings.inclusive_tax_rate,
        excludes=KeywordExclusionRule.from_keywords(settings.revenue_exclusion_keywords),
    )


def deadline_from_settings() -> float | None:
    """Monotonic deadline for one aggregation run, or None when unbounded."""
    if settings.aggregation_timeout_seconds is None:
        return None
    return time.monotonic() + settings.aggregation_timeout_seconds


class RevenueAggregator:
    """Computes an employee's commission-eligible net revenue for one month.

    A transaction counts for an employee when it is paid income dated inside
    the month and the employee either performed/requested it or is a sales
    participant of its project. Project attribution is looked up lazily and
    cached for the lifetime of the aggregator, so one instance should serve a
    single sync run.

    Aggregation is read-only; running past ``deadline`` raises
    AggregationTimeoutError and leaves nothing half-written.
    """

    def __init__(
        self,
        registry: ProjectRegistry,
        net_rule: NetRevenueRule | None = None,
        deadline: float | None = None,
    ):
        self._registry = registry
        self._net_rule = net_rule or default_net_revenue_rule()
        self._deadline = deadline
        self._participants: dict[str, frozenset[str]] = {}

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise AggregationTimeoutError("Revenue aggregation exceeded its deadline")

    def _sales_participants(self, project_id: str) -> frozenset[str]:
        # AggregationError from the registry propagates; failed lookups are not cached
        if project_id not in self._participants:
            self._participants[project_id] = frozenset(
                self._registry.sales_participants(project_id)
            )
        return self._participants[project_id]

    def is_eligible(
        self, txn: LedgerTransaction, employee_id: str, window: MonthWindow
    ) -> bool:
        if txn.type != TransactionType.INCOME.value:
            return False
        if txn.status != TransactionStatus.PAID.value:
            return False
        if not window.contains(txn.date):
            return False
        if txn.is_attributed_to(employee_id):
            return True
        if txn.project_id is None:
            return False
        return employee_id in self._sales_participants(txn.project_id)

    def actual_revenue(
        self,
        employee_id: str,
        window: MonthWindow,
        transactions: list[LedgerTransaction],
    ) -> int:
        """
        Sum net revenue over the transactions eligible for the employee.

        Raises:
            AggregationError: If a needed project attribution cannot be resolved
            AggregationTimeoutError: If the deadline passes mid-aggregation
        """
        total = 0
        for txn in transactions:
            self._check_deadline()
            if self.is_eligible(txn, employee_id, window):
                total += self._net_rule.net_amount(txn)
        return total
