"""Month synchronization and single-record recalculation.

Two ways to (re)compute a record, deliberately different:

- sync adopts the *live* policy and refreshes the snapshot, keeping any
  manual adjustment already on the record;
- recalculation after a manual adjustment reuses the record's *frozen*
  snapshot, so a policy edited mid-month cannot leak into it.

Both refuse to touch locked data.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from sqlalchemy.orm import Session

import commission_engine.repositories.period as period_repo
import commission_engine.repositories.policy as policy_repo
import commission_engine.repositories.record as record_repo
from commission_engine.core.time import utcnow
from commission_engine.db.models.record import CommissionRecord as RecordModel
from commission_engine.domain.period import RecordStatus, month_window, period_start
from commission_engine.domain.revenue import NetRevenueRule
from commission_engine.domain.tiers import PolicyTerms, compute_commission
from commission_engine.errors import AggregationError, NotFoundError, PeriodLockedError
from commission_engine.services.collaborators import (
    EmployeeAssignment,
    EmployeeDirectory,
    ProjectRegistry,
    TransactionLedger,
)
from commission_engine.services.period import is_period_locked
from commission_engine.services.revenue import RevenueAggregator, deadline_from_settings

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    SUCCESS = "SUCCESS"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass
class EmployeeOutcome:
    employee_id: str
    status: OutcomeStatus
    reason: str | None = None


@dataclass
class SyncResult:
    period: date
    records: list[RecordModel] = field(default_factory=list)
    outcomes: list[EmployeeOutcome] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        """True when at least one employee's revenue could not be computed."""
        return any(o.status == OutcomeStatus.FAILED for o in self.outcomes)


@dataclass
class _Computed:
    employee_id: str
    policy_terms: PolicyTerms
    policy_code: str
    actual_revenue: int


def _unique_assignments(
    assignments: list[EmployeeAssignment],
) -> tuple[list[EmployeeAssignment], list[str]]:
    """
    Collapse repeated directory entries to one per employee.

    Repeats with the same policy code are merged into the first one.
    Employees listed with different codes are dropped and returned
    separately, since there is no way to tell which policy applies.
    """
    codes: dict[str, set[str | None]] = {}
    first: dict[str, EmployeeAssignment] = {}
    for assignment in assignments:
        codes.setdefault(assignment.employee_id, set()).add(assignment.policy_code)
        first.setdefault(assignment.employee_id, assignment)

    conflicting = [eid for eid, seen in codes.items() if len(seen) > 1]
    unique = [a for eid, a in first.items() if len(codes[eid]) == 1]
    return unique, conflicting


def _locked_message(period: date) -> str:
    return f"Period {period.strftime('%Y-%m')} is locked; unlock it before recomputing"


def sync_period(
    db: Session,
    year: int,
    month: int,
    directory: EmployeeDirectory,
    ledger: TransactionLedger,
    registry: ProjectRegistry,
    employee_id: str | None = None,
    net_rule: NetRevenueRule | None = None,
) -> SyncResult:
    """
    (Re)generate the commission records of a month from the ledger.

    - Only allowed while the month is DRAFT
    - Every employee with a resolvable policy gets a record computed with the
      live policy; an existing manual adjustment is kept
    - Employees without a resolvable policy are reported SKIPPED
    - Employees whose revenue cannot be aggregated are reported FAILED and do
      not stop the others
    - An employee listed more than once with different policies is reported
      FAILED; identical repeats count once
    - Records whose values would not change are left untouched, updated_at
      included, so repeated syncs are idempotent
    - All writes happen in one transaction under the month guard

    When employee_id is given only that employee is synced (used after an
    employee's policy assignment changes).

    Raises:
        PeriodLockedError: If the month is locked (nothing is written)
        NotFoundError: If employee_id is given but unknown to the directory
        AggregationTimeoutError: If aggregation passes its deadline (nothing is written)
    """
    period = period_start(year, month)
    window = month_window(period)

    # Fail fast; the authoritative check is repeated under the month guard
    if is_period_locked(db, period):
        raise PeriodLockedError(_locked_message(period))

    assignments = directory.list_with_policy()
    if employee_id is not None:
        assignments = [a for a in assignments if a.employee_id == employee_id]
        if not assignments:
            raise NotFoundError(f"Employee {employee_id} not found in the employee directory")

    policies = {p.code: p for p in policy_repo.get_all_policies(db)}
    result = SyncResult(period=period)
    computed: list[_Computed] = []

    assignments, conflicting = _unique_assignments(assignments)
    for conflict_id in conflicting:
        logger.warning(
            "Employee %s is listed with different policies in the directory", conflict_id
        )
        result.outcomes.append(
            EmployeeOutcome(
                conflict_id,
                OutcomeStatus.FAILED,
                "Listed more than once in the employee directory with different policies",
            )
        )

    # Read-only phase: aggregation may be slow and is safe to abandon
    transactions = ledger.query_paid_income(window.start, window.end)
    aggregator = RevenueAggregator(registry, net_rule=net_rule, deadline=deadline_from_settings())
    for assignment in assignments:
        policy = policies.get(assignment.policy_code) if assignment.policy_code else None
        if policy is None:
            reason = (
                f"No commission policy with code {assignment.policy_code}"
                if assignment.policy_code
                else "No commission policy assigned"
            )
            result.outcomes.append(
                EmployeeOutcome(assignment.employee_id, OutcomeStatus.SKIPPED, reason)
            )
            continue

        try:
            revenue = aggregator.actual_revenue(assignment.employee_id, window, transactions)
        except AggregationError as e:
            logger.warning(
                "Revenue aggregation failed for employee %s in %s: %s",
                assignment.employee_id,
                period.strftime("%Y-%m"),
                e,
            )
            result.outcomes.append(
                EmployeeOutcome(assignment.employee_id, OutcomeStatus.FAILED, str(e))
            )
            continue

        computed.append(
            _Computed(
                employee_id=assignment.employee_id,
                policy_terms=PolicyTerms.from_policy(policy),
                policy_code=policy.code,
                actual_revenue=revenue,
            )
        )

    # Write phase: one transaction, serialized per month
    try:
        period_repo.acquire_month_guard(db, period)
        if is_period_locked(db, period):
            raise PeriodLockedError(_locked_message(period))

        existing = {
            r.employee_id: r
            for r in record_repo.get_records_by_period_for_update(db, period)
        }
        now = utcnow()
        changed = 0
        for item in computed:
            record = existing.get(item.employee_id)
            manual_adjustment = record.manual_adjustment if record else 0
            breakdown = compute_commission(item.actual_revenue, manual_adjustment, item.policy_terms)
            fields = {
                "policy_code": item.policy_code,
                **item.policy_terms.snapshot_fields(),
                "actual_revenue": item.actual_revenue,
                "manual_adjustment": manual_adjustment,
                **breakdown.as_fields(),
                "locked": False,
                "status": RecordStatus.DRAFT.value,
            }
            if record is None:
                record = record_repo.create_record(
                    db, employee_id=item.employee_id, period=period, updated_at=now, **fields
                )
                changed += 1
            elif record_repo.apply_record_changes(record, fields, updated_at=now):
                changed += 1

            result.records.append(record)
            result.outcomes.append(EmployeeOutcome(item.employee_id, OutcomeStatus.SUCCESS))

        db.commit()
    except Exception:
        db.rollback()
        raise

    for record in result.records:
        db.refresh(record)

    logger.info(
        "Synced period %s: %d records (%d changed), %d skipped, %d failed",
        period.strftime("%Y-%m"),
        len(result.records),
        changed,
        sum(1 for o in result.outcomes if o.status == OutcomeStatus.SKIPPED),
        sum(1 for o in result.outcomes if o.status == OutcomeStatus.FAILED),
    )
    return result


def sync_employee(
    db: Session,
    year: int,
    month: int,
    employee_id: str,
    directory: EmployeeDirectory,
    ledger: TransactionLedger,
    registry: ProjectRegistry,
) -> SyncResult:
    """Sync a single employee's record for the month. Same rules as sync_period."""
    return sync_period(
        db, year, month, directory, ledger, registry, employee_id=employee_id
    )


def recalculate_record(db: Session, record_id: int, manual_adjustment: int) -> RecordModel:
    """
    Apply a new manual adjustment and recompute the record from its snapshot.

    The live policy is never consulted. The lock re-check and the write are
    one conditional UPDATE inside the same transaction as the row-locked read.

    Raises:
        NotFoundError: If the record does not exist
        PeriodLockedError: If the record is locked
    """
    try:
        record = record_repo.get_record_by_id_for_update(db, record_id)
        if not record:
            raise NotFoundError("Commission record not found")
        if record.locked:
            raise PeriodLockedError(_locked_message(record.period))

        breakdown = compute_commission(
            record.actual_revenue, manual_adjustment, PolicyTerms.from_snapshot(record)
        )
        fields = {
            "manual_adjustment": manual_adjustment,
            **breakdown.as_fields(),
            "updated_at": utcnow(),
        }
        if not record_repo.update_unlocked_record(db, record_id, fields):
            raise PeriodLockedError(_locked_message(record.period))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(
        "Recalculated record %s (employee %s, %s) with adjustment %d",
        record.id,
        record.employee_id,
        record.period.strftime("%Y-%m"),
        manual_adjustment,
    )
    return record
