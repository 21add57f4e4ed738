import logging

from sqlalchemy.orm import Session

import commission_engine.repositories.period as period_repo
import commission_engine.repositories.policy as policy_repo
import commission_engine.repositories.record as record_repo
from commission_engine.core.time import utcnow
from commission_engine.db.models.record import CommissionRecord as RecordModel
from commission_engine.domain.period import RecordStatus, period_start
from commission_engine.domain.tiers import PolicyTerms, compute_commission
from commission_engine.errors import (
    DomainValidationError,
    DuplicateResourceError,
    NotFoundError,
    PeriodLockedError,
)
from commission_engine.services.period import is_period_locked

logger = logging.getLogger(__name__)


def list_records(db: Session, year: int, month: int) -> list[RecordModel]:
    """All records of a month; the read model consumed by payroll and reporting."""
    return record_repo.get_records_by_period(db, period_start(year, month))


def get_record(db: Session, record_id: int) -> RecordModel:
    record = record_repo.get_record_by_id(db, record_id)
    if not record:
        raise NotFoundError("Commission record not found")
    return record


def add_manual_record(
    db: Session,
    year: int,
    month: int,
    employee_id: str,
    policy_code: str,
    manual_adjustment: int = 0,
) -> RecordModel:
    """
    Add a record by hand for an employee the ledger does not credit.

    - Machine revenue starts at 0; the adjustment carries the amount
    - The live policy is snapshotted, exactly as a sync would
    - A later sync keeps the adjustment and refreshes the machine revenue

    Raises:
        DomainValidationError: If employee_id is blank
        NotFoundError: If the policy does not exist
        DuplicateResourceError: If the employee already has a record for the month
        PeriodLockedError: If the month is locked
    """
    employee_id = (employee_id or "").strip()
    if not employee_id:
        raise DomainValidationError("employee_id must not be empty")

    period = period_start(year, month)
    try:
        period_repo.acquire_month_guard(db, period)
        if is_period_locked(db, period):
            raise PeriodLockedError(
                f"Period {period.strftime('%Y-%m')} is locked; records cannot be added"
            )

        policy = policy_repo.get_policy_by_code(db, policy_code)
        if not policy:
            raise NotFoundError(f"Policy {policy_code} not found")

        if record_repo.get_record_by_employee_and_period(db, employee_id, period):
            raise DuplicateResourceError(
                f"Commission record already exists for employee {employee_id} in {period.strftime('%Y-%m')}"
            )

        terms = PolicyTerms.from_policy(policy)
        breakdown = compute_commission(0, manual_adjustment, terms)
        record = record_repo.create_record(
            db,
            employee_id=employee_id,
            period=period,
            policy_code=policy.code,
            **terms.snapshot_fields(),
            actual_revenue=0,
            manual_adjustment=manual_adjustment,
            **breakdown.as_fields(),
            locked=False,
            status=RecordStatus.DRAFT.value,
            updated_at=utcnow(),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(
        "Manual commission record added for employee %s in %s",
        employee_id,
        period.strftime("%Y-%m"),
    )
    return record


def delete_record(db: Session, record_id: int) -> None:
    """
    Delete a draft record.

    Raises:
        NotFoundError: If the record does not exist
        PeriodLockedError: If the record's month is locked
    """
    try:
        record = record_repo.get_record_by_id(db, record_id)
        if not record:
            raise NotFoundError("Commission record not found")

        period_repo.acquire_month_guard(db, record.period)
        if is_period_locked(db, record.period):
            raise PeriodLockedError(
                f"Period {record.period.strftime('%Y-%m')} is locked; records cannot be deleted"
            )

        record_repo.delete_record(db, record)
        db.commit()
    except Exception:
        db.rollback()
        raise
