"""Data access for commission records.

Unlike the policy repository these functions never commit: records are
written as part of month-wide batches, and the calling service owns the
transaction boundary.
"""

from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from commission_engine.db.models.record import CommissionRecord as RecordModel


def get_record_by_id(db: Session, record_id: int) -> RecordModel | None:
    """Get a record by ID."""
    return db.query(RecordModel).filter(RecordModel.id == record_id).first()


def get_record_by_id_for_update(db: Session, record_id: int) -> RecordModel | None:
    """Get a record by ID, row-locked until the end of the transaction."""
    return (
        db.query(RecordModel)
        .filter(RecordModel.id == record_id)
        .with_for_update()
        .first()
    )


def get_record_by_employee_and_period(
    db: Session, employee_id: str, period: date
) -> RecordModel | None:
    """Get the record for an (employee, month) pair. Used to check for duplicates."""
    return (
        db.query(RecordModel)
        .filter(
            RecordModel.employee_id == employee_id,
            RecordModel.period == period,
        )
        .first()
    )


def get_records_by_period(db: Session, period: date) -> list[RecordModel]:
    """Get all records of a month ordered by employee."""
    return (
        db.query(RecordModel)
        .filter(RecordModel.period == period)
        .order_by(RecordModel.employee_id)
        .all()
    )


def get_records_by_period_for_update(db: Session, period: date) -> list[RecordModel]:
    """
    Get all records of a month, row-locked until the end of the transaction.

    Values already held in the session are overwritten with what the locked
    read returns, so a write committed by another transaction before the
    lock was granted is never compared against a stale copy.
    """
    return (
        db.query(RecordModel)
        .filter(RecordModel.period == period)
        .order_by(RecordModel.employee_id)
        .with_for_update()
        .populate_existing()
        .all()
    )


def get_locked_flags_by_period(db: Session, period: date) -> list[bool]:
    """Lock flags of every record in the month; input for the derived period status."""
    rows = db.query(RecordModel.locked).filter(RecordModel.period == period).all()
    return [bool(row.locked) for row in rows]


def get_period_totals(db: Session, period: date) -> tuple[int, int, int]:
    """
    Return (record count, total effective revenue, total commission) for a month.

    Effective revenue is summed from the tier revenues, which are already
    clamped at zero per record.
    """
    count, revenue, commission = (
        db.query(
            func.count(RecordModel.id),
            func.coalesce(
                func.sum(
                    RecordModel.tier1_revenue
                    + RecordModel.tier2_revenue
                    + RecordModel.tier3_revenue
                ),
                0,
            ),
            func.coalesce(func.sum(RecordModel.total_commission), 0),
        )
        .filter(RecordModel.period == period)
        .one()
    )
    return int(count), int(revenue), int(commission)


def create_record(db: Session, **fields) -> RecordModel:
    """Stage a new record in the session. Pure data access - no business logic."""
    db_record = RecordModel(**fields)
    db.add(db_record)
    db.flush()
    return db_record


def apply_record_changes(record: RecordModel, fields: dict, updated_at: datetime) -> bool:
    """
    Copy fields onto a record, touching updated_at only when something changed.

    Returns:
        True if at least one field differed from the stored value
    """
    changed = False
    for name, value in fields.items():
        if getattr(record, name) != value:
            setattr(record, name, value)
            changed = True
    if changed:
        record.updated_at = updated_at
    return changed


def update_unlocked_record(db: Session, record_id: int, fields: dict) -> bool:
    """
    Write fields to a record only if it is still unlocked.

    The lock check and the write are a single UPDATE statement, so a Lock
    committed in between cannot be overwritten.

    Returns:
        True if the record was updated, False if it is locked (or gone)
    """
    updated = (
        db.query(RecordModel)
        .filter(RecordModel.id == record_id, RecordModel.locked.is_(False))
        .update(fields, synchronize_session=False)
    )
    return updated == 1


def set_period_lock_state(
    db: Session, period: date, locked: bool, status: str, updated_at: datetime
) -> int:
    """Flip the lock flag and status of every record in the month. Returns the row count."""
    return (
        db.query(RecordModel)
        .filter(RecordModel.period == period)
        .update(
            {
                RecordModel.locked: locked,
                RecordModel.status: status,
                RecordModel.updated_at: updated_at,
            },
            synchronize_session=False,
        )
    )


def delete_record(db: Session, record: RecordModel) -> None:
    """Stage deletion of a record. Pure data access - no business logic."""
    db.delete(record)
    db.flush()
