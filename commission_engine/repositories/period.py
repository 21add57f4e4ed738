from datetime import date

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from commission_engine.core.time import utcnow
from commission_engine.db.models.period import MonthGuard as MonthGuardModel
from commission_engine.db.models.period import PeriodEvent as PeriodEventModel


def acquire_month_guard(db: Session, period: date) -> None:
    """
    Serialize batch operations on one month for the rest of the transaction.

    Inserts the month's guard row if missing, then updates it. The UPDATE
    takes a row lock on PostgreSQL and the database write lock on SQLite, so
    a second sync/lock/unlock of the same month waits here until the first
    commits or rolls back. Callers must read lock state only after this.
    """
    now = utcnow()

    # Detect database type for the upsert syntax
    dialect_name = db.get_bind().dialect.name
    insert = sqlite_insert if dialect_name == "sqlite" else postgresql_insert

    db.execute(
        insert(MonthGuardModel)
        .values(period=period, last_acquired_at=now)
        .on_conflict_do_nothing(index_elements=["period"])
    )
    db.query(MonthGuardModel).filter(MonthGuardModel.period == period).update(
        {MonthGuardModel.last_acquired_at: now}, synchronize_session=False
    )


def create_period_event(
    db: Session, period: date, action: str, actor: str, record_count: int
) -> PeriodEventModel:
    """Stage an audit entry. Committed together with the transition it records."""
    event = PeriodEventModel(
        period=period,
        action=action,
        actor=actor,
        record_count=record_count,
        created_at=utcnow(),
    )
    db.add(event)
    db.flush()
    return event


def get_events_by_period(db: Session, period: date) -> list[PeriodEventModel]:
    """Get the audit trail of a month, oldest first."""
    return (
        db.query(PeriodEventModel)
        .filter(PeriodEventModel.period == period)
        .order_by(PeriodEventModel.id)
        .all()
    )


def get_latest_event(db: Session, period: date, action: str) -> PeriodEventModel | None:
    """Get the most recent audit entry of the given action for a month."""
    return (
        db.query(PeriodEventModel)
        .filter(PeriodEventModel.period == period, PeriodEventModel.action == action)
        .order_by(PeriodEventModel.id.desc())
        .first()
    )
