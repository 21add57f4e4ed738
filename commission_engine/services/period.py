import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.orm import Session

import commission_engine.repositories.period as period_repo
import commission_engine.repositories.record as record_repo
from commission_engine.core.time import utcnow
from commission_engine.db.models.period import PeriodEvent as PeriodEventModel
from commission_engine.domain.period import (
    PeriodAction,
    PeriodStatus,
    RecordStatus,
    derive_period_status,
    period_start,
)
from commission_engine.errors import DomainValidationError

logger = logging.getLogger(__name__)


@dataclass
class PeriodView:
    """Read projection of one month over its commission records."""

    period: date
    status: PeriodStatus
    record_count: int
    total_revenue: int
    total_commission: int
    locked_at: datetime | None = None
    locked_by: str | None = None


def get_period_status(db: Session, period: date) -> PeriodStatus:
    """DRAFT or LOCKED, derived from the month's records (no records means DRAFT)."""
    return derive_period_status(record_repo.get_locked_flags_by_period(db, period))


def is_period_locked(db: Session, period: date) -> bool:
    return get_period_status(db, period) == PeriodStatus.LOCKED


def _build_view(db: Session, period: date) -> PeriodView:
    status = get_period_status(db, period)
    record_count, total_revenue, total_commission = record_repo.get_period_totals(db, period)

    view = PeriodView(
        period=period,
        status=status,
        record_count=record_count,
        total_revenue=total_revenue,
        total_commission=total_commission,
    )
    if status == PeriodStatus.LOCKED:
        last_lock = period_repo.get_latest_event(db, period, PeriodAction.LOCK.value)
        if last_lock:
            view.locked_at = last_lock.created_at
            view.locked_by = last_lock.actor
    return view


def get_period(db: Session, year: int, month: int) -> PeriodView:
    return _build_view(db, period_start(year, month))


def _require_actor(actor: str | None) -> str:
    if actor is None or not actor.strip():
        raise DomainValidationError("An actor is required to lock or unlock a period")
    return actor.strip()


def lock_period(db: Session, year: int, month: int, actor: str) -> PeriodView:
    """
    Finalize a month: every record becomes locked=True, status=FINALIZED.

    - Serializes against sync/unlock of the same month (month guard)
    - Rejects a month with no records (nothing to finalize)
    - Rejects a month that is already locked
    - Writes a LOCK audit entry in the same transaction

    Raises:
        DomainValidationError: If actor is blank, the month has no records,
            or the month is already locked
    """
    actor = _require_actor(actor)
    period = period_start(year, month)

    try:
        period_repo.acquire_month_guard(db, period)

        flags = record_repo.get_locked_flags_by_period(db, period)
        if not flags:
            raise DomainValidationError(
                f"Cannot lock period {period.strftime('%Y-%m')}: there are no commission records"
            )
        if derive_period_status(flags) == PeriodStatus.LOCKED:
            raise DomainValidationError(
                f"Period {period.strftime('%Y-%m')} is already locked"
            )

        count = record_repo.set_period_lock_state(
            db, period, locked=True, status=RecordStatus.FINALIZED.value, updated_at=utcnow()
        )
        period_repo.create_period_event(
            db, period, PeriodAction.LOCK.value, actor, record_count=count
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Period %s locked by %s (%d records)", period.strftime("%Y-%m"), actor, count)
    return _build_view(db, period)


def unlock_period(db: Session, year: int, month: int, actor: str) -> PeriodView:
    """
    Reopen a finalized month: every record becomes locked=False, status=DRAFT.

    This withdraws the guarantee payroll relied on, so it always leaves a
    WARNING log line and an UNLOCK audit entry naming the actor. Computed
    amounts are left exactly as they were.

    Raises:
        DomainValidationError: If actor is blank or the month is not locked
    """
    actor = _require_actor(actor)
    period = period_start(year, month)

    try:
        period_repo.acquire_month_guard(db, period)

        if not is_period_locked(db, period):
            raise DomainValidationError(
                f"Period {period.strftime('%Y-%m')} is not locked"
            )

        count = record_repo.set_period_lock_state(
            db, period, locked=False, status=RecordStatus.DRAFT.value, updated_at=utcnow()
        )
        period_repo.create_period_event(
            db, period, PeriodAction.UNLOCK.value, actor, record_count=count
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.warning(
        "Period %s UNLOCKED by %s (%d finalized records reopened)",
        period.strftime("%Y-%m"),
        actor,
        count,
    )
    return _build_view(db, period)


def list_period_events(db: Session, year: int, month: int) -> list[PeriodEventModel]:
    return period_repo.get_events_by_period(db, period_start(year, month))
