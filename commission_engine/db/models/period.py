from sqlalchemy import Column, Date, DateTime, Integer, String

from commission_engine.db.base import Base


class PeriodEvent(Base):
    """Append-only audit entry for a lock or unlock of a month."""

    __tablename__ = "commission_period_events"

    id = Column(Integer, primary_key=True, index=True)
    period = Column(Date, nullable=False, index=True)
    action = Column(String(16), nullable=False)
    actor = Column(String(255), nullable=False)
    record_count = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)


class MonthGuard(Base):
    """Mutex row serializing sync/lock/unlock of one month. Holds no lock status."""

    __tablename__ = "commission_month_guards"

    period = Column(Date, primary_key=True)
    last_acquired_at = Column(DateTime, nullable=False)
