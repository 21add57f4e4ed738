from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)

from commission_engine.db.base import Base


class CommissionRecord(Base):
    __tablename__ = "commission_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "period", name="uq_commission_records_employee_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(64), nullable=False, index=True)
    period = Column(Date, nullable=False, index=True)

    # Plain value, not a foreign key: deleting a policy leaves records intact
    policy_code = Column(String(64), nullable=False)

    # Frozen copy of the policy at sync time
    snap_standard_target = Column(BigInteger, nullable=False)
    snap_advanced_target = Column(BigInteger, nullable=False)
    snap_tier1_percent = Column(Numeric(7, 4), nullable=False)
    snap_tier2_percent = Column(Numeric(7, 4), nullable=False)
    snap_tier3_percent = Column(Numeric(7, 4), nullable=False)

    actual_revenue = Column(BigInteger, nullable=False, default=0)
    manual_adjustment = Column(BigInteger, nullable=False, default=0)

    tier1_revenue = Column(BigInteger, nullable=False, default=0)
    tier2_revenue = Column(BigInteger, nullable=False, default=0)
    tier3_revenue = Column(BigInteger, nullable=False, default=0)
    tier1_commission = Column(BigInteger, nullable=False, default=0)
    tier2_commission = Column(BigInteger, nullable=False, default=0)
    tier3_commission = Column(BigInteger, nullable=False, default=0)
    total_commission = Column(BigInteger, nullable=False, default=0)

    locked = Column(Boolean, nullable=False, default=False)
    status = Column(String(16), nullable=False, default="DRAFT")
    updated_at = Column(DateTime, nullable=False)
