from commission_engine.db.models.policy import CommissionPolicy
from commission_engine.db.models.record import CommissionRecord
from commission_engine.db.models.period import MonthGuard, PeriodEvent

__all__ = ["CommissionPolicy", "CommissionRecord", "MonthGuard", "PeriodEvent"]
