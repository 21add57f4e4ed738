from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from commission_engine.domain.period import PeriodAction, PeriodStatus
from commission_engine.schemas.record import CommissionRecord
from commission_engine.services.sync import OutcomeStatus


class Period(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: date
    status: PeriodStatus
    record_count: int
    total_revenue: int
    total_commission: int
    locked_at: datetime | None = None
    locked_by: str | None = None


class PeriodTransition(BaseModel):
    actor: str = Field(..., min_length=1, max_length=255, description="Who locks or unlocks the period")


class PeriodEvent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    period: date
    action: PeriodAction
    actor: str
    record_count: int
    created_at: datetime


class EmployeeOutcome(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    status: OutcomeStatus
    reason: str | None = None


class SyncResponse(BaseModel):
    """Result of a sync: either all employees succeeded, or exactly which ones did not and why."""

    model_config = ConfigDict(from_attributes=True)

    period: date
    partial: bool
    records: list[CommissionRecord]
    outcomes: list[EmployeeOutcome]
