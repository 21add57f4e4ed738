from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commission_engine.domain.period import RecordStatus


class CommissionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: str
    period: date
    policy_code: str

    snap_standard_target: int
    snap_advanced_target: int
    snap_tier1_percent: float
    snap_tier2_percent: float
    snap_tier3_percent: float

    actual_revenue: int
    manual_adjustment: int

    tier1_revenue: int
    tier2_revenue: int
    tier3_revenue: int
    tier1_commission: int
    tier2_commission: int
    tier3_commission: int
    total_commission: int

    locked: bool
    status: RecordStatus
    updated_at: datetime

    @field_validator(
        "snap_tier1_percent", "snap_tier2_percent", "snap_tier3_percent", mode="before"
    )
    @classmethod
    def decimal_to_float(cls, v):
        if isinstance(v, Decimal):
            return float(v)
        return v


class CommissionRecordCreate(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=64)
    policy_code: str = Field(..., min_length=1, max_length=64)
    manual_adjustment: int = Field(default=0, description="Revenue added (or removed, if negative) by hand")


class AdjustmentUpdate(BaseModel):
    manual_adjustment: int = Field(..., description="New additive revenue adjustment")
