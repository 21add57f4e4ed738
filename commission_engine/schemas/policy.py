from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Policy(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    standard_target: int
    advanced_target: int
    tier1_percent: float
    tier2_percent: float
    tier3_percent: float

    @field_validator("tier1_percent", "tier2_percent", "tier3_percent", mode="before")
    @classmethod
    def decimal_to_float(cls, v):
        """Numeric columns load as Decimal; the API exposes plain numbers."""
        if isinstance(v, Decimal):
            return float(v)
        return v


class PolicyCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64, description="Unique policy code")
    name: str = Field(..., min_length=1, max_length=255)
    standard_target: int = Field(..., ge=0, description="Upper bound of tier 1 (must be >= 0)")
    advanced_target: int = Field(..., ge=0, description="Upper bound of tier 2 (must be >= standard_target)")
    tier1_percent: float = Field(..., ge=0, le=100, description="Commission percent on tier 1")
    tier2_percent: float = Field(..., ge=0, le=100, description="Commission percent on tier 2")
    tier3_percent: float = Field(..., ge=0, le=100, description="Commission percent on tier 3")

    @model_validator(mode="after")
    def validate_target_order(self):
        """Ensure the advanced target does not undercut the standard target."""
        if self.advanced_target < self.standard_target:
            raise ValueError("advanced_target cannot be lower than standard_target")
        return self


class PolicyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    standard_target: int | None = Field(None, ge=0)
    advanced_target: int | None = Field(None, ge=0)
    tier1_percent: float | None = Field(None, ge=0, le=100)
    tier2_percent: float | None = Field(None, ge=0, le=100)
    tier3_percent: float | None = Field(None, ge=0, le=100)
