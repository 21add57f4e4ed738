from decimal import Decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Transaction text fragments that mark money which is not revenue:
# deposits, escrow, refunds of over-collection, pass-through collections.
DEFAULT_REVENUE_EXCLUSION_KEYWORDS = [
    "tiền gửi",
    "ký quỹ",
    "thế chân",
    "hoàn ứng",
    "thu hộ",
    "tiền thừa",
    "tạm thu",
    "deposit",
    "escrow",
    "overpayment refund",
    "pass-through",
    "collected on behalf",
]


class Settings(BaseSettings):
    database_url: str = Field(alias="DATABASE_URL")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS origin for the back-office frontend
    frontend_url: str | None = Field(default=None, alias="FRONTEND_URL")

    # Revenue recognition
    inclusive_tax_rate: Decimal = Field(default=Decimal("0.10"), alias="INCLUSIVE_TAX_RATE")
    revenue_exclusion_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_REVENUE_EXCLUSION_KEYWORDS),
        alias="REVENUE_EXCLUSION_KEYWORDS",
    )
    aggregation_timeout_seconds: float | None = Field(
        default=None, alias="AGGREGATION_TIMEOUT_SECONDS"
    )

    # Upstream collaborators (optional until a sync is requested)
    employee_directory_url: str | None = Field(default=None, alias="EMPLOYEE_DIRECTORY_URL")
    transaction_ledger_url: str | None = Field(default=None, alias="TRANSACTION_LEDGER_URL")
    project_registry_url: str | None = Field(default=None, alias="PROJECT_REGISTRY_URL")
    upstream_timeout_seconds: float = Field(default=30.0, alias="UPSTREAM_TIMEOUT_SECONDS")

    @field_validator(
        "frontend_url",
        "employee_directory_url",
        "transaction_ledger_url",
        "project_registry_url",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional string fields."""
        if v == "":
            return None
        return v

    @field_validator("aggregation_timeout_seconds", mode="before")
    @classmethod
    def empty_str_to_none_float(cls, v: str | float | None) -> float | None:
        """Convert empty strings to None for the optional aggregation deadline."""
        if v == "":
            return None
        return v

    @field_validator("inclusive_tax_rate")
    @classmethod
    def validate_inclusive_tax_rate(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("INCLUSIVE_TAX_RATE must be >= 0")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
