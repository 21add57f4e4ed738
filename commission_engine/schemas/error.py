"""Error body returned for every domain exception."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of 400/404/409/423 responses and of 502/504 upstream failures."""

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(
        ...,
        description=(
            "Machine-readable error code: NOT_FOUND, DUPLICATE_RESOURCE, VALIDATION_ERROR, "
            "PERIOD_LOCKED, AGGREGATION_TIMEOUT or UPSTREAM_ERROR"
        ),
    )
