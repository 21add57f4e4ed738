from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from commission_engine.api.deps import (
    get_db,
    get_employee_directory,
    get_project_registry,
    get_transaction_ledger,
)
from commission_engine.schemas.period import (
    Period,
    PeriodEvent,
    PeriodTransition,
    SyncResponse,
)
from commission_engine.schemas.record import CommissionRecord, CommissionRecordCreate
from commission_engine.services.collaborators import (
    EmployeeDirectory,
    ProjectRegistry,
    TransactionLedger,
)
from commission_engine.services.period import (
    get_period,
    list_period_events,
    lock_period,
    unlock_period,
)
from commission_engine.services.record import add_manual_record, list_records
from commission_engine.services.sync import sync_employee, sync_period

router = APIRouter(prefix="/periods/{year}/{month}", tags=["periods"])

Year = Annotated[int, Path(ge=1900, le=2100, description="Year (1900-2100)")]
Month = Annotated[int, Path(ge=1, le=12, description="Month (1-12)")]


@router.get("", response_model=Period)
def get_period_view(year: Year, month: Month, db: Session = Depends(get_db)):
    """
    Get the status (DRAFT or LOCKED) and totals of a month.

    A month without records is DRAFT.
    """
    return Period.model_validate(get_period(db, year, month))


@router.get("/records", response_model=list[CommissionRecord])
def get_period_records(year: Year, month: Month, db: Session = Depends(get_db)):
    return [CommissionRecord.model_validate(r) for r in list_records(db, year, month)]


@router.post(
    "/records", response_model=CommissionRecord, status_code=status.HTTP_201_CREATED
)
def create_manual_record(
    record_data: CommissionRecordCreate,
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
):
    """
    Add a commission record by hand. Rejected when the month is locked.
    """
    record = add_manual_record(
        db,
        year,
        month,
        employee_id=record_data.employee_id,
        policy_code=record_data.policy_code,
        manual_adjustment=record_data.manual_adjustment,
    )
    return CommissionRecord.model_validate(record)


@router.post("/sync", response_model=SyncResponse)
def sync_period_records(
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
    directory: EmployeeDirectory = Depends(get_employee_directory),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
    registry: ProjectRegistry = Depends(get_project_registry),
):
    """
    Recompute every employee's record for the month from the ledger, using
    the live policies. Manual adjustments are kept.

    The response lists an outcome per employee; `partial` is true when some
    employees could not be aggregated.
    """
    result = sync_period(db, year, month, directory, ledger, registry)
    return SyncResponse.model_validate(result)


@router.post("/employees/{employee_id}/sync", response_model=SyncResponse)
def sync_employee_record(
    employee_id: str,
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
    directory: EmployeeDirectory = Depends(get_employee_directory),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
    registry: ProjectRegistry = Depends(get_project_registry),
):
    """
    Recompute one employee's record for the month, e.g. after a policy
    reassignment.
    """
    result = sync_employee(db, year, month, employee_id, directory, ledger, registry)
    return SyncResponse.model_validate(result)


@router.post("/lock", response_model=Period)
def lock_period_records(
    transition: PeriodTransition,
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
):
    """
    Finalize the month. All records become locked and FINALIZED.
    """
    return Period.model_validate(lock_period(db, year, month, transition.actor))


@router.post("/unlock", response_model=Period)
def unlock_period_records(
    transition: PeriodTransition,
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
):
    """
    Reopen a finalized month. The actor is logged and kept in the audit trail.
    """
    return Period.model_validate(unlock_period(db, year, month, transition.actor))


@router.get("/events", response_model=list[PeriodEvent])
def get_period_events(year: Year, month: Month, db: Session = Depends(get_db)):
    return [PeriodEvent.model_validate(e) for e in list_period_events(db, year, month)]
