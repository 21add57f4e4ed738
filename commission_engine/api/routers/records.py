from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from commission_engine.api.deps import get_db
from commission_engine.schemas.record import AdjustmentUpdate, CommissionRecord
from commission_engine.services.record import delete_record, get_record
from commission_engine.services.sync import recalculate_record

router = APIRouter(prefix="/records", tags=["records"])


@router.get("/{record_id}", response_model=CommissionRecord)
def get_record_by_id(record_id: int, db: Session = Depends(get_db)):
    return CommissionRecord.model_validate(get_record(db, record_id))


@router.put("/{record_id}/adjustment", response_model=CommissionRecord)
def update_record_adjustment(
    record_id: int,
    adjustment: AdjustmentUpdate,
    db: Session = Depends(get_db),
):
    """
    Set the manual revenue adjustment and recompute the record.

    The record's frozen policy snapshot is used, not the current policy.
    Locked records are rejected with 423.
    """
    record = recalculate_record(db, record_id, adjustment.manual_adjustment)
    return CommissionRecord.model_validate(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_record_by_id(record_id: int, db: Session = Depends(get_db)):
    """
    Delete a draft record. Records of a locked month cannot be deleted.
    """
    delete_record(db, record_id)
