from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from commission_engine.api.deps import get_db
from commission_engine.schemas.policy import Policy, PolicyCreate, PolicyUpdate
from commission_engine.services.policy import (
    create_policy,
    delete_policy,
    get_policy,
    list_policies,
    update_policy,
)

router = APIRouter(prefix="/policies", tags=["policies"])


@router.post("", response_model=Policy, status_code=status.HTTP_201_CREATED)
def create_new_policy(policy_data: PolicyCreate, db: Session = Depends(get_db)):
    """
    Create a commission policy. The code must be unique.
    """
    policy = create_policy(
        db,
        code=policy_data.code,
        name=policy_data.name,
        standard_target=policy_data.standard_target,
        advanced_target=policy_data.advanced_target,
        tier1_percent=policy_data.tier1_percent,
        tier2_percent=policy_data.tier2_percent,
        tier3_percent=policy_data.tier3_percent,
    )
    return Policy.model_validate(policy)


@router.get("", response_model=list[Policy])
def get_all_policies(db: Session = Depends(get_db)):
    return [Policy.model_validate(policy) for policy in list_policies(db)]


@router.get("/{code}", response_model=Policy)
def get_policy_by_code(code: str, db: Session = Depends(get_db)):
    return Policy.model_validate(get_policy(db, code))


@router.put("/{code}", response_model=Policy)
def update_policy_by_code(
    code: str,
    policy_data: PolicyUpdate,
    db: Session = Depends(get_db),
):
    """
    Update a commission policy.

    Fields not included in the request are not updated. Existing commission
    records keep their snapshot; re-sync a draft month to adopt the change.
    """
    update_data = policy_data.model_dump(exclude_unset=True)
    policy = update_policy(db, code, **update_data)
    return Policy.model_validate(policy)


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
def delete_policy_by_code(code: str, db: Session = Depends(get_db)):
    """
    Delete a commission policy. Records computed with it are left untouched.
    """
    delete_policy(db, code)
