from decimal import Decimal

from sqlalchemy.orm import Session

from commission_engine.db.models.policy import CommissionPolicy as PolicyModel
from commission_engine.errors import NotFoundError


def get_policy_by_code(db: Session, code: str) -> PolicyModel | None:
    """Get a policy by its unique code."""
    return db.query(PolicyModel).filter(PolicyModel.code == code).first()


def get_all_policies(db: Session) -> list[PolicyModel]:
    """Get all policies ordered by code."""
    return db.query(PolicyModel).order_by(PolicyModel.code).all()


def create_policy(
    db: Session,
    code: str,
    name: str,
    standard_target: int,
    advanced_target: int,
    tier1_percent: Decimal,
    tier2_percent: Decimal,
    tier3_percent: Decimal,
) -> PolicyModel:
    """Create a new policy in the database. Pure data access - no business logic."""
    db_policy = PolicyModel(
        code=code,
        name=name,
        standard_target=standard_target,
        advanced_target=advanced_target,
        tier1_percent=tier1_percent,
        tier2_percent=tier2_percent,
        tier3_percent=tier3_percent,
    )
    db.add(db_policy)
    db.commit()
    db.refresh(db_policy)
    return db_policy


def update_policy(db: Session, code: str, **kwargs) -> PolicyModel:
    """
    Update a policy. Only updates fields that are explicitly provided.

    The code itself is the policy's identity and is never changed here.
    """
    policy = get_policy_by_code(db, code)
    if not policy:
        raise NotFoundError(f"Policy {code} not found")

    for field in (
        "name",
        "standard_target",
        "advanced_target",
        "tier1_percent",
        "tier2_percent",
        "tier3_percent",
    ):
        if field in kwargs:
            setattr(policy, field, kwargs[field])

    db.commit()
    db.refresh(policy)
    return policy


def delete_policy(db: Session, code: str) -> None:
    """Delete a policy from the database. Records keep their own snapshot."""
    policy = get_policy_by_code(db, code)
    if not policy:
        raise NotFoundError(f"Policy {code} not found")

    db.delete(policy)
    db.commit()
