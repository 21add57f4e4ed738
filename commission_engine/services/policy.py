from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

import commission_engine.repositories.policy as policy_repo
from commission_engine.db.models.policy import CommissionPolicy as PolicyModel
from commission_engine.errors import (
    DomainValidationError,
    DuplicateResourceError,
    NotFoundError,
)

_PERCENT_FIELDS = ("tier1_percent", "tier2_percent", "tier3_percent")


def _to_decimal(field: str, value) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise DomainValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise DomainValidationError(f"{field} must be a finite number")
    return result


def _validate_policy_values(
    name: str,
    standard_target: int,
    advanced_target: int,
    percents: dict[str, Decimal],
) -> None:
    """
    Validate a complete set of policy values.

    Raises:
        DomainValidationError: If the name is blank, a target is negative,
            the advanced target is below the standard target, or a percent
            is outside [0, 100]
    """
    if not name or not name.strip():
        raise DomainValidationError("Policy name must not be empty")
    if standard_target < 0:
        raise DomainValidationError("standard_target must be >= 0")
    if advanced_target < 0:
        raise DomainValidationError("advanced_target must be >= 0")
    if advanced_target < standard_target:
        raise DomainValidationError(
            f"advanced_target ({advanced_target}) cannot be lower than standard_target ({standard_target})"
        )
    for field, value in percents.items():
        if value < 0 or value > 100:
            raise DomainValidationError(f"{field} must be between 0 and 100")


def list_policies(db: Session) -> list[PolicyModel]:
    return policy_repo.get_all_policies(db)


def get_policy(db: Session, code: str) -> PolicyModel:
    """
    Get a policy by code.

    Raises:
        NotFoundError: If no policy has this code
    """
    policy = policy_repo.get_policy_by_code(db, code)
    if not policy:
        raise NotFoundError(f"Policy {code} not found")
    return policy


def create_policy(
    db: Session,
    code: str,
    name: str,
    standard_target: int,
    advanced_target: int,
    tier1_percent,
    tier2_percent,
    tier3_percent,
) -> PolicyModel:
    """
    Create a policy with domain validation.

    - Validates code is not blank and not already taken
    - Validates targets and percents (see _validate_policy_values)

    Nothing is persisted when validation fails.
    """
    code = (code or "").strip()
    if not code:
        raise DomainValidationError("Policy code must not be empty")

    percents = {
        "tier1_percent": _to_decimal("tier1_percent", tier1_percent),
        "tier2_percent": _to_decimal("tier2_percent", tier2_percent),
        "tier3_percent": _to_decimal("tier3_percent", tier3_percent),
    }
    _validate_policy_values(name, standard_target, advanced_target, percents)

    if policy_repo.get_policy_by_code(db, code):
        raise DuplicateResourceError(f"Policy with code {code} already exists")

    return policy_repo.create_policy(
        db,
        code=code,
        name=name.strip(),
        standard_target=standard_target,
        advanced_target=advanced_target,
        **percents,
    )


def update_policy(db: Session, code: str, **update_fields) -> PolicyModel:
    """
    Update a policy with domain validation.

    The merged result (stored values overlaid with the provided ones) is
    validated as a whole, so e.g. lowering only advanced_target below the
    stored standard_target is rejected.

    Existing commission records are not touched: they carry their own
    snapshot. A re-sync of a draft month adopts the new values.
    """
    policy = get_policy(db, code)

    update_dict = {}
    if "name" in update_fields and update_fields["name"] is not None:
        update_dict["name"] = update_fields["name"].strip()
    for field in ("standard_target", "advanced_target"):
        if field in update_fields and update_fields[field] is not None:
            update_dict[field] = update_fields[field]
    for field in _PERCENT_FIELDS:
        if field in update_fields and update_fields[field] is not None:
            update_dict[field] = _to_decimal(field, update_fields[field])

    _validate_policy_values(
        update_dict.get("name", policy.name),
        update_dict.get("standard_target", policy.standard_target),
        update_dict.get("advanced_target", policy.advanced_target),
        {
            field: update_dict.get(field, Decimal(getattr(policy, field)))
            for field in _PERCENT_FIELDS
        },
    )

    return policy_repo.update_policy(db, code, **update_dict)


def delete_policy(db: Session, code: str) -> None:
    """
    Delete a policy.

    Records that were computed with it keep their snapshot and policy_code;
    they are neither deleted nor recomputed.
    """
    get_policy(db, code)
    policy_repo.delete_policy(db, code)
