"""Custom domain exceptions for the commission engine."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
PERIOD_LOCKED = "PERIOD_LOCKED"
AGGREGATION_TIMEOUT = "AGGREGATION_TIMEOUT"
UPSTREAM_ERROR = "UPSTREAM_ERROR"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. negative percent, empty period)."""

    pass


class PeriodLockedError(DomainError):
    """Raised when a mutation targets a finalized (locked) month or record."""

    pass


class AggregationError(DomainError):
    """Raised when one employee's revenue cannot be computed (e.g. missing project attribution).

    Never escapes a sync: the orchestrator records it as a FAILED outcome for
    that employee and carries on with the others.
    """

    pass


class AggregationTimeoutError(DomainError):
    """Raised when revenue aggregation runs past its deadline. Nothing is written."""

    pass


class UpstreamServiceError(DomainError):
    """Raised when an external collaborator (directory, ledger, registry) fails."""

    pass
