"""HTTP-backed implementations of the collaborator contracts."""

import logging
from datetime import date

import httpx

from commission_engine.core.config import settings
from commission_engine.domain.revenue import LedgerTransaction
from commission_engine.errors import (
    AggregationError,
    DomainValidationError,
    UpstreamServiceError,
)
from commission_engine.services.collaborators import EmployeeAssignment

logger = logging.getLogger(__name__)


def _get_json(client: httpx.Client, url: str, params: dict | None = None):
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        raise UpstreamServiceError(
            f"Upstream request to {url} failed with status {e.response.status_code}: {e.response.text}"
        )
    except httpx.RequestError as e:
        raise UpstreamServiceError(f"Upstream request to {url} failed: {str(e)}")
    except ValueError:
        raise UpstreamServiceError(f"Invalid response from {url}: body is not JSON")


def _require_list(payload, source: str) -> list:
    if not isinstance(payload, list):
        raise UpstreamServiceError(f"Invalid response from {source}: expected a list")
    return payload


def build_client(base_url: str | None, name: str) -> httpx.Client:
    """Create an httpx client for a configured upstream.

    Raises:
        DomainValidationError: If the upstream URL is not configured
    """
    if not base_url:
        raise DomainValidationError(
            f"{name} is not configured. Please configure it in the .env file."
        )
    return httpx.Client(base_url=base_url, timeout=settings.upstream_timeout_seconds)


class HttpEmployeeDirectory:
    def __init__(self, client: httpx.Client):
        self._client = client

    def list_with_policy(self) -> list[EmployeeAssignment]:
        payload = _require_list(_get_json(self._client, "/employees"), "employee directory")
        return [
            EmployeeAssignment(
                employee_id=str(item["id"]),
                policy_code=item.get("policy_code") or None,
            )
            for item in payload
        ]


class HttpTransactionLedger:
    def __init__(self, client: httpx.Client):
        self._client = client

    def query_paid_income(self, start: date, end: date) -> list[LedgerTransaction]:
        payload = _require_list(
            _get_json(
                self._client,
                "/transactions",
                params={
                    "type": "INCOME",
                    "status": "PAID",
                    "date_from": start.isoformat(),
                    "date_to": end.isoformat(),
                },
            ),
            "transaction ledger",
        )
        try:
            return [_parse_transaction(item) for item in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamServiceError(f"Invalid transaction from ledger: {str(e)}")


def _parse_transaction(item: dict) -> LedgerTransaction:
    tax_amount = item.get("tax_amount")
    return LedgerTransaction(
        id=str(item["id"]),
        type=item["type"],
        status=item["status"],
        amount=int(item["amount"]),
        date=date.fromisoformat(item["date"][:10]),
        category=item.get("category") or "",
        description=item.get("description") or "",
        project_id=item.get("project_id"),
        performer_id=item.get("performer_id"),
        requester_id=item.get("requester_id"),
        tax_amount=int(tax_amount) if tax_amount is not None else None,
        tax_inclusive=bool(item.get("tax_inclusive", False)),
    )


class HttpProjectRegistry:
    def __init__(self, client: httpx.Client):
        self._client = client

    def sales_participants(self, project_id: str) -> list[str]:
        url = f"/projects/{project_id}/sales-participants"
        try:
            response = self._client.get(url)
        except httpx.RequestError as e:
            raise AggregationError(f"Project {project_id} attribution unavailable: {str(e)}")

        if response.status_code == 404:
            raise AggregationError(f"Project {project_id} has no attribution record")
        if response.is_error:
            logger.warning(
                "Project registry returned %s for project %s", response.status_code, project_id
            )
            raise AggregationError(
                f"Project {project_id} attribution unavailable (status {response.status_code})"
            )

        try:
            payload = response.json()
        except ValueError:
            raise AggregationError(f"Project {project_id} attribution is not valid JSON")
        if not isinstance(payload, list):
            raise AggregationError(f"Project {project_id} attribution is malformed")
        return [str(employee_id) for employee_id in payload]
