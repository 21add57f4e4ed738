import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from commission_engine.api.deps import get_db
from commission_engine.main import app
from commission_engine.services import policy as policy_service


@pytest.fixture(scope="function")
def small_policy(db: Session):
    """A policy with small targets so the numbers stay readable."""
    return policy_service.create_policy(
        db,
        code="SMALL",
        name="Small targets",
        standard_target=100,
        advanced_target=200,
        tier1_percent=1,
        tier2_percent=1.5,
        tier3_percent=2,
    )


@pytest.fixture(scope="function")
def synced_march(client, directory, ledger, make_txn, small_policy) -> list[dict]:
    """March 2025 synced with two employees on the SMALL policy."""
    directory.assign("e1", "SMALL")
    directory.assign("e2", "SMALL")
    ledger.add(make_txn(amount=250, performer_id="e1"))
    ledger.add(make_txn(amount=80, requester_id="e2"))
    response = client.post("/api/v1/periods/2025/3/sync")
    assert response.status_code == 200
    return response.json()["records"]


def _lock(client, actor="payroll@example.com"):
    return client.post("/api/v1/periods/2025/3/lock", json={"actor": actor})


def _unlock(client, actor="cfo@example.com"):
    return client.post("/api/v1/periods/2025/3/unlock", json={"actor": actor})


# ============================================================================
# PERIOD VIEW TESTS
# ============================================================================


def test_empty_period_is_draft(client):
    """Test a month without records reads as DRAFT with zero totals."""
    response = client.get("/api/v1/periods/2025/3")
    assert response.status_code == 200
    data = response.json()
    assert data["period"] == "2025-03-01"
    assert data["status"] == "DRAFT"
    assert data["record_count"] == 0
    assert data["total_commission"] == 0
    assert data["locked_at"] is None


def test_period_totals(client, synced_march):
    """Test the period view aggregates its records."""
    data = client.get("/api/v1/periods/2025/3").json()
    assert data["record_count"] == 2
    assert data["total_revenue"] == 330
    assert data["total_commission"] == 4 + 1


def test_period_total_revenue_clamps_negative_adjustments(client, small_policy):
    """Test a record whose adjustment drives revenue below zero counts as 0 in the total."""
    for employee_id, adjustment in [("e1", -500), ("e2", 300)]:
        response = client.post(
            "/api/v1/periods/2025/3/records",
            json={"employee_id": employee_id, "policy_code": "SMALL", "manual_adjustment": adjustment},
        )
        assert response.status_code == 201

    data = client.get("/api/v1/periods/2025/3").json()
    assert data["record_count"] == 2
    assert data["total_revenue"] == 300
    assert data["total_commission"] == 1 + 2 + 2


@pytest.mark.parametrize("path", ["/api/v1/periods/2025/13", "/api/v1/periods/2025/0", "/api/v1/periods/1800/1"])
def test_period_invalid_path(client, path):
    """Test months outside 1-12 and absurd years are rejected."""
    response = client.get(path)
    assert response.status_code == 422


# ============================================================================
# SYNC ENDPOINT TESTS
# ============================================================================


def test_sync_endpoint_returns_records(client, synced_march):
    """Test the sync response carries the computed records."""
    by_employee = {r["employee_id"]: r for r in synced_march}
    assert by_employee["e1"]["total_commission"] == 4
    assert by_employee["e1"]["snap_tier2_percent"] == 1.5
    assert by_employee["e2"]["tier1_revenue"] == 80
    assert by_employee["e2"]["status"] == "DRAFT"


def test_sync_endpoint_partial_result(client, directory, ledger, make_txn, small_policy):
    """Test a failed employee is reported with a reason and partial=true."""
    directory.assign("e1", "SMALL")
    directory.assign("e2", "SMALL")
    directory.assign("e3", None)
    ledger.add(make_txn(amount=500, project_id="unknown-project", performer_id="e1"))

    response = client.post("/api/v1/periods/2025/3/sync")
    assert response.status_code == 200
    data = response.json()
    assert data["partial"] is True
    outcomes = {o["employee_id"]: o for o in data["outcomes"]}
    assert outcomes["e1"]["status"] == "SUCCESS"
    assert outcomes["e2"]["status"] == "FAILED"
    assert "unknown-project" in outcomes["e2"]["reason"]
    assert outcomes["e3"]["status"] == "SKIPPED"
    assert [r["employee_id"] for r in data["records"]] == ["e1"]


def test_sync_endpoint_project_participants(client, directory, ledger, registry, make_txn, small_policy):
    """Test revenue attributed through a project's sales participants."""
    directory.assign("e1", "SMALL")
    registry.set_participants("p1", ["e1"])
    ledger.add(make_txn(amount=1100, project_id="p1", tax_inclusive=True))

    data = client.post("/api/v1/periods/2025/3/sync").json()
    [record] = data["records"]
    assert record["actual_revenue"] == 1000


def test_sync_single_employee_endpoint(client, directory, ledger, make_txn, small_policy):
    """Test syncing one employee leaves the others alone."""
    directory.assign("e1", "SMALL")
    directory.assign("e2", "SMALL")
    ledger.add(make_txn(amount=100, performer_id="e2"))

    response = client.post("/api/v1/periods/2025/3/employees/e2/sync")
    assert response.status_code == 200
    assert [r["employee_id"] for r in response.json()["records"]] == ["e2"]

    records = client.get("/api/v1/periods/2025/3/records").json()
    assert [r["employee_id"] for r in records] == ["e2"]


def test_sync_single_unknown_employee(client, directory):
    """Test syncing an employee the directory does not know returns 404."""
    response = client.post("/api/v1/periods/2025/3/employees/ghost/sync")
    assert response.status_code == 404


def test_sync_locked_period_returns_423(client, synced_march):
    """Test sync of a locked month is rejected."""
    assert _lock(client).status_code == 200

    response = client.post("/api/v1/periods/2025/3/sync")
    assert response.status_code == 423
    assert response.json()["code"] == "PERIOD_LOCKED"


def test_sync_without_configured_upstream(db_session, small_policy):
    """Test sync reports a clear error when upstream services are not configured."""
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        response = TestClient(app).post("/api/v1/periods/2025/3/sync")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400
    assert "EMPLOYEE_DIRECTORY_URL" in response.json()["detail"]


# ============================================================================
# LOCK / UNLOCK TESTS
# ============================================================================


def test_lock_period(client, synced_march):
    """Test locking finalizes every record of the month."""
    response = _lock(client)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "LOCKED"
    assert data["locked_by"] == "payroll@example.com"
    assert data["locked_at"] is not None

    records = client.get("/api/v1/periods/2025/3/records").json()
    assert all(r["locked"] for r in records)
    assert {r["status"] for r in records} == {"FINALIZED"}


def test_lock_empty_period(client):
    """Test a month with no records cannot be locked."""
    response = _lock(client)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_lock_already_locked_period(client, synced_march):
    """Test locking twice is rejected."""
    _lock(client)
    response = _lock(client)
    assert response.status_code == 400


def test_lock_requires_actor(client, synced_march):
    """Test lock without an actor fails validation."""
    response = client.post("/api/v1/periods/2025/3/lock", json={"actor": ""})
    assert response.status_code == 422


def test_lock_does_not_affect_other_months(client, synced_march):
    """Test locking March leaves April writable."""
    _lock(client)
    response = client.post(
        "/api/v1/periods/2025/4/records",
        json={"employee_id": "e1", "policy_code": "SMALL"},
    )
    assert response.status_code == 201
    assert client.get("/api/v1/periods/2025/4").json()["status"] == "DRAFT"


def test_unlock_period(client, synced_march, caplog):
    """Test unlock reopens the month, keeps amounts and leaves a warning."""
    _lock(client)

    with caplog.at_level(logging.WARNING, logger="commission_engine.services.period"):
        response = _unlock(client)

    assert response.status_code == 200
    assert response.json()["status"] == "DRAFT"
    assert "UNLOCKED by cfo@example.com" in caplog.text

    records = client.get("/api/v1/periods/2025/3/records").json()
    assert not any(r["locked"] for r in records)
    assert {r["status"] for r in records} == {"DRAFT"}
    by_employee = {r["employee_id"]: r for r in records}
    assert by_employee["e1"]["total_commission"] == 4


def test_unlock_draft_period(client, synced_march):
    """Test unlocking a month that is not locked is rejected."""
    response = _unlock(client)
    assert response.status_code == 400


def test_lock_unlock_round_trip_is_stable(client, synced_march):
    """Test lock then unlock restores the exact computed values."""
    before = client.get("/api/v1/periods/2025/3/records").json()
    _lock(client)
    _unlock(client)
    after = client.get("/api/v1/periods/2025/3/records").json()

    def amounts(records):
        return [
            (r["employee_id"], r["actual_revenue"], r["manual_adjustment"], r["total_commission"])
            for r in records
        ]

    assert amounts(after) == amounts(before)


def test_period_events_audit_trail(client, synced_march):
    """Test lock and unlock are recorded in order with actor and record count."""
    _lock(client)
    _unlock(client)
    _lock(client, actor="payroll2@example.com")

    response = client.get("/api/v1/periods/2025/3/events")
    assert response.status_code == 200
    events = response.json()
    assert [(e["action"], e["actor"]) for e in events] == [
        ("LOCK", "payroll@example.com"),
        ("UNLOCK", "cfo@example.com"),
        ("LOCK", "payroll2@example.com"),
    ]
    assert all(e["record_count"] == 2 for e in events)

    view = client.get("/api/v1/periods/2025/3").json()
    assert view["locked_by"] == "payroll2@example.com"


# ============================================================================
# RECORD TESTS
# ============================================================================


def test_adjustment_recomputes_record(client, synced_march):
    """Test a manual adjustment recomputes the record from its snapshot."""
    record = next(r for r in synced_march if r["employee_id"] == "e2")

    response = client.put(
        f"/api/v1/records/{record['id']}/adjustment", json={"manual_adjustment": 170}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["manual_adjustment"] == 170
    assert data["actual_revenue"] == 80
    assert (data["tier1_revenue"], data["tier2_revenue"], data["tier3_revenue"]) == (100, 100, 50)
    assert data["total_commission"] == 4


def test_adjustment_on_locked_record_returns_423(client, synced_march):
    """Test a locked record rejects adjustments and keeps its values."""
    record = synced_march[0]
    _lock(client)

    response = client.put(
        f"/api/v1/records/{record['id']}/adjustment", json={"manual_adjustment": 1_000_000}
    )
    assert response.status_code == 423
    assert response.json()["code"] == "PERIOD_LOCKED"

    unchanged = client.get(f"/api/v1/records/{record['id']}").json()
    assert unchanged["total_commission"] == record["total_commission"]


def test_adjustment_unknown_record(client):
    response = client.put("/api/v1/records/9999/adjustment", json={"manual_adjustment": 1})
    assert response.status_code == 404


def test_add_manual_record(client, small_policy):
    """Test a record added by hand carries the adjustment and policy snapshot."""
    response = client.post(
        "/api/v1/periods/2025/3/records",
        json={"employee_id": "e9", "policy_code": "SMALL", "manual_adjustment": 250},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["period"] == "2025-03-01"
    assert data["actual_revenue"] == 0
    assert data["manual_adjustment"] == 250
    assert data["total_commission"] == 4
    assert data["snap_advanced_target"] == 200


def test_add_manual_record_duplicate(client, synced_march):
    """Test adding a second record for the same employee and month returns 409."""
    response = client.post(
        "/api/v1/periods/2025/3/records",
        json={"employee_id": "e1", "policy_code": "SMALL"},
    )
    assert response.status_code == 409


def test_add_manual_record_unknown_policy(client):
    response = client.post(
        "/api/v1/periods/2025/3/records",
        json={"employee_id": "e1", "policy_code": "NOPE"},
    )
    assert response.status_code == 404


def test_add_manual_record_locked_period(client, synced_march):
    """Test records cannot be added to a locked month."""
    _lock(client)
    response = client.post(
        "/api/v1/periods/2025/3/records",
        json={"employee_id": "e9", "policy_code": "SMALL"},
    )
    assert response.status_code == 423


def test_sync_keeps_manually_added_record_adjustment(client, directory, ledger, make_txn, small_policy):
    """Test a later sync refreshes machine revenue on a manual record."""
    client.post(
        "/api/v1/periods/2025/3/records",
        json={"employee_id": "e1", "policy_code": "SMALL", "manual_adjustment": 100},
    )
    directory.assign("e1", "SMALL")
    ledger.add(make_txn(amount=150, performer_id="e1"))

    [record] = client.post("/api/v1/periods/2025/3/sync").json()["records"]
    assert record["actual_revenue"] == 150
    assert record["manual_adjustment"] == 100
    assert record["total_commission"] == 4


def test_delete_record(client, synced_march):
    """Test deleting a draft record."""
    record = synced_march[0]
    response = client.delete(f"/api/v1/records/{record['id']}")
    assert response.status_code == 204

    response = client.get(f"/api/v1/records/{record['id']}")
    assert response.status_code == 404


def test_delete_record_in_locked_period(client, synced_march):
    """Test records of a locked month cannot be deleted."""
    record = synced_march[0]
    _lock(client)

    response = client.delete(f"/api/v1/records/{record['id']}")
    assert response.status_code == 423

    response = client.get(f"/api/v1/records/{record['id']}")
    assert response.status_code == 200


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
