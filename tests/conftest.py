import os
import tempfile
from datetime import date

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_commission.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["AGGREGATION_TIMEOUT_SECONDS"] = ""
os.environ["EMPLOYEE_DIRECTORY_URL"] = ""
os.environ["TRANSACTION_LEDGER_URL"] = ""
os.environ["PROJECT_REGISTRY_URL"] = ""

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from commission_engine.api.deps import (
    get_db,
    get_employee_directory,
    get_project_registry,
    get_transaction_ledger,
)
from commission_engine.domain.revenue import LedgerTransaction
from commission_engine.errors import AggregationError
from commission_engine.main import app
from commission_engine.services.collaborators import EmployeeAssignment


class FakeEmployeeDirectory:
    """In-memory employee directory. Entries are returned in insertion order, repeats included."""

    def __init__(self):
        self.assignments: list[EmployeeAssignment] = []

    def assign(self, employee_id: str, policy_code: str | None) -> None:
        self.assignments.append(
            EmployeeAssignment(employee_id=employee_id, policy_code=policy_code)
        )

    def list_with_policy(self) -> list[EmployeeAssignment]:
        return list(self.assignments)


class FakeTransactionLedger:
    """In-memory ledger. Returns everything in range; filtering is the engine's job."""

    def __init__(self):
        self.transactions: list[LedgerTransaction] = []
        self.queries: list[tuple[date, date]] = []

    def add(self, txn: LedgerTransaction) -> None:
        self.transactions.append(txn)

    def query_paid_income(self, start: date, end: date) -> list[LedgerTransaction]:
        self.queries.append((start, end))
        return [t for t in self.transactions if start <= t.date <= end]


class FakeProjectRegistry:
    """In-memory project attribution. Unknown projects fail like a missing attribution."""

    def __init__(self):
        self.participants: dict[str, list[str]] = {}
        self.lookups: list[str] = []

    def set_participants(self, project_id: str, employee_ids: list[str]) -> None:
        self.participants[project_id] = list(employee_ids)

    def sales_participants(self, project_id: str) -> list[str]:
        self.lookups.append(project_id)
        if project_id not in self.participants:
            raise AggregationError(f"Project {project_id} has no attribution record")
        return self.participants[project_id]


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    # Use a temporary file for SQLite database
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    # Create test engine and session with proper SQLite settings
    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Dispose the engine to close all connections
        test_engine.dispose()

        # Clean up - remove test database file and directory
        for suffix in ["", "-wal", "-shm"]:
            path = f"{test_db_path}{suffix}"
            if os.path.exists(path):
                os.remove(path)
        if os.path.exists(temp_db_dir):
            os.rmdir(temp_db_dir)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def directory() -> FakeEmployeeDirectory:
    return FakeEmployeeDirectory()


@pytest.fixture(scope="function")
def ledger() -> FakeTransactionLedger:
    return FakeTransactionLedger()


@pytest.fixture(scope="function")
def registry() -> FakeProjectRegistry:
    return FakeProjectRegistry()


@pytest.fixture(scope="function")
def client(db_session, directory, ledger, registry):
    """Create a test client with database and collaborator overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_employee_directory] = lambda: directory
    app.dependency_overrides[get_transaction_ledger] = lambda: ledger
    app.dependency_overrides[get_project_registry] = lambda: registry

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_txn():
    """Factory for paid income transactions with overridable fields."""
    counter = {"n": 0}

    def _make(**overrides) -> LedgerTransaction:
        counter["n"] += 1
        fields = {
            "id": f"txn-{counter['n']}",
            "type": "INCOME",
            "status": "PAID",
            "amount": 1000,
            "date": date(2025, 3, 10),
        }
        fields.update(overrides)
        return LedgerTransaction(**fields)

    return _make
