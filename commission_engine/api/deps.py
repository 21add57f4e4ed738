from commission_engine.core.config import settings
from commission_engine.db import SessionLocal
from commission_engine.services.upstream import (
    HttpEmployeeDirectory,
    HttpProjectRegistry,
    HttpTransactionLedger,
    build_client,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_employee_directory():
    """Employee directory backed by the configured upstream HTTP service."""
    client = build_client(settings.employee_directory_url, "EMPLOYEE_DIRECTORY_URL")
    try:
        yield HttpEmployeeDirectory(client)
    finally:
        client.close()


def get_transaction_ledger():
    """Transaction ledger backed by the configured upstream HTTP service."""
    client = build_client(settings.transaction_ledger_url, "TRANSACTION_LEDGER_URL")
    try:
        yield HttpTransactionLedger(client)
    finally:
        client.close()


def get_project_registry():
    """Project registry backed by the configured upstream HTTP service."""
    client = build_client(settings.project_registry_url, "PROJECT_REGISTRY_URL")
    try:
        yield HttpProjectRegistry(client)
    finally:
        client.close()
