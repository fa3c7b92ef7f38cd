"""
Pytest configuration and fixtures for cargo-tracker tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
from datetime import datetime, timezone
from typing import Generator

import pytest
from testcontainers.postgres import PostgresContainer

from cargo_tracker.core.models import CargoRecord
from cargo_tracker.store.connection import DatabaseConnectionPool


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that exercise the full record pipeline"
    )


# =======================
# RECORD FIXTURES
# =======================

@pytest.fixture
def canonical_document() -> dict:
    """A stored document in the current shape."""
    return {
        "id": "rec-1",
        "consignee": "John Doe Logistics",
        "consolNumber": "CONSOL-XYZ",
        "shipmentNumber": "SHIP-98765",
        "masterAirWaybill": "123-45678901",
        "houseAirWaybills": ["A1", "B2"],
        "kllNumber": "KLL-67890",
        "preAlertDate": "2024-06-01",
        "eta": "2024-06-10T08:00:00",
        "currentStatus": "In Transit",
        "instructions": "Keep refrigerated",
    }


@pytest.fixture
def legacy_document() -> dict:
    """A stored document from the first release: old keys, scalar status."""
    return {
        "id": "rec-legacy",
        "name": "Acme Freight",
        "consolNumber": "C-100",
        "weight": "SHIP-1",
        "destination": "999-00000000",
        "status": "HAWB-OLD",
        "kllNumber": "KLL-1",
        "preAlertDate": "2024-05-01",
        "eta": "2024-05-20T10:30",
        "currentStatus": "Completed",
    }


@pytest.fixture
def valid_record(canonical_document) -> CargoRecord:
    return CargoRecord.model_validate(canonical_document)


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed, timezone-aware clock reading."""
    return datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_cargo",
        password="test_password",
        dbname="test_cargo",
    ) as postgres:
        yield postgres


@pytest.fixture
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open connection pool against the test container, emptied before each test

    Yields:
        DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_cargo",
        user="test_cargo",
        password="test_password",
    )
    pool.open()
    pool.execute_command("DROP TABLE IF EXISTS cargo_item")
    yield pool
    pool.close()
