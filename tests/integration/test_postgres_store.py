"""
Integration tests for the PostgreSQL cargo store.

Runs against a PostgreSQL container started with testcontainers.
"""
import pytest

from cargo_tracker.app.auth import AnonymousIdentityProvider
from cargo_tracker.app.forms import CargoDraft
from cargo_tracker.app.service import CargoService
from cargo_tracker.store.connection import DatabaseConnectionPool
from cargo_tracker.store.errors import RecordNotFoundError
from cargo_tracker.store.postgres import PostgresCargoStore

COLLECTION = "artifacts/coordinator-cargo/public/data/cargoItems"


@pytest.fixture
def store(db_pool):
    store = PostgresCargoStore(db_pool, COLLECTION)
    store.ensure_schema()
    return store


@pytest.mark.integration
def test_connection_pool_open_and_query(db_pool):
    """Test executing a query using the pool"""
    result = db_pool.execute_query("SELECT 42 as answer")
    assert result == [{"answer": 42}]


@pytest.mark.integration
def test_connection_pool_requires_password():
    with pytest.raises(ValueError, match="password"):
        DatabaseConnectionPool(host="localhost", port=5432, database="cargo", user="cargo", password=None)


@pytest.mark.integration
def test_ensure_schema_is_repeatable(store):
    store.ensure_schema()
    assert store.snapshot() == []


@pytest.mark.integration
def test_create_and_snapshot(store, canonical_document):
    record_id = store.create(canonical_document)
    snapshot = store.snapshot()
    assert len(snapshot) == 1
    assert snapshot[0]["id"] == record_id
    assert snapshot[0]["houseAirWaybills"] == ["A1", "B2"]
    assert snapshot[0]["consolNumber"] == "CONSOL-XYZ"


@pytest.mark.integration
def test_snapshot_in_creation_order(store):
    ids = [store.create({"consignee": name}) for name in ("Zeta", "Alpha", "Mid")]
    assert [d["id"] for d in store.snapshot()] == ids


@pytest.mark.integration
def test_collections_are_isolated(store, db_pool):
    other = PostgresCargoStore(db_pool, "artifacts/other-app/public/data/cargoItems")
    other.create({"consignee": "Elsewhere"})
    store.create({"consignee": "Here"})
    assert [d["consignee"] for d in store.snapshot()] == ["Here"]
    assert [d["consignee"] for d in other.snapshot()] == ["Elsewhere"]


@pytest.mark.integration
def test_update_replaces_document(store, legacy_document):
    record_id = store.create(legacy_document)
    store.update(record_id, {"consignee": "Acme Freight", "houseAirWaybills": ["HAWB-OLD"]})
    assert store.snapshot() == [{"id": record_id, "consignee": "Acme Freight", "houseAirWaybills": ["HAWB-OLD"]}]


@pytest.mark.integration
def test_update_and_delete_unknown_id(store):
    with pytest.raises(RecordNotFoundError):
        store.update("missing", {"consignee": "X"})
    with pytest.raises(RecordNotFoundError):
        store.delete("missing")


@pytest.mark.integration
def test_delete(store):
    keep = store.create({"consignee": "Keep"})
    drop = store.create({"consignee": "Drop"})
    store.delete(drop)
    assert [d["id"] for d in store.snapshot()] == [keep]


@pytest.mark.integration
def test_subscribers_see_writes(store):
    snapshots = []
    subscription = store.subscribe(snapshots.append)
    record_id = store.create({"consignee": "Acme"})
    store.delete(record_id)
    subscription.unsubscribe()
    store.create({"consignee": "Unseen"})
    assert snapshots == [[], [{"id": record_id, "consignee": "Acme"}], []]


@pytest.mark.integration
def test_service_round_trip(store, canonical_document, legacy_document):
    store.create(canonical_document)
    legacy_id = store.create(legacy_document)

    service = CargoService(store, AnonymousIdentityProvider())
    service.start()
    try:
        assert [r.consignee for r in service.state.records] == ["Acme Freight", "John Doe Logistics"]

        legacy = next(r for r in service.state.records if r.id == legacy_id)
        draft = CargoDraft.from_record(legacy)
        draft.add_house_air_waybill("HAWB-NEW")
        assert service.submit(draft) is True

        stored = next(d for d in store.snapshot() if d["id"] == legacy_id)
        assert stored["houseAirWaybills"] == ["HAWB-OLD", "HAWB-NEW"]
        assert "status" not in stored
        assert "updatedAt" in stored
    finally:
        service.stop()
