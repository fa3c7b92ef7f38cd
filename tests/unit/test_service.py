"""
Unit tests for CargoService against the in-memory store.
"""

from datetime import datetime, timezone

import pytest

from cargo_tracker.app.auth import AnonymousIdentityProvider, AuthenticationError, IdentityProvider
from cargo_tracker.app.forms import CargoDraft
from cargo_tracker.app.service import (
    MISSING_CUSTOM_STATUS_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    MISSING_ID_MESSAGE,
    NOT_READY_MESSAGE,
    CargoService,
)
from cargo_tracker.app.state import MessageKind, View
from cargo_tracker.core.records import StatusSelection
from cargo_tracker.observability.metrics import REGISTRY, get_counter_value, store_operations_total
from cargo_tracker.store.errors import StoreUnavailableError
from cargo_tracker.store.memory import InMemoryCargoStore


class RefusingIdentity(IdentityProvider):
    def sign_in(self) -> str:
        raise AuthenticationError("anonymous sign-in disabled")


class UnavailableStore(InMemoryCargoStore):
    """Accepts reads, rejects every write."""

    def _create(self, document):
        raise StoreUnavailableError("refused", user_message="The cargo database is unavailable.")

    def _update(self, record_id, document):
        raise StoreUnavailableError("refused", user_message="The cargo database is unavailable.")

    def _delete(self, record_id):
        raise StoreUnavailableError("refused", user_message="The cargo database is unavailable.")


class BrokenStore(InMemoryCargoStore):
    """Fails every write with an error that is not a StoreError."""

    def _create(self, document):
        raise RuntimeError("disk on fire")

    def _update(self, record_id, document):
        raise RuntimeError("disk on fire")

    def _delete(self, record_id):
        raise RuntimeError("disk on fire")


@pytest.fixture
def store(canonical_document, legacy_document):
    return InMemoryCargoStore(documents=[canonical_document, legacy_document])


@pytest.fixture
def service(store, fixed_now):
    service = CargoService(store, AnonymousIdentityProvider("user-1"), now=lambda: fixed_now)
    service.start()
    yield service
    service.stop()


@pytest.fixture
def draft():
    return CargoDraft(
        consignee="Zenith Cargo",
        consol_number="CONSOL-NEW",
        shipment_number="SHIP-NEW",
        master_air_waybill="555-12345678",
        house_air_waybills=["N1"],
        kll_number="KLL-NEW",
        pre_alert_date="2024-06-05",
        eta="2024-06-20T09:00",
        status_selection=StatusSelection.OTHER,
        custom_status="Booked",
    )


def stored(store, record_id):
    return next(d for d in store.snapshot() if d["id"] == record_id)


class TestStart:
    """Tests for sign-in and subscription"""

    def test_start_loads_sorted_records(self, service):
        state = service.state
        assert state.user_id == "user-1"
        assert state.auth_ready is True
        assert state.is_loading is False
        assert [r.consignee for r in state.records] == ["Acme Freight", "John Doe Logistics"]

    def test_legacy_record_normalized(self, service):
        legacy = next(r for r in service.state.records if r.id == "rec-legacy")
        assert legacy.house_air_waybills == ["HAWB-OLD"]

    def test_auth_failure(self, store):
        service = CargoService(store, RefusingIdentity())
        service.start()
        assert service.state.auth_ready is True
        assert service.state.is_loading is False
        assert service.state.message.message == "Authentication failed: anonymous sign-in disabled"
        assert service.state.records == []

    def test_missing_store(self):
        service = CargoService(None, AnonymousIdentityProvider())
        service.start()
        assert service.state.message.message == NOT_READY_MESSAGE
        assert service.state.is_loading is False

    def test_load_failure(self):
        class DownStore(InMemoryCargoStore):
            def snapshot(self):
                raise StoreUnavailableError("refused", user_message="The cargo database is unavailable.")

        service = CargoService(DownStore(), AnonymousIdentityProvider())
        service.start()
        assert service.state.message.message == "Failed to load cargo items: The cargo database is unavailable."

    def test_stop_unsubscribes(self, service, store):
        service.stop()
        store.create({"consignee": "Later"})
        assert len(service.state.records) == 2

    def test_listener_notified(self, service):
        seen = []
        service.add_listener(seen.append)
        service.dismiss_message()
        assert seen == [service.state]


class TestSearchAndAlerts:
    """Tests for search and urgent ids"""

    def test_search_all_fields(self, service):
        assert [r.id for r in service.search("consol")] == ["rec-1"]

    def test_search_one_field(self, service):
        assert [r.id for r in service.search("c-100", "consolNumber")] == ["rec-legacy"]
        assert service.search("acme", "consolNumber") == []

    def test_urgent_ids(self, service):
        # rec-1 is due on the clock's day; rec-legacy is completed
        assert service.urgent_ids() == ["rec-1"]

    def test_alerts_follow_the_clock(self, canonical_document):
        clock = [datetime(2024, 6, 9, 12, 0, tzinfo=timezone.utc)]
        store = InMemoryCargoStore("alerts-clock", documents=[canonical_document])
        service = CargoService(store, AnonymousIdentityProvider(), now=lambda: clock[0])
        service.start()
        gauge = {"collection": "alerts-clock"}

        assert service.refresh_alerts() == []
        assert REGISTRY.get_sample_value("cargo_urgent_eta_records", gauge) == 0

        clock[0] = datetime(2024, 6, 10, 0, 0, 5, tzinfo=timezone.utc)
        assert service.refresh_alerts() == ["rec-1"]
        assert REGISTRY.get_sample_value("cargo_urgent_eta_records", gauge) == 1


class TestSubmit:
    """Tests for adding and updating through the form"""

    def test_add(self, service, store, draft, fixed_now):
        assert service.submit(draft) is True
        state = service.state
        assert state.message.kind is MessageKind.SUCCESS
        assert state.message.message == "Cargo added successfully!"
        assert state.view is View.LIST
        added = next(r for r in state.records if r.consignee == "Zenith Cargo")
        document = stored(store, added.id)
        assert document["userId"] == "user-1"
        assert document["createdAt"] == fixed_now.isoformat()
        assert document["currentStatus"] == "Booked"
        assert "updatedAt" not in document

    def test_add_counts_success(self, service, draft):
        before = get_counter_value(store_operations_total, operation="create", status="success")
        service.submit(draft)
        assert get_counter_value(store_operations_total, operation="create", status="success") == before + 1

    def test_missing_custom_status(self, service, store, draft):
        draft.custom_status = "  "
        assert service.submit(draft) is False
        assert service.state.message.message == MISSING_CUSTOM_STATUS_MESSAGE
        assert len(store.snapshot()) == 2

    def test_missing_fields(self, service, store, draft):
        draft.kll_number = ""
        draft.house_air_waybills = []
        assert service.submit(draft) is False
        assert service.state.message.message == MISSING_FIELDS_MESSAGE
        assert len(store.snapshot()) == 2

    def test_blank_house_air_waybills_rejected(self, service, draft):
        draft.house_air_waybills = ["", "  "]
        assert service.submit(draft) is False
        assert service.state.message.message == MISSING_FIELDS_MESSAGE

    def test_not_ready_before_start(self, store, draft):
        service = CargoService(store, AnonymousIdentityProvider())
        assert service.submit(draft) is False
        assert service.state.message.message == NOT_READY_MESSAGE

    def test_add_failure(self, draft):
        service = CargoService(UnavailableStore(), AnonymousIdentityProvider())
        service.start()
        assert service.submit(draft) is False
        assert service.state.message.kind is MessageKind.ERROR
        assert service.state.message.message == "Error adding cargo: The cargo database is unavailable."
        assert service.state.is_loading is False

    def test_unexpected_add_error_clears_loading(self, draft):
        service = CargoService(BrokenStore(), AnonymousIdentityProvider())
        service.start()
        with pytest.raises(RuntimeError):
            service.submit(draft)
        assert service.state.is_loading is False
        assert service.state.message.kind is MessageKind.ERROR
        assert service.state.message.message == "Error adding cargo: disk on fire"

    def test_update(self, service, store, fixed_now):
        record = next(r for r in service.state.records if r.id == "rec-1")
        draft = CargoDraft.from_record(record)
        draft.status_selection = StatusSelection.COMPLETED
        assert service.submit(draft) is True
        assert service.state.message.message == "Cargo updated successfully!"
        document = stored(store, "rec-1")
        assert document["currentStatus"] == "Completed"
        assert document["updatedAt"] == fixed_now.isoformat()
        assert "rec-1" not in service.urgent_ids()

    def test_update_drops_legacy_status(self, service, store):
        record = next(r for r in service.state.records if r.id == "rec-legacy")
        assert service.submit(CargoDraft.from_record(record)) is True
        document = stored(store, "rec-legacy")
        assert "status" not in document
        assert "name" not in document
        assert document["consignee"] == "Acme Freight"
        assert document["houseAirWaybills"] == ["HAWB-OLD"]

    def test_update_unknown_record(self, service, valid_record):
        record = valid_record.model_copy(update={"id": "gone"})
        assert service.update(record) is False
        assert service.state.message.message == "Error updating cargo: No cargo item with id gone exists."

    def test_update_without_id(self, service, valid_record):
        record = valid_record.model_copy(update={"id": None})
        assert service.update(record) is False
        assert service.state.message.message == MISSING_ID_MESSAGE

    def test_update_failure(self, valid_record):
        service = CargoService(UnavailableStore(documents=[{"id": "rec-1"}]), AnonymousIdentityProvider())
        service.start()
        assert service.update(valid_record) is False
        assert service.state.message.message == "Error updating cargo: The cargo database is unavailable."

    def test_unexpected_update_error_clears_loading(self, valid_record):
        service = CargoService(BrokenStore(documents=[{"id": "rec-1"}]), AnonymousIdentityProvider())
        service.start()
        with pytest.raises(RuntimeError):
            service.update(valid_record)
        assert service.state.is_loading is False
        assert service.state.message.message == "Error updating cargo: disk on fire"


class TestDelete:
    """Tests for the confirm-then-delete flow"""

    def test_confirmed_delete(self, service, store):
        service.request_delete("rec-1")
        assert service.state.message.kind is MessageKind.CONFIRM
        assert service.confirm() is True
        assert service.state.message.message == "Cargo deleted successfully!"
        assert [d["id"] for d in store.snapshot()] == ["rec-legacy"]
        assert [r.id for r in service.state.records] == ["rec-legacy"]

    def test_delete_releases_record_lock(self, service, valid_record):
        assert service.submit(CargoDraft.from_record(valid_record)) is True
        assert "rec-1" in service._record_locks
        assert service.delete("rec-1") is True
        assert "rec-1" not in service._record_locks
        assert service.delete("gone") is False
        assert service._record_locks == {}

    def test_cancelled_delete(self, service, store):
        service.request_delete("rec-1")
        service.dismiss_message()
        assert service.confirm() is False
        assert len(store.snapshot()) == 2

    def test_confirm_without_request(self, service):
        assert service.confirm() is False

    def test_delete_unknown(self, service):
        assert service.delete("gone") is False
        assert service.state.message.message == "Error deleting cargo: No cargo item with id gone exists."

    def test_delete_failure(self):
        service = CargoService(UnavailableStore(documents=[{"id": "rec-1"}]), AnonymousIdentityProvider())
        service.start()
        assert service.delete("rec-1") is False
        assert service.state.message.message == "Error deleting cargo: The cargo database is unavailable."

    def test_unexpected_delete_error_clears_loading(self):
        service = CargoService(BrokenStore(documents=[{"id": "rec-1"}]), AnonymousIdentityProvider())
        service.start()
        with pytest.raises(RuntimeError):
            service.delete("rec-1")
        assert service.state.is_loading is False
        assert service.state.message.message == "Error deleting cargo: disk on fire"
        assert service._record_locks == {}
