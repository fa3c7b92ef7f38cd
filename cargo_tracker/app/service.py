"""
CargoService: connects identity, store and application state.

The service owns the side effects. It signs in, subscribes to the store,
runs each snapshot through normalization and sorting, validates drafts,
performs writes, and reports every outcome as a reducer action so the
state always carries a user-displayable message.
"""

import threading
from collections.abc import Callable
from datetime import datetime

from cargo_tracker.app.auth import AuthenticationError, IdentityProvider
from cargo_tracker.app.forms import CargoDraft
from cargo_tracker.app.state import (
    Action,
    AppState,
    AuthFailed,
    DismissMessage,
    FilterChanged,
    LoadFailed,
    RequestDelete,
    SearchChanged,
    ShowError,
    SignedIn,
    SnapshotReceived,
    WriteFailed,
    WriteStarted,
    WriteSucceeded,
    reduce,
    visible_records,
)
from cargo_tracker.core.models import CargoRecord, FieldName
from cargo_tracker.core.records import normalize_snapshot, sort_by_consignee, urgent_record_ids
from cargo_tracker.core.rules import RuleEngine
from cargo_tracker.observability.logger import get_logger, log_operation
from cargo_tracker.observability.metrics import (
    record_store_operation,
    set_gauge,
    snapshot_size,
    store_operation_duration_seconds,
    track_duration,
    urgent_records,
)
from cargo_tracker.store.base import CargoStore, RawDocument, Subscription
from cargo_tracker.store.errors import StoreError

logger = get_logger(__name__)

NOT_READY_MESSAGE = "Database not ready or user not authenticated."
MISSING_CUSTOM_STATUS_MESSAGE = "Please specify the custom status."
MISSING_FIELDS_MESSAGE = "Please fill in all required fields, including at least one HAWB#."
MISSING_ID_MESSAGE = "Error: Cannot update cargo. Missing ID."


def _local_now() -> datetime:
    return datetime.now().astimezone()


class CargoService:
    """
    Application service for the cargo list.

    Usage:
        service = CargoService(InMemoryCargoStore(), AnonymousIdentityProvider())
        service.start()
        service.submit(draft)
        service.state.records
    """

    def __init__(
        self,
        store: CargoStore | None,
        identity: IdentityProvider,
        rule_engine: RuleEngine | None = None,
        now: Callable[[], datetime] = _local_now,
    ):
        """
        Initialize the service.

        Args:
            store: Document store; None models a store that failed to initialize
            identity: Identity provider used by start()
            rule_engine: Validator for submitted records (default rules if None)
            now: Clock used for timestamps and ETA alerts
        """
        self.store = store
        self.identity = identity
        self.rule_engine = rule_engine or RuleEngine()
        self.now = now
        self.state = AppState()
        self._subscription: Subscription | None = None
        self._listeners: list[Callable[[AppState], None]] = []
        self._state_lock = threading.RLock()
        self._record_locks: dict[str, threading.Lock] = {}
        self._record_locks_guard = threading.Lock()

    # =======================
    # STATE
    # =======================

    def dispatch(self, action: Action) -> AppState:
        """Apply an action and notify listeners of the new state."""
        with self._state_lock:
            self.state = reduce(self.state, action)
            state = self.state
        for listener in list(self._listeners):
            listener(state)
        return state

    def add_listener(self, listener: Callable[[AppState], None]) -> None:
        self._listeners.append(listener)

    def search(self, query: str, field: FieldName | str | None = None) -> list[CargoRecord]:
        """Update the search box and filter, returning the visible records."""
        self.dispatch(SearchChanged(query=query))
        self.dispatch(FilterChanged(field=field))
        return visible_records(self.state)

    def visible_records(self) -> list[CargoRecord]:
        return visible_records(self.state)

    def urgent_ids(self) -> list[str]:
        """Ids of visible records whose ETA alert is on right now."""
        return urgent_record_ids(self.visible_records(), self.now())

    def dismiss_message(self) -> None:
        self.dispatch(DismissMessage())

    # =======================
    # LIFECYCLE
    # =======================

    def start(self) -> None:
        """Sign in, then subscribe to the store's live snapshots."""
        try:
            user_id = self.identity.sign_in()
        except AuthenticationError as e:
            logger.error("Error signing in anonymously", exc_info=True)
            self.dispatch(AuthFailed(message=f"Authentication failed: {e}"))
            return

        self.dispatch(SignedIn(user_id=user_id))
        logger.info("Signed in", extra={"user_id": user_id})

        if self.store is None:
            self.dispatch(LoadFailed(message=NOT_READY_MESSAGE))
            return

        self._subscription = self.store.subscribe(self._on_snapshot, self._on_snapshot_error)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def refresh_alerts(self) -> list[str]:
        """
        Re-evaluate ETA alerts against the clock and update the urgent gauge.

        Alerts change when the calendar day turns, not only when records do,
        so long-running callers should call this on every tick.

        Returns:
            Ids of every loaded record whose ETA alert is on right now
        """
        ids = urgent_record_ids(self.state.records, self.now())
        if self.store is not None:
            set_gauge(urgent_records, len(ids), collection=self.store.collection_path)
        return ids

    def _on_snapshot(self, documents: list[RawDocument]) -> None:
        records = sort_by_consignee(normalize_snapshot(documents))
        set_gauge(snapshot_size, len(records), collection=self.store.collection_path)
        self.dispatch(SnapshotReceived(records=records))
        self.refresh_alerts()

    def _on_snapshot_error(self, error: StoreError) -> None:
        self.dispatch(LoadFailed(message=f"Failed to load cargo items: {error.user_message}"))

    # =======================
    # WRITES
    # =======================

    def _ready(self) -> bool:
        if self.store is None or self.state.user_id is None:
            self.dispatch(ShowError(message=NOT_READY_MESSAGE))
            return False
        return True

    def _lock_for(self, record_id: str) -> threading.Lock:
        with self._record_locks_guard:
            return self._record_locks.setdefault(record_id, threading.Lock())

    def _forget_lock(self, record_id: str) -> None:
        # Another writer may still hold or wait on it
        with self._record_locks_guard:
            lock = self._record_locks.get(record_id)
            if lock is not None and not lock.locked():
                del self._record_locks[record_id]

    def submit(self, draft: CargoDraft) -> bool:
        """
        Validate a form draft and create or update its record.

        Returns:
            True if the record was written
        """
        if draft.missing_custom_status:
            self.dispatch(ShowError(message=MISSING_CUSTOM_STATUS_MESSAGE))
            return False

        record = draft.to_record()
        result = self.rule_engine.validate(record)
        if not result.passed:
            self.dispatch(ShowError(message=MISSING_FIELDS_MESSAGE))
            return False

        if record.id is not None:
            return self.update(record)
        return self.add(record)

    def add(self, record: CargoRecord) -> bool:
        """Create a record, stamping createdAt and the signed-in user id."""
        if not self._ready():
            return False

        document = record.model_copy(update={
            "user_id": self.state.user_id,
            "created_at": self.now().isoformat(),
        }).to_document()

        self.dispatch(WriteStarted())
        try:
            with log_operation("Creating cargo", logger=logger, collection=self.store.collection_path), \
                    track_duration(store_operation_duration_seconds, operation="create"):
                record_id = self.store.create(document)
        except StoreError as e:
            record_store_operation("create", success=False)
            self.dispatch(WriteFailed(message=f"Error adding cargo: {e.user_message}"))
            return False
        except Exception as e:
            record_store_operation("create", success=False)
            self.dispatch(WriteFailed(message=f"Error adding cargo: {e}"))
            raise

        record_store_operation("create", success=True)
        logger.info("Cargo added", extra={"record_id": record_id})
        self.dispatch(WriteSucceeded(message="Cargo added successfully!"))
        return True

    def update(self, record: CargoRecord) -> bool:
        """
        Replace a stored record, stamping updatedAt.

        The written document is the canonical shape, so a legacy "status"
        field on the stored document is dropped.
        """
        if not self._ready():
            return False

        if not record.id:
            logger.error("Cannot update cargo without an id")
            self.dispatch(ShowError(message=MISSING_ID_MESSAGE))
            return False

        document = record.model_copy(update={"updated_at": self.now().isoformat()}).to_document()

        self.dispatch(WriteStarted())
        try:
            with self._lock_for(record.id), \
                    log_operation("Updating cargo", logger=logger, record_id=record.id), \
                    track_duration(store_operation_duration_seconds, operation="update"):
                self.store.update(record.id, document)
        except StoreError as e:
            record_store_operation("update", success=False)
            self.dispatch(WriteFailed(message=f"Error updating cargo: {e.user_message}"))
            return False
        except Exception as e:
            record_store_operation("update", success=False)
            self.dispatch(WriteFailed(message=f"Error updating cargo: {e}"))
            raise

        record_store_operation("update", success=True)
        self.dispatch(WriteSucceeded(message="Cargo updated successfully!"))
        return True

    def request_delete(self, record_id: str) -> None:
        """Ask the user to confirm deleting a record."""
        self.dispatch(RequestDelete(record_id=record_id))

    def confirm(self) -> bool:
        """
        Carry out the pending confirmation (a delete).

        Returns:
            True if a record was deleted
        """
        message = self.state.message
        if message is None or message.pending_delete_id is None:
            return False
        self.dispatch(DismissMessage())
        return self.delete(message.pending_delete_id)

    def delete(self, record_id: str) -> bool:
        """Delete a stored record without asking."""
        if not self._ready():
            return False

        self.dispatch(WriteStarted())
        try:
            with self._lock_for(record_id), \
                    log_operation("Deleting cargo", logger=logger, record_id=record_id), \
                    track_duration(store_operation_duration_seconds, operation="delete"):
                self.store.delete(record_id)
        except StoreError as e:
            record_store_operation("delete", success=False)
            self.dispatch(WriteFailed(message=f"Error deleting cargo: {e.user_message}"))
            return False
        except Exception as e:
            record_store_operation("delete", success=False)
            self.dispatch(WriteFailed(message=f"Error deleting cargo: {e}"))
            raise
        finally:
            self._forget_lock(record_id)

        record_store_operation("delete", success=True)
        self.dispatch(WriteSucceeded(message="Cargo deleted successfully!"))
        return True
