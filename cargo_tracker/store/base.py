"""
CargoStore: the capability the application needs from a document store.

A store holds raw documents for one collection. Readers subscribe and are
pushed the full snapshot right away and again after every successful
write. Writers create, update and delete documents by id.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from cargo_tracker.observability.logger import get_logger
from cargo_tracker.store.errors import StoreError

logger = get_logger(__name__)

RawDocument = dict[str, Any]
SnapshotCallback = Callable[[list[RawDocument]], None]
ErrorCallback = Callable[[StoreError], None]


class Subscription:
    """Handle returned by CargoStore.subscribe()."""

    def __init__(self, store: "CargoStore", on_update: SnapshotCallback, on_error: ErrorCallback | None):
        self._store = store
        self.on_update = on_update
        self.on_error = on_error
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._store._remove_subscription(self)


class CargoStore(ABC):
    """
    Abstract document store for cargo records.

    Subclasses implement snapshot() and the _create/_update/_delete
    primitives; this class handles subscriber fan-out.
    """

    def __init__(self, collection_path: str):
        self.collection_path = collection_path
        self._subscriptions: list[Subscription] = []
        self._subscriptions_lock = threading.Lock()

    @abstractmethod
    def snapshot(self) -> list[RawDocument]:
        """
        Current documents of the collection.

        Each document includes its "id". Order is backend-defined.

        Raises:
            StoreError: If the store cannot be read
        """

    @abstractmethod
    def _create(self, document: RawDocument) -> str:
        pass

    @abstractmethod
    def _update(self, record_id: str, document: RawDocument) -> None:
        pass

    @abstractmethod
    def _delete(self, record_id: str) -> None:
        pass

    def create(self, document: RawDocument) -> str:
        """
        Store a new document and return its store-assigned id.

        Any "id" key in the document is ignored.
        """
        data = {k: v for k, v in document.items() if k != "id"}
        record_id = self._create(data)
        self._publish()
        return record_id

    def update(self, record_id: str, document: RawDocument) -> None:
        """
        Replace every field of an existing document except its id.

        Raises:
            RecordNotFoundError: If no document has this id
        """
        data = {k: v for k, v in document.items() if k != "id"}
        self._update(record_id, data)
        self._publish()

    def delete(self, record_id: str) -> None:
        """
        Remove a document.

        Raises:
            RecordNotFoundError: If no document has this id
        """
        self._delete(record_id)
        self._publish()

    def subscribe(self, on_update: SnapshotCallback, on_error: ErrorCallback | None = None) -> Subscription:
        """
        Register for snapshots; the current snapshot is delivered immediately.

        Args:
            on_update: Called with the full list of raw documents
            on_error: Called with the StoreError when a snapshot cannot be read

        Returns:
            Subscription whose unsubscribe() stops delivery
        """
        subscription = Subscription(self, on_update, on_error)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)
        self._deliver(subscription)
        return subscription

    def refresh(self) -> None:
        """Push a fresh snapshot to every subscriber (picks up outside writes)."""
        self._publish()

    def _remove_subscription(self, subscription: Subscription) -> None:
        with self._subscriptions_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _deliver(self, subscription: Subscription, documents: list[RawDocument] | None = None) -> None:
        try:
            if documents is None:
                documents = self.snapshot()
        except StoreError as e:
            logger.error(
                "Failed to read cargo snapshot",
                extra={"collection": self.collection_path, "error_message": str(e)},
            )
            if subscription.on_error is not None:
                subscription.on_error(e)
            return
        subscription.on_update([dict(doc) for doc in documents])

    def _publish(self) -> None:
        with self._subscriptions_lock:
            subscriptions = [s for s in self._subscriptions if s.active]
        if not subscriptions:
            return
        try:
            documents = self.snapshot()
        except StoreError as e:
            logger.error(
                "Failed to refresh cargo snapshot after write",
                extra={"collection": self.collection_path, "error_message": str(e)},
            )
            for subscription in subscriptions:
                if subscription.on_error is not None:
                    subscription.on_error(e)
            return
        for subscription in subscriptions:
            self._deliver(subscription, documents)
