"""
In-memory cargo store for local development and tests.
"""

import copy
import threading
import uuid

from cargo_tracker.store.base import CargoStore, RawDocument
from cargo_tracker.store.errors import RecordNotFoundError


class InMemoryCargoStore(CargoStore):
    """
    Thread-safe dict-backed store. Ids are random hex strings.

    Snapshots list documents in insertion order.
    """

    def __init__(self, collection_path: str = "memory", documents: list[RawDocument] | None = None):
        """
        Initialize the store.

        Args:
            collection_path: Collection name, informational only
            documents: Seed documents; those without an "id" get one assigned
        """
        super().__init__(collection_path)
        self._documents: dict[str, RawDocument] = {}
        self._lock = threading.Lock()
        for document in documents or []:
            record_id = document.get("id") or uuid.uuid4().hex
            self._documents[record_id] = {k: v for k, v in document.items() if k != "id"}

    def snapshot(self) -> list[RawDocument]:
        with self._lock:
            return [
                {"id": record_id, **copy.deepcopy(data)}
                for record_id, data in self._documents.items()
            ]

    def _create(self, document: RawDocument) -> str:
        record_id = uuid.uuid4().hex
        with self._lock:
            self._documents[record_id] = copy.deepcopy(document)
        return record_id

    def _update(self, record_id: str, document: RawDocument) -> None:
        with self._lock:
            if record_id not in self._documents:
                raise RecordNotFoundError(record_id)
            self._documents[record_id] = copy.deepcopy(document)

    def _delete(self, record_id: str) -> None:
        with self._lock:
            if record_id not in self._documents:
                raise RecordNotFoundError(record_id)
            del self._documents[record_id]
