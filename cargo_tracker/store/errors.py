"""
Errors raised by cargo store backends.

Each error carries a user_message suitable for showing as-is.
"""


class StoreError(Exception):
    """Base class for failed store operations."""

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message


class StoreUnavailableError(StoreError):
    """Transient failure: the store could not be reached or refused the session."""


class RecordNotFoundError(StoreError):
    """Permanent failure: no record exists with the given id."""

    def __init__(self, record_id: str):
        super().__init__(
            f"Cargo record not found: {record_id}",
            user_message=f"No cargo item with id {record_id} exists.",
        )
        self.record_id = record_id
