"""
Application state and its reducer.

AppState is an immutable value; every change goes through
reduce(state, action), which returns a new state and has no side effects.
Side effects (sign-in, store writes) live in CargoService, which
dispatches actions describing their outcome.
"""

from enum import Enum

from pydantic import BaseModel, Field

from cargo_tracker.core.models import CargoRecord, FieldName
from cargo_tracker.core.records import filter_records


class View(str, Enum):
    LIST = "list"
    ADD = "add"
    EDIT = "edit"


class MessageKind(str, Enum):
    ERROR = "error"
    SUCCESS = "success"
    CONFIRM = "confirm"


class MessageBox(BaseModel):
    """A notification or confirmation shown to the user."""

    message: str
    kind: MessageKind
    pending_delete_id: str | None = None

    class Config:
        frozen = True


class AppState(BaseModel):
    """
    Everything the cargo screen shows.

    Attributes:
        view: Which screen is active
        editing: Record open in the edit form
        search_query: Text typed in the search box
        filter_field: Field the search is restricted to (None for all)
        message: Open message box, if any
        is_loading: Whether a snapshot or write is pending
        records: Latest normalized snapshot, sorted by consignee
        user_id: Signed-in identity
        auth_ready: Whether sign-in has finished (successfully or not)
    """

    view: View = View.LIST
    editing: CargoRecord | None = None
    search_query: str = ""
    filter_field: FieldName | None = None
    message: MessageBox | None = None
    is_loading: bool = True
    records: list[CargoRecord] = Field(default_factory=list)
    user_id: str | None = None
    auth_ready: bool = False

    class Config:
        frozen = True


# =======================
# ACTIONS
# =======================

class Action(BaseModel):
    class Config:
        frozen = True


class SignedIn(Action):
    user_id: str


class AuthFailed(Action):
    message: str


class SnapshotReceived(Action):
    records: list[CargoRecord]


class LoadFailed(Action):
    message: str


class SearchChanged(Action):
    query: str


class FilterChanged(Action):
    field: FieldName | str | None = None


class ShowList(Action):
    pass


class ShowAdd(Action):
    pass


class StartEdit(Action):
    record: CargoRecord


class WriteStarted(Action):
    pass


class WriteSucceeded(Action):
    message: str


class WriteFailed(Action):
    message: str


class ShowError(Action):
    message: str


class RequestDelete(Action):
    record_id: str


class DismissMessage(Action):
    pass


# =======================
# REDUCER
# =======================

def _error(message: str) -> MessageBox:
    return MessageBox(message=message, kind=MessageKind.ERROR)


def reduce(state: AppState, action: Action) -> AppState:
    """
    Apply an action to a state.

    Args:
        state: Current state (not modified)
        action: What happened

    Returns:
        The next state

    Raises:
        TypeError: If the action type is not known
    """
    if isinstance(action, SignedIn):
        return state.model_copy(update={"user_id": action.user_id, "auth_ready": True})

    if isinstance(action, AuthFailed):
        return state.model_copy(update={
            "auth_ready": True,
            "is_loading": False,
            "message": _error(action.message),
        })

    if isinstance(action, SnapshotReceived):
        editing = state.editing
        if editing is not None and editing.id is not None:
            # Keep the open form on the latest version of its record
            editing = next((r for r in action.records if r.id == editing.id), editing)
        return state.model_copy(update={
            "records": list(action.records),
            "editing": editing,
            "is_loading": False,
        })

    if isinstance(action, LoadFailed):
        return state.model_copy(update={"is_loading": False, "message": _error(action.message)})

    if isinstance(action, SearchChanged):
        return state.model_copy(update={"search_query": action.query})

    if isinstance(action, FilterChanged):
        return state.model_copy(update={"filter_field": FieldName.parse(action.field)})

    if isinstance(action, ShowList):
        return state.model_copy(update={"view": View.LIST, "editing": None})

    if isinstance(action, ShowAdd):
        return state.model_copy(update={"view": View.ADD, "editing": None})

    if isinstance(action, StartEdit):
        return state.model_copy(update={"view": View.EDIT, "editing": action.record})

    if isinstance(action, WriteStarted):
        return state.model_copy(update={"is_loading": True})

    if isinstance(action, WriteSucceeded):
        return state.model_copy(update={
            "is_loading": False,
            "view": View.LIST,
            "editing": None,
            "message": MessageBox(message=action.message, kind=MessageKind.SUCCESS),
        })

    if isinstance(action, WriteFailed):
        return state.model_copy(update={"is_loading": False, "message": _error(action.message)})

    if isinstance(action, ShowError):
        return state.model_copy(update={"message": _error(action.message)})

    if isinstance(action, RequestDelete):
        return state.model_copy(update={"message": MessageBox(
            message="Are you sure you want to delete this cargo item?",
            kind=MessageKind.CONFIRM,
            pending_delete_id=action.record_id,
        )})

    if isinstance(action, DismissMessage):
        return state.model_copy(update={"message": None})

    raise TypeError(f"Unknown action: {type(action).__name__}")


# =======================
# DERIVED VALUES
# =======================

def visible_records(state: AppState) -> list[CargoRecord]:
    """Records matching the current search, in display order."""
    return filter_records(state.records, state.search_query, state.filter_field)


def empty_list_message(state: AppState) -> str | None:
    """Placeholder text when nothing is visible, else None."""
    if visible_records(state):
        return None
    if state.search_query:
        return f'No matching cargo found for "{state.search_query}".'
    return "No cargo items yet. Add one to get started!"
