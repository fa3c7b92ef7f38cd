"""
Status selection helpers.

The entry form offers two choices: the terminal "Completed" status, or
"Other (specify)" with free text. These helpers convert between that
selection and the single current_status string stored on a record.
"""

from enum import Enum

from cargo_tracker.core.models import TERMINAL_STATUS


class StatusSelection(str, Enum):
    COMPLETED = TERMINAL_STATUS
    OTHER = "Other (specify)"


def resolve_status(selection: StatusSelection | str, custom_status: str | None) -> str:
    """
    Resolve a form selection to the status string to store.

    Returns "" for an "Other" selection without custom text; the rule
    engine then reports currentStatus as missing.
    """
    if StatusSelection(selection) is StatusSelection.COMPLETED:
        return TERMINAL_STATUS
    return (custom_status or "").strip()


def split_status(current_status: str | None) -> tuple[StatusSelection, str]:
    """Initial (selection, custom text) for editing a record with this status."""
    if current_status == TERMINAL_STATUS:
        return StatusSelection.COMPLETED, ""
    return StatusSelection.OTHER, current_status or ""
