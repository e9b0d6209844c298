from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeStatus(str, Enum):
    CREATED = "created"
    COPY_ADDED = "copy_added"
    UPDATED = "updated"
    DELETED = "deleted"
    BORROWED = "borrowed"
    RETURNED = "returned"
    NOT_FOUND = "not_found"
    NO_COPIES_AVAILABLE = "no_copies_available"
    ALL_RETURNED = "all_returned"
    CONSTRAINT_VIOLATION = "constraint_violation"
    STORAGE_UNAVAILABLE = "storage_unavailable"


# Statuses that mean the requested change was applied.
_SUCCESS = {
    OutcomeStatus.CREATED,
    OutcomeStatus.COPY_ADDED,
    OutcomeStatus.UPDATED,
    OutcomeStatus.DELETED,
    OutcomeStatus.BORROWED,
    OutcomeStatus.RETURNED,
}

MSG_CREATED = "New book created."
MSG_COPY_ADDED = "Copy added to existing book."
MSG_UPDATED = "Book details updated."
MSG_DELETED = "Book deleted permanently."
MSG_BORROWED = "Book borrowed."
MSG_RETURNED = "Book returned."
MSG_NO_COPIES = "No copies available."
MSG_ALL_RETURNED = "All copies already returned."
MSG_NOT_FOUND = "Error: book not found."
MSG_DUPLICATE_ISBN = "Error: ISBN already exists for another book."
MSG_EMPTY_ISBN = "Error: ISBN cannot be empty."
MSG_STORAGE = "Error: storage unavailable."


@dataclass(frozen=True)
class Outcome:
    """Result of a mutating inventory operation, ready for display."""

    status: OutcomeStatus
    message: str
    book_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status in _SUCCESS

    def __str__(self) -> str:
        return self.message
