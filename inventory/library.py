import logging
import sqlite3
from functools import wraps
from typing import List, Optional

from inventory.book import Book
from inventory.config import settings
from inventory.database import connect, initialize_database, transaction
from inventory.errors import (
    AllCopiesReturned,
    ConstraintViolation,
    NoCopiesAvailable,
    NotFound,
    StorageUnavailable,
)
from inventory.outcome import (
    MSG_ALL_RETURNED,
    MSG_BORROWED,
    MSG_COPY_ADDED,
    MSG_CREATED,
    MSG_DELETED,
    MSG_DUPLICATE_ISBN,
    MSG_EMPTY_ISBN,
    MSG_NO_COPIES,
    MSG_NOT_FOUND,
    MSG_RETURNED,
    MSG_STORAGE,
    MSG_UPDATED,
    Outcome,
    OutcomeStatus,
)

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, author, isbn, total_copies, available_copies, created_at"


def storage_boundary(func):
    """Turn storage failures inside a mutating operation into an Outcome."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except (StorageUnavailable, sqlite3.Error) as e:
            logger.error(f"{func.__name__} failed: {e}")
            return Outcome(OutcomeStatus.STORAGE_UNAVAILABLE, MSG_STORAGE)
    return wrapper


class Library:
    """Manages the book inventory and keeps the copy counters consistent."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        # Raises StorageUnavailable; callers treat that as a failed startup.
        self.db_file = initialize_database(db_file or settings.db_file)
        self._closed = False

    def __enter__(self) -> "Library":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Connections are opened per call, so closing only blocks further use."""
        self._closed = True

    def _connect(self):
        if self._closed:
            raise StorageUnavailable("Library has been closed.")
        return connect(self.db_file)

    # ------------------------- Queries ------------------------- #
    def list_books(self) -> List[Book]:
        """All books in insertion order (fresh on every call)."""
        try:
            with self._connect() as conn:
                rows = conn.execute(f"SELECT {_COLUMNS} FROM books ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot list books: {e}") from e
        return [Book.from_dict(dict(row)) for row in rows]

    def search_books(self, query: str) -> List[Book]:
        """Books whose title, author or ISBN contains ``query``, ignoring case."""
        needle = (query or "").casefold()
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_COLUMNS} FROM books
                    WHERE instr(casefold(title), ?) > 0
                       OR instr(casefold(author), ?) > 0
                       OR instr(casefold(isbn), ?) > 0
                    ORDER BY id
                    """,
                    (needle, needle, needle),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot search books: {e}") from e
        return [Book.from_dict(dict(row)) for row in rows]

    def find_book(self, book_id: int) -> Optional[Book]:
        try:
            with self._connect() as conn:
                row = self._fetch(conn, book_id)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot read book {book_id}: {e}") from e
        return Book.from_dict(dict(row)) if row else None

    # ------------------------- Mutations ------------------------- #
    @storage_boundary
    def add_or_add_copy(self, title: str, author: str, isbn: str) -> Outcome:
        """Register one more copy of ``isbn``, creating the book on first sight."""
        isbn = self._clean(isbn)
        try:
            book_id, created = self._add_copy(self._clean(title), self._clean(author), isbn)
        except ConstraintViolation as e:
            logger.warning(f"Rejected add for ISBN {isbn!r}: {e}")
            return Outcome(OutcomeStatus.CONSTRAINT_VIOLATION, str(e))

        if created:
            logger.info(f"Created book {book_id} (ISBN {isbn})")
            return Outcome(OutcomeStatus.CREATED, MSG_CREATED, book_id)
        logger.info(f"Added a copy to book {book_id} (ISBN {isbn})")
        return Outcome(OutcomeStatus.COPY_ADDED, MSG_COPY_ADDED, book_id)

    @storage_boundary
    def update_details(self, book_id: int, title: str, author: str, isbn: str) -> Outcome:
        """Overwrite title, author and ISBN; copy counters stay as they are."""
        isbn = self._clean(isbn)
        try:
            self._update(book_id, self._clean(title), self._clean(author), isbn)
        except NotFound:
            logger.warning(f"Update of unknown book {book_id}")
            return Outcome(OutcomeStatus.NOT_FOUND, MSG_NOT_FOUND, book_id)
        except ConstraintViolation as e:
            logger.warning(f"Rejected update of book {book_id}: {e}")
            return Outcome(OutcomeStatus.CONSTRAINT_VIOLATION, str(e), book_id)

        logger.info(f"Updated details of book {book_id}")
        return Outcome(OutcomeStatus.UPDATED, MSG_UPDATED, book_id)

    @storage_boundary
    def delete_book(self, book_id: int) -> Outcome:
        """Remove a book permanently. Unknown ids are a silent no-op."""
        with self._connect() as conn, transaction(conn):
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted book {book_id}")
            return Outcome(OutcomeStatus.DELETED, MSG_DELETED, book_id)
        logger.warning(f"Delete of unknown book {book_id}")
        return Outcome(OutcomeStatus.NOT_FOUND, MSG_DELETED, book_id)

    @storage_boundary
    def borrow_book(self, book_id: int) -> Outcome:
        try:
            self._borrow(book_id)
        except NotFound:
            logger.warning(f"Borrow of unknown book {book_id}")
            return Outcome(OutcomeStatus.NOT_FOUND, MSG_NO_COPIES, book_id)
        except NoCopiesAvailable:
            logger.warning(f"Borrow of book {book_id} with no copies left")
            return Outcome(OutcomeStatus.NO_COPIES_AVAILABLE, MSG_NO_COPIES, book_id)

        logger.info(f"Borrowed a copy of book {book_id}")
        return Outcome(OutcomeStatus.BORROWED, MSG_BORROWED, book_id)

    @storage_boundary
    def return_book(self, book_id: int) -> Outcome:
        try:
            self._return(book_id)
        except NotFound:
            logger.warning(f"Return of unknown book {book_id}")
            return Outcome(OutcomeStatus.NOT_FOUND, MSG_ALL_RETURNED, book_id)
        except AllCopiesReturned:
            logger.warning(f"Return of book {book_id} with no copies on loan")
            return Outcome(OutcomeStatus.ALL_RETURNED, MSG_ALL_RETURNED, book_id)

        logger.info(f"Returned a copy of book {book_id}")
        return Outcome(OutcomeStatus.RETURNED, MSG_RETURNED, book_id)

    # ------------------------- Guarded writes ------------------------- #
    def _add_copy(self, title: str, author: str, isbn: str):
        if not isbn:
            raise ConstraintViolation(MSG_EMPTY_ISBN)
        with self._connect() as conn, transaction(conn):
            row = conn.execute("SELECT id FROM books WHERE isbn = ?", (isbn,)).fetchone()
            if row:
                conn.execute(
                    "UPDATE books SET total_copies = total_copies + 1, "
                    "available_copies = available_copies + 1 WHERE id = ?",
                    (row["id"],),
                )
                return row["id"], False
            cursor = conn.execute(
                "INSERT INTO books (title, author, isbn, total_copies, available_copies) "
                "VALUES (?, ?, ?, 1, 1)",
                (title, author, isbn),
            )
            return cursor.lastrowid, True

    def _update(self, book_id: int, title: str, author: str, isbn: str) -> None:
        if not isbn:
            raise ConstraintViolation(MSG_EMPTY_ISBN)
        with self._connect() as conn, transaction(conn):
            if self._fetch(conn, book_id) is None:
                raise NotFound(f"Book {book_id} not found.")
            try:
                conn.execute(
                    "UPDATE books SET title = ?, author = ?, isbn = ? WHERE id = ?",
                    (title, author, isbn, book_id),
                )
            except sqlite3.IntegrityError as e:
                raise ConstraintViolation(MSG_DUPLICATE_ISBN) from e

    def _borrow(self, book_id: int) -> None:
        with self._connect() as conn, transaction(conn):
            cursor = conn.execute(
                "UPDATE books SET available_copies = available_copies - 1 "
                "WHERE id = ? AND available_copies > 0",
                (book_id,),
            )
            if cursor.rowcount == 0:
                if self._fetch(conn, book_id) is None:
                    raise NotFound(f"Book {book_id} not found.")
                raise NoCopiesAvailable(f"Book {book_id} has no copies available.")

    def _return(self, book_id: int) -> None:
        with self._connect() as conn, transaction(conn):
            cursor = conn.execute(
                "UPDATE books SET available_copies = available_copies + 1 "
                "WHERE id = ? AND available_copies < total_copies",
                (book_id,),
            )
            if cursor.rowcount == 0:
                if self._fetch(conn, book_id) is None:
                    raise NotFound(f"Book {book_id} not found.")
                raise AllCopiesReturned(f"Book {book_id} has no copies on loan.")

    @staticmethod
    def _fetch(conn: sqlite3.Connection, book_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT {_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()

    # ------------------------- Utilities ------------------------- #
    @staticmethod
    def _clean(raw: Optional[str]) -> str:
        # ISBNs are stored as entered, minus surrounding whitespace
        if raw is None:
            return ""
        return raw.strip()
