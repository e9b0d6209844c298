from __future__ import annotations

from dataclasses import dataclass


class Book:
    """A single title in the inventory together with its copy counters."""

    def __init__(self, title: str, author: str, isbn: str, id: int | None = None,
                 total_copies: int = 1, available_copies: int = 1,
                 created_at: str | None = None) -> None:
        self.id = id
        self.title = title.strip()
        self.author = author.strip()
        self.isbn = isbn.strip()
        self.total_copies = total_copies
        self.available_copies = available_copies
        self.created_at = created_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def __repr__(self) -> str:
        return (f"Book(id={self.id!r}, isbn={self.isbn!r}, "
                f"available={self.available_copies}/{self.total_copies})")

    @property
    def on_loan(self) -> int:
        return self.total_copies - self.available_copies

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "total_copies": self.total_copies,
            "available_copies": self.available_copies,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data.get("id"),
            title=data["title"],
            author=data["author"],
            isbn=data["isbn"],
            total_copies=data.get("total_copies", 1),
            available_copies=data.get("available_copies", 1),
            created_at=data.get("created_at"),
        )


@dataclass
class BookInput:
    """Form values collected by the shell before calling the store."""

    title: str = ""
    author: str = ""
    isbn: str = ""
