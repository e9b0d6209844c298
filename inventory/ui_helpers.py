import json
from typing import List

from rich.console import Console
from rich.table import Table

from inventory.book import Book
from inventory.config import settings
from inventory.outcome import Outcome

OUTPUT_MODES = {"plain", "json", "rich"}

_console = Console()
_output_mode = settings.output_mode if settings.output_mode in OUTPUT_MODES else "plain"


def set_output_mode(mode: str) -> None:
    global _output_mode
    mode = (mode or "").lower().strip()
    if mode in OUTPUT_MODES:
        _output_mode = mode


def get_output_mode() -> str:
    return _output_mode


def print_list_result(books: List[Book]) -> None:
    """Print a snapshot of the collection in the current output mode.
    - plain: 'ID | ISBN | Title by Author | available/total' lines, or 'No books in library.'
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print("No books in library.")
        return

    if mode == "rich":
        table = Table(title="📚 Inventory", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Available", justify="right")
        for b in books:
            style = "red" if b.available_copies == 0 else "green"
            table.add_row(str(b.id), b.isbn, b.title, b.author,
                          f"[{style}]{b.available_copies}/{b.total_copies}[/]")
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} | {b.isbn} | {b.title} by {b.author} | {b.available_copies}/{b.total_copies}")


def print_outcome(outcome: Outcome) -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps({
            "status": outcome.status.value,
            "message": outcome.message,
            "book_id": outcome.book_id,
        }, ensure_ascii=False))
    elif mode == "rich":
        style = "green" if outcome.ok else "yellow"
        _console.print(f"[{style}]{outcome.message}[/]")
    else:
        print(outcome.message)
