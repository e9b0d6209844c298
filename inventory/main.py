import logging
import sys
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from inventory.book import BookInput
from inventory.config import settings
from inventory.errors import StorageUnavailable
from inventory.library import Library
from inventory.outcome import MSG_NOT_FOUND
from inventory.ui_helpers import print_list_result, print_outcome, set_output_mode
from inventory.validators import TextValidator

console = Console()

app = typer.Typer(help="Library inventory CLI")


def configure_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def open_library(db_file: Optional[str] = None) -> Library:
    """Open the store or abort startup when the database is unusable."""
    try:
        return Library(db_file=db_file)
    except StorageUnavailable as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)


def show_books(lib: Library, query: Optional[str] = None) -> None:
    """Render a fresh snapshot of the collection (or of a search)."""
    try:
        books = lib.list_books() if query is None else lib.search_books(query)
    except StorageUnavailable as e:
        print(f"Error: {e}")
        return
    print_list_result(books)


def submit_book(lib: Library, data: BookInput) -> None:
    error = TextValidator.validate_book_input(data)
    if error:
        print(error)
        return
    print_outcome(lib.add_or_add_copy(data.title, data.author, data.isbn))
    show_books(lib)


def submit_update(lib: Library, book_id: int, title: Optional[str], author: Optional[str],
                  isbn: Optional[str]) -> None:
    """Update a book; fields left as None keep their current values."""
    try:
        current = lib.find_book(book_id)
    except StorageUnavailable as e:
        print(f"Error: {e}")
        return
    if current is None:
        print(MSG_NOT_FOUND)
        return

    data = BookInput(
        title=current.title if title is None else title,
        author=current.author if author is None else author,
        isbn=current.isbn if isbn is None else isbn,
    )
    error = TextValidator.validate_book_input(data)
    if error:
        print(error)
        return
    print_outcome(lib.update_details(book_id, data.title, data.author, data.isbn))
    show_books(lib)


# --- Typer CLI ---
@app.callback()
def _global_options(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="SQLite file to use (default: LIBRARY_DB_FILE or library.db)"),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
):
    """Global options shared by every command."""
    configure_logging()
    if output:
        set_output_mode(output)
    ctx.obj = {"db_file": db, "library": None}


def get_library(ctx: typer.Context) -> Library:
    """Open the store on first use so `--help` never touches the database."""
    state = ctx.find_root().obj
    if state["library"] is None:
        lib = open_library(state["db_file"])
        state["library"] = lib
        ctx.find_root().call_on_close(lib.close)
    return state["library"]


@app.command("list")
def cli_list(ctx: typer.Context):
    """List every book with its copy counters."""
    show_books(get_library(ctx))


@app.command("search")
def cli_search(ctx: typer.Context, query: str = typer.Argument(..., help="Text to look for in title, author or ISBN")):
    """Search books by title, author or ISBN (case-insensitive)."""
    show_books(get_library(ctx), query=query)


@app.command("add")
def cli_add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Option("", "--author", "-a", help="Author name"),
    isbn: str = typer.Option("", "--isbn", "-i", help="ISBN; an existing ISBN gets one more copy"),
):
    """Add a new book, or one more copy of an existing ISBN."""
    submit_book(get_library(ctx), BookInput(title=title, author=author, isbn=isbn))


@app.command("update")
def cli_update(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Book id"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i"),
):
    """Edit title, author or ISBN of a book. Copy counters are not touched."""
    submit_update(get_library(ctx), book_id, title, author, isbn)


@app.command("delete")
def cli_delete(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Book id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a book and all of its copies permanently."""
    if not yes and not Confirm.ask("Are you sure you want to delete this book?", default=False):
        print("Deletion cancelled.")
        return
    print_outcome(get_library(ctx).delete_book(book_id))
    show_books(get_library(ctx))


@app.command("borrow")
def cli_borrow(ctx: typer.Context, book_id: int = typer.Argument(..., help="Book id")):
    """Lend out one copy of a book."""
    print_outcome(get_library(ctx).borrow_book(book_id))
    show_books(get_library(ctx))


@app.command("return")
def cli_return(ctx: typer.Context, book_id: int = typer.Argument(..., help="Book id")):
    """Take back one copy of a book."""
    print_outcome(get_library(ctx).return_book(book_id))
    show_books(get_library(ctx))


@app.command("menu")
def cli_menu(ctx: typer.Context):
    """Open the interactive menu."""
    run_menu(get_library(ctx))


# --- Interactive menu ---
def run_menu(lib: Library) -> None:
    """Interactive loop: every action re-renders the whole collection."""
    def render_menu() -> None:
        menu_items = [
            ("1", "List all books", "📚"),
            ("2", "Search", "🔎"),
            ("3", "Add book / new copy", "➕"),
            ("4", "Update book details", "✏️"),
            ("5", "Delete book", "🗑️"),
            ("6", "Borrow", "📤"),
            ("7", "Return", "📥"),
            ("0", "Exit", "🚪"),
        ]

        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon in menu_items:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

        console.print(Panel(
            table,
            title=settings.app_name,
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        ))

    while True:
        render_menu()
        choice = Prompt.ask("Choose an option", choices=["1", "2", "3", "4", "5", "6", "7", "0"], default="1")

        if choice == "1":
            show_books(lib)
        elif choice == "2":
            show_books(lib, query=Prompt.ask("Search", default=""))
        elif choice == "3":
            submit_book(lib, BookInput(
                title=Prompt.ask("Title", default=""),
                author=Prompt.ask("Author", default=""),
                isbn=Prompt.ask("ISBN", default=""),
            ))
        elif choice == "4":
            book_id = IntPrompt.ask("Book id")
            console.print("[dim]Leave a field empty to keep its current value.[/]")
            title = Prompt.ask("Title", default="") or None
            author = Prompt.ask("Author", default="") or None
            isbn = Prompt.ask("ISBN", default="") or None
            submit_update(lib, book_id, title, author, isbn)
        elif choice == "5":
            book_id = IntPrompt.ask("Book id")
            if Confirm.ask("Are you sure you want to delete this book?", default=False):
                print_outcome(lib.delete_book(book_id))
                show_books(lib)
            else:
                console.print("[blue]Deletion cancelled.[/]")
        elif choice == "6":
            print_outcome(lib.borrow_book(IntPrompt.ask("Book id")))
            show_books(lib)
        elif choice == "7":
            print_outcome(lib.return_book(IntPrompt.ask("Book id")))
            show_books(lib)
        elif choice == "0":
            console.print("[green]Goodbye![/]")
            break
        print()  # blank line between actions


def main() -> None:
    if len(sys.argv) > 1:
        app()
    else:
        configure_logging()
        try:
            lib = Library()
        except StorageUnavailable as e:
            print(f"Error: {e}")
            sys.exit(1)
        with lib:
            run_menu(lib)


if __name__ == "__main__":
    main()
