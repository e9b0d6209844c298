import json
import os
from unittest.mock import MagicMock

import pytest
from rich.prompt import Confirm, IntPrompt, Prompt
from typer.testing import CliRunner

import inventory.ui_helpers as ui_helpers
from inventory.library import Library
from inventory.main import app, run_menu

runner = CliRunner()


@pytest.fixture(autouse=True)
def plain_output():
    ui_helpers.set_output_mode("plain")
    yield
    ui_helpers.set_output_mode("plain")


def invoke(db_file, *args, **kwargs):
    return runner.invoke(app, ["--db", db_file, *args], **kwargs)


def test_list_no_books(db_file):
    result = invoke(db_file, "list")
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_add_book_success(db_file):
    result = invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")
    assert result.exit_code == 0
    assert "New book created." in result.stdout
    assert "1 | 111 | Dune by Herbert | 1/1" in result.stdout


def test_add_existing_isbn_adds_copy(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")
    result = invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")
    assert result.exit_code == 0
    assert "Copy added to existing book." in result.stdout
    assert "1 | 111 | Dune by Herbert | 2/2" in result.stdout


def test_add_requires_title(db_file, monkeypatch):
    add_mock = MagicMock()
    monkeypatch.setattr(Library, "add_or_add_copy", add_mock)

    result = invoke(db_file, "add", "   ", "--isbn", "111")
    assert result.exit_code == 0
    assert "Error: title is required." in result.stdout
    add_mock.assert_not_called()


def test_add_empty_isbn(db_file):
    result = invoke(db_file, "add", "Dune", "--author", "Herbert")
    assert result.exit_code == 0
    assert "Error: ISBN cannot be empty." in result.stdout


def test_borrow_and_return(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")

    result = invoke(db_file, "borrow", "1")
    assert "Book borrowed." in result.stdout
    assert "Dune by Herbert | 0/1" in result.stdout

    result = invoke(db_file, "borrow", "1")
    assert "No copies available." in result.stdout

    result = invoke(db_file, "return", "1")
    assert "Book returned." in result.stdout
    assert "Dune by Herbert | 1/1" in result.stdout

    result = invoke(db_file, "return", "1")
    assert result.exit_code == 0
    assert "All copies already returned." in result.stdout


def test_update_partial(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")

    result = invoke(db_file, "update", "1", "--title", "Dune Messiah")
    assert result.exit_code == 0
    assert "Book details updated." in result.stdout
    assert "1 | 111 | Dune Messiah by Herbert | 1/1" in result.stdout


def test_update_collision(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")
    invoke(db_file, "add", "Emma", "--author", "Austen", "--isbn", "222")

    result = invoke(db_file, "update", "2", "--isbn", "111")
    assert "Error: ISBN already exists for another book." in result.stdout
    assert "2 | 222 | Emma by Austen | 1/1" in result.stdout


def test_update_not_found(db_file):
    result = invoke(db_file, "update", "7", "--title", "Nothing")
    assert result.exit_code == 0
    assert "Error: book not found." in result.stdout


def test_delete_with_yes(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")

    result = invoke(db_file, "delete", "1", "--yes")
    assert result.exit_code == 0
    assert "Book deleted permanently." in result.stdout
    assert "No books in library." in result.stdout


def test_delete_cancelled(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")

    result = invoke(db_file, "delete", "1", input="n\n")
    assert result.exit_code == 0
    assert "Deletion cancelled." in result.stdout
    assert len(Library(db_file=db_file).list_books()) == 1


def test_delete_unknown_id(db_file):
    result = invoke(db_file, "delete", "99", "--yes")
    assert result.exit_code == 0
    assert "Book deleted permanently." in result.stdout


def test_search(db_file):
    invoke(db_file, "add", "Dune", "--author", "Frank Herbert", "--isbn", "111")
    invoke(db_file, "add", "Emma", "--author", "Jane Austen", "--isbn", "222")

    result = invoke(db_file, "search", "herb")
    assert result.exit_code == 0
    assert "Dune by Frank Herbert" in result.stdout
    assert "Emma" not in result.stdout


def test_json_output(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")

    result = invoke(db_file, "--output", "json", "list")
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload[0]["isbn"] == "111"
    assert payload[0]["total_copies"] == 1
    assert payload[0]["available_copies"] == 1


def test_rich_output(db_file):
    invoke(db_file, "add", "Dune", "--author", "Herbert", "--isbn", "111")

    result = invoke(db_file, "--output", "rich", "list")
    assert result.exit_code == 0
    assert "Dune" in result.stdout


def test_unusable_database_aborts(tmp_path):
    result = runner.invoke(app, ["--db", str(tmp_path), "list"])
    assert result.exit_code == 1
    assert "Error:" in result.stdout


def test_help_does_not_create_database(tmp_path):
    db_file = tmp_path / "never.db"
    result = runner.invoke(app, ["--db", str(db_file), "list", "--help"])
    assert result.exit_code == 0
    assert not os.path.exists(db_file)


def test_menu_add_borrow_exit(lib, monkeypatch, capsys):
    monkeypatch.setattr(Prompt, "ask", MagicMock(side_effect=["3", "Dune", "Herbert", "111", "6", "0"]))
    monkeypatch.setattr(IntPrompt, "ask", MagicMock(side_effect=[1]))

    run_menu(lib)

    out = capsys.readouterr().out
    assert "New book created." in out
    assert "Book borrowed." in out
    book = lib.find_book(1)
    assert (book.total_copies, book.available_copies) == (1, 0)


def test_menu_delete_confirmed(lib, monkeypatch, capsys):
    lib.add_or_add_copy("Dune", "Herbert", "111")
    monkeypatch.setattr(Prompt, "ask", MagicMock(side_effect=["5", "0"]))
    monkeypatch.setattr(IntPrompt, "ask", MagicMock(side_effect=[1]))
    monkeypatch.setattr(Confirm, "ask", MagicMock(return_value=True))

    run_menu(lib)

    assert "Book deleted permanently." in capsys.readouterr().out
    assert lib.list_books() == []


def test_menu_update_keeps_blank_fields(lib, monkeypatch):
    lib.add_or_add_copy("Dune", "Herbert", "111")
    monkeypatch.setattr(Prompt, "ask", MagicMock(side_effect=["4", "Dune Messiah", "", "", "0"]))
    monkeypatch.setattr(IntPrompt, "ask", MagicMock(side_effect=[1]))

    run_menu(lib)

    book = lib.find_book(1)
    assert (book.title, book.author, book.isbn) == ("Dune Messiah", "Herbert", "111")
