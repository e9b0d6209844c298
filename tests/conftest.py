import pytest

from inventory.library import Library


@pytest.fixture
def db_file(tmp_path, request):
    # Unique database file for every test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def lib(db_file):
    lib = Library(db_file=db_file)
    yield lib
    lib.close()
