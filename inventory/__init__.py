"""Library Inventory - core application package

This package contains:
- Inventory store with the copy-counter rules (library.py)
- SQLite storage layer (database.py)
- Data models and operation outcomes (book.py, outcome.py)
- CLI and interactive menu (main.py)
"""
