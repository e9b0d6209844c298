class InventoryError(Exception):
    """Base exception for inventory store errors."""


class NotFound(InventoryError):
    """Requested book id does not exist in the inventory."""


class ConstraintViolation(InventoryError):
    """A write would break the ISBN rules (unique, non-empty)."""


class NoCopiesAvailable(InventoryError):
    """Borrow requested while every copy is on loan."""


class AllCopiesReturned(InventoryError):
    """Return requested while no copy is on loan."""


class StorageUnavailable(InventoryError):
    """The SQLite file cannot be opened, initialized or queried."""
