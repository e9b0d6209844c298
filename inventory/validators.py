from typing import Optional

from inventory.book import BookInput


class TextValidator:
    """Checks applied by the shell before input reaches the store."""

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return bool(title and title.strip())

    @staticmethod
    def validate_book_input(data: BookInput) -> Optional[str]:
        """Return an error message for unusable input, or None when it is fine."""
        if not TextValidator.validate_title(data.title):
            return "Error: title is required."
        return None
