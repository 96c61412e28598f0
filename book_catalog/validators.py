import re
from typing import Optional

MIN_YEAR = 1000
MAX_YEAR = 2030

_ISBN_PATTERN = re.compile(r"\d{10}|\d{13}|[\d-]{13,17}", re.ASCII)


class ISBNValidator:
    """Format check for catalog ISBNs.

    Accepts a plain ISBN-10 or ISBN-13 digit string, or a hyphenated form of
    13 to 17 characters made of digits and hyphens. No checksum is computed.
    """

    @staticmethod
    def is_valid_isbn(isbn: Optional[str]) -> bool:
        if not isbn:
            return False
        return _ISBN_PATTERN.fullmatch(isbn) is not None


class TextValidator:

    @staticmethod
    def is_non_empty(text: Optional[str]) -> bool:
        return text is not None and bool(text.strip())

    @staticmethod
    def clean(text: Optional[str]) -> str:
        if text is None:
            return ""
        return text.strip()


class YearValidator:

    @staticmethod
    def is_valid_year(year: Optional[int]) -> bool:
        """Bounds are inclusive. Non-integers (including bool) are rejected."""
        if not isinstance(year, int) or isinstance(year, bool):
            return False
        return MIN_YEAR <= year <= MAX_YEAR
