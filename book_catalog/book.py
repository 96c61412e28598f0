from __future__ import annotations


class Book:
    """Represents a single book record in the catalog."""

    def __init__(self, id: int, title: str, author: str, year: int, isbn: str, category: str = "",
                 available: bool = True) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.year = year
        self.isbn = isbn
        self.category = category
        self.available = available

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id}, ISBN: {self.isbn})"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, isbn={self.isbn!r}, available={self.available!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def status(self) -> str:
        return "Available" if self.available else "Borrowed"

    def copy(self) -> "Book":
        return Book.from_dict(self.to_dict())

    def to_csv_row(self) -> str:
        # Fields are joined verbatim; a comma inside a field shifts the columns.
        return ",".join([str(self.id), self.title, self.author, str(self.year), self.isbn, self.category, self.status])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "year": self.year,
            "isbn": self.isbn,
            "category": self.category,
            "available": self.available,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            year=data["year"],
            isbn=data["isbn"],
            category=data.get("category") or "",
            available=data.get("available", True),
        )
