import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from book_catalog import storage
from book_catalog.book import Book
from book_catalog.config import settings
from book_catalog.errors import (
    AlreadyAvailableError,
    AlreadyBorrowedError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from book_catalog.validators import MAX_YEAR, MIN_YEAR, ISBNValidator, TextValidator, YearValidator

logger = logging.getLogger(__name__)

CSV_HEADER = "ID,Title,Author,Year,ISBN,Category,Status"

SORT_FIELDS = ("title", "author", "year")


class CatalogStore:
    """Owns the book catalog and its persistence file.

    Records are kept in an id-keyed mapping; display order is a separate list
    of ids that the sort operations reorder. Every record handed to a caller
    is a copy, so nothing outside the store can mutate catalog state.
    """

    def __init__(self, data_file: Optional[Union[str, Path]] = None) -> None:
        self.data_file = Path(data_file or settings.data_file)
        self._books: Dict[int, Book] = {}
        self._order: List[int] = []
        self._next_id = 1
        self._closed = False
        self._load_failed = False
        self.load()

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------- Core operations ------------------------- #
    def create(self, title: str, author: str, year: int, isbn: str, category: str = "") -> Book:
        """Validate and add a new book. Returns a copy carrying the assigned id."""
        if not TextValidator.is_non_empty(title):
            raise ValidationError("Title cannot be empty.")
        if not TextValidator.is_non_empty(author):
            raise ValidationError("Author cannot be empty.")
        if not YearValidator.is_valid_year(year):
            raise ValidationError(f"Invalid year. Must be between {MIN_YEAR} and {MAX_YEAR}.")
        isbn = TextValidator.clean(isbn)
        if not ISBNValidator.is_valid_isbn(isbn):
            raise ValidationError("Invalid ISBN format.")
        if self._isbn_taken(isbn):
            raise ValidationError(f"Book with ISBN {isbn} already exists.")

        book = Book(
            id=self._allocate_id(),
            title=TextValidator.clean(title),
            author=TextValidator.clean(author),
            year=year,
            isbn=isbn,
            category=TextValidator.clean(category),
        )
        self._books[book.id] = book
        self._order.append(book.id)
        logger.info(f"Book added with ID {book.id}: {book.title}")
        return book.copy()

    def find_by_id(self, book_id: int) -> Book:
        return self._get(book_id).copy()

    def find_by_title(self, query: str) -> List[Book]:
        return self._match(query, lambda book: book.title)

    def find_by_author(self, query: str) -> List[Book]:
        return self._match(query, lambda book: book.author)

    def list_books(self) -> List[Book]:
        return [self._books[book_id].copy() for book_id in self._order]

    def delete(self, book_id: int) -> Book:
        """Remove a book and return what was removed. Its id is never handed out again."""
        book = self._get(book_id)
        del self._books[book_id]
        self._order.remove(book_id)
        logger.info(f"Deleted book {book_id}: {book.title} by {book.author}")
        return book.copy()

    def update(self, book_id: int, *, title: Optional[str] = None, author: Optional[str] = None,
               year: Optional[int] = None, isbn: Optional[str] = None,
               category: Optional[str] = None) -> Book:
        """Apply the given fields to a book; blank or missing values leave a field unchanged.

        An invalid year or an invalid/duplicate ISBN is dropped from the patch
        without failing the update, so the remaining fields still apply.
        """
        book = self._get(book_id)

        if TextValidator.is_non_empty(title):
            book.title = TextValidator.clean(title)
        if TextValidator.is_non_empty(author):
            book.author = TextValidator.clean(author)

        if year:
            if YearValidator.is_valid_year(year):
                book.year = year
            else:
                logger.debug(f"Ignoring invalid year {year!r} for book {book_id}")

        if TextValidator.is_non_empty(isbn):
            new_isbn = TextValidator.clean(isbn)
            if not ISBNValidator.is_valid_isbn(new_isbn):
                logger.debug(f"Ignoring malformed ISBN {new_isbn!r} for book {book_id}")
            elif self._isbn_taken(new_isbn, exclude_id=book_id):
                logger.debug(f"Ignoring duplicate ISBN {new_isbn!r} for book {book_id}")
            else:
                book.isbn = new_isbn

        if TextValidator.is_non_empty(category):
            book.category = TextValidator.clean(category)

        logger.info(f"Updated book {book_id}")
        return book.copy()

    # ------------------------- Ordering ------------------------- #
    def sort_by(self, field: str) -> None:
        """Stable ascending sort of the catalog on ``title``, ``author`` or ``year``."""
        if field not in SORT_FIELDS:
            raise ValueError(f"Cannot sort by {field!r}. Use one of: {', '.join(SORT_FIELDS)}.")
        self._order.sort(key=lambda book_id: getattr(self._books[book_id], field))
        logger.info(f"Books sorted by {field}")

    def sort_by_title(self) -> None:
        self.sort_by("title")

    def sort_by_author(self) -> None:
        self.sort_by("author")

    def sort_by_year(self) -> None:
        self.sort_by("year")

    # ------------------------- Lending ------------------------- #
    def borrow(self, book_id: int) -> None:
        book = self._get(book_id)
        if not book.available:
            raise AlreadyBorrowedError(book_id)
        book.available = False
        logger.info(f"Book {book_id} borrowed")

    def return_book(self, book_id: int) -> None:
        book = self._get(book_id)
        if book.available:
            raise AlreadyAvailableError(book_id)
        book.available = True
        logger.info(f"Book {book_id} returned")

    def count_total(self) -> int:
        return len(self._books)

    def count_available(self) -> int:
        return sum(1 for book in self._books.values() if book.available)

    def count_borrowed(self) -> int:
        return self.count_total() - self.count_available()

    def statistics(self) -> Dict[str, int]:
        return {
            "total_books": self.count_total(),
            "available_books": self.count_available(),
            "borrowed_books": self.count_borrowed(),
        }

    # ------------------------- Export/Import ------------------------- #
    def export_csv(self, path: Union[str, Path]) -> None:
        """Write the catalog as CSV in current order.

        Fields are written without quoting, so a value containing a comma
        produces a row with extra columns.
        """
        lines = [CSV_HEADER]
        lines.extend(self._books[book_id].to_csv_row() for book_id in self._order)
        try:
            with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as exc:
            raise StorageError(f"Cannot create CSV file {path}: {exc}") from exc
        logger.info(f"Exported {len(lines) - 1} books to {path}")

    def import_csv(self, path: Union[str, Path]) -> Tuple[int, int]:
        """Add the rows of a CSV file in export layout. Returns ``(imported, skipped)``.

        The file's ID column is ignored; each row gets a fresh id. Rows whose
        status is ``Borrowed`` are marked as lent out.
        """
        try:
            with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
                lines = f.read().splitlines()
        except OSError as exc:
            raise StorageError(f"Cannot read CSV file {path}: {exc}") from exc

        first_line = 1
        if lines and lines[0].strip() == CSV_HEADER:
            lines = lines[1:]
            first_line = 2

        imported = 0
        skipped = 0
        for line_no, line in enumerate(lines, first_line):
            if not line.strip():
                continue
            fields = line.split(",")
            if len(fields) != 7:
                logger.warning(f"Skipping line {line_no}: expected 7 columns, got {len(fields)}")
                skipped += 1
                continue
            _, title, author, year, isbn, category, status = fields
            try:
                book = self.create(title, author, int(year), isbn, category)
            except ValueError as e:
                logger.warning(f"Skipping line {line_no}: {e}")
                skipped += 1
                continue
            if status.strip() == "Borrowed":
                self._books[book.id].available = False
            imported += 1

        logger.info(f"Imported {imported} books from {path} ({skipped} skipped)")
        return imported, skipped

    # ------------------------- Persistence ------------------------- #
    def load(self) -> int:
        """Replace the catalog with the contents of the data file.

        A missing file gives an empty catalog. An unreadable or corrupt file
        is logged and also gives an empty catalog; ``save()`` then refuses to
        overwrite that file. Returns the number of books loaded.
        """
        self._load_failed = False
        try:
            books, next_id = storage.read_catalog(self.data_file)
        except StorageError as e:
            logger.warning(f"Could not load {self.data_file}: {e}. Starting with empty library.")
            books, next_id = [], 1
            self._load_failed = True

        self._books = {}
        self._order = []
        for book in books:
            if book.id in self._books:
                logger.warning(f"Skipping duplicate ID {book.id} in {self.data_file}")
                continue
            self._books[book.id] = book
            self._order.append(book.id)
        self._next_id = next_id
        logger.info(f"Loaded {len(self._books)} books from {self.data_file}")
        return len(self._books)

    def save(self) -> None:
        if self._load_failed:
            raise StorageError(f"Refusing to overwrite {self.data_file}: it could not be loaded.")
        books = [self._books[book_id] for book_id in self._order]
        storage.write_catalog(self.data_file, books, self._allocate_id(peek=True))
        logger.info(f"Saved {len(books)} books to {self.data_file}")

    def close(self) -> None:
        """Flush the catalog to disk once. Later calls do nothing."""
        if self._closed:
            return
        self.save()
        self._closed = True

    # ------------------------- Utilities ------------------------- #
    def _get(self, book_id: int) -> Book:
        book = self._books.get(book_id)
        if book is None:
            raise NotFoundError(book_id)
        return book

    def _match(self, query: str, field: Callable[[Book], str]) -> List[Book]:
        needle = (query or "").lower()
        return [
            self._books[book_id].copy()
            for book_id in self._order
            if needle in field(self._books[book_id]).lower()
        ]

    def _isbn_taken(self, isbn: str, exclude_id: Optional[int] = None) -> bool:
        return any(book.isbn == isbn and book.id != exclude_id for book in self._books.values())

    def _allocate_id(self, peek: bool = False) -> int:
        # Never below max live id + 1, and never below an id handed out before.
        candidate = max([self._next_id] + [book_id + 1 for book_id in self._books])
        if not peek:
            self._next_id = candidate + 1
        return candidate
