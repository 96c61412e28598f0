class CatalogError(Exception):
    """Base class for every failure reported by the catalog store."""


class ValidationError(CatalogError, ValueError):
    pass


class NotFoundError(CatalogError, LookupError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with ID {book_id} not found.")
        self.book_id = book_id


class LendingStateError(CatalogError):
    pass


class AlreadyBorrowedError(LendingStateError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with ID {book_id} is already borrowed.")
        self.book_id = book_id


class AlreadyAvailableError(LendingStateError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with ID {book_id} is already available.")
        self.book_id = book_id


class StorageError(CatalogError):
    pass
