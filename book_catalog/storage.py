"""Binary persistence format for the catalog.

Layout (all integers little-endian, fixed width):

    header   uint8  format version
             uint32 next id to allocate
    record   int32  id
             uint32 length + bytes   title
             uint32 length + bytes   author
             int32  year
             uint32 length + bytes   isbn
             uint32 length + bytes   category
             uint8  available

Records repeat until end of file; there is no record count. Text is stored as
UTF-8 with ``surrogateescape`` so undecodable bytes survive a load/save cycle.
"""

import logging
import struct
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from book_catalog.book import Book
from book_catalog.errors import StorageError

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

_HEADER = struct.Struct("<BI")
_INT = struct.Struct("<i")
_LENGTH = struct.Struct("<I")
_FLAG = struct.Struct("<B")

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class TruncatedRecord(Exception):
    pass


def _pack_text(text: str) -> bytes:
    raw = text.encode(_ENCODING, _ERRORS)
    return _LENGTH.pack(len(raw)) + raw


def encode_book(book: Book) -> bytes:
    return b"".join([
        _INT.pack(book.id),
        _pack_text(book.title),
        _pack_text(book.author),
        _INT.pack(book.year),
        _pack_text(book.isbn),
        _pack_text(book.category),
        _FLAG.pack(1 if book.available else 0),
    ])


def encode_catalog(books: Iterable[Book], next_id: int) -> bytes:
    parts = [_HEADER.pack(FORMAT_VERSION, next_id)]
    parts.extend(encode_book(book) for book in books)
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def _unpack(self, fmt: struct.Struct) -> int:
        if self.offset + fmt.size > len(self.data):
            raise TruncatedRecord()
        (value,) = fmt.unpack_from(self.data, self.offset)
        self.offset += fmt.size
        return value

    def read_int(self) -> int:
        return self._unpack(_INT)

    def read_flag(self) -> bool:
        return self._unpack(_FLAG) != 0

    def read_text(self) -> str:
        length = self._unpack(_LENGTH)
        end = self.offset + length
        if end > len(self.data):
            raise TruncatedRecord()
        raw = self.data[self.offset:end]
        self.offset = end
        return raw.decode(_ENCODING, _ERRORS)

    def read_book(self) -> Book:
        book_id = self.read_int()
        title = self.read_text()
        author = self.read_text()
        year = self.read_int()
        isbn = self.read_text()
        category = self.read_text()
        available = self.read_flag()
        return Book(book_id, title, author, year, isbn, category, available)


def decode_catalog(data: bytes) -> Tuple[List[Book], int]:
    """Decode a persistence file image into ``(books, next_id)``.

    An empty image is an empty catalog. A record cut short at the end of the
    data is dropped; every complete record before it is kept.
    """
    if not data:
        return [], 1
    if len(data) < _HEADER.size:
        raise StorageError("Catalog file header is truncated.")

    version, next_id = _HEADER.unpack_from(data, 0)
    if version != FORMAT_VERSION:
        raise StorageError(f"Unsupported catalog format version {version}.")

    reader = _Reader(data, _HEADER.size)
    books: List[Book] = []
    while not reader.at_end():
        try:
            books.append(reader.read_book())
        except TruncatedRecord:
            logger.warning(f"Dropping truncated record after {len(books)} complete records")
            break
    return books, max(next_id, 1)


def read_catalog(path: Union[str, Path]) -> Tuple[List[Book], int]:
    """Read the catalog file. A missing file is an empty catalog."""
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        return [], 1
    except OSError as exc:
        raise StorageError(f"Cannot read catalog file {path}: {exc}") from exc
    return decode_catalog(data)


def write_catalog(path: Union[str, Path], books: Iterable[Book], next_id: int) -> None:
    data = encode_catalog(books, next_id)
    try:
        Path(path).write_bytes(data)
    except OSError as exc:
        raise StorageError(f"Cannot save data to file {path}: {exc}") from exc
