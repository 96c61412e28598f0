import pytest

from book_catalog.catalog import CatalogStore
from book_catalog.errors import (
    AlreadyAvailableError,
    AlreadyBorrowedError,
    NotFoundError,
    ValidationError,
)


def add_sample(store, title="Dune", author="Herbert", year=1965, isbn="9780441013593", category="SciFi"):
    return store.create(title, author, year, isbn, category)


def test_create_assigns_id_and_availability(store):
    assert store.list_books() == []

    book = add_sample(store)

    assert book.id == 1
    assert book.available is True
    assert store.count_total() == 1
    assert store.list_books()[0].title == "Dune"


def test_create_duplicate_isbn(store):
    add_sample(store)

    with pytest.raises(ValidationError, match="already exists"):
        store.create("Another Title", "Someone Else", 2001, "9780441013593", "")

    assert store.count_total() == 1


def test_isbn_uniqueness_is_case_sensitive_exact_match(store):
    add_sample(store, isbn="978-0-441-01359-3")
    # same digits, different hyphenation is a different ISBN string
    other = store.create("Dune Messiah", "Herbert", 1969, "9780441013593", "")
    assert other.id == 2


@pytest.mark.parametrize("kwargs, message", [
    ({"title": ""}, "Title"),
    ({"title": "   "}, "Title"),
    ({"author": ""}, "Author"),
    ({"year": 999}, "year"),
    ({"year": 2031}, "year"),
    ({"isbn": "12345"}, "ISBN"),
    ({"isbn": "978044101359X"}, "ISBN"),
])
def test_create_validation_errors(store, kwargs, message):
    with pytest.raises(ValidationError, match=message):
        add_sample(store, **kwargs)
    assert store.count_total() == 0


def test_create_validation_order(store):
    # empty title is reported before the bad year and bad ISBN
    with pytest.raises(ValidationError, match="Title"):
        store.create("", "", 1, "x", "")


def test_create_accepts_year_bounds_and_isbn_forms(store):
    assert add_sample(store, year=1000, isbn="0441013597").year == 1000
    assert add_sample(store, year=2030, isbn="978-0-441-01359-3").year == 2030
    assert add_sample(store, isbn="9780441013594").isbn == "9780441013594"


def test_create_allows_empty_category(store):
    book = add_sample(store, category="")
    assert book.category == ""


def test_ids_increase_and_are_never_reused(store):
    first = add_sample(store, isbn="1111111111")
    second = add_sample(store, isbn="2222222222")
    store.delete(second.id)
    third = add_sample(store, isbn="3333333333")
    assert first.id < second.id < third.id

    store.delete(first.id)
    store.delete(third.id)
    assert store.count_total() == 0
    fourth = add_sample(store, isbn="4444444444")
    assert fourth.id == 4


def test_dune_scenario(store):
    dune = store.create("Dune", "Herbert", 1965, "9780441013593", "SciFi")
    assert dune.id == 1 and dune.available

    with pytest.raises(ValidationError):
        store.create("Dune", "Herbert", 1965, "9780441013593", "SciFi")

    removed = store.delete(1)
    assert removed.title == "Dune"
    assert store.count_total() == 0

    again = store.create("Dune", "Herbert", 1965, "9780441013593", "SciFi")
    assert again.id == 2


def test_id_allocation_survives_reload(data_file):
    with CatalogStore(data_file) as store:
        add_sample(store, isbn="1111111111")
        add_sample(store, isbn="2222222222")
        store.delete(2)

    with CatalogStore(data_file) as store:
        assert add_sample(store, isbn="3333333333").id == 3


def test_find_by_id(store):
    book = add_sample(store)
    assert store.find_by_id(book.id).isbn == "9780441013593"

    with pytest.raises(NotFoundError):
        store.find_by_id(99)


def test_returned_books_are_copies(store):
    book = add_sample(store)
    book.title = "Changed outside the store"
    store.find_by_id(book.id).available = False

    stored = store.find_by_id(book.id)
    assert stored.title == "Dune"
    assert stored.available is True


def test_search_by_title_and_author(store):
    add_sample(store, title="Dune", author="Frank Herbert", isbn="1111111111")
    add_sample(store, title="The Hobbit", author="J.R.R. Tolkien", isbn="2222222222")
    add_sample(store, title="Children of Dune", author="Frank Herbert", isbn="3333333333")

    assert [b.title for b in store.find_by_title("dUNE")] == ["Dune", "Children of Dune"]
    assert [b.title for b in store.find_by_author("tolkien")] == ["The Hobbit"]
    assert store.find_by_title("missing") == []
    assert len(store.find_by_title("")) == 3
    assert len(store.find_by_author("")) == 3


def test_delete(store):
    book = add_sample(store)
    removed = store.delete(book.id)
    assert removed == book
    assert store.count_total() == 0

    with pytest.raises(NotFoundError):
        store.delete(book.id)


def test_update_book(store):
    book = add_sample(store)

    updated = store.update(book.id, title="Dune (Deluxe)", author="Frank Herbert", year=2005,
                           isbn="978-0-441-17271-9", category="Classics")

    assert updated.title == "Dune (Deluxe)"
    assert updated.author == "Frank Herbert"
    assert updated.year == 2005
    assert updated.isbn == "978-0-441-17271-9"
    assert updated.category == "Classics"
    assert updated.id == book.id
    assert store.find_by_id(book.id) == updated


def test_update_book_partial(store):
    book = add_sample(store)

    updated = store.update(book.id, title="Only Title Changed", author="", category="  ")
    assert updated.title == "Only Title Changed"
    assert updated.author == "Herbert"
    assert updated.category == "SciFi"
    assert updated.year == 1965


def test_update_ignores_invalid_year_and_isbn(store):
    add_sample(store, isbn="1111111111")
    book = add_sample(store, isbn="2222222222")

    updated = store.update(book.id, title="Kept", year=3000, isbn="not-an-isbn")
    assert updated.title == "Kept"
    assert updated.year == 1965
    assert updated.isbn == "2222222222"

    # duplicate of another record is ignored too
    updated = store.update(book.id, isbn="1111111111", category="New")
    assert updated.isbn == "2222222222"
    assert updated.category == "New"


def test_update_keeps_own_isbn(store):
    book = add_sample(store)
    updated = store.update(book.id, isbn=book.isbn, year=1966)
    assert updated.isbn == book.isbn
    assert updated.year == 1966


def test_update_not_found(store):
    with pytest.raises(NotFoundError):
        store.update(42, title="New Title")


def test_sorts(store):
    add_sample(store, title="B", author="Zed", year=1990, isbn="1111111111")
    add_sample(store, title="C", author="Amy", year=1950, isbn="2222222222")
    add_sample(store, title="A", author="Max", year=2000, isbn="3333333333")

    store.sort_by_title()
    assert [b.title for b in store.list_books()] == ["A", "B", "C"]
    store.sort_by_author()
    assert [b.author for b in store.list_books()] == ["Amy", "Max", "Zed"]
    store.sort_by_year()
    assert [b.year for b in store.list_books()] == [1950, 1990, 2000]


def test_sort_is_stable(store):
    add_sample(store, title="Same", year=2001, isbn="1111111111")
    add_sample(store, title="Other", year=1999, isbn="2222222222")
    add_sample(store, title="Same", year=1980, isbn="3333333333")
    add_sample(store, title="Same", year=1990, isbn="4444444444")

    store.sort_by_year()
    store.sort_by_title()

    books = store.list_books()
    assert [b.title for b in books] == ["Other", "Same", "Same", "Same"]
    assert [b.year for b in books[1:]] == [1980, 1990, 2001]


def test_sort_is_case_sensitive(store):
    add_sample(store, title="apple", isbn="1111111111")
    add_sample(store, title="Banana", isbn="2222222222")
    store.sort_by_title()
    assert [b.title for b in store.list_books()] == ["Banana", "apple"]


def test_sort_by_unknown_field(store):
    with pytest.raises(ValueError):
        store.sort_by("isbn")


def test_borrow_and_return_round_trip(store):
    book = add_sample(store)

    store.borrow(book.id)
    assert store.find_by_id(book.id).available is False
    with pytest.raises(AlreadyBorrowedError):
        store.borrow(book.id)

    store.return_book(book.id)
    assert store.find_by_id(book.id) == book
    with pytest.raises(AlreadyAvailableError):
        store.return_book(book.id)


def test_lending_unknown_id(store):
    with pytest.raises(NotFoundError):
        store.borrow(7)
    with pytest.raises(NotFoundError):
        store.return_book(7)


def test_counts(store):
    for i, isbn in enumerate(["1111111111", "2222222222", "3333333333"]):
        add_sample(store, title=f"Book {i}", isbn=isbn)
    store.borrow(2)

    assert store.count_total() == 3
    assert store.count_available() == 2
    assert store.count_borrowed() == 1
    assert store.statistics() == {"total_books": 3, "available_books": 2, "borrowed_books": 1}


def test_export_csv(store, tmp_path):
    add_sample(store)
    add_sample(store, title="Emma", author="Austen", year=1815, isbn="2222222222", category="")
    store.borrow(2)
    path = tmp_path / "books.csv"

    store.export_csv(path)

    assert path.read_text(encoding="utf-8").splitlines() == [
        "ID,Title,Author,Year,ISBN,Category,Status",
        "1,Dune,Herbert,1965,9780441013593,SciFi,Available",
        "2,Emma,Austen,1815,2222222222,,Borrowed",
    ]


def test_export_csv_does_not_quote_commas(store, tmp_path):
    add_sample(store, title="Eats, Shoots and Leaves")
    path = tmp_path / "books.csv"
    store.export_csv(path)
    assert path.read_text(encoding="utf-8").splitlines()[1].count(",") == 7


def test_import_csv(store, tmp_path):
    path = tmp_path / "import.csv"
    path.write_text(
        "ID,Title,Author,Year,ISBN,Category,Status\n"
        "7,Dune,Herbert,1965,9780441013593,SciFi,Available\n"
        "8,Emma,Austen,1815,2222222222,,Borrowed\n"
        "9,Bad Year,Nobody,99,3333333333,,Available\n"
        "10,Too,Many,Columns,2000,4444444444,,Available\n",
        encoding="utf-8",
    )

    imported, skipped = store.import_csv(path)

    assert (imported, skipped) == (2, 2)
    assert [b.id for b in store.list_books()] == [1, 2]
    assert store.find_by_id(2).available is False


def test_import_round_trips_export(store, tmp_path):
    add_sample(store)
    store.borrow(1)
    path = tmp_path / "books.csv"
    store.export_csv(path)

    with CatalogStore(tmp_path / "other.bin") as other:
        assert other.import_csv(path) == (1, 0)
        assert other.list_books() == store.list_books()
