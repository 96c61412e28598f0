import pytest

from book_catalog.validators import ISBNValidator, TextValidator, YearValidator


@pytest.mark.parametrize("isbn", [
    "0441013597",
    "9780441013593",
    "978-0441013593",
    "978-0-441-01359-3",
    "-------------",
])
def test_valid_isbns(isbn):
    assert ISBNValidator.is_valid_isbn(isbn)


@pytest.mark.parametrize("isbn", [
    None,
    "",
    "044101359X",
    "12345678901",
    "978-0-441-01359-3-11",
    "9780441013593\n",
    "٩٧٨٠٤٤١٠١٣٥٩٣",
    " 9780441013593",
])
def test_invalid_isbns(isbn):
    assert not ISBNValidator.is_valid_isbn(isbn)


def test_year_bounds():
    assert YearValidator.is_valid_year(1000)
    assert YearValidator.is_valid_year(2030)
    assert not YearValidator.is_valid_year(999)
    assert not YearValidator.is_valid_year(2031)
    assert not YearValidator.is_valid_year(None)
    assert not YearValidator.is_valid_year(True)
    assert not YearValidator.is_valid_year("1999")


def test_text_helpers():
    assert TextValidator.is_non_empty("Dune")
    assert not TextValidator.is_non_empty("   ")
    assert not TextValidator.is_non_empty(None)
    assert TextValidator.clean("  Dune ") == "Dune"
    assert TextValidator.clean(None) == ""
