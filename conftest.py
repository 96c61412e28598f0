import pytest

from book_catalog.catalog import CatalogStore


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # CLI tests switch the output mode through the environment
    monkeypatch.setenv("LIB_CLI_OUTPUT", "plain")


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "library_data.bin"


@pytest.fixture
def store(data_file):
    # Each test gets its own catalog file
    store = CatalogStore(data_file)
    yield store
    store.close()


@pytest.fixture
def seeded(data_file):
    with CatalogStore(data_file) as store:
        store.create("Dune", "Frank Herbert", 1965, "9780441013593", "SciFi")
        store.create("Emma", "Jane Austen", 1815, "9780141439587", "Classics")
    return data_file
