import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from book_catalog.catalog import SORT_FIELDS, CatalogStore
from book_catalog.config import settings
from book_catalog.errors import CatalogError, StorageError
from book_catalog.ui_helpers import (
    book_table,
    print_book_result,
    print_list_result,
    print_stats_result,
    set_output_mode,
)
from book_catalog.validators import MAX_YEAR, MIN_YEAR

console = Console()

_state = {"data_file": None}


@contextmanager
def open_store() -> Iterator[CatalogStore]:
    """Load the catalog, hand it to the caller and save it on the way out."""
    store = CatalogStore(_state["data_file"])
    try:
        yield store
    finally:
        try:
            store.close()
        except StorageError as e:
            print(f"Error: {e}")


# --- Typer CLI application ---
app = typer.Typer(help=settings.app_name)

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        "-d",
        help="Catalog file to load and save (default: LIBRARY_DATA_FILE)",
    ),
):
    """Global CLI options (output mode, catalog file)."""
    if output:
        set_output_mode(output)
    _state["data_file"] = data_file

@app.command("list")
def cli_list():
    """List all books in catalog order."""
    with open_store() as store:
        print_list_result(store.list_books())

@app.command("add")
def cli_add(
    title: str = typer.Option(..., "--title", "-t", help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Book author"),
    year: int = typer.Option(..., "--year", "-y", help=f"Publication year ({MIN_YEAR}-{MAX_YEAR})"),
    isbn: str = typer.Option(..., "--isbn", "-i", help="ISBN-10, ISBN-13 or hyphenated ISBN"),
    category: str = typer.Option("", "--category", "-c", help="Category"),
):
    """Add a new book record."""
    with open_store() as store:
        try:
            book = store.create(title, author, year, isbn, category)
        except CatalogError as e:
            print(f"Error: {e}")
            return
        print(f"Book added successfully with ID: {book.id}")

@app.command("show")
def cli_show(book_id: int = typer.Argument(..., help="Book ID")):
    """Show the details of one book."""
    with open_store() as store:
        try:
            book = store.find_by_id(book_id)
        except CatalogError as e:
            print(str(e))
            return
        print_book_result(book)

@app.command("search")
def cli_search(
    query: str = typer.Argument(..., help="Case-insensitive text to look for"),
    by: str = typer.Option("title", "--by", "-b", help="Field to search: title | author"),
):
    """Search books by title or author."""
    if by not in ("title", "author"):
        print(f"Unsupported search field: {by}. Use title or author.")
        return
    with open_store() as store:
        books = store.find_by_title(query) if by == "title" else store.find_by_author(query)
        if not books:
            print(f"No books found matching '{query}'.")
            return
        print_list_result(books)

@app.command("update")
def cli_update(
    book_id: int = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i"),
    category: Optional[str] = typer.Option(None, "--category", "-c"),
):
    """Update a book. Omitted fields, invalid years and invalid ISBNs are left unchanged."""
    with open_store() as store:
        try:
            book = store.update(book_id, title=title, author=author, year=year, isbn=isbn, category=category)
        except CatalogError as e:
            print(str(e))
            return
        print("Book updated successfully.")
        print_book_result(book)

@app.command("remove")
def cli_remove(
    book_id: int = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation"),
):
    """Delete a book by ID."""
    with open_store() as store:
        try:
            book = store.find_by_id(book_id)
        except CatalogError as e:
            print(str(e))
            return
        if not yes and not typer.confirm(f"Delete '{book.title}' by {book.author}?", default=False):
            print("Deletion cancelled.")
            return
        removed = store.delete(book_id)
        print(f"Deleted book: {removed.title} by {removed.author}")

@app.command("sort")
def cli_sort(field: str = typer.Argument(..., help="Sort key: title | author | year")):
    """Sort the catalog and keep the new order."""
    if field not in SORT_FIELDS:
        print(f"Unsupported sort field: {field}. Use title, author or year.")
        return
    with open_store() as store:
        store.sort_by(field)
        print(f"Books sorted by {field}.")
        print_list_result(store.list_books())

@app.command("borrow")
def cli_borrow(book_id: int = typer.Argument(..., help="Book ID")):
    """Mark a book as lent out."""
    with open_store() as store:
        try:
            store.borrow(book_id)
        except CatalogError as e:
            print(str(e))
            return
        print(f"Book '{store.find_by_id(book_id).title}' borrowed successfully.")

@app.command("return")
def cli_return(book_id: int = typer.Argument(..., help="Book ID")):
    """Mark a lent-out book as back on the shelf."""
    with open_store() as store:
        try:
            store.return_book(book_id)
        except CatalogError as e:
            print(str(e))
            return
        print(f"Book '{store.find_by_id(book_id).title}' returned successfully.")

@app.command("export")
def cli_export(output: str = typer.Argument(settings.export_file, help="CSV file to write")):
    """Export the catalog to a CSV file."""
    if not output.endswith(".csv"):
        output += ".csv"
    with open_store() as store:
        try:
            store.export_csv(output)
        except CatalogError as e:
            print(f"Export failed: {e}")
            return
        print(f"{store.count_total()} books exported to {output}")

@app.command("import")
def cli_import(file_path: str = typer.Argument(..., help="CSV file in export layout")):
    """Add the books listed in a CSV file."""
    with open_store() as store:
        try:
            imported, skipped = store.import_csv(file_path)
        except CatalogError as e:
            print(f"Import failed: {e}")
            return
        print(f"Import completed: {imported} added, {skipped} skipped")

@app.command("stats")
def cli_stats():
    """Show catalog statistics."""
    with open_store() as store:
        print_stats_result(store.statistics())


# --- Interactive menu ---
def _show_all(store: CatalogStore) -> None:
    books = store.list_books()
    if not books:
        console.print("[yellow]No books in the library.[/]")
        return
    console.print(book_table(books))
    console.print(f"[dim]📊 Total books: {len(books)}[/]")

def _report(e: Exception) -> None:
    console.print(f"[bold red]Error:[/] {escape(str(e))}")

def add(store: CatalogStore) -> None:
    """Prompt for the fields of a new book and add it."""
    console.print("[bold]=== ADD NEW BOOK ===[/]")
    title = Prompt.ask("Enter title")
    author = Prompt.ask("Enter author")
    year = IntPrompt.ask(f"Enter year ({MIN_YEAR}-{MAX_YEAR})")
    isbn = Prompt.ask("Enter ISBN")
    category = Prompt.ask("Enter category", default="")
    try:
        book = store.create(title, author, year, isbn, category)
    except CatalogError as e:
        _report(e)
        return
    console.print(f"[green]✅ Book added successfully with ID: {book.id}[/]")

def search(store: CatalogStore) -> None:
    """Search by ID, title or author."""
    choice = Prompt.ask("Search by [1] ID  [2] Title  [3] Author  [0] Back", choices=["1", "2", "3", "0"], default="2")
    if choice == "0":
        return
    if choice == "1":
        book_id = IntPrompt.ask("Enter book ID")
        try:
            books = [store.find_by_id(book_id)]
        except CatalogError as e:
            _report(e)
            return
    else:
        query = Prompt.ask("Enter search term", default="")
        books = store.find_by_title(query) if choice == "2" else store.find_by_author(query)
    if not books:
        console.print("[yellow]🔍 No matching books found.[/]")
        return
    console.print(book_table(books, title="🔎 Search Results"))
    console.print(f"[dim]📊 {len(books)} results found[/]")

def update(store: CatalogStore) -> None:
    """Prompt for new values; empty input keeps the current value."""
    _show_all(store)
    book_id = IntPrompt.ask("Enter ID of book to update")
    try:
        current = store.find_by_id(book_id)
    except CatalogError as e:
        _report(e)
        return
    console.print("Enter new details (press Enter to keep current value):")
    title = Prompt.ask(f"New title [dim]({escape(current.title)})[/]", default="", show_default=False)
    author = Prompt.ask(f"New author [dim]({escape(current.author)})[/]", default="", show_default=False)
    year = IntPrompt.ask(f"New year, 0 to keep [dim]({current.year})[/]", default=0, show_default=False)
    isbn = Prompt.ask(f"New ISBN [dim]({current.isbn})[/]", default="", show_default=False)
    category = Prompt.ask(f"New category [dim]({escape(current.category)})[/]", default="", show_default=False)
    book = store.update(book_id, title=title, author=author, year=year, isbn=isbn, category=category)
    console.print(book_table([book], title="✅ Book updated successfully"))

def remove(store: CatalogStore) -> None:
    """Delete a book after confirmation."""
    _show_all(store)
    book_id = IntPrompt.ask("🔍 Enter ID of book to delete")
    try:
        book = store.find_by_id(book_id)
    except CatalogError as e:
        _report(e)
        return

    console.print(Panel(
        f"[bold]Title:[/] {escape(book.title)}\n"
        f"[bold]Author:[/] {escape(book.author)}\n"
        f"[bold]ISBN:[/] {book.isbn}",
        title="📚 Book to delete",
        border_style="yellow"
    ))

    if Confirm.ask("🗑️ Are you sure you want to delete this book?", default=False):
        store.delete(book_id)
        console.print(f"[green]✅ [bold]{escape(book.title)}[/] deleted successfully.[/]")
    else:
        console.print("[blue]🚫 Deletion cancelled.[/]")

def sort(store: CatalogStore) -> None:
    choice = Prompt.ask("Sort by [1] Title  [2] Author  [3] Year  [0] Back", choices=["1", "2", "3", "0"], default="1")
    if choice == "0":
        return
    store.sort_by(SORT_FIELDS[int(choice) - 1])
    _show_all(store)

def borrow(store: CatalogStore) -> None:
    _show_all(store)
    book_id = IntPrompt.ask("Enter ID of book to borrow")
    try:
        store.borrow(book_id)
    except CatalogError as e:
        _report(e)
        return
    console.print(f"[green]Book '{escape(store.find_by_id(book_id).title)}' borrowed successfully.[/]")

def return_book(store: CatalogStore) -> None:
    _show_all(store)
    book_id = IntPrompt.ask("Enter ID of book to return")
    try:
        store.return_book(book_id)
    except CatalogError as e:
        _report(e)
        return
    console.print(f"[green]Book '{escape(store.find_by_id(book_id).title)}' returned successfully.[/]")

def export(store: CatalogStore) -> None:
    filename = Prompt.ask("Enter filename", default=settings.export_file)
    if not filename.endswith(".csv"):
        filename += ".csv"
    try:
        store.export_csv(filename)
    except CatalogError as e:
        console.print(f"[bold red]Export failed:[/] {escape(str(e))}")
        return
    console.print(f"[green]Data exported to {escape(filename)} successfully.[/]")

def stats(store: CatalogStore) -> None:
    statistics = store.statistics()
    console.print(Panel.fit(
        f"[bold]Total books:[/] {statistics['total_books']}\n"
        f"[bold]Available books:[/] {statistics['available_books']}\n"
        f"[bold]Borrowed books:[/] {statistics['borrowed_books']}",
        title="📊 Library Statistics",
        border_style="blue"
    ))

MENU_ITEMS = [
    ("1", "Add new book", "➕", add),
    ("2", "Display all books", "📚", _show_all),
    ("3", "Search books", "🔎", search),
    ("4", "Update book", "✏️", update),
    ("5", "Delete book", "🗑️", remove),
    ("6", "Sort books", "🔀", sort),
    ("7", "Borrow book", "📤", borrow),
    ("8", "Return book", "📥", return_book),
    ("9", "Export to CSV", "💾", export),
    ("10", "Statistics", "📊", stats),
]

def run_menu(data_file: Optional[str] = None) -> None:
    """Interactive numbered menu over a single catalog that is saved on exit."""
    def render_menu() -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon, _ in MENU_ITEMS:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")
        table.add_row("[reverse]0[/]", "🚪 Exit")
        console.print(Panel(table, title=settings.app_name, border_style="cyan", box=box.HEAVY, padding=(1, 2)))

    store = CatalogStore(data_file)
    handlers = {key: handler for key, _, _, handler in MENU_ITEMS}
    try:
        while True:
            console.clear()
            render_menu()
            choice = Prompt.ask("Enter your choice", choices=list(handlers) + ["0"], default="2")
            if choice == "0":
                break
            handlers[choice](store)
            Prompt.ask("[dim]Press Enter to continue[/]", default="", show_default=False)
    finally:
        try:
            store.close()
            console.print("[green]Thank you for using the Library Management System! Data saved.[/]")
        except StorageError as e:
            console.print(f"[bold red]Could not save catalog:[/] {escape(str(e))}")

def main() -> None:
    logging.basicConfig(level=logging.DEBUG if settings.debug else settings.log_level.upper())
    if len(sys.argv) > 1:
        app()
    else:
        run_menu()

if __name__ == "__main__":
    main()
