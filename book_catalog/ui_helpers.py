import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

from book_catalog.book import Book
from book_catalog.config import settings

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, settings.output_mode).lower()

def book_table(books: List[Book], title: str = "📚 Library Book Records") -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", justify="right", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Year", justify="right")
    table.add_column("ISBN", no_wrap=True)
    table.add_column("Category")
    table.add_column("Status")
    for b in books:
        status = "[green]Available[/]" if b.available else "[yellow]Borrowed[/]"
        table.add_row(str(b.id), escape(b.title), escape(b.author), str(b.year), b.isbn, escape(b.category), status)
    return table

def format_book_line(book: Book) -> str:
    return f"{book.id} - {book.title} by {book.author} ({book.year}) [{book.isbn}] {book.category} - {book.status}"

def print_list_result(books: List[Book]) -> None:
    """Print a list of books in the current output mode.
    - plain: one 'ID - Title by Author (Year) [ISBN] Category - Status' line per book
    - json: JSON array of book objects
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in the library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        _console.print(book_table(books))
        _console.print(f"[dim]Total books: {len(books)}[/]")
    else:
        for b in books:
            print(format_book_line(b))

def print_book_result(book: Book) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        _console.print(Panel.fit(
            f"[bold]ID:[/] {book.id}\n"
            f"[bold]Title:[/] {escape(book.title)}\n"
            f"[bold]Author:[/] {escape(book.author)}\n"
            f"[bold]Year:[/] {book.year}\n"
            f"[bold]ISBN:[/] {book.isbn}\n"
            f"[bold]Category:[/] {escape(book.category)}\n"
            f"[bold]Status:[/] {book.status}",
            title="🔍 Book Found",
            border_style="green",
        ))
    else:
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Year: {book.year}")
        print(f"ISBN: {book.isbn}")
        print(f"Category: {book.category}")
        print(f"Status: {book.status}")

def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print catalog statistics in the current output mode.
    - plain: one 'Label: count' line per figure
    - json: JSON object
    - rich: Panel with the figures
    """
    mode = get_output_mode()

    total = stats.get("total_books", 0)
    available = stats.get("available_books", 0)
    borrowed = stats.get("borrowed_books", 0)

    if mode == "json":
        print(json.dumps({"total_books": total, "available_books": available, "borrowed_books": borrowed}))
    elif mode == "rich":
        content = (
            f"[bold]Total books:[/] {total}\n"
            f"[bold]Available books:[/] {available}\n"
            f"[bold]Borrowed books:[/] {borrowed}"
        )
        _console.print(Panel.fit(content, title="📊 Library Statistics", border_style="blue"))
    else:
        print(f"Total books: {total}")
        print(f"Available books: {available}")
        print(f"Borrowed books: {borrowed}")
