"""Book Catalog - Core Application Package

This package contains the catalog manager modules:
- Record model (book.py)
- Record store and lending operations (catalog.py)
- Binary persistence format (storage.py)
- Input validation (validators.py)
- CLI interface and interactive menu (main.py)
"""
