#!/usr/bin/env python

"""
    Inventory ledger for Stacks.

    The ledger is the only code path that writes `Book.available_copies`.
    Each write is a compare-and-swap on `Book.version`, so two sessions
    that read the same version cannot both succeed.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from sqlalchemy.orm.exc import StaleDataError
from stacks.core.models import Book
from stacks.core.exceptions import (
    BusyError,
    InventoryOverrunError,
    OutOfStockError,
    UnknownBookError,
)

logger = logging.getLogger(__name__)


class InventoryLedger:

    def __init__(self, db_session):
        self.db = db_session

    def get_book(self, book_id: int) -> Book:
        """Loads the book row locked for the rest of the transaction."""
        book = self.db.get(Book, book_id, with_for_update=True, populate_existing=True)
        if book is None:
            raise UnknownBookError(f"Book {book_id} does not exist.")
        return book

    def reserve_copy(self, book_id: int) -> Book:
        """Takes one copy off the shelf.

        Raises:
            UnknownBookError: If the book does not exist.
            OutOfStockError: If no copy is available.
            BusyError: If another transaction wrote the book first.
        """
        book = self.get_book(book_id)
        if not book.is_borrowable:
            raise OutOfStockError(f"No copies of '{book.title}' are available.")
        book.available_copies -= 1
        self._write(book)
        return book

    def release_copy(self, book_id: int) -> Book:
        """Puts one copy back on the shelf.

        Raises:
            InventoryOverrunError: If every copy is already on the shelf,
                which means the loans and the ledger disagree.
        """
        book = self.get_book(book_id)
        if book.available_copies + 1 > book.total_copies:
            logger.error(
                f"Inventory overrun on book {book.id}: "
                f"available={book.available_copies} total={book.total_copies}")
            raise InventoryOverrunError(
                f"Book {book.id} already has all {book.total_copies} copies available.")
        book.available_copies += 1
        self._write(book)
        return book

    def _write(self, book: Book):
        try:
            self.db.flush()
        except StaleDataError as e:
            logger.warning(f"Concurrent write on book {book.id}: {e}")
            raise BusyError(f"Book {book.id} is being updated, please retry.") from e
