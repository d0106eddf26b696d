#!/usr/bin/env python

"""
    Circulation transactions for Stacks: Borrow and Return.

    Each transaction touches exactly one book and one loan. Transactions
    on the same book are serialized by a per-book lock held until commit;
    inside the lock the ledger's version check guards against writers in
    other processes sharing the database.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
import logging
import threading
from contextlib import contextmanager
from stacks.configs import LOAN_PERIOD_DAYS, LOCK_TIMEOUT
from stacks.core.db import SessionLocal, session_scope
from stacks.core.ledger import InventoryLedger
from stacks.core.loans import LoanLifecycle
from stacks.core.models import Book, Loan, User
from stacks.core.exceptions import (
    SELECT_USER_FIRST,
    BusyError,
    UnknownBookError,
    UnknownUserError,
)

logger = logging.getLogger(__name__)


class BookLocks:
    """One mutex per book id; locks on different books never contend."""

    def __init__(self):
        self._guard = threading.Lock()
        # Never pruned; bounded by the catalog since callers check the book exists first.
        self._locks = {}

    def _lock_for(self, book_id: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(book_id, threading.Lock())

    @contextmanager
    def hold(self, book_id: int, timeout: float):
        lock = self._lock_for(book_id)
        if not lock.acquire(timeout=timeout):
            logger.warning(f"Timed out after {timeout}s waiting for book {book_id}")
            raise BusyError(f"Book {book_id} is busy, please retry.")
        try:
            yield
        finally:
            lock.release()


class Circulation:

    def __init__(self, session_factory=SessionLocal, loan_period_days=LOAN_PERIOD_DAYS,
                 lock_timeout=LOCK_TIMEOUT, clock=datetime.date.today, locks=None):
        self.session_factory = session_factory
        self.loan_period_days = loan_period_days
        self.lock_timeout = lock_timeout
        self.clock = clock
        self.locks = locks or BookLocks()

    def transaction(self):
        return session_scope(self.session_factory, lock_timeout=self.lock_timeout)

    def borrow(self, user_id: int, book_id: int) -> Loan:
        """
        Lends one copy of a book to a user.

        Args:
            user_id: Borrowing user.
            book_id: Book to take a copy of.

        Returns:
            The new open Loan.

        Raises:
            UnknownUserError: If the user does not exist.
            UnknownBookError: If the book does not exist.
            OutOfStockError: If no copy is available.
            BusyError: If the book could not be locked in time.
        """
        if not user_id:
            raise UnknownUserError(SELECT_USER_FIRST)

        with self.transaction() as db_session:
            if not User.exists(db_session, user_id):
                raise UnknownUserError(f"User {user_id} does not exist.")
            if not Book.exists(db_session, book_id):
                raise UnknownBookError(f"Book {book_id} does not exist.")

        with self.locks.hold(book_id, self.lock_timeout):
            with self.transaction() as db_session:
                InventoryLedger(db_session).reserve_copy(book_id)
                loan = LoanLifecycle(db_session, clock=self.clock).open(
                    user_id, book_id, self.loan_period_days)

        logger.info(f"Loan {loan.id}: user {user_id} borrowed book {book_id}, due {loan.due_date}")
        return loan

    def return_loan(self, loan_id: int) -> Loan:
        """
        Closes a loan and puts its copy back on the shelf.

        Raises:
            LoanNotFoundError: If the loan does not exist.
            AlreadyReturnedError: If the loan is already closed.
            BusyError: If the book could not be locked in time.
            InventoryOverrunError: If the book already has every copy available.
        """
        with self.transaction() as db_session:
            book_id = LoanLifecycle(db_session).get(loan_id).book_id

        with self.locks.hold(book_id, self.lock_timeout):
            with self.transaction() as db_session:
                loan = LoanLifecycle(db_session, clock=self.clock).close(loan_id)
                InventoryLedger(db_session).release_copy(loan.book_id)

        logger.info(f"Loan {loan.id}: book {loan.book_id} returned on {loan.return_date}")
        return loan
