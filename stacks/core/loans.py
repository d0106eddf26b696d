#!/usr/bin/env python

"""
    Loan lifecycle for Stacks: open -> returned, exactly once.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
from stacks.core.models import Loan, LoanStatusEnum
from stacks.core.exceptions import AlreadyReturnedError, LoanNotFoundError


class LoanLifecycle:

    def __init__(self, db_session, clock=datetime.date.today):
        self.db = db_session
        self.clock = clock

    def get(self, loan_id: int, lock: bool = False) -> Loan:
        loan = self.db.get(Loan, loan_id, with_for_update=lock, populate_existing=lock)
        if loan is None:
            raise LoanNotFoundError(f"Loan {loan_id} does not exist.")
        return loan

    def open(self, user_id: int, book_id: int, loan_period_days: int) -> Loan:
        today = self.clock()
        loan = Loan(
            user_id=user_id,
            book_id=book_id,
            loan_date=today,
            due_date=today + datetime.timedelta(days=loan_period_days),
            status=LoanStatusEnum.OPEN,
        )
        self.db.add(loan)
        self.db.flush()
        return loan

    def close(self, loan_id: int) -> Loan:
        """
        Marks an open loan as returned today.

        Raises:
            LoanNotFoundError: If the loan does not exist.
            AlreadyReturnedError: If the loan was already returned.
        """
        loan = self.get(loan_id, lock=True)
        if not loan.is_open:
            raise AlreadyReturnedError(
                f"Loan {loan.id} was already returned on {loan.return_date.isoformat()}.")
        loan.status = LoanStatusEnum.RETURNED
        loan.return_date = self.clock()
        self.db.flush()
        return loan
