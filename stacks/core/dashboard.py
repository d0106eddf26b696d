#!/usr/bin/env python

"""
    Dashboard projection for Stacks: every open loan joined with its
    user and book, plus the fine accrued so far.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
from stacks.configs import FINE_RATE
from stacks.core.db import SessionLocal, session_scope
from stacks.core.fines import fine, overdue_days
from stacks.core.models import Book, Loan, LoanStatusEnum, User


class DashboardProjection:

    def __init__(self, session_factory=SessionLocal, rate_per_day=FINE_RATE,
                 clock=datetime.date.today):
        self.session_factory = session_factory
        self.rate_per_day = rate_per_day
        self.clock = clock

    def query(self, db_session):
        return db_session.query(
            Loan.id, Loan.user_id, User.name, Loan.book_id, Book.title,
            Loan.loan_date, Loan.due_date, Loan.status
        ).join(User, Loan.user_id == User.id).join(
            Book, Loan.book_id == Book.id
        ).filter(
            Loan.status == LoanStatusEnum.OPEN
        ).order_by(Loan.due_date, Loan.id)

    def rows(self) -> list:
        # A single SELECT: rows come from one committed snapshot.
        with session_scope(self.session_factory) as db_session:
            records = self.query(db_session).all()
        today = self.clock()
        return [{
            "loan_id": r.id,
            "user_id": r.user_id,
            "user_name": r.name,
            "book_id": r.book_id,
            "book_title": r.title,
            "loan_date": r.loan_date,
            "due_date": r.due_date,
            "status": r.status.value,
            "days_overdue": overdue_days(r.due_date, today),
            "fine": fine(r.due_date, None, today, self.rate_per_day),
        } for r in records]
