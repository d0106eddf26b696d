import datetime
import pytest
from stacks.core.db import session_scope
from stacks.core.loans import LoanLifecycle
from stacks.core.models import LoanStatusEnum
from stacks.core.exceptions import AlreadyReturnedError, LoanNotFoundError

def test_open_sets_due_date(session_factory, make_user, make_book, clock):
    user_id, book_id = make_user(), make_book()
    with session_scope(session_factory) as s:
        loan = LoanLifecycle(s, clock=clock).open(user_id, book_id, 14)
    assert loan.status == LoanStatusEnum.OPEN
    assert loan.loan_date == datetime.date(2024, 1, 1)
    assert loan.due_date == datetime.date(2024, 1, 15)
    assert loan.return_date is None

def test_close_exactly_once(session_factory, make_user, make_book, clock):
    user_id, book_id = make_user(), make_book()
    with session_scope(session_factory) as s:
        loan_id = LoanLifecycle(s, clock=clock).open(user_id, book_id, 14).id

    clock.advance(3)
    with session_scope(session_factory) as s:
        loan = LoanLifecycle(s, clock=clock).close(loan_id)
    assert loan.status == LoanStatusEnum.RETURNED
    assert loan.return_date == datetime.date(2024, 1, 4)
    assert loan.due_date == datetime.date(2024, 1, 15)

    with pytest.raises(AlreadyReturnedError):
        with session_scope(session_factory) as s:
            LoanLifecycle(s, clock=clock).close(loan_id)

def test_close_unknown_loan(session_factory):
    with pytest.raises(LoanNotFoundError):
        with session_scope(session_factory) as s:
            LoanLifecycle(s).close(999)
