import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from stacks.core.circulation import BookLocks, Circulation
from stacks.core.db import session_scope
from stacks.core.loans import LoanLifecycle
from stacks.core.models import Book, Loan, LoanStatusEnum
from stacks.core.exceptions import (
    AlreadyReturnedError,
    BusyError,
    InventoryOverrunError,
    LoanNotFoundError,
    OutOfStockError,
    UnknownBookError,
    UnknownUserError,
)

@pytest.fixture
def circulation(session_factory, clock):
    return Circulation(session_factory, loan_period_days=14, lock_timeout=5, clock=clock)

def open_loans(session_factory, book_id):
    with session_scope(session_factory) as s:
        return Loan.count_open(s, book_id)

def test_borrow_and_return(circulation, session_factory, make_user, make_book, available, clock):
    user_id, book_id = make_user(), make_book(copies=1)

    loan = circulation.borrow(user_id, book_id)
    assert available(book_id) == 0
    assert loan.status == LoanStatusEnum.OPEN
    assert (loan.due_date - loan.loan_date).days == 14
    assert open_loans(session_factory, book_id) == 1

    returned = circulation.return_loan(loan.id)
    assert available(book_id) == 1
    assert returned.status == LoanStatusEnum.RETURNED
    assert returned.return_date == clock()
    assert open_loans(session_factory, book_id) == 0

def test_exhaustion_and_recovery(circulation, make_user, make_book):
    alice, bob = make_user("Alice Reader"), make_user("Bob Teacher")
    book_id = make_book(copies=1)

    first = circulation.borrow(alice, book_id)
    with pytest.raises(OutOfStockError):
        circulation.borrow(bob, book_id)
    with pytest.raises(OutOfStockError):
        circulation.borrow(alice, book_id)

    circulation.return_loan(first.id)
    assert circulation.borrow(bob, book_id).user_id == bob

def test_unknown_user_mutates_nothing(circulation, session_factory, make_book, available):
    book_id = make_book(copies=1)
    with pytest.raises(UnknownUserError):
        circulation.borrow(999999, book_id)
    assert available(book_id) == 1
    assert open_loans(session_factory, book_id) == 0

def test_missing_user_id(circulation, make_book):
    with pytest.raises(UnknownUserError, match="Select a user first"):
        circulation.borrow(None, make_book())

def test_unknown_book(circulation, make_user):
    with pytest.raises(UnknownBookError):
        circulation.borrow(make_user(), 31337)
    assert 31337 not in circulation.locks._locks

def test_return_twice(circulation, make_user, make_book, available):
    book_id = make_book(copies=2)
    loan = circulation.borrow(make_user(), book_id)
    circulation.return_loan(loan.id)
    with pytest.raises(AlreadyReturnedError):
        circulation.return_loan(loan.id)
    assert available(book_id) == 2

def test_return_unknown_loan(circulation):
    with pytest.raises(LoanNotFoundError):
        circulation.return_loan(12345)

def test_borrow_rolls_back_reservation(circulation, session_factory, make_user, make_book, available):
    """A failure after the copy is reserved must put the copy back."""
    user_id, book_id = make_user(), make_book(copies=1)
    with patch.object(LoanLifecycle, "open", side_effect=RuntimeError("disk on fire")):
        with pytest.raises(RuntimeError):
            circulation.borrow(user_id, book_id)
    assert available(book_id) == 1
    assert open_loans(session_factory, book_id) == 0

def test_return_rolls_back_close_on_overrun(circulation, session_factory, make_user, make_book, available):
    user_id, book_id = make_user(), make_book(copies=1)
    # An open loan that never went through the ledger.
    with session_scope(session_factory) as s:
        loan_id = LoanLifecycle(s).open(user_id, book_id, 14).id

    with pytest.raises(InventoryOverrunError):
        circulation.return_loan(loan_id)
    assert available(book_id) == 1
    assert open_loans(session_factory, book_id) == 1

def test_no_overbooking_under_concurrency(circulation, session_factory, make_user, make_book, available):
    copies, borrowers = 3, 8
    book_id = make_book(copies=copies)
    users = [make_user(f"Reader {i}", email=f"reader{i}@example.com") for i in range(borrowers)]
    barrier = threading.Barrier(borrowers)

    def attempt(user_id):
        barrier.wait()
        try:
            circulation.borrow(user_id, book_id)
            return "ok"
        except OutOfStockError:
            return "out_of_stock"

    with ThreadPoolExecutor(max_workers=borrowers) as pool:
        outcomes = list(pool.map(attempt, users))

    assert outcomes.count("ok") == copies
    assert outcomes.count("out_of_stock") == borrowers - copies
    assert available(book_id) == 0
    assert open_loans(session_factory, book_id) == copies

def test_inventory_conservation(circulation, session_factory, make_user, make_book, available):
    total = 3
    book_id = make_book(copies=total)
    users = [make_user(f"Reader {i}", email=f"reader{i}@example.com") for i in range(4)]
    rng = random.Random(7)
    outstanding = []

    for _ in range(40):
        if outstanding and rng.random() < 0.5:
            circulation.return_loan(outstanding.pop(rng.randrange(len(outstanding))))
        else:
            try:
                outstanding.append(circulation.borrow(rng.choice(users), book_id).id)
            except OutOfStockError:
                assert len(outstanding) == total
        assert available(book_id) + open_loans(session_factory, book_id) == total

def test_busy_when_book_is_locked(session_factory, make_user, make_book, available):
    locks = BookLocks()
    circulation = Circulation(session_factory, lock_timeout=0.05, locks=locks)
    user_id, book_id = make_user(), make_book(copies=1)

    with locks.hold(book_id, timeout=1):
        with pytest.raises(BusyError):
            circulation.borrow(user_id, book_id)
    assert available(book_id) == 1

def test_books_do_not_contend(session_factory, make_user, make_book, available):
    locks = BookLocks()
    circulation = Circulation(session_factory, lock_timeout=0.05, locks=locks)
    user_id = make_user()
    dune, solaris = make_book("Dune"), make_book("Solaris", "Stanislaw Lem")

    with locks.hold(dune, timeout=1):
        circulation.borrow(user_id, solaris)
    assert available(solaris) == 0
    assert available(dune) == 1

def test_return_busy_when_book_is_locked(session_factory, make_user, make_book, available):
    locks = BookLocks()
    circulation = Circulation(session_factory, lock_timeout=0.05, locks=locks)
    book_id = make_book(copies=1)
    loan = circulation.borrow(make_user(), book_id)

    with locks.hold(book_id, timeout=1):
        with pytest.raises(BusyError):
            circulation.return_loan(loan.id)
    assert available(book_id) == 0
    assert open_loans(session_factory, book_id) == 1

    circulation.return_loan(loan.id)
    assert available(book_id) == 1

def shelf_snapshot(session_factory, book_id):
    """Available copies and open loans of a book, read in one statement."""
    open_count = select(func.count(Loan.id)).where(
        Loan.book_id == book_id, Loan.status == LoanStatusEnum.OPEN
    ).scalar_subquery()
    with session_scope(session_factory) as s:
        return s.execute(
            select(Book.available_copies, open_count).where(Book.id == book_id)
        ).one()

def test_conservation_with_concurrent_borrows_and_returns(circulation, session_factory, make_user, make_book):
    total, borrowers = 3, 5
    book_id = make_book(copies=total)
    holders = [make_user(f"Holder {i}", email=f"holder{i}@example.com") for i in range(total)]
    readers = [make_user(f"Reader {i}", email=f"reader{i}@example.com") for i in range(borrowers)]
    held = [circulation.borrow(user_id, book_id).id for user_id in holders]

    barrier = threading.Barrier(total + borrowers)
    done = threading.Event()
    snapshots = []

    def watch():
        while not done.is_set():
            snapshots.append(shelf_snapshot(session_factory, book_id))
            time.sleep(0.001)

    def give_back(loan_id):
        barrier.wait()
        circulation.return_loan(loan_id)
        return "returned"

    def take(user_id):
        barrier.wait()
        try:
            circulation.borrow(user_id, book_id)
            return "ok"
        except OutOfStockError:
            return "out_of_stock"

    watcher = threading.Thread(target=watch)
    watcher.start()
    try:
        with ThreadPoolExecutor(max_workers=total + borrowers) as pool:
            returns = [pool.submit(give_back, loan_id) for loan_id in held]
            borrows = [pool.submit(take, user_id) for user_id in readers]
            outcomes = [f.result() for f in borrows]
            assert [f.result() for f in returns] == ["returned"] * total
    finally:
        done.set()
        watcher.join()

    available_copies, open_count = shelf_snapshot(session_factory, book_id)
    assert available_copies + open_count == total
    assert open_count == outcomes.count("ok")
    assert outcomes.count("ok") <= total
    assert snapshots
    assert all(a + o == total for a, o in snapshots)
