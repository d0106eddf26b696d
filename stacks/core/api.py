import datetime
import logging
from functools import wraps
from sqlalchemy.exc import IntegrityError
from stacks.configs import FINE_RATE, LOAN_PERIOD_DAYS, LOCK_TIMEOUT
from stacks.core.db import SessionLocal, session_scope
from stacks.core.circulation import Circulation
from stacks.core.dashboard import DashboardProjection
from stacks.core.models import Book, RoleEnum, User
from stacks.core.exceptions import StacksAPIError, ConstraintViolationError
from stacks import schemas

logger = logging.getLogger(__name__)


def failure(error: StacksAPIError) -> dict:
    result = {"success": False, "error": error.code, "message": str(error)}
    if error.retry:
        result["retry"] = True
    return result


def as_result(func):
    """
    Recovers StacksAPIError at the API boundary and reports it as a
    typed failure. Anything else (e.g. InventoryOverrunError) propagates.
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return {"success": True, **func(self, *args, **kwargs)}
        except StacksAPIError as e:
            logger.warning(f"{func.__name__} rejected ({e.code}): {e}")
            return failure(e)
    return wrapper


class StacksAPI:

    ROLES = [r.value for r in RoleEnum]

    def __init__(self, session_factory=SessionLocal, loan_period_days=LOAN_PERIOD_DAYS,
                 rate_per_day=FINE_RATE, lock_timeout=LOCK_TIMEOUT,
                 clock=datetime.date.today):
        self.session_factory = session_factory
        self.circulation = Circulation(
            session_factory, loan_period_days=loan_period_days,
            lock_timeout=lock_timeout, clock=clock)
        self.dashboard = DashboardProjection(
            session_factory, rate_per_day=rate_per_day, clock=clock)

    @as_result
    def list_users(self):
        with session_scope(self.session_factory) as db_session:
            users = User.get_many(db_session, order_by=User.name.asc())
            return {"data": [schemas.User.model_validate(u) for u in users]}

    @as_result
    def list_books(self):
        with session_scope(self.session_factory) as db_session:
            books = Book.get_many(db_session, order_by=Book.id.asc())
            return {"data": [schemas.Book.model_validate(b) for b in books]}

    @as_result
    def list_open_loans_with_fines(self):
        return {"data": [schemas.DashboardLoan(**row) for row in self.dashboard.rows()]}

    @as_result
    def add_user(self, name: str, email: str, role: str = RoleEnum.STUDENT.value):
        if not name or not name.strip():
            raise ConstraintViolationError("User name must not be blank.")
        if not email or not email.strip():
            raise ConstraintViolationError("User email must not be blank.")
        try:
            role = RoleEnum(role)
        except ValueError:
            raise ConstraintViolationError(
                f"Invalid role '{role}', expected one of: {', '.join(self.ROLES)}.")

        user = User(name=name.strip(), email=email.strip(), role=role)
        data = self._insert(user, schemas.User)
        logger.info(f"Added user {data.id} ({data.email}, {role.value})")
        return {"data": data, "message": "User added"}

    @as_result
    def add_book(self, title: str, author: str, total_copies: int):
        if not title or not title.strip():
            raise ConstraintViolationError("Book title must not be blank.")
        if not isinstance(total_copies, int) or isinstance(total_copies, bool):
            raise ConstraintViolationError("Total copies must be a whole number.")
        if total_copies < 0:
            raise ConstraintViolationError("Total copies must be zero or more.")

        book = Book(title=title.strip(), author=(author or "").strip(),
                    total_copies=total_copies, available_copies=total_copies)
        data = self._insert(book, schemas.Book)
        logger.info(f"Added book {data.id} '{data.title}' with {data.total_copies} copies")
        return {"data": data, "message": "Book added"}

    @as_result
    def borrow(self, user_id: int, book_id: int):
        loan = self.circulation.borrow(user_id, book_id)
        return {"data": schemas.Loan.model_validate(loan), "message": "Book borrowed"}

    @as_result
    def return_loan(self, loan_id: int):
        loan = self.circulation.return_loan(loan_id)
        return {"data": schemas.Loan.model_validate(loan), "message": "Book returned"}

    def _insert(self, record, schema):
        try:
            with session_scope(self.session_factory) as db_session:
                db_session.add(record)
                db_session.flush()
                db_session.refresh(record)
                return schema.model_validate(record)
        except IntegrityError as e:
            raise ConstraintViolationError(str(e.orig))
