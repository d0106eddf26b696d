import os
os.environ.setdefault("TESTING", "true")

import datetime
import pytest
from stacks.core.db import Base, make_engine, make_session_factory, session_scope
from stacks.core.models import Book, User, RoleEnum


class Clock:
    """Settable stand-in for datetime.date.today."""

    def __init__(self, today):
        self.today = today

    def __call__(self):
        return self.today

    def advance(self, days):
        self.today += datetime.timedelta(days=days)


@pytest.fixture
def session_factory(tmp_path):
    # File-backed so that concurrent threads get their own connections.
    engine = make_engine(f"sqlite:///{tmp_path / 'stacks.db'}", echo=False)
    Base.metadata.create_all(engine)
    try:
        yield make_session_factory(engine)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def clock():
    return Clock(datetime.date(2024, 1, 1))

@pytest.fixture
def make_user(session_factory):
    def _make_user(name="Paul Atreides", email=None, role=RoleEnum.STUDENT):
        with session_scope(session_factory) as s:
            user = User(name=name, email=email or f"{name.split()[0].lower()}@example.com", role=role)
            s.add(user)
            s.flush()
            return user.id
    return _make_user

@pytest.fixture
def make_book(session_factory):
    def _make_book(title="Dune", author="Frank Herbert", copies=1):
        with session_scope(session_factory) as s:
            book = Book(title=title, author=author, total_copies=copies, available_copies=copies)
            s.add(book)
            s.flush()
            return book.id
    return _make_book

@pytest.fixture
def available(session_factory):
    def _available(book_id):
        with session_scope(session_factory) as s:
            return s.get(Book, book_id).available_copies
    return _available
