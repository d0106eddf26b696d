#!/usr/bin/env python

"""
    Circulation Models for Stacks,
    including the definition of the users, books and loans tables.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, ForeignKey, CheckConstraint,
    Enum as SQLAlchemyEnum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from stacks.core.db import Base
import enum

class RoleEnum(enum.Enum):
    STUDENT = 'student'
    TEACHER = 'teacher'
    ADMIN = 'admin'

class LoanStatusEnum(enum.Enum):
    OPEN = 'open'
    RETURNED = 'returned'


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(SQLAlchemyEnum(RoleEnum), nullable=False, default=RoleEnum.STUDENT)
    created_at = Column(DateTime(timezone=True), default=func.now())

    loans = relationship('Loan', back_populates='user')

    @classmethod
    def exists(cls, db_session, user_id):
        return db_session.get(cls, user_id)


class Book(Base):
    __tablename__ = 'books'
    __table_args__ = (
        CheckConstraint('total_copies >= 0', name='ck_books_total_copies'),
        CheckConstraint(
            'available_copies >= 0 AND available_copies <= total_copies',
            name='ck_books_available_copies'),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    total_copies = Column(Integer, nullable=False)
    available_copies = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())

    loans = relationship('Loan', back_populates='book')

    # Every UPDATE carries "WHERE version = <read version>"; a concurrent
    # writer makes the flush fail with StaleDataError.
    __mapper_args__ = {'version_id_col': version}

    @hybrid_property
    def is_borrowable(self):
        """True when at least one copy is on the shelf."""
        return self.available_copies > 0

    @classmethod
    def exists(cls, db_session, book_id):
        return db_session.get(cls, book_id)


class Loan(Base):
    __tablename__ = 'loans'
    __table_args__ = (
        CheckConstraint(
            "(status = 'OPEN' AND return_date IS NULL) OR "
            "(status = 'RETURNED' AND return_date IS NOT NULL)",
            name='ck_loans_return_date_status'),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey('books.id'), nullable=False, index=True)
    loan_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)
    status = Column(SQLAlchemyEnum(LoanStatusEnum), nullable=False, default=LoanStatusEnum.OPEN)

    user = relationship('User', back_populates='loans')
    book = relationship('Book', back_populates='loans')

    @hybrid_property
    def is_open(self):
        return self.status == LoanStatusEnum.OPEN

    @classmethod
    def count_open(cls, db_session, book_id):
        return db_session.query(cls).filter(
            cls.book_id == book_id,
            cls.status == LoanStatusEnum.OPEN
        ).count()
