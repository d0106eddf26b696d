from stacks.schemas.user import User
from stacks.schemas.book import Book
from stacks.schemas.loan import Loan, DashboardLoan

__all__ = ["User", "Book", "Loan", "DashboardLoan"]
