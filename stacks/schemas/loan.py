from pydantic import BaseModel
from typing import Optional
from datetime import date
from decimal import Decimal
from stacks.core.models import LoanStatusEnum

class Loan(BaseModel):
    id: int
    user_id: int
    book_id: int
    loan_date: date
    due_date: date
    return_date: Optional[date] = None
    status: LoanStatusEnum

    class Config:
        from_attributes = True

class DashboardLoan(BaseModel):
    loan_id: int
    user_id: int
    user_name: str
    book_id: int
    book_title: str
    loan_date: date
    due_date: date
    status: str
    days_overdue: int
    fine: Decimal
