import datetime
from decimal import Decimal
from typing import Optional

CENTS = Decimal("0.01")


def overdue_days(due_date: datetime.date, today: datetime.date) -> int:
    if today <= due_date:
        return 0
    return (today - due_date).days


def fine(due_date: datetime.date, return_date: Optional[datetime.date],
         today: datetime.date, rate_per_day) -> Decimal:
    """Fine owed on a loan as of `today`.

    Returned loans accrue nothing, however late they came back.
    """
    if return_date is not None:
        return Decimal("0.00")
    amount = Decimal(overdue_days(due_date, today)) * Decimal(str(rate_per_day))
    return amount.quantize(CENTS)
