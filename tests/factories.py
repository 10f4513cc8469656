"""
Transaction factories shared by the tests
"""

from datetime import date, datetime, time
from itertools import count

from spendsight.schemas.transaction import Category, Transaction, TransactionKind

_ids = count()

def make_transaction(
    amount,
    occurred_on: date,
    category: Category = Category.FOOD,
    kind: TransactionKind = TransactionKind.EXPENSE,
    description: str = ""
) -> Transaction:
    return Transaction(
        id=f"txn-{next(_ids)}",
        owner_id="user-1",
        amount=amount,
        description=description,
        category=category,
        kind=kind,
        occurred_on=occurred_on,
        recorded_at=datetime.combine(occurred_on, time(12, 0))
    )

def monthly_dates(n: int, start_year: int = 2025, day: int = 15):
    return [date(start_year + (m // 12), m % 12 + 1, day) for m in range(n)]
