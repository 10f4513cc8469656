from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

class Category(str, Enum):
    FOOD = "food"
    TRANSPORTATION = "transportation"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    BILLS = "bills"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    TRAVEL = "travel"
    INCOME = "income"
    OTHER = "other"

class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

class Transaction(BaseModel):
    """Read-only transaction record supplied by the persistence layer"""
    id: str
    owner_id: str
    amount: Decimal = Field(..., gt=0)
    description: str = ""
    category: Category
    kind: TransactionKind
    occurred_on: date
    recorded_at: datetime

    class Config:
        frozen = True

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionKind.EXPENSE
