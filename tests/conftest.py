import pytest
from datetime import date

from factories import make_transaction, monthly_dates
from spendsight.schemas.transaction import Category, TransactionKind

@pytest.fixture
def food_spike_transactions():
    """12 monthly food expenses of 100 followed by one of 900"""
    dates = monthly_dates(13)
    amounts = [100] * 12 + [900]
    return [make_transaction(a, d) for a, d in zip(amounts, dates)]

@pytest.fixture
def mixed_transactions():
    """Several months of varied expenses across categories plus salary"""
    transactions = []
    food = [120, 95, 130, 110, 105, 140, 98, 125, 115, 135, 108, 122, 118, 99]
    bills = [800, 820, 790, 810, 805, 815, 800, 830, 795, 820, 812]
    for i, amount in enumerate(food):
        transactions.append(make_transaction(amount, date(2025, 1 + i % 12, 1 + i), Category.FOOD))
    for i, amount in enumerate(bills):
        transactions.append(make_transaction(amount, date(2025, 1 + i, 5), Category.BILLS))
    for i in range(4):
        transactions.append(make_transaction(60 + i, date(2025, 2 + i, 10), Category.ENTERTAINMENT))
    for i in range(6):
        transactions.append(make_transaction(
            3000, date(2025, 1 + i, 1), Category.INCOME, TransactionKind.INCOME
        ))
    return transactions
