"""
Sample analysis script
Run this to exercise the engine on generated transaction data
"""

import asyncio
import numpy as np
from datetime import date, datetime, time, timedelta
from typing import List

from spendsight.core.logging import configure_logging
from spendsight.schemas.transaction import Category, Transaction, TransactionKind
from spendsight.services.analysis import AnalysisEngine
from spendsight.services.analysis_scheduler import AnalysisScheduler

AMOUNT_RANGES = {
    Category.FOOD: (50, 800),
    Category.TRANSPORTATION: (30, 500),
    Category.ENTERTAINMENT: (100, 1500),
    Category.SHOPPING: (200, 5000),
    Category.BILLS: (500, 4800),
    Category.HEALTHCARE: (100, 2000),
    Category.EDUCATION: (500, 5000),
}

DESCRIPTIONS = {
    Category.FOOD: ['Groceries', 'Restaurant', 'Coffee', 'Takeaway'],
    Category.TRANSPORTATION: ['Taxi', 'Fuel', 'Metro', 'Bus'],
    Category.ENTERTAINMENT: ['Cinema', 'Streaming', 'Concert', 'Gaming'],
    Category.SHOPPING: ['Clothes', 'Electronics', 'Home goods'],
    Category.BILLS: ['Phone', 'Electricity', 'Rent'],
    Category.HEALTHCARE: ['Pharmacy', 'Doctor', 'Gym'],
    Category.EDUCATION: ['Course', 'Books'],
}

def generate_sample_transactions(
    n_samples: int = 500,
    seed: int = 42,
    end: date = None,
    n_outliers: int = 5
) -> List[Transaction]:
    """
    Generate a year of random expenses plus monthly salary income

    A few expenses are inflated tenfold so the anomaly detector has
    something to find.
    """
    rng = np.random.default_rng(seed)
    end = end or date.today()
    start = end - timedelta(days=365)
    categories = list(AMOUNT_RANGES)

    transactions = []
    for i in range(n_samples):
        category = categories[rng.integers(len(categories))]
        min_amt, max_amt = AMOUNT_RANGES[category]
        amount = rng.uniform(min_amt, max_amt)
        if i < n_outliers:
            amount *= 10
        occurred_on = start + timedelta(days=int(rng.integers(0, 365)))
        descriptions = DESCRIPTIONS[category]

        transactions.append(Transaction(
            id=f"txn-{i}",
            owner_id="user-1",
            amount=round(amount, 2),
            description=descriptions[rng.integers(len(descriptions))],
            category=category,
            kind=TransactionKind.EXPENSE,
            occurred_on=occurred_on,
            recorded_at=datetime.combine(occurred_on, time(12, 0))
        ))

    for month in range(12):
        occurred_on = start + timedelta(days=30 * month + 1)
        transactions.append(Transaction(
            id=f"salary-{month}",
            owner_id="user-1",
            amount=50000,
            description="Salary",
            category=Category.INCOME,
            kind=TransactionKind.INCOME,
            occurred_on=occurred_on,
            recorded_at=datetime.combine(occurred_on, time(9, 0))
        ))

    return transactions

def main():
    configure_logging()

    print("="*60)
    print("SPENDSIGHT SAMPLE ANALYSIS")
    print("="*60)

    transactions = generate_sample_transactions()
    print(f"\nGenerated {len(transactions)} transactions")

    async def fetch_transactions():
        return transactions

    scheduler = AnalysisScheduler(AnalysisEngine(seed=42), fetch_transactions)
    result = asyncio.run(scheduler.run_once())

    print("\nForecasts:")
    for forecast in result.forecasts:
        print(
            f"  {forecast.category.value:<15} {forecast.predicted_amount:>10.2f}"
            f"  confidence={forecast.confidence:.2f}  trend={forecast.trend.value}"
        )

    print("\nAnomalies:")
    for anomaly in result.anomalies:
        print(f"  {anomaly.occurred_on}  {anomaly.category.value:<15} {anomaly.amount:>10.2f}  {anomaly.reason}")

    print("\nInsights:")
    print(f"  Pattern: {result.insights.spending_pattern.value}")
    print(f"  Risk: {result.insights.risk_level.value}")
    print(f"  Volatility index: {result.insights.volatility_index:.3f}")
    for recommendation in result.insights.recommendations:
        print(f"  - {recommendation}")

    print(f"\nModel accuracy: {result.model_accuracy:.2f}")
    print(f"Overall confidence: {result.confidence.overall:.2f}")

if __name__ == "__main__":
    main()
