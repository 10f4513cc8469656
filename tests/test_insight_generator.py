import numpy as np
import pytest
from datetime import date

from factories import make_transaction, monthly_dates
from spendsight.ml.features import transactions_to_frame
from spendsight.schemas.analysis import RiskLevel, SpendingPattern
from spendsight.schemas.transaction import Category
from spendsight.services.insight_generator import (
    DEFAULT_RECOMMENDATIONS,
    InsightGenerator,
    aggregate_by_month,
    assess_risk,
    build_recommendations,
    category_confidence,
    classify_pattern,
    model_accuracy,
    overall_confidence,
    seasonality_strength,
    trend_slope,
    volatility_index,
)

def test_aggregate_by_month_is_chronological():
    transactions = [
        make_transaction(30, date(2025, 3, 2)),
        make_transaction(10, date(2025, 1, 5)),
        make_transaction(15, date(2025, 1, 20)),
        make_transaction(20, date(2025, 2, 1)),
    ]
    totals = aggregate_by_month(transactions_to_frame(transactions))

    assert list(totals) == [25.0, 20.0, 30.0]

def test_volatility_index():
    assert volatility_index(np.array([100.0])) == 0.0
    assert volatility_index(np.array([100.0, 100.0])) == 0.0
    assert volatility_index(np.array([50.0, 150.0])) == pytest.approx(0.5)

def test_trend_slope():
    assert trend_slope(np.array([100.0, 200.0, 300.0])) == pytest.approx(100.0)
    assert trend_slope(np.array([5.0])) == 0.0

def test_seasonality_needs_a_year_of_months():
    assert seasonality_strength(np.arange(11.0)) == 0.0
    yearly = np.tile([100.0, 300.0, 100.0], 5)
    assert seasonality_strength(yearly) > 0.3

@pytest.mark.parametrize("slope, seasonality, volatility, expected", [
    (150, 0.9, 0.9, SpendingPattern.TRENDING_UP),
    (-150, 0.0, 0.0, SpendingPattern.TRENDING_DOWN),
    (10, 0.5, 0.9, SpendingPattern.SEASONAL),
    (10, 0.1, 0.5, SpendingPattern.IRREGULAR),
    (10, 0.1, 0.1, SpendingPattern.CONSISTENT),
])
def test_classify_pattern(slope, seasonality, volatility, expected):
    assert classify_pattern(slope, seasonality, volatility) == expected

@pytest.mark.parametrize("anomaly_rate, volatility, slope, expected", [
    (0.2, 0.0, 0, RiskLevel.HIGH),
    (0.0, 0.6, 0, RiskLevel.HIGH),
    (0.07, 0.0, 0, RiskLevel.MEDIUM),
    (0.0, 0.35, 0, RiskLevel.MEDIUM),
    (0.0, 0.0, -60, RiskLevel.MEDIUM),
    (0.01, 0.1, 10, RiskLevel.LOW),
])
def test_assess_risk(anomaly_rate, volatility, slope, expected):
    assert assess_risk(anomaly_rate, volatility, slope) == expected

def test_recommendations_default_when_nothing_triggers():
    assert build_recommendations(SpendingPattern.CONSISTENT, RiskLevel.LOW, 0.1, 5) == DEFAULT_RECOMMENDATIONS

def test_recommendations_are_capped():
    recommendations = build_recommendations(SpendingPattern.TRENDING_UP, RiskLevel.HIGH, 0.9, 500)

    assert len(recommendations) == 5
    assert recommendations[0].startswith("Your spending is increasing")

def test_model_accuracy_bounds(mixed_transactions):
    df = transactions_to_frame(mixed_transactions)

    assert 0.6 <= model_accuracy(df) <= 0.95
    assert model_accuracy(transactions_to_frame([])) == 0.6

def test_category_confidence_bounds(mixed_transactions):
    df = transactions_to_frame(mixed_transactions)
    expenses = df[df['kind'] == 'expense']
    confidence = category_confidence(expenses, as_of=date(2025, 12, 1))

    assert set(confidence) == {Category.FOOD, Category.BILLS, Category.ENTERTAINMENT}
    assert all(0.1 <= value <= 0.95 for value in confidence.values())
    assert 0.1 <= overall_confidence(confidence) <= 0.95
    assert overall_confidence({}) == 0.5

def test_recent_data_raises_confidence():
    transactions = [make_transaction(100, d) for d in monthly_dates(6)]
    expenses = transactions_to_frame(transactions)

    fresh = category_confidence(expenses, as_of=date(2025, 6, 20))[Category.FOOD]
    stale = category_confidence(expenses, as_of=date(2026, 6, 20))[Category.FOOD]

    assert fresh > stale

def test_generate_insights(food_spike_transactions):
    expenses = transactions_to_frame(food_spike_transactions)
    insights = InsightGenerator().generate(expenses, anomaly_count=1, transaction_count=13)

    assert insights.volatility_index > 0.5
    assert insights.risk_level == RiskLevel.HIGH
    assert insights.spending_pattern == SpendingPattern.IRREGULAR
    assert 1 <= len(insights.recommendations) <= 5
