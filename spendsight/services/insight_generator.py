"""
Insight Generator Service
Classifies spending pattern and risk level from aggregate statistics
"""

import numpy as np
import pandas as pd
from datetime import date
from typing import Dict, List, Optional

from spendsight.ml.models.autoregressive import autocorrelation
from spendsight.schemas.analysis import Insights, RiskLevel, SpendingPattern
from spendsight.schemas.transaction import Category

SEASONAL_PROBE_LAGS = (3, 6, 12)

FEATURE_IMPORTANCE = {
    'Historical Amount': 0.35,
    'Seasonal Pattern': 0.25,
    'Trend Component': 0.20,
    'Day of Week': 0.10,
    'Category Frequency': 0.10,
}

PATTERN_RECOMMENDATIONS = {
    SpendingPattern.TRENDING_UP: [
        "Your spending is increasing. Consider implementing stricter budget controls.",
        "Review your largest expense categories and identify cost-cutting opportunities.",
    ],
    SpendingPattern.TRENDING_DOWN: [
        "Great job! Your spending is decreasing. Keep up the good financial habits.",
        "Consider allocating saved money to an emergency fund or investments.",
    ],
    SpendingPattern.SEASONAL: [
        "Your spending follows seasonal patterns. Plan ahead for high-spending periods.",
        "Create seasonal budgets to better manage cyclical expenses.",
    ],
    SpendingPattern.IRREGULAR: [
        "Your spending is highly variable. Focus on creating consistent spending habits.",
        "Track daily expenses more closely to identify spending triggers.",
    ],
}

HIGH_RISK_RECOMMENDATIONS = [
    "High financial risk detected. Consider consulting a financial advisor.",
    "Build an emergency fund covering 3-6 months of expenses.",
]

DEFAULT_RECOMMENDATIONS = [
    "Your spending patterns look healthy. Continue monitoring your finances regularly.",
    "Consider setting specific savings goals to optimize your financial growth.",
]

MAX_RECOMMENDATIONS = 5

def aggregate_by_month(expenses: pd.DataFrame) -> np.ndarray:
    """Total expense amount per calendar month, oldest month first"""
    if expenses.empty:
        return np.empty(0)
    months = expenses['occurred_on'].dt.to_period('M')
    return expenses.groupby(months)['amount'].sum().to_numpy(dtype=float)

def volatility_index(values: np.ndarray) -> float:
    if len(values) < 2 or values.mean() == 0:
        return 0.0
    return float(values.std() / values.mean())

def seasonality_strength(values: np.ndarray) -> float:
    """Max |autocorrelation| of monthly totals at quarterly, half-year and yearly lags"""
    if len(values) < 12:
        return 0.0
    return max(
        (abs(autocorrelation(values, lag)) for lag in SEASONAL_PROBE_LAGS if lag < len(values)),
        default=0.0
    )

def trend_slope(values: np.ndarray) -> float:
    """Least-squares slope of the values against their index"""
    if len(values) < 2:
        return 0.0
    slope, _ = np.polyfit(np.arange(len(values)), values, 1)
    return float(slope)

def classify_pattern(slope: float, seasonality: float, volatility: float) -> SpendingPattern:
    if abs(slope) > 100:
        return SpendingPattern.TRENDING_UP if slope > 0 else SpendingPattern.TRENDING_DOWN
    if seasonality > 0.3:
        return SpendingPattern.SEASONAL
    if volatility > 0.4:
        return SpendingPattern.IRREGULAR
    return SpendingPattern.CONSISTENT

def assess_risk(anomaly_rate: float, volatility: float, slope: float) -> RiskLevel:
    if anomaly_rate > 0.1 or volatility > 0.5:
        return RiskLevel.HIGH
    if anomaly_rate > 0.05 or volatility > 0.3 or abs(slope) > 50:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW

def build_recommendations(
    pattern: SpendingPattern,
    risk: RiskLevel,
    volatility: float,
    slope: float
) -> List[str]:
    recommendations = list(PATTERN_RECOMMENDATIONS.get(pattern, []))

    if risk == RiskLevel.HIGH:
        recommendations.extend(HIGH_RISK_RECOMMENDATIONS)

    if volatility > 0.4:
        recommendations.append(
            "High spending volatility detected. Implement automated savings to smooth cash flow."
        )

    if abs(slope) > 100:
        recommendations.append(
            "Significant spending trend detected. Review and adjust your financial strategy."
        )

    if not recommendations:
        recommendations = list(DEFAULT_RECOMMENDATIONS)

    return recommendations[:MAX_RECOMMENDATIONS]

def model_accuracy(transactions: pd.DataFrame) -> float:
    """
    Data-quality heuristic in [0.6, 0.95]: volume, category diversity and
    time span of the history
    """
    if transactions.empty:
        return 0.6
    data_quality = min(1.0, len(transactions) / 100)
    diversity = transactions['category'].nunique() / len(Category)
    span_days = (transactions['occurred_on'].max() - transactions['occurred_on'].min()).days
    score = data_quality * 0.4 + diversity * 0.3 + min(1.0, span_days / 365) * 0.3
    return float(min(0.95, max(0.6, score)))

def category_confidence(
    expenses: pd.DataFrame,
    as_of: Optional[date] = None
) -> Dict[Category, float]:
    """
    Per-category confidence from data volume, amount consistency and recency
    """
    as_of = pd.Timestamp(as_of or date.today())
    confidence: Dict[Category, float] = {}

    for category, group in expenses.groupby('category'):
        amounts = group['amount'].to_numpy(dtype=float)
        mean = amounts.mean()
        consistency = 1 / (1 + amounts.var() / (mean * mean)) if mean > 0 else 0.0
        days_since = (as_of - group['occurred_on'].max()).days
        recency = max(0.0, 1 - days_since / 30)

        score = (len(amounts) / 20) * 0.4 + consistency * 0.4 + recency * 0.2
        confidence[Category(category)] = float(min(0.95, max(0.1, score)))

    return confidence

def overall_confidence(by_category: Dict[Category, float]) -> float:
    if not by_category:
        return 0.5
    return float(min(0.95, max(0.1, np.mean(list(by_category.values())))))

class InsightGenerator:
    """
    Turns monthly expense totals and the anomaly count into a spending
    pattern, a risk level and recommendation strings
    """

    def generate(
        self,
        expenses: pd.DataFrame,
        anomaly_count: int,
        transaction_count: int
    ) -> Insights:
        monthly = aggregate_by_month(expenses)
        volatility = volatility_index(monthly)
        seasonality = seasonality_strength(monthly)
        slope = trend_slope(monthly)

        pattern = classify_pattern(slope, seasonality, volatility)
        anomaly_rate = anomaly_count / transaction_count if transaction_count else 0.0
        risk = assess_risk(anomaly_rate, volatility, slope)

        return Insights(
            spending_pattern=pattern,
            risk_level=risk,
            recommendations=build_recommendations(pattern, risk, volatility, slope),
            seasonality_strength=seasonality,
            volatility_index=volatility,
        )
