"""
Analysis Service
Wires feature building, the per-category ensembles, the anomaly forest and
the insight generator into a single analyze() call
"""

from collections import Counter
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
import structlog

from spendsight.config import settings
from spendsight.ml.features import transactions_to_frame
from spendsight.ml.inference.model_registry import ModelRegistry
from spendsight.ml.models.anomaly_detector import AnomalyDetector
from spendsight.schemas.analysis import (
    AnalysisResult,
    AnomalyRecord,
    ConfidenceSummary,
    Forecast,
    Insights,
)
from spendsight.schemas.transaction import Category, Transaction
from spendsight.services.insight_generator import (
    FEATURE_IMPORTANCE,
    InsightGenerator,
    category_confidence,
    model_accuracy,
    overall_confidence,
)

logger = structlog.get_logger(__name__)

MINIMAL_RECOMMENDATION = "Add more transactions to unlock advanced AI insights and ML-powered predictions."

def minimal_analysis() -> AnalysisResult:
    """Degenerate result returned when there is not enough data to analyze"""
    return AnalysisResult(
        forecasts=[],
        anomalies=[],
        model_accuracy=0.1,
        feature_importance={},
        insights=Insights(recommendations=[MINIMAL_RECOMMENDATION]),
        confidence=ConfidenceSummary(overall=0.1, by_category={}),
        is_minimal=True,
    )

class AnalysisEngine:
    """
    Entry point of the forecasting and anomaly-detection core

    The engine owns the registry of per-category ensembles. With warm start
    enabled the ensembles are retrained in place on every call; otherwise a
    fresh registry is used per call.
    """

    def __init__(
        self,
        registry: Optional[ModelRegistry] = None,
        seed: Optional[int] = None,
        warm_start: Optional[bool] = None
    ):
        seed = settings.RANDOM_SEED if seed is None else seed
        self.rng = np.random.default_rng(seed)
        self.registry = registry if registry is not None else ModelRegistry(rng=self.rng)
        self.warm_start = settings.WARM_START if warm_start is None else warm_start
        self.insight_generator = InsightGenerator()
        self.last_analysis_at: Optional[datetime] = None
        self.last_training_metrics: Dict[Category, Dict[str, float]] = {}

    def analyze(self, transactions: Iterable[Transaction], as_of: Optional[date] = None) -> AnalysisResult:
        """
        Analyze a user's transaction history

        Args:
            transactions: Read-only transaction records, any order
            as_of: Reference date for recency scoring (defaults to today)

        Returns:
            A well-formed AnalysisResult; the minimal shape when data is
            insufficient or the analysis fails
        """
        transactions = list(transactions)

        if len(transactions) < settings.MIN_ANALYSIS_TRANSACTIONS:
            logger.info("Not enough transactions for analysis", count=len(transactions))
            return minimal_analysis()

        with self.registry.lock:
            try:
                result = self._run(transactions, as_of)
            except Exception:
                logger.exception("Analysis failed, returning minimal result", count=len(transactions))
                return minimal_analysis()

        self.last_analysis_at = result.generated_at
        return result

    def _run(self, transactions: List[Transaction], as_of: Optional[date]) -> AnalysisResult:
        registry = self.registry if self.warm_start else ModelRegistry(rng=self.rng)

        trained = self._train_models(registry, transactions)
        forecasts = self._generate_forecasts(registry, trained, transactions)

        df = transactions_to_frame(transactions)
        expenses = df[df['kind'] == 'expense'].reset_index(drop=True)
        anomalies = self._detect_anomalies(expenses)

        insights = self.insight_generator.generate(expenses, len(anomalies), len(transactions))
        by_category = category_confidence(expenses, as_of)

        logger.info(
            "Analysis completed",
            transactions=len(transactions),
            forecasts=len(forecasts),
            anomalies=len(anomalies),
            pattern=insights.spending_pattern.value,
            risk=insights.risk_level.value
        )

        return AnalysisResult(
            forecasts=forecasts,
            anomalies=anomalies,
            model_accuracy=model_accuracy(df),
            feature_importance=dict(FEATURE_IMPORTANCE),
            insights=insights,
            confidence=ConfidenceSummary(
                overall=overall_confidence(by_category),
                by_category=by_category
            ),
        )

    def _train_models(self, registry: ModelRegistry, transactions: List[Transaction]) -> List[Category]:
        """Train the ensemble of every expense category with enough history"""
        counts = Counter(
            t.category for t in transactions
            if t.is_expense and t.category != Category.INCOME
        )

        trained = []
        for category, count in counts.items():
            if count < settings.MIN_CATEGORY_TRANSACTIONS:
                continue

            model = registry.get_or_create(category)
            try:
                metrics = model.train(transactions)
            except Exception as e:
                logger.warning("Ensemble training failed", category=category.value, error=str(e))
                continue

            if metrics is not None:
                self.last_training_metrics[category] = metrics
                trained.append(category)

        return trained

    def _generate_forecasts(
        self,
        registry: ModelRegistry,
        categories: List[Category],
        transactions: List[Transaction]
    ) -> List[Forecast]:
        forecasts = []
        for category in categories:
            try:
                prediction = registry.get(category).predict(transactions)
            except Exception as e:
                logger.warning("Forecast generation failed", category=category.value, error=str(e))
                continue

            forecasts.append(Forecast(
                category=category,
                predicted_amount=prediction.value,
                confidence=prediction.confidence,
                trend=prediction.trend
            ))

        return sorted(forecasts, key=lambda f: f.predicted_amount, reverse=True)

    def _detect_anomalies(self, expenses: pd.DataFrame) -> List[AnomalyRecord]:
        if expenses.empty:
            return []

        detector = AnomalyDetector(rng=self.rng)
        detector.train(expenses)
        return detector.detect(expenses)
