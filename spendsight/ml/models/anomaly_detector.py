import pandas as pd
import numpy as np
import structlog
from sklearn.ensemble import IsolationForest
from typing import Dict, List, Optional, Tuple

from spendsight.config import settings
from spendsight.core.exceptions import ModelNotTrainedError
from spendsight.ml.features import build_anomaly_features, calculate_category_stats
from spendsight.schemas.analysis import AnomalyRecord
from spendsight.schemas.transaction import Category

logger = structlog.get_logger(__name__)

def build_forest(
    n_samples: int,
    rng: Optional[np.random.Generator] = None,
    n_trees: int = None,
    subsample_size: int = None
) -> IsolationForest:
    """
    Isolation forest sized for n_samples rows

    Each tree sees min(subsample_size, n_samples) rows, so the score
    normalization uses the effective subsample size.
    """
    rng = rng if rng is not None else np.random.default_rng()
    subsample_size = subsample_size or settings.FOREST_SUBSAMPLE_SIZE

    return IsolationForest(
        n_estimators=n_trees or settings.FOREST_TREES,
        max_samples=max(1, min(subsample_size, n_samples)),
        random_state=int(rng.integers(np.iinfo(np.int32).max))
    )

def statistical_severity(amount: float, mean: float, std: float, sigma: float = None) -> float:
    """
    Z-score of an amount that lies strictly above mean + sigma * std, else 0
    """
    sigma = settings.ANOMALY_SIGMA_THRESHOLD if sigma is None else sigma
    if std <= 0 or amount <= mean + sigma * std:
        return 0.0
    return (amount - mean) / std

class AnomalyDetector:
    """
    Detects unusual transactions by combining a per-category sigma rule
    with an isolation forest score
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        n_trees: int = None,
        subsample_size: int = None
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.n_trees = n_trees
        self.subsample_size = subsample_size
        self.model: Optional[IsolationForest] = None
        self.category_stats = pd.DataFrame()
        self.is_trained = False

    def train(self, transactions: pd.DataFrame) -> Dict[str, float]:
        """
        Fit the forest on pooled per-transaction features

        Args:
            transactions: Frame from transactions_to_frame (expenses only)

        Returns:
            Training statistics
        """
        self.category_stats = calculate_category_stats(transactions)
        X = build_anomaly_features(transactions)

        if len(X) == 0:
            self.is_trained = False
            return {'n_samples': 0, 'n_anomalies': 0, 'anomaly_rate': 0.0}

        self.model = build_forest(len(X), self.rng, self.n_trees, self.subsample_size)
        self.model.fit(X)
        self.is_trained = True

        n_anomalies = len(self.detect(transactions, limit=len(transactions)))
        stats = {
            'n_samples': len(X),
            'n_anomalies': n_anomalies,
            'anomaly_rate': n_anomalies / len(X),
        }
        logger.info("Anomaly detector trained", **stats)
        return stats

    def forest_scores(self, features: np.ndarray) -> np.ndarray:
        """Isolation scores in (0, 1]; values close to 1 are easy to isolate"""
        if not self.is_trained:
            raise ModelNotTrainedError("AnomalyDetector")
        return -self.model.score_samples(np.atleast_2d(features))

    def score_transaction(
        self,
        amount: float,
        category: str,
        forest_score: float
    ) -> Tuple[bool, float, str]:
        """
        Score one transaction

        Returns:
            (is_anomaly, severity, reason)
        """
        if not self.is_trained:
            raise ModelNotTrainedError("AnomalyDetector")

        stats = self.category_stats.loc[category]
        severity = statistical_severity(amount, stats['mean'], stats['std'])
        reason = ""
        if severity > 0:
            reason = f"Unusually high {category} expense ({severity:.1f}σ above average)"

        if forest_score > settings.FOREST_SCORE_THRESHOLD:
            severity = max(severity, forest_score)
            reason = reason or f"ML model detected unusual spending pattern (score: {forest_score:.2f})"

        is_anomaly = severity > settings.ANOMALY_SEVERITY_CUTOFF
        return is_anomaly, float(severity), reason or "Transaction appears normal"

    def detect(self, transactions: pd.DataFrame, limit: Optional[int] = None) -> List[AnomalyRecord]:
        """
        Flag anomalous transactions, most severe first

        Categories with fewer than MIN_ANOMALY_CATEGORY_TRANSACTIONS rows are
        not scored. `limit` defaults to MAX_ANOMALIES.
        """
        if not self.is_trained:
            raise ModelNotTrainedError("AnomalyDetector")
        if limit is None:
            limit = settings.MAX_ANOMALIES

        scores = self.forest_scores(build_anomaly_features(transactions))
        counts = transactions['category'].map(transactions['category'].value_counts())

        anomalies = []
        for position, (_, row) in enumerate(transactions.iterrows()):
            if counts.iloc[position] < settings.MIN_ANOMALY_CATEGORY_TRANSACTIONS:
                continue

            is_anomaly, severity, reason = self.score_transaction(
                row['amount'], row['category'], float(scores[position])
            )
            if is_anomaly:
                anomalies.append(AnomalyRecord(
                    occurred_on=row['occurred_on'].date(),
                    amount=row['amount'],
                    category=Category(row['category']),
                    anomaly_score=severity,
                    reason=reason
                ))

        anomalies.sort(key=lambda a: a.anomaly_score, reverse=True)
        return anomalies[:limit]
