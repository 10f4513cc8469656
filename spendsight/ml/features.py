"""
Feature extraction over transaction history.

Two kinds of features are built here:

- sliding-window vectors over a category's chronological expense amounts,
  used by the forecasting ensemble
- per-transaction vectors used by the isolation forest
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from spendsight.config import settings
from spendsight.schemas.transaction import Category, Transaction

ANOMALY_FEATURE_NAMES = [
    'amount',
    'relative_amount',
    'z_score',
    'day_of_week',
    'day_of_month',
    'category_frequency',
]

@dataclass
class WindowFeatures:
    """Parallel feature/target arrays plus the raw series they came from"""
    time_series: np.ndarray = field(default_factory=lambda: np.empty(0))
    features: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))
    targets: np.ndarray = field(default_factory=lambda: np.empty(0))

    @property
    def is_empty(self) -> bool:
        return len(self.targets) == 0

    @property
    def latest(self) -> np.ndarray:
        return self.features[-1]

def expense_series(transactions: Iterable[Transaction], category: Category) -> np.ndarray:
    """Chronologically sorted expense amounts of one category"""
    rows = [
        t for t in transactions
        if t.category == category and t.is_expense
    ]
    rows.sort(key=lambda t: t.occurred_on)
    return np.array([float(t.amount) for t in rows], dtype=float)

def build_window_features(series: np.ndarray, window_size: Optional[int] = None) -> WindowFeatures:
    """
    Turn an amount series into sliding-window feature vectors

    Each vector is the window itself followed by its mean, population
    standard deviation and trend (last - first) / window_size. The target
    is the amount immediately after the window.

    Returns empty features when the series has fewer than window_size + 1 points.
    """
    window_size = window_size or settings.WINDOW_SIZE
    series = np.asarray(series, dtype=float)

    if len(series) < window_size + 1:
        return WindowFeatures(time_series=series)

    features = []
    targets = []
    for i in range(window_size, len(series)):
        window = series[i - window_size:i]
        trend = (window[-1] - window[0]) / window_size
        features.append(np.concatenate([window, [window.mean(), window.std(), trend]]))
        targets.append(series[i])

    return WindowFeatures(
        time_series=series,
        features=np.vstack(features),
        targets=np.array(targets, dtype=float),
    )

def prepare_category_features(
    transactions: Iterable[Transaction],
    category: Category,
    window_size: Optional[int] = None
) -> WindowFeatures:
    return build_window_features(expense_series(transactions, category), window_size)

def transactions_to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Flatten transactions into a DataFrame with float amounts"""
    df = pd.DataFrame([{
        'id': t.id,
        'amount': float(t.amount),
        'category': t.category.value,
        'kind': t.kind.value,
        'occurred_on': pd.Timestamp(t.occurred_on),
    } for t in transactions])

    if df.empty:
        return pd.DataFrame(columns=['id', 'amount', 'category', 'kind', 'occurred_on'])

    return df

def calculate_category_stats(df: pd.DataFrame) -> pd.DataFrame:
    """Mean, population std and count of amounts per category"""
    stats = df.groupby('category')['amount'].agg(
        mean='mean',
        std=lambda s: s.std(ddof=0),
        count='count',
    )
    return stats

def build_anomaly_features(df: pd.DataFrame) -> np.ndarray:
    """
    Build one anomaly feature vector per row of a transactions frame

    Features:
    - amount
    - amount relative to the category mean (0 when the mean is 0)
    - z-score within category (std of 0 is treated as 1)
    - day of week (Monday = 0)
    - day of month
    - number of transactions in the category
    """
    if df.empty:
        return np.empty((0, len(ANOMALY_FEATURE_NAMES)))

    grouped = df.groupby('category')['amount']
    mean = grouped.transform('mean')
    std = grouped.transform(lambda s: s.std(ddof=0)).replace(0, 1.0)
    count = grouped.transform('count')

    features = pd.DataFrame()
    features['amount'] = df['amount']
    features['relative_amount'] = (df['amount'] / mean.replace(0, np.nan)).fillna(0.0)
    features['z_score'] = (df['amount'] - mean) / std
    features['day_of_week'] = df['occurred_on'].dt.dayofweek
    features['day_of_month'] = df['occurred_on'].dt.day
    features['category_frequency'] = count

    return features[ANOMALY_FEATURE_NAMES].to_numpy(dtype=float)
