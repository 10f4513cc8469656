import numpy as np
import structlog
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from sklearn.metrics import mean_absolute_error, mean_squared_error, mean_absolute_percentage_error

from spendsight.config import settings
from spendsight.core.exceptions import ModelTrainingError
from spendsight.ml.features import WindowFeatures, prepare_category_features
from spendsight.ml.models.autoregressive import AutoregressiveModel, autocorrelation
from spendsight.ml.models.kernel_regressor import KernelRegressor
from spendsight.ml.models.neural_regressor import NeuralRegressor
from spendsight.schemas.analysis import Trend
from spendsight.schemas.transaction import Category, Transaction

logger = structlog.get_logger(__name__)

SEASONAL_LAGS = (7, 30, 90)

@dataclass
class EnsemblePrediction:
    value: float
    confidence: float
    trend: Trend
    seasonality: float = 0.0
    volatility: float = 0.0
    components: Dict[str, float] = field(default_factory=dict)

def calculate_trend(values: np.ndarray) -> Trend:
    """Compare the mean of the second half of `values` to the first half"""
    values = np.asarray(values, dtype=float)
    if len(values) < 2:
        return Trend.STABLE

    half = len(values) // 2
    first_mean = values[:half].mean()
    second_mean = values[half:].mean()
    if first_mean == 0:
        return Trend.STABLE

    change = (second_mean - first_mean) / first_mean
    if change > 0.1:
        return Trend.INCREASING
    if change < -0.1:
        return Trend.DECREASING
    return Trend.STABLE

def calculate_seasonality(values: np.ndarray) -> float:
    """Max absolute autocorrelation at weekly, monthly and quarterly lags"""
    if len(values) < 12:
        return 0.0
    strengths = [abs(autocorrelation(values, lag)) for lag in SEASONAL_LAGS if lag < len(values)]
    return max(strengths, default=0.0)

def calculate_volatility(values: np.ndarray) -> float:
    values = np.asarray(values, dtype=float)
    if len(values) < 2 or values.mean() == 0:
        return 0.0
    return float(values.std() / values.mean())

def agreement_confidence(predictions: List[float]) -> float:
    """
    1 - coefficient of variation of the predictions, clamped to [0.1, 0.95]

    A zero mean gives the mid-range default of 0.5.
    """
    predictions = np.asarray(predictions, dtype=float)
    mean = predictions.mean()
    if mean == 0 or not np.isfinite(mean):
        return 0.5
    confidence = 1 - predictions.std() / mean
    return float(min(0.95, max(0.1, confidence)))

class EnsembleForecaster:
    """
    Blends a neural regressor, an autoregressive model and a kernel
    regressor trained on one category's expense history
    """

    def __init__(
        self,
        category: Category,
        weights: Optional[Dict[str, float]] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.category = category
        self.weights = dict(weights or settings.ENSEMBLE_WEIGHTS)
        self.models = {
            'neural': NeuralRegressor(rng=rng),
            'autoregressive': AutoregressiveModel(),
            'kernel': KernelRegressor(),
        }
        self.trained: Dict[str, bool] = {name: False for name in self.models}
        self.last_trained_at: Optional[datetime] = None
        self.training_runs = 0

    def _fit_model(self, name: str, data: WindowFeatures):
        model = self.models[name]
        if name == 'autoregressive':
            model.fit(data.time_series)
        elif name == 'neural':
            model.train(data.features, data.targets)
        else:
            model.fit(data.features, data.targets)

    def _predict_model(self, name: str, data: WindowFeatures) -> float:
        model = self.models[name]
        if name == 'autoregressive':
            return model.forecast(1)[0]
        return model.predict(data.latest)

    def train(self, transactions: Iterable[Transaction]) -> Optional[Dict[str, float]]:
        """
        Retrain every base predictor on the category's full history

        Returns:
            In-sample metrics, or None when the category has too little data
        """
        data = prepare_category_features(transactions, self.category)
        if len(data.time_series) < settings.MIN_CATEGORY_TRANSACTIONS or data.is_empty:
            return None

        for name in self.models:
            try:
                self._fit_model(name, data)
                self.trained[name] = True
            except Exception as e:
                self.trained[name] = False
                logger.warning(
                    "Base predictor training failed",
                    category=self.category.value,
                    model=name,
                    error=str(e)
                )

        self.training_runs += 1
        self.last_trained_at = datetime.now(timezone.utc)

        metrics: Dict[str, float] = {
            'n_samples': len(data.targets),
            'n_features': data.features.shape[1],
        }
        for name in ('neural', 'kernel'):
            if not self.trained[name]:
                continue
            fitted = np.array([self.models[name].predict(row) for row in data.features])
            metrics[f'{name}_mae'] = float(mean_absolute_error(data.targets, fitted))
            metrics[f'{name}_rmse'] = float(np.sqrt(mean_squared_error(data.targets, fitted)))
            metrics[f'{name}_mape'] = float(mean_absolute_percentage_error(data.targets, fitted) * 100)

        logger.info(
            "Ensemble trained",
            category=self.category.value,
            samples=metrics['n_samples'],
            models=[name for name, ok in self.trained.items() if ok]
        )
        return metrics

    def predict(self, transactions: Iterable[Transaction]) -> EnsemblePrediction:
        """
        Forecast the next expense amount of the category

        Raises:
            ModelTrainingError: if no base predictor could produce a value
        """
        data = prepare_category_features(transactions, self.category)
        if data.is_empty:
            return EnsemblePrediction(value=0.0, confidence=0.1, trend=Trend.STABLE)

        components: Dict[str, float] = {}
        for name in self.models:
            if not self.trained[name]:
                continue
            try:
                value = float(self._predict_model(name, data))
            except Exception as e:
                logger.warning(
                    "Base predictor prediction failed",
                    category=self.category.value,
                    model=name,
                    error=str(e)
                )
                continue
            if np.isfinite(value):
                components[name] = value

        if not components:
            raise ModelTrainingError("EnsembleForecaster", f"no usable predictor for {self.category.value}")

        total_weight = sum(self.weights[name] for name in components)
        blended = sum(self.weights[name] * value for name, value in components.items()) / total_weight

        return EnsemblePrediction(
            value=max(0.0, blended),
            confidence=agreement_confidence(list(components.values())),
            trend=calculate_trend(data.time_series[-5:]),
            seasonality=calculate_seasonality(data.time_series),
            volatility=calculate_volatility(data.time_series),
            components=components
        )
