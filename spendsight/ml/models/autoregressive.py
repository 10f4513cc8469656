import numpy as np
import structlog
from typing import List

from spendsight.config import settings
from spendsight.core.exceptions import ModelNotTrainedError, ModelTrainingError

logger = structlog.get_logger(__name__)

def autocorrelation(data: np.ndarray, lag: int) -> float:
    """Sample autocorrelation at a lag, 0 for constant or too-short data"""
    data = np.asarray(data, dtype=float)
    n = len(data)
    if n == 0 or lag >= n:
        return 0.0

    centered = data - data.mean()
    denominator = float(np.sum(centered ** 2))
    if denominator == 0:
        return 0.0

    numerator = float(np.sum(centered[:n - lag] * centered[lag:]))
    return numerator / denominator

class AutoregressiveModel:
    """
    ARIMA-like model with simplified estimators

    AR coefficients come from a shortcut Yule-Walker estimate
    (autocorr[i] / autocorr[0]) and MA coefficients are half the
    autocorrelation of the AR residuals.
    """

    def __init__(self, p: int = None, d: int = None, q: int = None):
        self.p = settings.ARIMA_P if p is None else p
        self.d = settings.ARIMA_D if d is None else d
        self.q = settings.ARIMA_Q if q is None else q

        self.ar_coeffs: List[float] = []
        self.ma_coeffs: List[float] = []
        self.residuals: List[float] = []
        self._tails: List[float] = []
        self.is_trained = False

    def difference(self, data: np.ndarray, order: int) -> np.ndarray:
        data = np.asarray(data, dtype=float)
        return np.diff(data, n=order) if order > 0 else data

    def fit(self, series: np.ndarray) -> "AutoregressiveModel":
        series = np.asarray(series, dtype=float)
        if len(series) < self.d + self.p + 1:
            raise ModelTrainingError(
                "AutoregressiveModel",
                f"need at least {self.d + self.p + 1} points, got {len(series)}"
            )

        diff_data = self.difference(series, self.d)

        autocorrs = [autocorrelation(diff_data, lag) for lag in range(self.p + 1)]
        if autocorrs[0] == 0:
            self.ar_coeffs = [0.0] * self.p
        else:
            self.ar_coeffs = [autocorrs[i] / autocorrs[0] for i in range(1, self.p + 1)]

        self.residuals = []
        for i in range(self.p, len(diff_data)):
            predicted = sum(
                self.ar_coeffs[j] * diff_data[i - j - 1] for j in range(self.p)
            )
            self.residuals.append(float(diff_data[i] - predicted))

        self.ma_coeffs = [
            autocorrelation(np.array(self.residuals), lag) * 0.5
            for lag in range(1, self.q + 1)
        ]

        # last value of each differencing stage, used to undo the differencing
        self._tails = [float(self.difference(series, k)[-1]) for k in range(self.d)]
        self.is_trained = True

        logger.debug(
            "Autoregressive model fitted",
            points=len(series),
            ar=self.ar_coeffs,
            ma=self.ma_coeffs
        )
        return self

    def _integrate(self, diff_forecasts: List[float]) -> List[float]:
        tails = list(self._tails)
        levels = []
        for value in diff_forecasts:
            for k in reversed(range(self.d)):
                tails[k] += value
                value = tails[k]
            levels.append(value)
        return levels

    def forecast(self, steps: int = 1) -> List[float]:
        """
        Forecast the next `steps` amounts

        The AR term only uses values forecasted in this call; the MA term
        uses the trailing q residuals of the fit.
        """
        if not self.is_trained:
            raise ModelNotTrainedError("AutoregressiveModel")

        last_residuals = self.residuals[-self.q:] if self.q > 0 else []
        diff_forecasts: List[float] = []

        for _ in range(steps):
            value = 0.0
            for i, coeff in enumerate(self.ar_coeffs):
                if len(diff_forecasts) > i:
                    value += coeff * diff_forecasts[-1 - i]
            for i, coeff in enumerate(self.ma_coeffs):
                if i < len(last_residuals):
                    value += coeff * last_residuals[-1 - i]
            diff_forecasts.append(value)

        return [max(0.0, level) for level in self._integrate(diff_forecasts)]
