import numpy as np
from sklearn.preprocessing import StandardScaler

class WindowScaler:
    """
    Standardizes window features and targets for the regressors.

    Inputs go through a StandardScaler; targets are centred on their mean
    and divided by their std (1 when the targets are constant).
    """

    def __init__(self):
        self.feature_scaler = StandardScaler()
        self.target_mean = 0.0
        self.target_scale = 1.0

    def fit(self, X: np.ndarray, y: np.ndarray) -> "WindowScaler":
        self.feature_scaler.fit(X)
        self.target_mean = float(np.mean(y))
        std = float(np.std(y))
        self.target_scale = std if std > 0 else 1.0
        return self

    def transform_features(self, X: np.ndarray) -> np.ndarray:
        return self.feature_scaler.transform(np.atleast_2d(X))

    def transform_targets(self, y: np.ndarray) -> np.ndarray:
        return (np.asarray(y, dtype=float) - self.target_mean) / self.target_scale

    def inverse_target(self, value: float) -> float:
        return value * self.target_scale + self.target_mean
