import numpy as np
import structlog
from sklearn.metrics.pairwise import rbf_kernel

from spendsight.config import settings
from spendsight.core.exceptions import ModelNotTrainedError, ModelTrainingError
from spendsight.ml.models.scaling import WindowScaler

logger = structlog.get_logger(__name__)

class KernelRegressor:
    """
    SVR-style regressor with an RBF kernel

    The dual coefficients are fitted with a coordinate nudging scheme
    instead of a full SMO solver: every point with an error above the
    tolerance moves its alpha by a fixed step against the error sign.
    """

    def __init__(
        self,
        gamma: float = None,
        C: float = None,
        iterations: int = None,
        tolerance: float = 0.1,
        step: float = 0.01
    ):
        self.gamma = gamma or settings.SVR_GAMMA
        self.C = C or settings.SVR_C
        self.iterations = iterations or settings.SVR_ITERATIONS
        self.tolerance = tolerance
        self.step = step

        self.support_vectors = np.empty((0, 0))
        self.alphas = np.empty(0)
        self.bias = 0.0
        self.scaler = WindowScaler()
        self.is_trained = False

    def fit(self, features: np.ndarray, targets: np.ndarray) -> "KernelRegressor":
        features = np.asarray(features, dtype=float)
        targets = np.asarray(targets, dtype=float)
        if len(features) == 0:
            raise ModelTrainingError("KernelRegressor", "no training samples")

        self.scaler.fit(features, targets)
        X = self.scaler.transform_features(features)
        y = self.scaler.transform_targets(targets)

        n = len(X)
        self.support_vectors = X
        self.alphas = np.zeros(n)
        self.bias = 0.0
        kernel = rbf_kernel(X, X, gamma=self.gamma)

        for _ in range(self.iterations):
            for i in range(n):
                error = float(kernel[i] @ self.alphas) - y[i]
                if abs(error) > self.tolerance:
                    self.alphas[i] = np.clip(
                        self.alphas[i] - self.step * np.sign(error), 0.0, self.C
                    )

        free = (self.alphas > 0) & (self.alphas < self.C)
        if free.any():
            self.bias = float(np.mean(y[free] - kernel[free] @ self.alphas))
        else:
            self.bias = 0.0

        self.is_trained = True
        logger.debug(
            "Kernel regressor fitted",
            samples=n,
            support_vectors=int((self.alphas > 0).sum()),
            bias=self.bias
        )
        return self

    def predict(self, features: np.ndarray) -> float:
        if not self.is_trained:
            raise ModelNotTrainedError("KernelRegressor")

        x = self.scaler.transform_features(features)
        active = self.alphas != 0
        value = self.bias
        if active.any():
            value += float(rbf_kernel(x, self.support_vectors[active], gamma=self.gamma)[0] @ self.alphas[active])

        return max(0.0, self.scaler.inverse_target(value))
