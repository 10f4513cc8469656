import numpy as np
import structlog
from typing import Optional

from spendsight.config import settings
from spendsight.core.exceptions import ModelNotTrainedError, ModelTrainingError
from spendsight.ml.models.scaling import WindowScaler

logger = structlog.get_logger(__name__)

class NeuralRegressor:
    """
    Single hidden layer feed-forward network for next-amount regression

    Only the output layer is trained: hidden weights keep their Xavier
    initialization for the lifetime of the model.
    """

    def __init__(
        self,
        input_size: int = None,
        hidden_size: int = None,
        output_size: int = 1,
        epochs: int = None,
        learning_rate: float = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.input_size = input_size or settings.WINDOW_SIZE + 3
        self.hidden_size = hidden_size or settings.NN_HIDDEN_SIZE
        self.output_size = output_size
        self.epochs = epochs or settings.NN_EPOCHS
        self.initial_learning_rate = learning_rate or settings.NN_LEARNING_RATE
        self.learning_rate = self.initial_learning_rate
        self.rng = rng if rng is not None else np.random.default_rng()

        self.hidden_weights = self._xavier(self.input_size, self.hidden_size)
        self.output_weights = self._xavier(self.hidden_size, self.output_size)
        self.hidden_bias = self.rng.uniform(-0.05, 0.05, self.hidden_size)
        self.output_bias = self.rng.uniform(-0.05, 0.05, self.output_size)

        self.scaler = WindowScaler()
        self.is_trained = False
        self.last_loss: Optional[float] = None

    def _xavier(self, fan_in: int, fan_out: int) -> np.ndarray:
        limit = np.sqrt(6 / (fan_in + fan_out))
        return self.rng.uniform(-limit, limit, (fan_in, fan_out))

    def _forward(self, x: np.ndarray):
        hidden = np.maximum(0.0, x @ self.hidden_weights + self.hidden_bias)
        output = hidden @ self.output_weights + self.output_bias
        return hidden, output

    def train(self, features: np.ndarray, targets: np.ndarray) -> float:
        """
        Fit the output layer with per-sample gradient descent

        Returns:
            Mean squared error of the last epoch (in scaled units)
        """
        features = np.asarray(features, dtype=float)
        targets = np.asarray(targets, dtype=float)
        if len(features) == 0:
            raise ModelTrainingError("NeuralRegressor", "no training samples")

        self.scaler.fit(features, targets)
        X = self.scaler.transform_features(features)
        y = self.scaler.transform_targets(targets)

        self.learning_rate = self.initial_learning_rate
        epoch_loss = 0.0

        for epoch in range(self.epochs):
            epoch_loss = 0.0
            for x, target in zip(X, y):
                hidden, output = self._forward(x)
                error = output[0] - target
                epoch_loss += error ** 2

                gradient = 2 * error
                self.output_weights[:, 0] -= self.learning_rate * gradient * hidden
                self.output_bias[0] -= self.learning_rate * gradient

            if not np.isfinite(epoch_loss):
                raise ModelTrainingError("NeuralRegressor", f"loss diverged at epoch {epoch}")

            if epoch > 0 and epoch % 20 == 0:
                self.learning_rate *= 0.95

        self.is_trained = True
        self.last_loss = epoch_loss / len(X)
        logger.debug("Neural regressor trained", samples=len(X), loss=self.last_loss)

        return self.last_loss

    def predict(self, features: np.ndarray) -> float:
        if not self.is_trained:
            raise ModelNotTrainedError("NeuralRegressor")

        x = self.scaler.transform_features(features)[0]
        _, output = self._forward(x)
        return max(0.0, self.scaler.inverse_target(float(output[0])))
