"""
Exception types raised by the analysis engine
"""

class SpendSightError(Exception):
    """Base class for engine errors"""

class ModelNotTrainedError(SpendSightError, ValueError):
    """Raised when predicting with a model that was never fitted"""

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(f"{model_name} not trained")

class ModelTrainingError(SpendSightError):
    """Raised when a base predictor cannot be fitted to the given data"""

    def __init__(self, model_name: str, detail: str):
        self.model_name = model_name
        self.detail = detail
        super().__init__(f"{model_name} training failed: {detail}")
