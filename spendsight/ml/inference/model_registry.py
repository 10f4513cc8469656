"""
Registry of per-category trained ensembles
"""

import threading
import numpy as np
import structlog
from typing import Dict, List, Optional

from spendsight.ml.models.ensemble import EnsembleForecaster
from spendsight.schemas.transaction import Category

logger = structlog.get_logger(__name__)

class ModelRegistry:
    """
    Holds one EnsembleForecaster per category for the lifetime of its owner

    Models are created lazily and retrained in place. Callers that train or
    predict must hold `lock` so two analyses never mutate the same model.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.lock = threading.RLock()
        self._models: Dict[Category, EnsembleForecaster] = {}

    def get(self, category: Category) -> Optional[EnsembleForecaster]:
        return self._models.get(category)

    def get_or_create(self, category: Category) -> EnsembleForecaster:
        model = self._models.get(category)
        if model is None:
            model = EnsembleForecaster(category, rng=self.rng)
            self._models[category] = model
            logger.info("Ensemble created", category=category.value)
        return model

    def categories(self) -> List[Category]:
        with self.lock:
            return list(self._models)

    def clear(self):
        """Drop every trained model (next analysis starts cold)"""
        with self.lock:
            self._models.clear()

    def __contains__(self, category: Category) -> bool:
        return category in self._models

    def __len__(self) -> int:
        with self.lock:
            return len(self._models)
