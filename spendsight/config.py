from pydantic_settings import BaseSettings
from typing import Dict, Optional

class Settings(BaseSettings):
    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "SpendSight API"
    VERSION: str = "1.0.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Analysis thresholds
    MIN_ANALYSIS_TRANSACTIONS: int = 5
    MIN_CATEGORY_TRANSACTIONS: int = 10
    MIN_ANOMALY_CATEGORY_TRANSACTIONS: int = 5
    WINDOW_SIZE: int = 7

    # Ensemble
    ENSEMBLE_WEIGHTS: Dict[str, float] = {
        "neural": 0.4,
        "autoregressive": 0.3,
        "kernel": 0.3,
    }
    WARM_START: bool = True
    RANDOM_SEED: Optional[int] = None

    # Neural regressor
    NN_HIDDEN_SIZE: int = 20
    NN_EPOCHS: int = 100
    NN_LEARNING_RATE: float = 0.01

    # Autoregressive model (p, d, q)
    ARIMA_P: int = 2
    ARIMA_D: int = 1
    ARIMA_Q: int = 2

    # Kernel regressor
    SVR_GAMMA: float = 0.1
    SVR_C: float = 1.0
    SVR_ITERATIONS: int = 100

    # Anomaly detection
    FOREST_TREES: int = 100
    FOREST_SUBSAMPLE_SIZE: int = 256
    ANOMALY_SIGMA_THRESHOLD: float = 2.5
    FOREST_SCORE_THRESHOLD: float = 0.6
    ANOMALY_SEVERITY_CUTOFF: float = 2.0
    MAX_ANOMALIES: int = 10

    # Scheduler
    ANALYSIS_DEBOUNCE_SECONDS: float = 0.5
    ANALYSIS_INTERVAL_SECONDS: float = 60.0

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
