from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime, timezone
from enum import Enum

from spendsight.schemas.transaction import Category

class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"

class SpendingPattern(str, Enum):
    CONSISTENT = "consistent"
    IRREGULAR = "irregular"
    SEASONAL = "seasonal"
    TRENDING_UP = "trending_up"
    TRENDING_DOWN = "trending_down"

class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class Forecast(BaseModel):
    category: Category
    predicted_amount: float = Field(..., ge=0)
    confidence: float = Field(..., ge=0, le=1)
    trend: Trend

class AnomalyRecord(BaseModel):
    occurred_on: date
    amount: float
    category: Category
    anomaly_score: float = Field(..., ge=0)
    reason: str

class Insights(BaseModel):
    spending_pattern: SpendingPattern = SpendingPattern.CONSISTENT
    risk_level: RiskLevel = RiskLevel.LOW
    recommendations: List[str] = []
    seasonality_strength: float = 0.0
    volatility_index: float = 0.0

class ConfidenceSummary(BaseModel):
    overall: float = Field(..., ge=0, le=1)
    by_category: Dict[Category, float] = {}

class AnalysisResult(BaseModel):
    forecasts: List[Forecast] = []
    anomalies: List[AnomalyRecord] = []
    model_accuracy: float = Field(..., ge=0, le=1)
    feature_importance: Dict[str, float] = {}
    insights: Insights
    confidence: ConfidenceSummary
    is_minimal: bool = False
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class ModelStatsResponse(BaseModel):
    trained_categories: List[Category]
    warm_start: bool
    last_analysis_at: Optional[datetime] = None
