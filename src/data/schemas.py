"""Typed models for session data and scoring service payloads."""

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Classification(str, Enum):
    DIABETIC = "Diabetic"
    NON_DIABETIC = "Non-Diabetic"


class ConfidenceLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class PredictionInput(_Frozen):
    """Five health metrics, named as the scoring service expects them.

    Only build one through ``src.data.validate_input.validate`` so that
    out-of-range records never reach the network.
    """

    Pregnancies: int
    Glucose: float
    BloodPressure: float
    BMI: float
    Age: int


class PredictionResult(_Frozen):
    """Response of ``POST /predict``."""

    classification: Classification = Field(alias="prediction")
    probability: float = Field(ge=0.0, le=1.0)
    risk_score: float = Field(ge=0.0, le=100.0)
    confidence_level: ConfidenceLevel


class DetailedPrediction(PredictionResult):
    """Response of ``POST /predict/detailed``."""

    feature_contributions: Dict[str, float] = Field(default_factory=dict)
    risk_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    timestamp: datetime


class RiskAssessmentItem(_Frozen):
    feature: str
    value: float
    status: str
    risk_level: RiskLevel
    normal_range: str


class RecommendationGroup(_Frozen):
    category: str
    recommendations: List[str]
    priority: str


class WhatIfComparison(_Frozen):
    """Response of ``POST /what_if``."""

    original_prediction: Classification
    original_probability: float
    modified_prediction: Classification
    modified_probability: float
    probability_change: float


class HistoryEntry(_Frozen):
    timestamp: datetime
    input_snapshot: PredictionInput = Field(alias="input")
    classification: Classification = Field(alias="prediction")
    probability: float


class HistoryPage(_Frozen):
    """Response of ``GET /history``."""

    total_predictions: int
    recent_predictions: List[HistoryEntry] = Field(default_factory=list)
    timestamp: datetime


class FeatureImportance(_Frozen):
    feature: str
    importance: float


class ModelMetrics(_Frozen):
    accuracy: float
    f1_score: float
    precision: float
    recall: float


class ModelInfo(_Frozen):
    """Response of ``GET /model_info``."""

    version: str
    algorithm: str
    training_date: str
    metrics: ModelMetrics
    required_features: List[str]


class UsageStats(_Frozen):
    """Response of ``GET /stats``."""

    total_api_calls: int
    endpoint_usage: Dict[str, int] = Field(default_factory=dict)
    total_predictions: int
    timestamp: datetime


class FeatureContribution(_Frozen):
    feature: str
    weight: float


class RiskTier(_Frozen):
    feature: str
    value: float
    tier: RiskLevel
    normal_range: str
    status: str = ""


class RiskSummary(_Frozen):
    high_count: int
    medium_count: int
    low_count: int

    @property
    def total(self) -> int:
        return self.high_count + self.medium_count + self.low_count


class TrendPoint(_Frozen):
    index: int
    probability_percent: float
    timestamp: datetime


class WhatIfScenario(_Frozen):
    """A single-field counterfactual against the baseline prediction."""

    baseline_input: PredictionInput
    override_feature: str
    override_value: float
    baseline_result: PredictionResult
    modified_result: PredictionResult
    probability_delta: float
