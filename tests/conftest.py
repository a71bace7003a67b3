"""Shared fixtures: an in-memory stand-in for the scoring service."""

import asyncio
import copy

import pytest

from src.client.scoring_client import ScoringClient
from src.client.transport import TransportResponse
from src.errors import TransportError

VALID_RECORD = {
    "Pregnancies": 2,
    "Glucose": 130,
    "BloodPressure": 70,
    "BMI": 28.5,
    "Age": 45,
}

PREDICT_RESPONSE = {
    "prediction": "Diabetic",
    "probability": 0.67,
    "risk_score": 67,
    "confidence_level": "High",
}

DETAILED_RESPONSE = {
    **PREDICT_RESPONSE,
    "feature_contributions": {
        "Pregnancies": 5.1,
        "Glucose": 41.2,
        "BloodPressure": 12.0,
        "BMI": 25.3,
        "Age": 16.4,
    },
    "risk_factors": ["High glucose levels detected", "BMI indicates overweight"],
    "recommendations": ["[Blood Sugar Management] Monitor blood glucose levels regularly"],
    "timestamp": "2026-10-19T10:00:00",
}

RISK_RESPONSE = [
    {"feature": "Pregnancies", "value": 2, "status": "Normal", "risk_level": "Low", "normal_range": "0-10"},
    {"feature": "Glucose", "value": 130, "status": "High", "risk_level": "High", "normal_range": "70-100"},
    {"feature": "BloodPressure", "value": 70, "status": "Normal", "risk_level": "Low", "normal_range": "60-80"},
    {"feature": "BMI", "value": 28.5, "status": "Overweight", "risk_level": "Medium", "normal_range": "18.5-24.9"},
    {"feature": "Age", "value": 45, "status": "Normal", "risk_level": "Low", "normal_range": "21-65"},
]

RECOMMENDATIONS_RESPONSE = [
    {"category": "Weight Management", "recommendations": ["Track calorie intake"], "priority": "Medium"},
    {"category": "Blood Sugar Management", "recommendations": ["Monitor glucose"], "priority": "High"},
    {"category": "General Health", "recommendations": ["Sleep 7-9 hours"], "priority": "Medium"},
    {"category": "Diabetes Management", "recommendations": ["See an endocrinologist"], "priority": "High"},
]

WHAT_IF_RESPONSE = {
    "original_prediction": "Diabetic",
    "original_probability": 0.67,
    "modified_prediction": "Non-Diabetic",
    "modified_probability": 0.41,
    "probability_change": -0.26,
}

HISTORY_RESPONSE = {
    "total_predictions": 2,
    "recent_predictions": [
        {"timestamp": "2026-10-19T09:00:00", "input": VALID_RECORD, "prediction": "Non-Diabetic", "probability": 0.2},
        {"timestamp": "2026-10-19T09:05:00", "input": VALID_RECORD, "prediction": "Diabetic", "probability": 0.8},
    ],
    "timestamp": "2026-10-19T09:06:00",
}

FEATURE_IMPORTANCE_RESPONSE = [
    {"feature": "BMI", "importance": 0.22},
    {"feature": "Glucose", "importance": 0.35},
    {"feature": "Age", "importance": 0.18},
    {"feature": "BloodPressure", "importance": 0.13},
    {"feature": "Pregnancies", "importance": 0.12},
]

MODEL_INFO_RESPONSE = {
    "version": "1.0.0",
    "algorithm": "Random Forest Classifier",
    "training_date": "2024-03-15",
    "metrics": {"accuracy": 0.932, "f1_score": 0.88, "precision": 0.891, "recall": 0.869},
    "required_features": ["Pregnancies", "Glucose", "BloodPressure", "BMI", "Age"],
}

STATS_RESPONSE = {
    "total_api_calls": 9,
    "endpoint_usage": {"predict": 3, "history": 5, "model_info": 1},
    "total_predictions": 3,
    "timestamp": "2026-10-19T09:06:00",
}

DEFAULT_ROUTES = {
    ("POST", "/predict"): (200, PREDICT_RESPONSE),
    ("POST", "/predict/detailed"): (200, DETAILED_RESPONSE),
    ("POST", "/risk_assessment"): (200, RISK_RESPONSE),
    ("POST", "/recommendations"): (200, RECOMMENDATIONS_RESPONSE),
    ("POST", "/what_if"): (200, WHAT_IF_RESPONSE),
    ("GET", "/history"): (200, HISTORY_RESPONSE),
    ("DELETE", "/history"): (200, {"message": "Cleared 2 prediction logs and reset statistics"}),
    ("GET", "/feature_importance"): (200, FEATURE_IMPORTANCE_RESPONSE),
    ("GET", "/model_info"): (200, MODEL_INFO_RESPONSE),
    ("GET", "/stats"): (200, STATS_RESPONSE),
}


class StubTransport:
    """Answers requests from a route table and records every call.

    A route's payload may be a callable ``(params, json) -> payload`` or an
    exception instance to raise. ``hold`` makes the next call to a route
    wait until the returned event is set; that call still answers with
    the route as it was when the call was made.
    """

    def __init__(self, routes=None):
        self.routes = copy.deepcopy(DEFAULT_ROUTES if routes is None else routes)
        self.calls = []
        self._holds = {}

    def set(self, method, path, payload, status=200):
        self.routes[(method, path)] = (status, payload)

    def hold(self, method, path):
        event = asyncio.Event()
        self._holds[(method, path)] = event
        return event

    def calls_to(self, method, path):
        return [c for c in self.calls if c[0] == method and c[1] == path]

    async def request(self, method, path, params=None, json=None):
        self.calls.append((method, path, params, json))

        # The answer is fixed when the request is sent, not when it is released
        route = self.routes.get((method, path))
        event = self._holds.pop((method, path), None)
        if event is not None:
            await event.wait()

        if route is None:
            raise TransportError(f"{method} {path} failed: connection refused")

        status, payload = route
        if callable(payload):
            payload = payload(params, json)
        if isinstance(payload, Exception):
            raise payload
        return TransportResponse(status, copy.deepcopy(payload))


@pytest.fixture
def valid_record():
    return dict(VALID_RECORD)


@pytest.fixture
def stub_transport():
    return StubTransport()


@pytest.fixture
def client(stub_transport):
    return ScoringClient(stub_transport)
