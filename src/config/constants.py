"""Shared constants for the diabetes risk session."""

# Required feature columns, in canonical declaration order
REQUIRED_COLUMNS = [
    "Pregnancies",
    "Glucose",
    "BloodPressure",
    "BMI",
    "Age",
]

# Closed (inclusive) ranges accepted before a record may be scored
FEATURE_RANGES = {
    "Pregnancies": (0, 20),
    "Glucose": (0, 300),
    "BloodPressure": (0, 200),
    "BMI": (10, 70),
    "Age": (1, 120),
}

# Columns that must hold whole numbers
INTEGER_COLUMNS = [
    "Pregnancies",
    "Age",
]

# Labels reported by the scoring service
DIABETIC_LABEL = "Diabetic"
NON_DIABETIC_LABEL = "Non-Diabetic"

# Remote scoring service endpoints
ENDPOINTS = {
    "predict": "/predict",
    "predict_detailed": "/predict/detailed",
    "risk_assessment": "/risk_assessment",
    "recommendations": "/recommendations",
    "what_if": "/what_if",
    "history": "/history",
    "feature_importance": "/feature_importance",
    "model_info": "/model_info",
    "stats": "/stats",
}

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000"
DEFAULT_TIMEOUT_SECONDS = 30

# Number of log entries requested when mirroring prediction history
DEFAULT_HISTORY_LIMIT = 50

# Display order for recommendation priorities and risk tiers
PRIORITY_ORDER = ["High", "Medium", "Low"]
