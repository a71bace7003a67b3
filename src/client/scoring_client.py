"""Typed client for the remote diabetes scoring service."""

import logging
from typing import Any, List, Optional, Type, TypeVar

import pydantic
from pydantic import TypeAdapter

from src.client.transport import Transport, TransportResponse
from src.config.constants import DEFAULT_HISTORY_LIMIT, ENDPOINTS
from src.data.schemas import (
    DetailedPrediction,
    FeatureImportance,
    HistoryPage,
    ModelInfo,
    PredictionInput,
    PredictionResult,
    RecommendationGroup,
    RiskAssessmentItem,
    UsageStats,
    WhatIfComparison,
)
from src.errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_message(response: TransportResponse) -> str:
    payload = response.payload
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    if payload:
        return str(payload)
    return "Request failed"


class ScoringClient:
    """One coroutine per remote capability.

    The client keeps no state between calls: no caching, no retries.
    Failures surface as ``TransportError`` (no response) or
    ``ServiceError`` (non-2xx status or a body of the wrong shape).
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def _call(
        self,
        method: str,
        endpoint: str,
        response_type: Optional[Type[T]] = None,
        params: Optional[dict] = None,
        body: Optional[PredictionInput] = None,
    ) -> Any:
        path = ENDPOINTS[endpoint]
        json_body = body.model_dump() if body is not None else None

        response = await self.transport.request(method, path, params=params, json=json_body)

        if not response.ok:
            message = _error_message(response)
            logger.warning(f"{method} {path} returned {response.status_code}: {message}")
            raise ServiceError(message, status_code=response.status_code)

        if response_type is None:
            return response.payload

        try:
            return TypeAdapter(response_type).validate_python(response.payload)
        except pydantic.ValidationError as e:
            raise ServiceError(f"Unexpected response from {path}: {e}") from e

    async def predict(self, data: PredictionInput) -> PredictionResult:
        return await self._call("POST", "predict", PredictionResult, body=data)

    async def predict_detailed(self, data: PredictionInput) -> DetailedPrediction:
        return await self._call("POST", "predict_detailed", DetailedPrediction, body=data)

    async def assess_risk(self, data: PredictionInput) -> List[RiskAssessmentItem]:
        return await self._call("POST", "risk_assessment", List[RiskAssessmentItem], body=data)

    async def recommend(self, data: PredictionInput) -> List[RecommendationGroup]:
        return await self._call("POST", "recommendations", List[RecommendationGroup], body=data)

    async def what_if(
        self, baseline: PredictionInput, feature: str, new_value: float
    ) -> WhatIfComparison:
        """Score ``baseline`` with one feature replaced.

        The baseline travels as the request body and the override as
        query parameters.
        """
        params = {"modified_feature": feature, "new_value": new_value}
        return await self._call("POST", "what_if", WhatIfComparison, params=params, body=baseline)

    async def read_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> HistoryPage:
        return await self._call("GET", "history", HistoryPage, params={"limit": limit})

    async def clear_history(self) -> None:
        await self._call("DELETE", "history")
        logger.info("Remote prediction history cleared")

    async def feature_importance(self) -> List[FeatureImportance]:
        return await self._call("GET", "feature_importance", List[FeatureImportance])

    async def model_info(self) -> ModelInfo:
        return await self._call("GET", "model_info", ModelInfo)

    async def usage_stats(self) -> UsageStats:
        return await self._call("GET", "stats", UsageStats)
