"""Tests for the scoring service client and HTTP transport."""

import asyncio

import pytest
import requests

from src.client.scoring_client import ScoringClient
from src.client.transport import HttpTransport
from src.data.schemas import Classification, ConfidenceLevel, RiskLevel
from src.data.validate_input import validate
from src.errors import ServiceError, TransportError


class TestScoringClient:
    """Test request shapes and response parsing."""

    def test_predict(self, client, stub_transport, valid_record):
        result = asyncio.run(client.predict(validate(valid_record)))

        assert result.classification is Classification.DIABETIC
        assert result.probability == 0.67
        assert result.risk_score == 67
        assert result.confidence_level is ConfidenceLevel.HIGH

        method, path, params, body = stub_transport.calls[0]
        assert (method, path, params) == ("POST", "/predict", None)
        assert body == {"Pregnancies": 2, "Glucose": 130.0, "BloodPressure": 70.0, "BMI": 28.5, "Age": 45}

    def test_predict_detailed(self, client, valid_record):
        detailed = asyncio.run(client.predict_detailed(validate(valid_record)))

        assert detailed.feature_contributions["Glucose"] == 41.2
        assert detailed.risk_factors[0] == "High glucose levels detected"
        assert detailed.timestamp.year == 2026

    def test_assess_risk(self, client, valid_record):
        items = asyncio.run(client.assess_risk(validate(valid_record)))

        assert [i.feature for i in items] == ["Pregnancies", "Glucose", "BloodPressure", "BMI", "Age"]
        assert items[1].risk_level is RiskLevel.HIGH

    def test_recommend(self, client, valid_record):
        groups = asyncio.run(client.recommend(validate(valid_record)))

        assert len(groups) == 4
        assert groups[1].category == "Blood Sugar Management"

    def test_what_if_sends_override_as_query(self, client, stub_transport, valid_record):
        comparison = asyncio.run(client.what_if(validate(valid_record), "Glucose", 100.0))

        assert comparison.modified_prediction is Classification.NON_DIABETIC
        method, path, params, body = stub_transport.calls[0]
        assert path == "/what_if"
        assert params == {"modified_feature": "Glucose", "new_value": 100.0}
        assert body["Glucose"] == 130.0

    def test_read_history(self, client, stub_transport):
        page = asyncio.run(client.read_history(limit=10))

        assert page.total_predictions == 2
        assert page.recent_predictions[0].input_snapshot.Age == 45
        assert page.recent_predictions[1].classification is Classification.DIABETIC
        assert stub_transport.calls[0][2] == {"limit": 10}

    def test_clear_history(self, client, stub_transport):
        asyncio.run(client.clear_history())

        assert stub_transport.calls_to("DELETE", "/history")

    def test_model_info_and_stats(self, client):
        info = asyncio.run(client.model_info())
        stats = asyncio.run(client.usage_stats())

        assert info.metrics.recall == 0.869
        assert stats.endpoint_usage["history"] == 5

    def test_feature_importance(self, client):
        importances = asyncio.run(client.feature_importance())

        assert {f.feature for f in importances} == {"Pregnancies", "Glucose", "BloodPressure", "BMI", "Age"}

    def test_non_success_status_raises_service_error(self, client, stub_transport, valid_record):
        stub_transport.set("POST", "/predict", {"detail": "Model not loaded."}, status=503)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.predict(validate(valid_record)))

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Model not loaded."

    def test_malformed_body_raises_service_error(self, client, stub_transport):
        stub_transport.set("GET", "/model_info", {"version": "1.0.0"})

        with pytest.raises(ServiceError):
            asyncio.run(client.model_info())

    def test_transport_failure_propagates(self, stub_transport):
        del stub_transport.routes[("GET", "/stats")]
        client = ScoringClient(stub_transport)

        with pytest.raises(TransportError):
            asyncio.run(client.usage_stats())

    def test_no_retry_on_failure(self, client, stub_transport, valid_record):
        stub_transport.set("POST", "/predict", {"detail": "boom"}, status=500)

        with pytest.raises(ServiceError):
            asyncio.run(client.predict(validate(valid_record)))

        assert len(stub_transport.calls) == 1


class _FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        pass


class TestHttpTransport:
    """Test the requests-backed transport."""

    def test_builds_url_and_passes_timeout(self):
        session = _FakeSession(_FakeResponse(200, {"ok": True}))
        transport = HttpTransport("http://scoring:8000/", timeout=5, session=session)

        response = asyncio.run(transport.request("GET", "/history", params={"limit": 3}))

        assert response.ok
        assert response.payload == {"ok": True}
        method, url, kwargs = session.requests[0]
        assert url == "http://scoring:8000/history"
        assert kwargs["timeout"] == 5
        assert kwargs["params"] == {"limit": 3}

    def test_non_json_body_kept_as_text(self):
        session = _FakeSession(_FakeResponse(502, None))
        transport = HttpTransport("http://scoring:8000", session=session)

        response = asyncio.run(transport.request("GET", "/stats"))

        assert not response.ok
        assert response.payload == "None"

    def test_connection_error_becomes_transport_error(self):
        session = _FakeSession(error=requests.ConnectionError("refused"))
        transport = HttpTransport("http://scoring:8000", session=session)

        with pytest.raises(TransportError):
            asyncio.run(transport.request("POST", "/predict", json={}))

    def test_timeout_becomes_transport_error(self):
        session = _FakeSession(error=requests.Timeout())
        transport = HttpTransport("http://scoring:8000", timeout=1, session=session)

        with pytest.raises(TransportError, match="timed out"):
            asyncio.run(transport.request("GET", "/model_info"))
