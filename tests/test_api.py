import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from spendsight.api.deps import get_analysis_engine
from spendsight.main import app
from spendsight.services.analysis import AnalysisEngine

@pytest.fixture
def engine():
    engine = AnalysisEngine(seed=11, warm_start=True)
    app.dependency_overrides[get_analysis_engine] = lambda: engine
    yield engine
    app.dependency_overrides.clear()

@pytest.fixture
def client(engine):
    with TestClient(app) as client:
        yield client

def as_payload(transactions):
    return [t.model_dump(mode="json") for t in transactions]

def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert "trained_categories" in body["ml_models"]

def test_analyze(client, engine, food_spike_transactions):
    response = client.post(
        "/api/v1/ml/analyze",
        json=as_payload(food_spike_transactions),
        params={"as_of": "2026-01-20"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["is_minimal"] is False
    assert body["forecasts"][0]["category"] == "food"
    assert body["anomalies"][0]["amount"] == 900
    assert body["insights"]["risk_level"] == "high"

def test_analyze_short_history(client):
    response = client.post("/api/v1/ml/analyze", json=[])

    assert response.status_code == 200
    assert response.json()["is_minimal"] is True

def test_analyze_rejects_unknown_category(client, food_spike_transactions):
    payload = as_payload(food_spike_transactions)
    payload[0]["category"] = "gambling"

    response = client.post("/api/v1/ml/analyze", json=payload)

    assert response.status_code == 422

def test_analyze_rejects_non_positive_amount(client, food_spike_transactions):
    payload = as_payload(food_spike_transactions)
    payload[0]["amount"] = "0"

    response = client.post("/api/v1/ml/analyze", json=payload)

    assert response.status_code == 422

def test_model_stats_and_reset(client, engine, food_spike_transactions):
    client.post("/api/v1/ml/analyze", json=as_payload(food_spike_transactions))

    stats = client.get("/api/v1/ml/model-stats").json()
    assert stats["trained_categories"] == ["food"]
    assert stats["warm_start"] is True
    assert stats["last_analysis_at"] is not None

    response = client.post("/api/v1/ml/reset-models")
    assert response.json() == {"message": "Models reset", "dropped": 1}
    assert len(engine.registry) == 0

def test_health_uses_injected_engine(client, engine, food_spike_transactions):
    engine.analyze(food_spike_transactions)

    body = client.get("/health").json()

    assert body["ml_models"]["trained_categories"] == 1
    assert body["ml_models"]["warm_start"] is True

def test_reset_waits_for_analysis_without_blocking_the_app(client, engine):
    with ThreadPoolExecutor(max_workers=2) as pool:
        # holding the registry lock stands in for an analysis in progress
        engine.registry.lock.acquire()
        try:
            reset = pool.submit(client.post, "/api/v1/ml/reset-models")
            time.sleep(0.1)
            root_status = pool.submit(client.get, "/").result(timeout=5).status_code
            reset_pending = not reset.done()
        finally:
            engine.registry.lock.release()

        assert root_status == 200
        assert reset_pending
        assert reset.result(timeout=5).json()["dropped"] == 0
