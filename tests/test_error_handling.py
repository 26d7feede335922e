"""Tests for error handling in the StoreRec API.

Covers missing and broken data, unknown users and products, invalid
parameters, and failures inside the recommendation engine.
"""

import json
import logging
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storerec.api.exceptions import (
    DataNotFoundError,
    RecommendationError,
    UserNotFoundError,
)
from storerec.api.main import app
from storerec.api.routes import recommend
from storerec.recommender.hybrid import HybridRecommender
from tests.factories import write_store_data

# Create test client
client = TestClient(app)


@pytest.fixture
def use_data_dir(monkeypatch):
    """Return a helper that points the API at a data directory."""

    def _use(path):
        monkeypatch.setattr(recommend, "DEFAULT_DATA_DIR", str(path))
        monkeypatch.setattr(recommend, "_data_cache", None)

    return _use


@pytest.fixture
def valid_data(tmp_path, use_data_dir):
    use_data_dir(write_store_data(tmp_path))
    return tmp_path


def test_missing_data_returns_503(tmp_path, use_data_dir):
    use_data_dir(tmp_path / "does_not_exist")

    response = client.get("/recommend/1?top_n=5")

    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "DataNotFoundError"
    assert "Data not found" in data["message"]
    assert data["details"]["data_dir"].endswith("does_not_exist")


def test_corrupt_data_returns_500(tmp_path, use_data_dir):
    (tmp_path / "products.json").write_text(json.dumps([{"product_id": 1}]))
    use_data_dir(tmp_path)

    response = client.get("/recommend/popular")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "DataLoadError"
    assert data["details"]["error_type"] == "ValueError"


def test_unknown_user_with_cold_start_disabled(valid_data):
    response = client.get("/recommend/999999?allow_cold_start=false&top_n=5")

    assert response.status_code == 404
    data = response.json()
    assert data["error"] == "UserNotFoundError"
    assert data["details"] == {"user_id": 999999}


def test_known_user_with_cold_start_disabled(valid_data):
    response = client.get("/recommend/1?allow_cold_start=false&top_n=5")
    assert response.status_code == 200


def test_cold_start_default_behavior(valid_data):
    response = client.get("/recommend/999999?top_n=5")

    assert response.status_code == 200
    assert response.json()["step"] == "popular_no_history"


def test_unknown_user_profile_returns_404(valid_data):
    response = client.get("/recommend/999999/profile")

    assert response.status_code == 404
    assert response.json()["error"] == "UserNotFoundError"


def test_unknown_product_similar_returns_404(valid_data):
    response = client.get("/recommend/similar/424242")

    assert response.status_code == 404
    assert response.json()["error"] == "ProductNotFoundError"


def test_invalid_user_id_type(valid_data):
    assert client.get("/recommend/abc").status_code == 422


@pytest.mark.parametrize("top_n", [0, -5, 51, "many"])
def test_invalid_top_n_parameter(valid_data, top_n):
    assert client.get(f"/recommend/1?top_n={top_n}").status_code == 422


def test_top_n_bounds_are_inclusive(valid_data):
    assert client.get("/recommend/1?top_n=1").json()["total"] == 1
    assert client.get("/recommend/1?top_n=50").status_code == 200


def test_invalid_mode_parameter(valid_data):
    assert client.get("/recommend/1?mode=cf").status_code == 422


def test_engine_failure_returns_500(valid_data, monkeypatch, caplog):
    def broken(self, user_id, limit=None, mode=None):
        raise RuntimeError("catalog offline")

    monkeypatch.setattr(HybridRecommender, "recommend_with_trace", broken)

    with caplog.at_level(logging.ERROR):
        response = client.get("/recommend/1?top_n=5")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "RecommendationError"
    assert "catalog offline" in data["message"]
    assert data["details"]["error_type"] == "RuntimeError"
    assert "Error generating recommendations for user 1" in caplog.text


def test_health_check_not_affected_by_data_errors(tmp_path, use_data_dir):
    use_data_dir(tmp_path / "missing")

    assert client.get("/recommend/1").status_code == 503
    assert client.get("/ping").status_code == 200
    assert client.get("/status").json()["data_loaded"] is False


def test_exception_classes():
    assert DataNotFoundError("x").status_code == 503
    assert UserNotFoundError(5).details == {"user_id": 5}

    error = RecommendationError(None, ValueError("boom"))
    assert error.status_code == 500
    assert "request" in error.message
    assert error.details["error_type"] == "ValueError"
