"""End-to-end tests for the StoreRec API.

Generates fake exports, materializes a joblib snapshot and serves
recommendations from it through the API.
"""

import json
import logging
import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from scripts.generate_fake_data import (
    generate_fake_interactions,
    generate_fake_preferences,
    generate_fake_products,
)
from storerec.api.main import app
from storerec.api.routes import recommend
from storerec.recommender.utils import check_snapshot_exists, load_raw_data, save_snapshot

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)

# Create test client
client = TestClient(app)


@pytest.fixture(scope="module")
def snapshot_dir(tmp_path_factory) -> Path:
    """Write generated exports and build a snapshot next to them."""
    random.seed(42)
    data_dir = tmp_path_factory.mktemp("e2e_snapshot")

    with open(data_dir / "products.json", "w", encoding="utf-8") as f:
        json.dump(generate_fake_products(60), f)
    generate_fake_interactions(
        num_users=20, num_products=60, num_interactions=600
    ).to_csv(data_dir / "interactions.csv", index=False)
    with open(data_dir / "preferences.json", "w", encoding="utf-8") as f:
        json.dump(generate_fake_preferences(20, share=0.5), f)

    catalog, store = load_raw_data(str(data_dir))
    save_snapshot(catalog, store, str(data_dir))
    return data_dir


@pytest.fixture(autouse=True)
def use_snapshot(snapshot_dir, monkeypatch):
    monkeypatch.setattr(recommend, "DEFAULT_DATA_DIR", str(snapshot_dir))
    monkeypatch.setattr(recommend, "_data_cache", None)


def test_snapshot_is_built(snapshot_dir):
    assert check_snapshot_exists(str(snapshot_dir))


@pytest.mark.parametrize("mode", ["hybrid", "content", "collaborative"])
def test_e2e_recommend_modes(mode):
    for user_id in range(1, 21):
        response = client.get(f"/recommend/{user_id}?mode={mode}&top_n=10")
        assert response.status_code == 200

        data = response.json()
        assert data["total"] <= 10
        ids = [rec["product_id"] for rec in data["recommendations"]]
        assert len(ids) == len(set(ids))

        if not data["step"].startswith("popular"):
            # Popularity scores are display values; its order comes from the sort key
            scores = [rec["score"] for rec in data["recommendations"]]
            assert scores == sorted(scores, reverse=True)


def test_e2e_recommendations_exclude_history(snapshot_dir):
    store = recommend.load_data_if_needed()["store"]

    for user_id in store.user_ids()[:10]:
        seen = {i.product_id for i in store.get_interactions(user_id)}
        data = client.get(f"/recommend/{user_id}?top_n=10").json()
        if data["step"].startswith("popular"):
            continue
        assert not seen & {rec["product_id"] for rec in data["recommendations"]}


def test_e2e_cold_start_user():
    data = client.get("/recommend/100000?top_n=5").json()
    popular = client.get("/recommend/popular?top_n=5").json()

    assert data["step"] == "popular_no_history"
    assert data["recommendations"] == popular["recommendations"]


@pytest.mark.parametrize("top_n", [1, 5, 20, 50])
def test_e2e_top_n_variations(top_n):
    data = client.get(f"/recommend/1?top_n={top_n}").json()
    assert data["total"] <= top_n
