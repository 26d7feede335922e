"""Recommendation endpoints for the StoreRec API.

This module provides API endpoints for personalized, popular, category,
trending and similar-product recommendations, plus the user profile
summary, catalog statistics and recommendation feedback.
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from storerec.api.exceptions import (
    DataLoadError,
    DataNotFoundError,
    ProductNotFoundError,
    RecommendationError,
    StoreRecException,
    UserNotFoundError,
)
from storerec.api.metrics import metrics_service
from storerec.recommender.fallback import DEFAULT_TIMEFRAME, TIMEFRAME_DAYS
from storerec.recommender.hybrid import HybridRecommender, RecommendationMode
from storerec.recommender.models import RecommendationSource, ScoredRecommendation
from storerec.recommender.stats import recommendation_stats
from storerec.recommender.utils import (
    PRODUCTS_CSV_FILENAME,
    PRODUCTS_JSON_FILENAME,
    check_snapshot_exists,
    load_raw_data,
    load_snapshot,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)

# Default data directory
DEFAULT_DATA_DIR = "data"

MAX_TOP_N = 50

# Cache for the loaded snapshot and the engine built on it
_data_cache: Optional[Dict[str, Any]] = None


class RecommendationItem(BaseModel):
    """A single recommended product."""

    product_id: int
    name: str
    category: str
    subcategory: str
    manufacturer: str
    price: float
    rating: float
    score: float = Field(..., description="Ranking key; only relative order is meaningful")
    source: RecommendationSource
    sources: List[RecommendationSource] = Field(default_factory=list)


class RecommendationResponse(BaseModel):
    """Response model for personalized recommendation requests."""

    user_id: int = Field(..., description="User ID for recommendations")
    mode: RecommendationMode = Field(..., description="Requested mode")
    step: str = Field(..., description="Fallback step that produced the results")
    recommendations: List[RecommendationItem]
    total: int


class ProductListResponse(BaseModel):
    """Response model for non-personalized rankings."""

    source: RecommendationSource
    recommendations: List[RecommendationItem]
    total: int
    context: Dict[str, Any] = Field(default_factory=dict)


class FeedbackRequest(BaseModel):
    """Feedback a user left on a recommendation."""

    user_id: int
    product_id: int
    feedback: Literal["positive", "negative", "neutral"]
    recommendation_type: Optional[RecommendationSource] = None


def _to_item(rec: ScoredRecommendation) -> RecommendationItem:
    product = rec.product
    return RecommendationItem(
        product_id=product.product_id,
        name=product.name,
        category=product.category,
        subcategory=product.subcategory,
        manufacturer=product.manufacturer,
        price=product.price,
        rating=product.rating,
        score=rec.score,
        source=rec.source,
        sources=list(rec.sources),
    )


def _list_response(
    source: RecommendationSource,
    recommendations: List[ScoredRecommendation],
    **context: Any,
) -> ProductListResponse:
    return ProductListResponse(
        source=source,
        recommendations=[_to_item(rec) for rec in recommendations],
        total=len(recommendations),
        context=context,
    )


def load_data_if_needed(data_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load the catalog and interaction snapshot if not already loaded.

    Prefers a joblib snapshot built by ``scripts/build_snapshot.py`` and
    falls back to the raw exports in the same directory.

    Raises:
        DataNotFoundError: If the directory holds neither.
        DataLoadError: If loading fails.
    """
    global _data_cache

    data_dir = data_dir or DEFAULT_DATA_DIR

    if _data_cache is not None and _data_cache["data_dir"] == data_dir:
        logger.debug("Using cached data")
        return _data_cache

    data_path = Path(data_dir)
    has_raw = (data_path / PRODUCTS_JSON_FILENAME).exists() or (
        data_path / PRODUCTS_CSV_FILENAME
    ).exists()

    if not check_snapshot_exists(data_dir) and not has_raw:
        logger.error(f"No data found in {data_dir}")
        raise DataNotFoundError(data_dir)

    try:
        logger.info(f"Loading data from {data_dir}")
        if check_snapshot_exists(data_dir):
            catalog, store = load_snapshot(data_dir)
        else:
            catalog, store = load_raw_data(data_dir)
    except Exception as e:
        logger.error(f"Failed to load data: {e}", exc_info=True)
        raise DataLoadError(data_dir, e) from e

    _data_cache = {
        "data_dir": data_dir,
        "catalog": catalog,
        "store": store,
        "recommender": HybridRecommender(catalog, store),
        "loaded_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("Data loaded successfully")
    return _data_cache


def get_data_status() -> Dict[str, Any]:
    """Describe the cached snapshot without triggering a load."""
    if _data_cache is None:
        return {
            "data_loaded": False,
            "timestamp_last_loaded": None,
            "num_users": 0,
            "num_products": 0,
            "num_interactions": 0,
        }
    return {
        "data_loaded": True,
        "timestamp_last_loaded": _data_cache["loaded_at"],
        "num_users": len(_data_cache["store"].user_ids()),
        "num_products": len(_data_cache["catalog"]),
        "num_interactions": _data_cache["store"].interaction_count,
    }


@router.get("/popular", response_model=ProductListResponse)
def get_popular(top_n: int = Query(10, ge=1, le=MAX_TOP_N)) -> ProductListResponse:
    """Get the best-rated, most-viewed in-stock products."""
    start_time = time.time()
    recommender = load_data_if_needed()["recommender"]
    results = recommender.recommend_popular(top_n)
    metrics_service.record_recommendation(
        "popular", "popular", (time.time() - start_time) * 1000
    )
    return _list_response(RecommendationSource.POPULAR, results)


@router.get("/trending", response_model=ProductListResponse)
def get_trending(
    top_n: int = Query(10, ge=1, le=MAX_TOP_N),
    timeframe: Literal["1d", "7d", "30d"] = DEFAULT_TIMEFRAME,
) -> ProductListResponse:
    """Get in-stock products with recent activity.

    Example:
        GET /recommend/trending?timeframe=1d&top_n=5
    """
    start_time = time.time()
    recommender = load_data_if_needed()["recommender"]
    results = recommender.recommend_trending(top_n, timeframe)
    metrics_service.record_recommendation(
        "trending", "trending", (time.time() - start_time) * 1000
    )
    return _list_response(
        RecommendationSource.TRENDING,
        results,
        timeframe=timeframe,
        days=TIMEFRAME_DAYS[timeframe],
    )


@router.get("/stats")
def get_stats() -> Dict[str, Any]:
    """Get catalog and interaction statistics."""
    data = load_data_if_needed()
    return recommendation_stats(data["catalog"], data["store"])


@router.get("/similar/{product_id}", response_model=ProductListResponse)
def get_similar(
    product_id: int,
    top_n: int = Query(10, ge=1, le=20),
) -> ProductListResponse:
    """Get products similar to a given product."""
    data = load_data_if_needed()
    if product_id not in data["catalog"]:
        raise ProductNotFoundError(product_id)

    results = data["recommender"].recommend_similar(product_id, top_n)
    return _list_response(RecommendationSource.SIMILAR, results, product_id=product_id)


@router.get("/category/{category}", response_model=ProductListResponse)
def get_category(
    category: str,
    subcategory: Optional[str] = None,
    top_n: int = Query(10, ge=1, le=MAX_TOP_N),
) -> ProductListResponse:
    """Get the most popular in-stock products of a category."""
    recommender = load_data_if_needed()["recommender"]
    results = recommender.recommend_category(category, subcategory, top_n)
    return _list_response(
        RecommendationSource.CATEGORY,
        results,
        category=category,
        subcategory=subcategory,
    )


@router.post("/feedback")
def post_feedback(request: FeedbackRequest) -> Dict[str, str]:
    """Record feedback on a recommendation.

    Feedback is logged and counted; it does not change any scores.
    """
    logger.info(
        "Recommendation feedback received",
        extra={
            "user_id": request.user_id,
            "product_id": request.product_id,
            "feedback": request.feedback,
            "recommendation_type": (
                request.recommendation_type.value if request.recommendation_type else None
            ),
        },
    )
    metrics_service.record_feedback(request.feedback)
    return {"status": "Feedback recorded successfully"}


@router.post("/reload-data")
def reload_data() -> Dict[str, str]:
    """Reload the snapshot from disk.

    Clears the cache so a freshly built snapshot is picked up without
    restarting the server.
    """
    global _data_cache

    logger.info("Reloading data...")
    _data_cache = None

    load_data_if_needed()
    return {"status": "Data reloaded successfully"}


@router.get("/{user_id}/profile")
def get_user_profile(user_id: int) -> Dict[str, Any]:
    """Get the preference profile the engine derived for a user."""
    data = load_data_if_needed()
    store = data["store"]
    if user_id not in store.user_ids():
        raise UserNotFoundError(user_id)

    preferences = store.get_preferences(user_id)
    return {
        "user_id": user_id,
        "profile": data["recommender"].user_profile_summary(user_id),
        "preferences": {
            "categories": list(preferences.categories),
            "price_range": {"min": preferences.price_min, "max": preferences.price_max},
            "brands": list(preferences.brands),
        },
    }


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: int,
    top_n: int = Query(10, ge=1, le=MAX_TOP_N),
    mode: RecommendationMode = RecommendationMode.HYBRID,
    allow_cold_start: bool = True,
) -> RecommendationResponse:
    """Get personalized product recommendations for a user.

    Users without usable history get the popularity ranking unless
    ``allow_cold_start`` is false, in which case unknown users are a 404.

    Example:
        GET /recommend/42?mode=content&top_n=5
    """
    start_time = time.time()
    data = load_data_if_needed()

    if not allow_cold_start and user_id not in data["store"].user_ids():
        logger.warning(f"User {user_id} not found and cold start disabled")
        raise UserNotFoundError(user_id)

    try:
        results, step = data["recommender"].recommend_with_trace(user_id, top_n, mode)
    except StoreRecException:
        raise
    except Exception as e:
        logger.error(
            f"Error generating recommendations for user {user_id}: {e}",
            exc_info=True,
        )
        raise RecommendationError(user_id, e) from e

    metrics_service.record_recommendation(
        mode.value, step.value, (time.time() - start_time) * 1000
    )

    return RecommendationResponse(
        user_id=user_id,
        mode=mode,
        step=step.value,
        recommendations=[_to_item(rec) for rec in results],
        total=len(results),
    )
