"""Hybrid recommendation module.

Combines collaborative filtering and content-based filtering, and owns the
fallback cascade::

    hybrid -> (collaborative failed or empty) -> content -> (empty profile) -> popular
"""

import logging
import math
import time
from enum import Enum
from typing import Dict, List, Optional, Tuple

from storerec.recommender import fallback
from storerec.recommender.collaborative import (
    find_peers,
    rank_collaborative,
    score_from_peers,
)
from storerec.recommender.config import DEFAULT_CONFIG, RecommenderConfig
from storerec.recommender.content import rank_by_content
from storerec.recommender.data import CatalogAccessor, InteractionAccessor
from storerec.recommender.models import (
    Interaction,
    RecommendationSource,
    ScoredRecommendation,
    UserProfile,
)
from storerec.recommender.profile import build_user_profile, summarize_profile

# Configure module logger
logger = logging.getLogger(__name__)


class RecommendationMode(str, Enum):
    """Personalized modes a caller can ask for."""

    HYBRID = "hybrid"
    CONTENT = "content"
    COLLABORATIVE = "collaborative"


class FallbackStep(str, Enum):
    """Which step of the cascade produced a result list."""

    HYBRID = "hybrid"
    COLLABORATIVE = "collaborative"
    CONTENT = "content"
    CONTENT_AFTER_COLLABORATIVE_EMPTY = "content_after_collaborative_empty"
    CONTENT_AFTER_COLLABORATIVE_ERROR = "content_after_collaborative_error"
    POPULAR_NO_HISTORY = "popular_no_history"
    POPULAR_EMPTY_PROFILE = "popular_empty_profile"


def branch_size(limit: int, config: RecommenderConfig = DEFAULT_CONFIG) -> int:
    """Number of results each hybrid branch is asked for."""
    return math.ceil(limit * config.overfetch_ratio)


def blend(
    collaborative: List[ScoredRecommendation],
    content: List[ScoredRecommendation],
    limit: int,
    config: RecommenderConfig = DEFAULT_CONFIG,
) -> List[ScoredRecommendation]:
    """Merge the two branches into one hybrid ranking.

    A product found by both branches scores
    ``collaborative_weight * v + content_weight * c``; a product found by
    one branch keeps that branch's weighted score only. Ties keep
    collaborative order first, then content-only products in content order.
    """
    merged: Dict[int, Tuple[ScoredRecommendation, float, List[RecommendationSource]]] = {}

    for rec in collaborative:
        merged[rec.product_id] = (
            rec,
            config.collaborative_weight * rec.score,
            [RecommendationSource.COLLABORATIVE],
        )

    for rec in content:
        weighted = config.content_weight * rec.score
        if rec.product_id in merged:
            base, score, sources = merged[rec.product_id]
            merged[rec.product_id] = (base, score + weighted, sources + [RecommendationSource.CONTENT])
        else:
            merged[rec.product_id] = (rec, weighted, [RecommendationSource.CONTENT])

    blended = [
        ScoredRecommendation(
            product=rec.product,
            score=score,
            source=RecommendationSource.HYBRID,
            sources=tuple(sources),
        )
        for rec, score, sources in merged.values()
    ]
    blended.sort(key=lambda rec: rec.score, reverse=True)
    return blended[:limit]


class HybridRecommender:
    """Combines CF and content-based recommendations.

    Every call is a pure function of the catalog and interaction snapshots
    read during that call; nothing is cached between calls.
    """

    def __init__(
        self,
        catalog: CatalogAccessor,
        interactions: InteractionAccessor,
        config: RecommenderConfig = DEFAULT_CONFIG,
    ):
        """Initialize the recommender."""
        self.catalog = catalog
        self.interactions = interactions
        self.config = config

        logger.info(
            f"Initialized HybridRecommender: "
            f"CF weight={config.collaborative_weight:.2f}, "
            f"Content weight={config.content_weight:.2f}, "
            f"Peer thresholds=shared>={config.min_shared_products}, "
            f"total>={config.min_peer_interactions}"
        )

    def _profile(self, user_id: int, history: List[Interaction]) -> UserProfile:
        return build_user_profile(
            history,
            self.catalog,
            preferences=self.interactions.get_preferences(user_id),
            config=self.config,
        )

    def _popular(self, limit: int) -> List[ScoredRecommendation]:
        return fallback.popular(self.catalog, limit)

    def _content(
        self, user_id: int, history: List[Interaction], limit: int
    ) -> Tuple[List[ScoredRecommendation], bool]:
        """Content branch; the flag is False when the profile was empty."""
        profile = self._profile(user_id, history)
        if profile.is_empty:
            return [], False

        exclude_ids = {i.product_id for i in history}
        candidates = self.catalog.find_products(in_stock_only=True)
        return (
            rank_by_content(profile, candidates, exclude_ids, limit, self.config),
            True,
        )

    def _collaborative(
        self, user_id: int, history: List[Interaction], limit: int
    ) -> List[ScoredRecommendation]:
        """Collaborative branch; empty when no peer qualifies."""
        target_ids = {i.product_id for i in history if i.is_qualifying}
        population = self.interactions.scan_peers(target_ids, exclude_user_id=user_id)
        peers = find_peers(target_ids, population, self.config)
        if not peers:
            logger.debug(f"No peers for user {user_id}")
            return []

        exclude_ids = {i.product_id for i in history}
        scores = score_from_peers(exclude_ids, peers, self.config)
        return rank_collaborative(scores, self.catalog, limit)

    def _content_or_popular(
        self,
        user_id: int,
        history: List[Interaction],
        limit: int,
        step: FallbackStep,
    ) -> Tuple[List[ScoredRecommendation], FallbackStep]:
        results, has_profile = self._content(user_id, history, limit)
        if not has_profile:
            logger.info(f"Empty profile for user {user_id}, using popularity")
            return self._popular(limit), FallbackStep.POPULAR_EMPTY_PROFILE
        return results, step

    def recommend_content_with_trace(
        self, user_id: int, limit: int
    ) -> Tuple[List[ScoredRecommendation], FallbackStep]:
        history = self.interactions.get_interactions(user_id)
        return self._content_or_popular(user_id, history, limit, FallbackStep.CONTENT)

    def recommend_collaborative_with_trace(
        self, user_id: int, limit: int
    ) -> Tuple[List[ScoredRecommendation], FallbackStep]:
        history = self.interactions.get_interactions(user_id)
        if not any(i.is_qualifying for i in history):
            logger.info(f"No qualifying history for user {user_id}, using popularity")
            return self._popular(limit), FallbackStep.POPULAR_NO_HISTORY

        results = self._collaborative(user_id, history, limit)
        if not results:
            logger.info(f"No collaborative signal for user {user_id}, using content")
            return self._content_or_popular(
                user_id, history, limit, FallbackStep.CONTENT_AFTER_COLLABORATIVE_EMPTY
            )
        return results, FallbackStep.COLLABORATIVE

    def recommend_hybrid_with_trace(
        self, user_id: int, limit: int
    ) -> Tuple[List[ScoredRecommendation], FallbackStep]:
        """Blend both branches, degrading along the cascade.

        A collaborative-branch exception is logged and masked by a content-only
        result for the full ``limit``. Content-branch exceptions propagate.
        """
        history = self.interactions.get_interactions(user_id)
        if not any(i.is_qualifying for i in history):
            logger.info(f"No qualifying history for user {user_id}, using popularity")
            return self._popular(limit), FallbackStep.POPULAR_NO_HISTORY

        size = branch_size(limit, self.config)

        try:
            collaborative = self._collaborative(user_id, history, size)
        except Exception as e:
            logger.warning(
                "Collaborative branch failed, degrading to content",
                extra={
                    "user_id": user_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return self._content_or_popular(
                user_id, history, limit, FallbackStep.CONTENT_AFTER_COLLABORATIVE_ERROR
            )

        if not collaborative:
            logger.info(f"No collaborative signal for user {user_id}, using content")
            return self._content_or_popular(
                user_id, history, limit, FallbackStep.CONTENT_AFTER_COLLABORATIVE_EMPTY
            )

        content, _ = self._content(user_id, history, size)
        return blend(collaborative, content, limit, self.config), FallbackStep.HYBRID

    def recommend_with_trace(
        self,
        user_id: int,
        limit: Optional[int] = None,
        mode: RecommendationMode = RecommendationMode.HYBRID,
    ) -> Tuple[List[ScoredRecommendation], FallbackStep]:
        """Get recommendations and the cascade step that produced them."""
        limit = self.config.default_top_n if limit is None else limit
        mode = RecommendationMode(mode)
        start_time = time.time()

        if limit <= 0:
            return [], FallbackStep(mode.value)

        if mode == RecommendationMode.HYBRID:
            results, step = self.recommend_hybrid_with_trace(user_id, limit)
        elif mode == RecommendationMode.CONTENT:
            results, step = self.recommend_content_with_trace(user_id, limit)
        elif mode == RecommendationMode.COLLABORATIVE:
            results, step = self.recommend_collaborative_with_trace(user_id, limit)
        else:
            raise ValueError(f"Unsupported recommendation mode: {mode}")

        logger.info(
            "Recommendations generated",
            extra={
                "user_id": user_id,
                "mode": mode.value,
                "step": step.value,
                "num_recommendations": len(results),
                "total_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return results, step

    def recommend(
        self,
        user_id: int,
        limit: Optional[int] = None,
        mode: RecommendationMode = RecommendationMode.HYBRID,
    ) -> List[ScoredRecommendation]:
        """Get recommendations for a user."""
        results, _ = self.recommend_with_trace(user_id, limit, mode)
        return results

    def recommend_hybrid(self, user_id: int, limit: Optional[int] = None) -> List[ScoredRecommendation]:
        return self.recommend(user_id, limit, RecommendationMode.HYBRID)

    def recommend_content(self, user_id: int, limit: Optional[int] = None) -> List[ScoredRecommendation]:
        return self.recommend(user_id, limit, RecommendationMode.CONTENT)

    def recommend_collaborative(
        self, user_id: int, limit: Optional[int] = None
    ) -> List[ScoredRecommendation]:
        return self.recommend(user_id, limit, RecommendationMode.COLLABORATIVE)

    def recommend_popular(self, limit: Optional[int] = None) -> List[ScoredRecommendation]:
        return self._popular(self.config.default_top_n if limit is None else limit)

    def recommend_category(
        self,
        category: str,
        subcategory: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ScoredRecommendation]:
        limit = self.config.default_top_n if limit is None else limit
        return fallback.by_category(self.catalog, category, subcategory, limit)

    def recommend_trending(
        self,
        limit: Optional[int] = None,
        timeframe: str = fallback.DEFAULT_TIMEFRAME,
    ) -> List[ScoredRecommendation]:
        limit = self.config.default_top_n if limit is None else limit
        return fallback.trending(self.catalog, self.interactions, limit, timeframe)

    def recommend_similar(self, product_id: int, limit: int = 10) -> List[ScoredRecommendation]:
        return fallback.similar_products(self.catalog, product_id, limit)

    def user_profile_summary(self, user_id: int) -> Dict:
        """Profile summary for a user; empty history yields an empty summary."""
        history = self.interactions.get_interactions(user_id)
        profile = self._profile(user_id, history)
        return summarize_profile(profile, history)
