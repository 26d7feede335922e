"""Content-based scoring.

Scores candidate products against a user profile with a fixed weighted
combination of attribute matches, then boosts by rating and popularity.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from storerec.recommender.config import DEFAULT_CONFIG, RecommenderConfig
from storerec.recommender.models import (
    Product,
    RecommendationSource,
    ScoredRecommendation,
    UserProfile,
)
from storerec.recommender.utils import tokenize

# Configure module logger
logger = logging.getLogger(__name__)

MAX_RATING = 5.0


def _safe_ratio(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def _weight_match(weights: Dict[str, float], key: str) -> float:
    """Weight of ``key`` relative to the heaviest entry, in [0, 1]."""
    if not weights:
        return 0.0
    return _safe_ratio(weights.get(key, 0.0), max(weights.values()))


def _price_fit(profile: UserProfile, price: float) -> float:
    if not profile.has_price_range:
        return 0.0
    midpoint = (profile.price_min + profile.price_max) / 2
    span = profile.price_max - profile.price_min
    denominator = max(span, price)
    if denominator <= 0:
        return 0.0
    return max(0.0, 1.0 - abs(price - midpoint) / denominator)


def _rating_fit(profile: UserProfile, rating: float) -> float:
    if profile.is_empty:
        return 0.0
    return max(0.0, 1.0 - abs(rating - profile.avg_rating) / MAX_RATING)


def keyword_overlap(keywords: Dict[str, float], text: str) -> float:
    """Share of the profile's keyword mass that also appears in ``text``."""
    total = sum(keywords.values())
    if total <= 0:
        return 0.0
    tokens = set(tokenize(text))
    matched = sum(weight for keyword, weight in keywords.items() if keyword in tokens)
    return matched / total


def content_similarity(
    profile: UserProfile,
    product: Product,
    config: RecommenderConfig = DEFAULT_CONFIG,
) -> float:
    """Score how well a product matches a user profile.

    Each feature term is normalized to [0, 1] before weighting:

    - category, subcategory and manufacturer: the product's weight in the
      profile divided by the heaviest weight of that map
    - price: closeness to the midpoint of the observed price range, relative
      to ``max(range span, product price)``
    - rating: closeness to the profile's average rating on the 0-5 scale
    - keywords: share of profile keyword mass found in the product text

    The weighted sum is multiplied by ``1 + rating / 10`` and
    ``1 + views / 10000``. Degenerate denominators contribute 0, so the
    result is always a finite, non-negative ranking key with no upper bound.
    """
    score = (
        config.category_weight * _weight_match(profile.categories, product.category)
        + config.subcategory_weight * _weight_match(profile.subcategories, product.subcategory)
        + config.manufacturer_weight * _weight_match(profile.manufacturers, product.manufacturer)
        + config.price_weight * _price_fit(profile, product.price)
        + config.rating_weight * _rating_fit(profile, product.rating)
        + config.keyword_weight * keyword_overlap(profile.keywords, product.text)
    )

    score *= 1 + max(product.rating, 0.0) / config.rating_boost_scale
    score *= 1 + max(product.view_count, 0) / config.view_boost_scale

    return max(score, 0.0)


def rank_by_content(
    profile: UserProfile,
    candidates: Iterable[Product],
    exclude_ids: Optional[Set[int]] = None,
    limit: Optional[int] = None,
    config: RecommenderConfig = DEFAULT_CONFIG,
) -> List[ScoredRecommendation]:
    """Score and rank candidate products for a profile.

    Excluded and out-of-stock products are skipped. Ties keep candidate
    order, so identical inputs always rank identically.
    """
    exclude_ids = exclude_ids or set()

    scored = [
        ScoredRecommendation(
            product=product,
            score=content_similarity(profile, product, config),
            source=RecommendationSource.CONTENT,
            sources=(RecommendationSource.CONTENT,),
        )
        for product in candidates
        if product.product_id not in exclude_ids and product.in_stock
    ]
    scored.sort(key=lambda rec: rec.score, reverse=True)

    logger.debug(f"Scored {len(scored)} content candidates")

    if limit is not None:
        scored = scored[:limit]
    return scored
