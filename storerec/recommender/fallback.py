"""Non-personalized ranking paths.

Popularity is the last step of every fallback cascade. Category, trending
and similar-product rankings are standalone browse paths.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from storerec.recommender.data import CatalogAccessor, InteractionAccessor
from storerec.recommender.models import (
    Product,
    RecommendationSource,
    ScoredRecommendation,
)

# Configure module logger
logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"1d": 1, "7d": 7, "30d": 30}
DEFAULT_TIMEFRAME = "7d"

# Keep only pairs above this similarity, and at most this many per product
SIMILARITY_THRESHOLD = 0.3
MAX_SIMILAR_PRODUCTS = 20


def _popularity_key(product: Product):
    return (product.rating, product.view_count, product.purchase_count)


def _display_score(product: Product) -> float:
    return product.rating + product.view_count / 1000


def _rank_by_popularity(
    products: Iterable[Product],
    source: RecommendationSource,
    limit: Optional[int],
) -> List[ScoredRecommendation]:
    ranked = sorted(products, key=_popularity_key, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        ScoredRecommendation(
            product=product,
            score=_display_score(product),
            source=source,
            sources=(source,),
        )
        for product in ranked
    ]


def popular(catalog: CatalogAccessor, limit: Optional[int] = None) -> List[ScoredRecommendation]:
    """Rank in-stock products by rating, then views, then purchases.

    Never raises on an empty catalog; equal keys keep catalog order.
    """
    return _rank_by_popularity(
        catalog.find_products(in_stock_only=True), RecommendationSource.POPULAR, limit
    )


def by_category(
    catalog: CatalogAccessor,
    category: str,
    subcategory: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[ScoredRecommendation]:
    """Popularity ranking restricted to one category (and subcategory)."""
    products = catalog.find_products(
        category=category, subcategory=subcategory, in_stock_only=True
    )
    return _rank_by_popularity(products, RecommendationSource.CATEGORY, limit)


def trending_score(product: Product) -> float:
    return (
        0.3 * product.view_count
        + 0.4 * product.like_count
        + 0.3 * product.purchase_count
        + 10 * product.rating
    )


def trending(
    catalog: CatalogAccessor,
    interactions: InteractionAccessor,
    limit: Optional[int] = None,
    timeframe: str = DEFAULT_TIMEFRAME,
    now: Optional[datetime] = None,
) -> List[ScoredRecommendation]:
    """Rank in-stock products that saw activity within ``timeframe``.

    Args:
        timeframe: One of ``1d``, ``7d`` or ``30d``.
        now: Reference time as naive UTC; defaults to the current time.

    Raises:
        ValueError: If the timeframe is not supported.
    """
    if timeframe not in TIMEFRAME_DAYS:
        raise ValueError(
            f"Invalid timeframe '{timeframe}', expected one of {sorted(TIMEFRAME_DAYS)}"
        )

    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
    since = now - timedelta(days=TIMEFRAME_DAYS[timeframe])

    active_ids = {i.product_id for i in interactions.recent_interactions(since)}
    products = [p for p in catalog.get_products(active_ids) if p.in_stock]

    logger.info(
        f"Trending over {timeframe}: {len(active_ids)} active products, "
        f"{len(products)} in stock"
    )

    ranked = sorted(products, key=trending_score, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        ScoredRecommendation(
            product=product,
            score=trending_score(product),
            source=RecommendationSource.TRENDING,
            sources=(RecommendationSource.TRENDING,),
        )
        for product in ranked
    ]


def product_similarity(a: Product, b: Product) -> float:
    """Attribute similarity between two products, in [0, 1].

    Category match 0.4 (plus 0.2 when the subcategory matches too),
    manufacturer match 0.2, price closeness 0.2 and rating closeness 0.2.
    """
    similarity = 0.0
    if a.category == b.category:
        similarity += 0.4
        if a.subcategory == b.subcategory:
            similarity += 0.2

    if a.manufacturer == b.manufacturer:
        similarity += 0.2

    max_price = max(a.price, b.price)
    if max_price > 0:
        similarity += 0.2 * (1 - abs(a.price - b.price) / max_price)
    else:
        # Both free
        similarity += 0.2

    similarity += 0.2 * max(0.0, 1 - abs(a.rating - b.rating) / 5)
    return min(similarity, 1.0)


def similar_products(
    catalog: CatalogAccessor,
    product_id: int,
    limit: int = 10,
) -> List[ScoredRecommendation]:
    """Find in-stock products similar to ``product_id``.

    Compares the product against every other catalog entry, which is
    quadratic across the catalog when run for every product. Unknown
    products yield an empty list.
    """
    matches = catalog.get_products([product_id])
    if not matches:
        logger.warning(f"Product {product_id} not found in catalog")
        return []
    base = matches[0]

    scored = []
    for other in catalog.find_products(in_stock_only=True):
        if other.product_id == product_id:
            continue
        similarity = product_similarity(base, other)
        if similarity > SIMILARITY_THRESHOLD:
            scored.append((other, similarity))

    scored.sort(key=lambda x: x[1], reverse=True)
    scored = scored[: min(limit, MAX_SIMILAR_PRODUCTS)]

    return [
        ScoredRecommendation(
            product=product,
            score=similarity,
            source=RecommendationSource.SIMILAR,
            sources=(RecommendationSource.SIMILAR,),
        )
        for product, similarity in scored
    ]
