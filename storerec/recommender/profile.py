"""User profile construction.

Folds a user's qualifying interactions into a weighted preference vector
over categories, subcategories, manufacturers, price, rating and keywords.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from storerec.recommender.config import DEFAULT_CONFIG, RecommenderConfig
from storerec.recommender.data import CatalogAccessor, resolve_products
from storerec.recommender.models import (
    EMPTY_PROFILE,
    Interaction,
    UserPreferences,
    UserProfile,
)
from storerec.recommender.utils import tokenize

# Configure module logger
logger = logging.getLogger(__name__)


def build_user_profile(
    interactions: Iterable[Interaction],
    catalog: CatalogAccessor,
    preferences: Optional[UserPreferences] = None,
    config: RecommenderConfig = DEFAULT_CONFIG,
) -> UserProfile:
    """Build a preference profile from a user's interaction history.

    Only view, like and purchase interactions count. Each one adds a unit of
    weight to the product's category, subcategory and manufacturer, widens
    the observed price range, feeds the average rating and adds the
    product's keywords. Interactions whose product left the catalog are
    skipped.

    Explicitly preferred categories get ``config.preference_bonus`` on top,
    but only once some interaction resolved; preferences alone never turn
    the empty profile into a real one.

    Args:
        interactions: The user's full interaction list, any order.
        catalog: Catalog used to resolve product ids.
        preferences: Explicit preferences stated by the user.
        config: Scoring configuration.

    Returns:
        A fresh UserProfile, or EMPTY_PROFILE when nothing qualified.
    """
    qualifying = [i for i in interactions if i.is_qualifying]
    if not qualifying:
        return EMPTY_PROFILE

    products = resolve_products(catalog, [i.product_id for i in qualifying])
    resolved = [products[i.product_id] for i in qualifying if i.product_id in products]
    if not resolved:
        logger.debug(
            f"All {len(qualifying)} qualifying interactions reference missing products"
        )
        return EMPTY_PROFILE

    categories: Counter = Counter()
    subcategories: Counter = Counter()
    manufacturers: Counter = Counter()
    keywords: Counter = Counter()

    for product in resolved:
        categories[product.category] += 1.0
        subcategories[product.subcategory] += 1.0
        manufacturers[product.manufacturer] += 1.0
        keywords.update(tokenize(product.text))

    if preferences is not None:
        for category in preferences.categories:
            categories[category] += config.preference_bonus

    prices = [p.price for p in resolved]

    return UserProfile(
        categories=dict(categories),
        subcategories=dict(subcategories),
        manufacturers=dict(manufacturers),
        keywords={k: float(v) for k, v in keywords.items()},
        price_min=min(prices),
        price_max=max(prices),
        avg_rating=sum(p.rating for p in resolved) / len(resolved),
    )


def _top_entries(weights: Dict[str, float], top_n: int) -> List[tuple]:
    return sorted(weights.items(), key=lambda x: x[1], reverse=True)[:top_n]


def summarize_profile(
    profile: UserProfile,
    interactions: List[Interaction],
    top_n: int = 5,
) -> Dict:
    """Summarize a profile for display on the account page.

    Returns:
        Dictionary with top categories and manufacturers, the observed price
        range, the average rating, the interaction count and the timestamp of
        the latest interaction (None without history).
    """
    last_activity = max((i.timestamp for i in interactions), default=None)

    return {
        "top_categories": [
            {"category": name, "count": count}
            for name, count in _top_entries(profile.categories, top_n)
        ],
        "top_manufacturers": [
            {"manufacturer": name, "count": count}
            for name, count in _top_entries(profile.manufacturers, top_n)
        ],
        "price_range": {"min": profile.price_min, "max": profile.price_max},
        "avg_rating": profile.avg_rating,
        "interaction_count": len(interactions),
        "last_activity": last_activity,
    }
