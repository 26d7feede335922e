"""Catalog and interaction statistics for the admin dashboard."""

import logging
from datetime import datetime, timezone
from typing import Dict

import pandas as pd

from storerec.recommender.data import InMemoryCatalog, InMemoryInteractionStore

# Configure module logger
logger = logging.getLogger(__name__)


def recommendation_stats(
    catalog: InMemoryCatalog,
    store: InMemoryInteractionStore,
    top_n: int = 10,
) -> Dict:
    """Summarize the data the engine is working from.

    Returns:
        Dictionary with total products, users and interactions, plus the
        ``top_n`` categories by product count with their average rating and
        total views.
    """
    products = pd.DataFrame(
        [
            {"category": p.category, "rating": p.rating, "views": p.view_count}
            for p in catalog.all_products()
        ],
        columns=["category", "rating", "views"],
    )

    top_categories = []
    if not products.empty:
        grouped = (
            products.groupby("category", sort=False)
            .agg(
                count=("rating", "size"),
                avg_rating=("rating", "mean"),
                total_views=("views", "sum"),
            )
            .reset_index()
            .sort_values("count", ascending=False, kind="mergesort")
            .head(top_n)
        )
        top_categories = [
            {
                "category": row["category"],
                "count": int(row["count"]),
                "avg_rating": round(float(row["avg_rating"]), 2),
                "total_views": int(row["total_views"]),
            }
            for row in grouped.to_dict(orient="records")
        ]

    stats = {
        "total_products": len(catalog),
        "total_users": len(store.user_ids()),
        "total_interactions": store.interaction_count,
        "top_categories": top_categories,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    logger.debug(f"Computed stats: {stats['total_products']} products")
    return stats
