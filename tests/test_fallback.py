"""Tests for popularity, category, trending and similar-product rankings."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storerec.recommender.data import InMemoryCatalog
from storerec.recommender.fallback import (
    MAX_SIMILAR_PRODUCTS,
    by_category,
    popular,
    product_similarity,
    similar_products,
    trending,
    trending_score,
)
from storerec.recommender.models import InteractionKind, RecommendationSource
from tests.factories import make_interaction, make_product, make_store, popularity_catalog

NOW = datetime(2024, 6, 10, 12, 0, 0)


def test_popular_orders_by_rating_views_purchases():
    ranked = popular(popularity_catalog())

    assert [rec.product_id for rec in ranked] == [8, 6, 3, 2, 9, 5, 7, 1, 4, 10]
    assert all(rec.source == RecommendationSource.POPULAR for rec in ranked)


def test_popular_skips_out_of_stock_and_keeps_catalog_order_on_ties():
    catalog = InMemoryCatalog([
        make_product(3, rating=4.0),
        make_product(1, rating=4.0),
        make_product(2, rating=5.0, stock_quantity=0),
    ])
    assert [rec.product_id for rec in popular(catalog)] == [3, 1]


def test_popular_on_empty_catalog():
    assert popular(InMemoryCatalog([]), 5) == []


def test_by_category_filters_category_and_subcategory():
    catalog = InMemoryCatalog([
        make_product(1, category="Books", subcategory="Fiction", rating=3.0),
        make_product(2, category="Books", subcategory="Science", rating=4.0),
        make_product(3, category="Books", subcategory="Fiction", rating=5.0),
        make_product(4, category="Sports", rating=5.0),
    ])

    assert [r.product_id for r in by_category(catalog, "Books")] == [3, 2, 1]
    assert [r.product_id for r in by_category(catalog, "Books", "Fiction")] == [3, 1]
    assert by_category(catalog, "Garden") == []
    assert by_category(catalog, "Books", limit=1)[0].source == RecommendationSource.CATEGORY


def test_trending_only_includes_recent_in_stock_activity():
    catalog = InMemoryCatalog([
        make_product(1, view_count=100, like_count=10, purchase_count=1),
        make_product(2, view_count=5000),
        make_product(3, view_count=9000, stock_quantity=0),
        make_product(4, view_count=20000),
    ])
    store = make_store([
        make_interaction(1, 1, timestamp=NOW - timedelta(hours=5)),
        make_interaction(1, 2, InteractionKind.LIKE, timestamp=NOW - timedelta(days=3)),
        make_interaction(2, 3, timestamp=NOW - timedelta(hours=1)),
        make_interaction(2, 4, timestamp=NOW - timedelta(days=20)),
    ])

    day = trending(catalog, store, timeframe="1d", now=NOW)
    week = trending(catalog, store, timeframe="7d", now=NOW)
    month = trending(catalog, store, timeframe="30d", now=NOW)

    assert [r.product_id for r in day] == [1]
    assert [r.product_id for r in week] == [2, 1]
    assert [r.product_id for r in month] == [4, 2, 1]
    assert week[0].score == pytest.approx(trending_score(catalog.get_product(2)))


def test_trending_rejects_unknown_timeframe():
    with pytest.raises(ValueError, match="Invalid timeframe"):
        trending(InMemoryCatalog([]), make_store([]), timeframe="2w")


def test_trending_score_formula():
    product = make_product(1, rating=4.0, view_count=100, like_count=50, purchase_count=10)
    assert trending_score(product) == pytest.approx(30 + 20 + 3 + 40)


def test_product_similarity_components():
    base = make_product(1, category="Books", subcategory="Fiction", manufacturer="Penguin",
                        price=20.0, rating=4.0)

    assert product_similarity(base, base) == pytest.approx(1.0)

    other_sub = make_product(2, category="Books", subcategory="Science", manufacturer="Other",
                             price=10.0, rating=4.0)
    assert product_similarity(base, other_sub) == pytest.approx(0.4 + 0.1 + 0.2)


def test_product_similarity_free_products():
    a = make_product(1, category="A", manufacturer="X", price=0.0, rating=0.0)
    b = make_product(2, category="B", manufacturer="Y", price=0.0, rating=5.0)
    assert product_similarity(a, b) == pytest.approx(0.2)


def test_similar_products_threshold_and_self_exclusion():
    catalog = InMemoryCatalog([
        make_product(1, category="Books", subcategory="Fiction", price=20.0),
        make_product(2, category="Books", subcategory="Fiction", price=22.0),
        make_product(3, category="Books", subcategory="Science", manufacturer="Other",
                     price=200.0, rating=1.0),
        make_product(4, category="Sports", manufacturer="Other", price=500.0, rating=0.5),
        make_product(5, category="Books", subcategory="Fiction", stock_quantity=0),
    ])

    results = similar_products(catalog, 1)
    ids = [rec.product_id for rec in results]

    assert ids[0] == 2
    assert 1 not in ids
    assert 4 not in ids
    assert 5 not in ids
    assert all(rec.score > 0.3 for rec in results)
    assert all(rec.source == RecommendationSource.SIMILAR for rec in results)


def test_similar_products_unknown_product():
    assert similar_products(InMemoryCatalog([make_product(1)]), 99) == []


def test_similar_products_capped():
    catalog = InMemoryCatalog([make_product(pid) for pid in range(1, 40)])

    assert len(similar_products(catalog, 1, limit=100)) == MAX_SIMILAR_PRODUCTS
    assert len(similar_products(catalog, 1, limit=5)) == 5
