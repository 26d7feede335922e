"""Tests for content-based scoring."""

import math
import sys
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storerec.recommender.config import RecommenderConfig
from storerec.recommender.content import (
    content_similarity,
    keyword_overlap,
    rank_by_content,
)
from storerec.recommender.data import InMemoryCatalog
from storerec.recommender.models import (
    EMPTY_PROFILE,
    InteractionKind,
    RecommendationSource,
    UserProfile,
)
from storerec.recommender.profile import build_user_profile
from tests.factories import make_interaction, make_product


@pytest.fixture
def electronics_catalog():
    return InMemoryCatalog([
        make_product(101, category="Electronics", subcategory="Audio", price=50.0,
                     rating=4.0, name="Wireless Earbuds"),
        make_product(102, category="Electronics", subcategory="Audio", price=60.0,
                     rating=4.0, name="Bluetooth Speaker"),
        make_product(201, category="Electronics", subcategory="Audio", price=55.0,
                     rating=4.5, name="Noise Cancelling Headset"),
        make_product(202, category="Books", subcategory="Fiction", manufacturer="Penguin",
                     price=20.0, rating=4.9, name="Bestselling Thriller"),
    ])


@pytest.fixture
def liked_electronics_profile(electronics_catalog):
    interactions = [
        make_interaction(7, 101, InteractionKind.LIKE),
        make_interaction(7, 102, InteractionKind.LIKE),
    ]
    return build_user_profile(interactions, electronics_catalog)


def test_category_match_outranks_higher_rating(electronics_catalog, liked_electronics_profile):
    """A same-category product beats a better-rated product from another category."""
    candidates = electronics_catalog.get_products([201, 202])
    ranked = rank_by_content(liked_electronics_profile, candidates)

    assert [rec.product_id for rec in ranked] == [201, 202]
    assert ranked[0].score > ranked[1].score


def test_scores_are_finite_and_non_negative(electronics_catalog, liked_electronics_profile):
    """Every profile, including the empty one, yields a finite non-negative score."""
    odd_products = [
        make_product(1, price=0.0, rating=0.0),
        make_product(2, price=1e9, rating=5.0, view_count=10**7),
        make_product(3, category="", subcategory="", manufacturer=""),
    ]
    degenerate = UserProfile(categories={"Electronics": 0.0}, price_min=0.0,
                             price_max=0.0, avg_rating=0.0)
    profiles = [EMPTY_PROFILE, liked_electronics_profile, degenerate]

    for profile in profiles:
        for product in odd_products + electronics_catalog.all_products():
            score = content_similarity(profile, product)
            assert math.isfinite(score)
            assert score >= 0


def test_empty_profile_scores_zero():
    assert content_similarity(EMPTY_PROFILE, make_product(1, rating=5.0)) == 0.0


def test_boosts_multiply_weighted_sum():
    """Rating and view boosts scale the weighted feature sum."""
    profile = UserProfile(categories={"Electronics": 1.0})
    plain = make_product(1, rating=0.0, view_count=0)
    boosted = make_product(2, rating=5.0, view_count=10000)

    base = content_similarity(profile, plain)
    # Rating closeness to the 0.0 average adds the full rating term
    assert base == pytest.approx(0.30 + 0.10)
    assert content_similarity(profile, boosted) == pytest.approx(0.30 * 1.5 * 2.0)


def test_custom_weights_are_used():
    profile = UserProfile(categories={"Electronics": 1.0})
    config = RecommenderConfig(category_weight=1.0, rating_weight=0.0)

    score = content_similarity(profile, make_product(1, rating=0.0), config)
    assert score == pytest.approx(1.0)


def test_keyword_overlap():
    keywords = {"wireless": 2.0, "mouse": 1.0, "gaming": 1.0}

    assert keyword_overlap(keywords, "Wireless Gaming Keyboard") == pytest.approx(0.75)
    assert keyword_overlap({}, "anything") == 0.0
    assert keyword_overlap(keywords, "") == 0.0


def test_rank_skips_excluded_and_out_of_stock(electronics_catalog, liked_electronics_profile):
    candidates = electronics_catalog.all_products() + [make_product(300, stock_quantity=0)]
    ranked = rank_by_content(liked_electronics_profile, candidates, exclude_ids={101, 102})

    ids = [rec.product_id for rec in ranked]
    assert 101 not in ids and 102 not in ids
    assert 300 not in ids
    assert all(rec.source == RecommendationSource.CONTENT for rec in ranked)
    assert all(rec.sources == (RecommendationSource.CONTENT,) for rec in ranked)


def test_rank_respects_limit(electronics_catalog, liked_electronics_profile):
    ranked = rank_by_content(
        liked_electronics_profile, electronics_catalog.all_products(), limit=2
    )
    assert len(ranked) == 2


def test_ties_keep_candidate_order():
    """Identical scores rank in the order candidates were supplied."""
    profile = UserProfile(categories={"Electronics": 1.0})
    candidates = [make_product(pid) for pid in (5, 3, 9, 1)]

    ranked = rank_by_content(profile, candidates)
    assert [rec.product_id for rec in ranked] == [5, 3, 9, 1]


def test_ranking_is_idempotent(electronics_catalog, liked_electronics_profile):
    candidates = electronics_catalog.all_products()

    first = rank_by_content(liked_electronics_profile, candidates)
    second = rank_by_content(liked_electronics_profile, candidates)
    assert first == second
