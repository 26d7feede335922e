"""Tests for peer discovery and collaborative scoring."""

import sys
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storerec.recommender.collaborative import (
    find_peers,
    rank_collaborative,
    score_from_peers,
)
from storerec.recommender.config import RecommenderConfig
from storerec.recommender.data import InMemoryCatalog
from storerec.recommender.models import (
    InteractionKind,
    PeerCandidate,
    RecommendationSource,
)
from tests.factories import make_interaction, make_product, make_store

TARGET = {1, 2, 3}


def history(user_id, product_ids, kind=InteractionKind.VIEW):
    return [make_interaction(user_id, pid, kind) for pid in product_ids]


def test_peer_at_both_thresholds_is_kept():
    """Exactly 2 shared products and exactly 5 interactions qualifies."""
    population = [(10, history(10, [1, 2, 50, 51, 52]))]
    peers = find_peers(TARGET, population)

    assert [p.user_id for p in peers] == [10]
    assert peers[0].shared_count == 2
    assert peers[0].total_interactions == 5
    assert peers[0].similarity == pytest.approx(2 / (3 + 5))


def test_peer_one_short_on_shared_products_is_dropped():
    population = [(11, history(11, [1, 50, 51, 52, 53]))]
    assert find_peers(TARGET, population) == []


def test_peer_one_short_on_interactions_is_dropped():
    population = [(12, history(12, [1, 2, 50, 51]))]
    assert find_peers(TARGET, population) == []


def test_repeat_touches_count_once_for_overlap():
    """Shared products are distinct ids, but the total counts every interaction."""
    population = [(13, history(13, [1, 1, 1, 50, 51]))]
    assert find_peers(TARGET, population) == []


def test_peers_never_violate_thresholds():
    population = [
        (uid, history(uid, list(range(1, shared + 1)) + list(range(100, 100 + extra))))
        for uid, (shared, extra) in enumerate(
            [(s, e) for s in range(0, 4) for e in range(0, 5)], start=100
        )
    ]
    for peer in find_peers(TARGET, population, RecommenderConfig(max_peers=100)):
        assert peer.shared_count >= 2
        assert peer.total_interactions >= 5


def test_peers_sorted_and_capped():
    population = [
        (uid, history(uid, [1, 2] + list(range(100, 100 + extra))))
        for uid, extra in zip(range(20, 32), range(3, 15))
    ]
    peers = find_peers(TARGET, population)

    assert len(peers) == 10
    similarities = [p.similarity for p in peers]
    assert similarities == sorted(similarities, reverse=True)
    # Fewer total interactions means higher similarity
    assert peers[0].user_id == 20


def test_no_target_products_gives_no_peers():
    assert find_peers(set(), [(1, history(1, [1, 2, 3, 4, 5]))]) == []


def _peer(user_id, interactions, similarity):
    return PeerCandidate(
        user_id=user_id,
        interactions=tuple(interactions),
        shared_count=2,
        total_interactions=len(interactions),
        similarity=similarity,
    )


def test_score_weights_purchases_double():
    peer = _peer(
        5,
        [
            make_interaction(5, 40, InteractionKind.PURCHASE),
            make_interaction(5, 41, InteractionKind.LIKE),
            make_interaction(5, 42, InteractionKind.VIEW),
            make_interaction(5, 43, InteractionKind.CART_ADD),
        ],
        0.5,
    )
    scores = score_from_peers(set(), [peer])

    assert scores == {40: pytest.approx(1.0), 41: pytest.approx(0.5)}


def test_score_sums_across_peers():
    peers = [
        _peer(5, [make_interaction(5, 40, InteractionKind.LIKE)], 0.25),
        _peer(6, [make_interaction(6, 40, InteractionKind.PURCHASE)], 0.1),
    ]
    assert score_from_peers(set(), peers)[40] == pytest.approx(0.25 + 0.2)


def test_already_seen_products_are_never_scored():
    """Products the target touched stay out even when every peer recommends them."""
    seen = {1, 2, 40}
    peers = [
        _peer(uid, [make_interaction(uid, 40, InteractionKind.PURCHASE),
                    make_interaction(uid, 41, InteractionKind.LIKE)], 0.3)
        for uid in range(5, 10)
    ]
    scores = score_from_peers(seen, peers)

    assert 40 not in scores
    assert set(scores) == {41}


def test_rank_collaborative_drops_missing_and_out_of_stock():
    catalog = InMemoryCatalog([
        make_product(40),
        make_product(41, stock_quantity=0),
        make_product(42),
    ])
    scores = {41: 9.0, 40: 1.0, 999: 5.0, 42: 2.0}

    ranked = rank_collaborative(scores, catalog)

    assert [rec.product_id for rec in ranked] == [42, 40]
    assert all(rec.source == RecommendationSource.COLLABORATIVE for rec in ranked)
    assert ranked[0].score == 2.0


def test_rank_collaborative_limit_counts_resolved_products():
    catalog = InMemoryCatalog([make_product(pid) for pid in (40, 42, 43)])
    scores = {41: 9.0, 40: 3.0, 42: 2.0, 43: 1.0}

    ranked = rank_collaborative(scores, catalog, limit=2)
    assert [rec.product_id for rec in ranked] == [40, 42]


def test_rank_collaborative_ties_keep_first_seen_order():
    catalog = InMemoryCatalog([make_product(pid) for pid in (3, 5, 7)])

    ranked = rank_collaborative({7: 1.0, 3: 1.0, 5: 1.0}, catalog)

    assert [rec.product_id for rec in ranked] == [7, 3, 5]


@pytest.mark.parametrize("limit", [0, -1])
def test_rank_collaborative_non_positive_limit_returns_nothing(limit):
    catalog = InMemoryCatalog([make_product(1), make_product(2)])

    assert rank_collaborative({1: 1.0, 2: 0.5}, catalog, limit=limit) == []


def test_scan_peers_returns_only_overlapping_users():
    store = make_store(
        history(1, [1, 2, 3])
        + history(2, [2, 9])
        + history(3, [7, 8])
        + history(4, [3])
    )
    peers = store.scan_peers({1, 2, 3}, exclude_user_id=1)

    assert [user_id for user_id, _ in peers] == [2, 4]
    assert [i.product_id for i in peers[0][1]] == [2, 9]


def test_scan_peers_ignores_unknown_products():
    store = make_store(history(1, [1, 2]))
    assert store.scan_peers({999}) == []
