"""Collaborative filtering over overlapping interaction histories.

Peers are other users who touched enough of the same products; their likes
and purchases on products the target has not seen become the score.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from storerec.recommender.config import DEFAULT_CONFIG, RecommenderConfig
from storerec.recommender.data import CatalogAccessor, resolve_products
from storerec.recommender.models import (
    Interaction,
    InteractionKind,
    PeerCandidate,
    POSITIVE_KINDS,
    RecommendationSource,
    ScoredRecommendation,
)

# Configure module logger
logger = logging.getLogger(__name__)


def find_peers(
    target_product_ids: Set[int],
    population: Iterable[Tuple[int, List[Interaction]]],
    config: RecommenderConfig = DEFAULT_CONFIG,
) -> List[PeerCandidate]:
    """Find the users most similar to the target by interaction overlap.

    A candidate qualifies with at least ``min_shared_products`` distinct
    products in common and at least ``min_peer_interactions`` interactions of
    their own. Similarity is::

        shared / (len(target_product_ids) + candidate interaction count)

    Args:
        target_product_ids: Distinct products from the target's qualifying
            interactions.
        population: ``(user_id, interactions)`` pairs to consider. The target
            user must already be excluded.
        config: Thresholds and peer cap.

    Returns:
        Up to ``max_peers`` candidates by similarity, descending. Equal
        similarities keep population order.
    """
    if not target_product_ids:
        return []

    peers = []
    for user_id, interactions in population:
        shared = len({i.product_id for i in interactions} & target_product_ids)
        total = len(interactions)
        if shared < config.min_shared_products or total < config.min_peer_interactions:
            continue

        peers.append(
            PeerCandidate(
                user_id=user_id,
                interactions=tuple(interactions),
                shared_count=shared,
                total_interactions=total,
                similarity=shared / (len(target_product_ids) + total),
            )
        )

    peers.sort(key=lambda peer: peer.similarity, reverse=True)
    peers = peers[: config.max_peers]

    logger.debug(
        f"Found {len(peers)} peers for {len(target_product_ids)} target products"
    )
    return peers


def _interaction_weight(kind: InteractionKind, config: RecommenderConfig) -> float:
    if kind == InteractionKind.PURCHASE:
        return config.purchase_weight
    return config.like_weight


def score_from_peers(
    exclude_ids: Set[int],
    peers: Iterable[PeerCandidate],
    config: RecommenderConfig = DEFAULT_CONFIG,
) -> Dict[int, float]:
    """Accumulate peer likes and purchases into per-product scores.

    Each positive interaction on a product outside ``exclude_ids`` adds
    ``peer.similarity * (2 if purchase else 1)``. Contributions are summed,
    not averaged, so broad agreement outranks a single close peer. Stock is
    ignored here and checked when products are resolved.

    Returns:
        Mapping of product id to score in first-seen order.
    """
    scores: Dict[int, float] = defaultdict(float)
    for peer in peers:
        for interaction in peer.interactions:
            if interaction.kind not in POSITIVE_KINDS:
                continue
            if interaction.product_id in exclude_ids:
                continue
            scores[interaction.product_id] += peer.similarity * _interaction_weight(
                interaction.kind, config
            )
    return dict(scores)


def rank_collaborative(
    scores: Dict[int, float],
    catalog: CatalogAccessor,
    limit: Optional[int] = None,
) -> List[ScoredRecommendation]:
    """Resolve scored product ids into ranked recommendations.

    Products missing from the catalog or out of stock are dropped here, after
    accumulation. Ties keep first-seen order.
    """
    if not scores or (limit is not None and limit <= 0):
        return []

    ranked_ids = sorted(scores, key=lambda pid: scores[pid], reverse=True)
    products = resolve_products(catalog, ranked_ids)

    recommendations = []
    for pid in ranked_ids:
        product = products.get(pid)
        if product is None or not product.in_stock:
            continue
        recommendations.append(
            ScoredRecommendation(
                product=product,
                score=scores[pid],
                source=RecommendationSource.COLLABORATIVE,
                sources=(RecommendationSource.COLLABORATIVE,),
            )
        )
        if limit is not None and len(recommendations) >= limit:
            break

    return recommendations
