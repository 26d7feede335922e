"""Tunable constants for the recommendation engine.

The blend ratio and peer thresholds are product decisions rather than derived
invariants, so they live here with the values the store launched with.
"""

from dataclasses import dataclass, fields, replace

# Content feature weights
DEFAULT_CATEGORY_WEIGHT = 0.30
DEFAULT_SUBCATEGORY_WEIGHT = 0.20
DEFAULT_MANUFACTURER_WEIGHT = 0.15
DEFAULT_PRICE_WEIGHT = 0.15
DEFAULT_RATING_WEIGHT = 0.10
DEFAULT_KEYWORD_WEIGHT = 0.10

# Peer discovery
DEFAULT_MIN_SHARED_PRODUCTS = 2
DEFAULT_MIN_PEER_INTERACTIONS = 5
DEFAULT_MAX_PEERS = 10

# Hybrid blending
DEFAULT_COLLABORATIVE_WEIGHT = 0.6
DEFAULT_CONTENT_WEIGHT = 0.4
DEFAULT_OVERFETCH_RATIO = 0.6

DEFAULT_TOP_N = 20


@dataclass(frozen=True)
class RecommenderConfig:
    """Weights and thresholds used across the scoring pipeline."""

    category_weight: float = DEFAULT_CATEGORY_WEIGHT
    subcategory_weight: float = DEFAULT_SUBCATEGORY_WEIGHT
    manufacturer_weight: float = DEFAULT_MANUFACTURER_WEIGHT
    price_weight: float = DEFAULT_PRICE_WEIGHT
    rating_weight: float = DEFAULT_RATING_WEIGHT
    keyword_weight: float = DEFAULT_KEYWORD_WEIGHT

    # Multiplicative boosts: (1 + rating / rating_boost_scale), (1 + views / view_boost_scale)
    rating_boost_scale: float = 10.0
    view_boost_scale: float = 10000.0

    # Added to each explicitly preferred category; must exceed the 1.0 interaction unit
    preference_bonus: float = 2.0

    min_shared_products: int = DEFAULT_MIN_SHARED_PRODUCTS
    min_peer_interactions: int = DEFAULT_MIN_PEER_INTERACTIONS
    max_peers: int = DEFAULT_MAX_PEERS
    purchase_weight: float = 2.0
    like_weight: float = 1.0

    collaborative_weight: float = DEFAULT_COLLABORATIVE_WEIGHT
    content_weight: float = DEFAULT_CONTENT_WEIGHT
    overfetch_ratio: float = DEFAULT_OVERFETCH_RATIO

    default_top_n: int = DEFAULT_TOP_N

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")

        if self.rating_boost_scale == 0 or self.view_boost_scale == 0:
            raise ValueError("Boost scales must be positive")
        if self.min_shared_products < 1:
            raise ValueError("min_shared_products must be at least 1")
        if self.max_peers < 1:
            raise ValueError("max_peers must be at least 1")
        if self.overfetch_ratio == 0:
            raise ValueError("overfetch_ratio must be positive")
        if self.default_top_n < 1:
            raise ValueError("default_top_n must be at least 1")

    def with_overrides(self, **overrides) -> "RecommenderConfig":
        """Return a validated copy with some values replaced."""
        return replace(self, **overrides)


DEFAULT_CONFIG = RecommenderConfig()
