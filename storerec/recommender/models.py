"""Domain types for the recommendation engine.

Products and interactions are read-only snapshots handed in by the catalog
and interaction stores. Profiles, peers and scored recommendations are
derived per call and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple


class InteractionKind(str, Enum):
    """Closed set of recorded user interaction types."""

    VIEW = "view"
    LIKE = "like"
    PURCHASE = "purchase"
    CART_ADD = "cart_add"
    SEARCH = "search"


# Kinds that feed the user profile and peer overlap
QUALIFYING_KINDS = frozenset(
    {InteractionKind.VIEW, InteractionKind.LIKE, InteractionKind.PURCHASE}
)

# Kinds a peer must have to vouch for a product
POSITIVE_KINDS = frozenset({InteractionKind.LIKE, InteractionKind.PURCHASE})


class RecommendationSource(str, Enum):
    """Which path produced a recommendation."""

    CONTENT = "content"
    COLLABORATIVE = "collaborative"
    HYBRID = "hybrid"
    TRENDING = "trending"
    CATEGORY = "category"
    POPULAR = "popular"
    SIMILAR = "similar"


@dataclass(frozen=True)
class Product:
    """Catalog snapshot of a single product."""

    product_id: int
    name: str
    category: str
    subcategory: str
    manufacturer: str
    price: float
    rating: float
    stock_quantity: int = 0
    description: str = ""
    view_count: int = 0
    like_count: int = 0
    purchase_count: int = 0

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    @property
    def text(self) -> str:
        return f"{self.name} {self.description}"


@dataclass(frozen=True)
class Interaction:
    """A single recorded user event.

    ``product_id`` may point at a product that is no longer in the catalog.
    """

    user_id: int
    product_id: int
    kind: InteractionKind
    timestamp: datetime
    search_query: Optional[str] = None
    rating: Optional[float] = None

    @property
    def is_qualifying(self) -> bool:
        return self.kind in QUALIFYING_KINDS


@dataclass(frozen=True)
class UserPreferences:
    """Preferences a user stated explicitly on their account."""

    categories: Tuple[str, ...] = ()
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    brands: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UserProfile:
    """Weighted preference vector aggregated from interaction history."""

    categories: Dict[str, float] = field(default_factory=dict)
    subcategories: Dict[str, float] = field(default_factory=dict)
    manufacturers: Dict[str, float] = field(default_factory=dict)
    keywords: Dict[str, float] = field(default_factory=dict)
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    avg_rating: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.categories and self.price_min is None

    @property
    def has_price_range(self) -> bool:
        return self.price_min is not None and self.price_max is not None


EMPTY_PROFILE = UserProfile()


@dataclass(frozen=True)
class ScoredRecommendation:
    """A ranked product with the path that produced it.

    Scores are ranking keys only; compare them within one result list.
    """

    product: Product
    score: float
    source: RecommendationSource
    sources: Tuple[RecommendationSource, ...] = ()

    @property
    def product_id(self) -> int:
        return self.product.product_id


@dataclass(frozen=True)
class PeerCandidate:
    """Another user whose history overlaps the target user's."""

    user_id: int
    interactions: Tuple[Interaction, ...]
    shared_count: int
    total_interactions: int
    similarity: float
