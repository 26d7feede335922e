"""Read-only accessors over the product catalog and interaction history.

The engine only talks to the two protocols below. The in-memory
implementations back the API, the CLI and the tests; a database-backed store
only needs to honor the same method contracts.
"""

import logging
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np
from scipy.sparse import csr_matrix

from storerec.recommender.models import Interaction, Product, UserPreferences

# Configure module logger
logger = logging.getLogger(__name__)

PeerRecord = Tuple[int, List[Interaction]]


class CatalogAccessor(Protocol):
    """Read-only view over the product collection."""

    def get_products(self, product_ids: Iterable[int]) -> List[Product]:
        """Return the products that exist; unknown ids are dropped."""
        ...

    def find_products(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        in_stock_only: bool = True,
    ) -> List[Product]:
        ...

    def all_products(self) -> List[Product]:
        ...


class InteractionAccessor(Protocol):
    """Read-only view over recorded user interactions."""

    def get_interactions(self, user_id: int) -> List[Interaction]:
        """Return a user's interactions; empty for unknown users."""
        ...

    def get_preferences(self, user_id: int) -> UserPreferences:
        ...

    def scan_peers(
        self,
        product_ids: Iterable[int],
        exclude_user_id: Optional[int] = None,
    ) -> List[PeerRecord]:
        """Return every other user who touched at least one of the products."""
        ...

    def recent_interactions(self, since: datetime) -> List[Interaction]:
        ...

    def user_ids(self) -> List[int]:
        ...


class InMemoryCatalog:
    """Catalog snapshot held in memory, keyed by product id."""

    def __init__(self, products: Iterable[Product]):
        self._products: Dict[int, Product] = OrderedDict()
        for product in products:
            if product.product_id in self._products:
                logger.warning(
                    f"Duplicate product {product.product_id} in catalog, keeping the last one"
                )
            self._products[product.product_id] = product

        logger.info(f"Initialized InMemoryCatalog: {len(self._products)} products")

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._products

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def get_products(self, product_ids: Iterable[int]) -> List[Product]:
        wanted = set(product_ids)
        return [p for pid, p in self._products.items() if pid in wanted]

    def find_products(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        in_stock_only: bool = True,
    ) -> List[Product]:
        results = []
        for product in self._products.values():
            if in_stock_only and not product.in_stock:
                continue
            if category is not None and product.category != category:
                continue
            if subcategory is not None and product.subcategory != subcategory:
                continue
            results.append(product)
        return results

    def all_products(self) -> List[Product]:
        return list(self._products.values())


class InMemoryInteractionStore:
    """Interaction history for all users held in memory.

    Keeps a sparse user x product incidence matrix so the peer scan is a
    single column slice instead of a walk over every user.
    """

    def __init__(
        self,
        interactions: Iterable[Interaction],
        preferences: Optional[Dict[int, UserPreferences]] = None,
    ):
        self._by_user: Dict[int, List[Interaction]] = OrderedDict()
        for interaction in interactions:
            self._by_user.setdefault(interaction.user_id, []).append(interaction)

        self._preferences = dict(preferences or {})
        for user_id in self._preferences:
            self._by_user.setdefault(user_id, [])

        self._user_ids = list(self._by_user.keys())
        self._matrix, self._product_id_to_idx = self._build_matrix()

        logger.info(
            f"Initialized InMemoryInteractionStore: {len(self._user_ids)} users, "
            f"{self.interaction_count} interactions, "
            f"{len(self._product_id_to_idx)} distinct products"
        )

    def _build_matrix(self) -> Tuple[csr_matrix, Dict[int, int]]:
        product_ids = sorted(
            {i.product_id for items in self._by_user.values() for i in items}
        )
        product_id_to_idx = {pid: idx for idx, pid in enumerate(product_ids)}

        rows, cols = [], []
        for row, user_id in enumerate(self._user_ids):
            for interaction in self._by_user[user_id]:
                rows.append(row)
                cols.append(product_id_to_idx[interaction.product_id])

        data = np.ones(len(rows), dtype=np.float32)
        matrix = csr_matrix(
            (data, (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=(len(self._user_ids), len(product_ids)),
            dtype=np.float32,
        )
        # Collapse repeat interactions to a binary incidence
        matrix.data[:] = 1.0
        matrix.eliminate_zeros()
        return matrix, product_id_to_idx

    @property
    def interaction_count(self) -> int:
        return sum(len(items) for items in self._by_user.values())

    def get_interactions(self, user_id: int) -> List[Interaction]:
        return list(self._by_user.get(user_id, []))

    def get_preferences(self, user_id: int) -> UserPreferences:
        return self._preferences.get(user_id, UserPreferences())

    def scan_peers(
        self,
        product_ids: Iterable[int],
        exclude_user_id: Optional[int] = None,
    ) -> List[PeerRecord]:
        cols = sorted(
            {self._product_id_to_idx[pid] for pid in product_ids if pid in self._product_id_to_idx}
        )
        if not cols or self._matrix.shape[0] == 0:
            return []

        overlap = np.asarray(self._matrix[:, cols].sum(axis=1)).ravel()
        rows = np.flatnonzero(overlap > 0)

        return [
            (self._user_ids[row], list(self._by_user[self._user_ids[row]]))
            for row in rows
            if self._user_ids[row] != exclude_user_id
        ]

    def recent_interactions(self, since: datetime) -> List[Interaction]:
        return [
            interaction
            for items in self._by_user.values()
            for interaction in items
            if interaction.timestamp >= since
        ]

    def user_ids(self) -> List[int]:
        return list(self._user_ids)

    def all_interactions(self) -> List[Interaction]:
        return [i for items in self._by_user.values() for i in items]

    def preferences(self) -> Dict[int, UserPreferences]:
        return dict(self._preferences)


def resolve_products(catalog: CatalogAccessor, product_ids: Sequence[int]) -> Dict[int, Product]:
    """Map ids to product snapshots, silently skipping dangling ids."""
    return {p.product_id: p for p in catalog.get_products(product_ids)}
