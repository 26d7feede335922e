"""Utility functions for recommendation system.

This module provides helper functions for text tokenization, loading raw
catalog and interaction exports, and managing the materialized input
snapshot used by the API and CLI.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import joblib
import pandas as pd
from sklearn.feature_extraction.text import CountVectorizer

from storerec.recommender.data import InMemoryCatalog, InMemoryInteractionStore
from storerec.recommender.models import (
    Interaction,
    InteractionKind,
    Product,
    UserPreferences,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Snapshot artifact filenames
CATALOG_FILENAME = "catalog.joblib"
INTERACTIONS_FILENAME = "interactions.joblib"

# Raw export filenames
PRODUCTS_JSON_FILENAME = "products.json"
PRODUCTS_CSV_FILENAME = "products.csv"
INTERACTIONS_CSV_FILENAME = "interactions.csv"
PREFERENCES_JSON_FILENAME = "preferences.json"

# Words of four or more word characters, lowercased
TOKEN_PATTERN = r"(?u)\b\w\w\w\w+\b"

PRODUCT_REQUIRED_COLUMNS = {
    "product_id",
    "product_name",
    "category",
    "subcategory",
    "manufacturer",
    "price",
    "rating",
}
INTERACTION_REQUIRED_COLUMNS = {"user_id", "product_id", "type", "timestamp"}

_analyzer = CountVectorizer(token_pattern=TOKEN_PATTERN, lowercase=True).build_analyzer()


def tokenize(text: str) -> List[str]:
    """Split free text into lowercase keywords longer than three characters.

    Every occurrence is returned, so callers counting frequencies see repeats.

    Example:
        >>> tokenize("Wireless Mouse, wireless receiver")
        ['wireless', 'mouse', 'wireless', 'receiver']
    """
    if not text:
        return []
    return _analyzer(text)


def _count(value) -> int:
    if value is None or pd.isna(value):
        return 0
    return int(value)


def _text(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value)


def _analytics_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Flatten the nested ``analytics`` object of JSON exports."""
    if "analytics" not in df.columns:
        return df

    analytics = df["analytics"].apply(lambda a: a if isinstance(a, dict) else {})
    df = df.drop(columns=["analytics"])
    for key in ("views", "likes", "purchases"):
        if key not in df.columns:
            df[key] = analytics.apply(lambda a, k=key: a.get(k, 0))
    return df


def products_from_dataframe(df: pd.DataFrame) -> List[Product]:
    """Convert a product export to Product snapshots.

    Args:
        df: DataFrame with the catalog export columns. ``quantity_in_stock``,
            ``description`` and the ``views``/``likes``/``purchases`` counters
            are optional.

    Returns:
        List of products in export order.

    Raises:
        ValueError: If required columns are missing or a price or rating is
            out of range.
    """
    df = _analytics_columns(df)

    if not PRODUCT_REQUIRED_COLUMNS.issubset(df.columns):
        missing = PRODUCT_REQUIRED_COLUMNS - set(df.columns)
        raise ValueError(f"Product data missing required columns: {missing}")

    products = []
    for record in df.to_dict(orient="records"):
        price = float(record["price"])
        rating = float(record["rating"])
        if price < 0:
            raise ValueError(f"Product {record['product_id']} has negative price {price}")
        if not 0 <= rating <= 5:
            raise ValueError(f"Product {record['product_id']} has rating {rating} outside 0-5")

        products.append(
            Product(
                product_id=int(record["product_id"]),
                name=_text(record["product_name"]),
                category=_text(record["category"]),
                subcategory=_text(record["subcategory"]),
                manufacturer=_text(record["manufacturer"]),
                price=price,
                rating=rating,
                stock_quantity=_count(record.get("quantity_in_stock")),
                description=_text(record.get("description")),
                view_count=_count(record.get("views")),
                like_count=_count(record.get("likes")),
                purchase_count=_count(record.get("purchases")),
            )
        )
    return products


def load_products(path: str) -> List[Product]:
    """Load products from a JSON or CSV export.

    JSON exports are a list of records with a nested ``analytics`` object;
    CSV exports carry flat ``views``, ``likes`` and ``purchases`` columns.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the export is empty or malformed.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Product file not found: {path}")

    logger.info(f"Loading products from {path}")
    if file_path.suffix == ".json":
        df = pd.read_json(file_path, orient="records")
    else:
        df = pd.read_csv(file_path)

    if df.empty:
        raise ValueError("Cannot build catalog from empty product data")

    products = products_from_dataframe(df)
    logger.info(f"Loaded {len(products)} products")
    return products


def interactions_from_dataframe(df: pd.DataFrame) -> List[Interaction]:
    """Convert an interaction export to Interaction records.

    Raises:
        ValueError: If required columns are missing or a type is unknown.
    """
    if not INTERACTION_REQUIRED_COLUMNS.issubset(df.columns):
        missing = INTERACTION_REQUIRED_COLUMNS - set(df.columns)
        raise ValueError(f"Interaction data missing required columns: {missing}")

    known_kinds = {kind.value for kind in InteractionKind}
    unknown = set(df["type"].unique()) - known_kinds
    if unknown:
        raise ValueError(f"Unknown interaction types: {sorted(unknown)}")

    # Normalize to naive UTC so recency windows compare cleanly
    timestamps = pd.to_datetime(df["timestamp"], utc=True).dt.tz_convert(None)

    interactions = []
    for record, timestamp in zip(df.to_dict(orient="records"), timestamps):
        rating = record.get("rating")
        query = record.get("search_query")
        interactions.append(
            Interaction(
                user_id=int(record["user_id"]),
                product_id=int(record["product_id"]),
                kind=InteractionKind(record["type"]),
                timestamp=timestamp.to_pydatetime(),
                search_query=None if query is None or pd.isna(query) else str(query),
                rating=None if rating is None or pd.isna(rating) else float(rating),
            )
        )
    return interactions


def load_interactions(csv_path: str) -> List[Interaction]:
    """Load interactions from a CSV export.

    Columns: ``user_id, product_id, type, timestamp`` plus optional
    ``search_query`` and ``rating``. An empty export is valid and yields no
    interactions.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If columns are missing or a type is unknown.
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Interaction file not found: {csv_path}")

    logger.info(f"Loading interactions from {csv_path}")
    df = pd.read_csv(csv_path)
    interactions = interactions_from_dataframe(df)
    logger.info(f"Loaded {len(interactions)} interaction records")
    return interactions


def load_preferences(json_path: str) -> Dict[int, UserPreferences]:
    """Load explicit user preferences keyed by user id.

    Expected shape::

        {"42": {"categories": ["Books"],
                "price_range": {"min": 0, "max": 100},
                "brands": ["Acme"]}}
    """
    with open(json_path, encoding="utf-8") as f:
        raw = json.load(f)

    preferences = {}
    for user_id, prefs in raw.items():
        price_range = prefs.get("price_range") or {}
        preferences[int(user_id)] = UserPreferences(
            categories=tuple(prefs.get("categories") or ()),
            price_min=price_range.get("min"),
            price_max=price_range.get("max"),
            brands=tuple(prefs.get("brands") or ()),
        )

    logger.info(f"Loaded preferences for {len(preferences)} users")
    return preferences


def load_raw_data(
    data_dir: str,
) -> Tuple[InMemoryCatalog, InMemoryInteractionStore]:
    """Build catalog and interaction store from the raw exports in a directory.

    Products come from ``products.json`` (preferred) or ``products.csv``;
    ``interactions.csv`` and ``preferences.json`` are optional.

    Raises:
        FileNotFoundError: If no product export exists in the directory.
    """
    data_path = Path(data_dir)

    products_path = data_path / PRODUCTS_JSON_FILENAME
    if not products_path.exists():
        products_path = data_path / PRODUCTS_CSV_FILENAME
    products = load_products(str(products_path))

    interactions: List[Interaction] = []
    interactions_path = data_path / INTERACTIONS_CSV_FILENAME
    if interactions_path.exists():
        interactions = load_interactions(str(interactions_path))
    else:
        logger.warning(f"No interactions found in {data_dir}, starting with empty history")

    preferences: Dict[int, UserPreferences] = {}
    preferences_path = data_path / PREFERENCES_JSON_FILENAME
    if preferences_path.exists():
        preferences = load_preferences(str(preferences_path))

    return InMemoryCatalog(products), InMemoryInteractionStore(interactions, preferences)


def save_snapshot(
    catalog: InMemoryCatalog,
    store: InMemoryInteractionStore,
    output_dir: str,
) -> None:
    """Save the materialized catalog and interaction history to disk.

    Only input data is written; scores are always computed per request.

    Raises:
        OSError: If unable to create output directory or save files.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving snapshot to {output_dir}")

    catalog_path = output_path / CATALOG_FILENAME
    joblib.dump(catalog.all_products(), catalog_path)
    logger.info(f"Saved {len(catalog)} products to {catalog_path}")

    interactions_path = output_path / INTERACTIONS_FILENAME
    joblib.dump(
        {
            "interactions": store.all_interactions(),
            "preferences": store.preferences(),
        },
        interactions_path,
    )
    logger.info(f"Saved {store.interaction_count} interactions to {interactions_path}")


def load_snapshot(
    data_dir: str,
) -> Tuple[InMemoryCatalog, InMemoryInteractionStore]:
    """Load a snapshot written by save_snapshot().

    Raises:
        FileNotFoundError: If the directory or either artifact is missing.
    """
    data_path = Path(data_dir)
    if not data_path.exists():
        raise FileNotFoundError(f"Data directory does not exist: {data_dir}")

    catalog_file = data_path / CATALOG_FILENAME
    if not catalog_file.exists():
        raise FileNotFoundError(f"Catalog snapshot not found: {catalog_file}")

    interactions_file = data_path / INTERACTIONS_FILENAME
    if not interactions_file.exists():
        raise FileNotFoundError(f"Interaction snapshot not found: {interactions_file}")

    logger.info(f"Loading snapshot from {data_dir}")
    products = joblib.load(catalog_file)
    history = joblib.load(interactions_file)

    return (
        InMemoryCatalog(products),
        InMemoryInteractionStore(history["interactions"], history.get("preferences")),
    )


def get_snapshot_paths(data_dir: str) -> Tuple[Path, Path]:
    """Get file paths for snapshot artifacts without loading them."""
    data_path = Path(data_dir)
    return data_path / CATALOG_FILENAME, data_path / INTERACTIONS_FILENAME


def check_snapshot_exists(data_dir: Optional[str]) -> bool:
    """Check if both snapshot artifacts exist."""
    if not data_dir:
        return False
    return all(path.exists() for path in get_snapshot_paths(data_dir))
