"""Generate a fake catalog, interaction log and preferences for development.

Writes the three raw exports the loaders read:

    data/products.json      catalog with nested analytics counters
    data/interactions.csv   user_id, product_id, type, timestamp, search_query, rating
    data/preferences.json   explicit preferences for a subset of users

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_interactions
        df = generate_fake_interactions(num_users=100, num_products=200)
"""

import argparse
import json
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_INTERACTIONS = 1000
DEFAULT_DAYS_BACK = 90
SECONDS_PER_DAY = 86400

CATALOG_TREE = {
    "Electronics": ["Headphones", "Keyboards", "Monitors"],
    "Books": ["Fiction", "Science", "Cooking"],
    "Sports": ["Running", "Cycling", "Camping"],
    "Home": ["Kitchen", "Lighting", "Storage"],
}
MANUFACTURERS = ["Acme", "Globex", "Initech", "Umbrella", "Stark", "Wayne"]
ADJECTIVES = ["wireless", "compact", "premium", "durable", "portable", "classic"]

# Relative frequency of each interaction type in the generated log
INTERACTION_TYPE_WEIGHTS = {
    "view": 0.55,
    "like": 0.15,
    "purchase": 0.12,
    "cart_add": 0.10,
    "search": 0.08,
}


def generate_fake_products(num_products: int = DEFAULT_NUM_PRODUCTS) -> List[Dict]:
    """Generate catalog records in the JSON export layout.

    Raises:
        ValueError: If num_products is not positive.
    """
    if num_products <= 0:
        raise ValueError("num_products must be positive")

    products = []
    for product_id in range(1, num_products + 1):
        category = random.choice(list(CATALOG_TREE))
        subcategory = random.choice(CATALOG_TREE[category])
        manufacturer = random.choice(MANUFACTURERS)
        adjective = random.choice(ADJECTIVES)

        products.append({
            "product_id": product_id,
            "product_name": f"{adjective.title()} {subcategory} {product_id}",
            "category": category,
            "subcategory": subcategory,
            "manufacturer": manufacturer,
            "price": round(random.uniform(5, 500), 2),
            "rating": round(random.uniform(1, 5), 1),
            # Roughly one product in ten is out of stock
            "quantity_in_stock": 0 if random.random() < 0.1 else random.randint(1, 200),
            "description": f"A {adjective} {subcategory.lower()} item by {manufacturer}",
            "analytics": {
                "views": random.randint(0, 20000),
                "likes": random.randint(0, 2000),
                "purchases": random.randint(0, 500),
            },
        })
    return products


def generate_fake_interactions(
    num_users: int = DEFAULT_NUM_USERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_interactions: int = DEFAULT_NUM_INTERACTIONS,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> pd.DataFrame:
    """Generate a synthetic interaction log.

    Args:
        num_users: Number of unique users to simulate. Must be positive.
        num_products: Number of unique products available. Must be positive.
        num_interactions: Total number of records to generate. Must be positive.
        start_date: Start of the timestamp range. Defaults to 90 days before
            end_date.
        end_date: End of the timestamp range. Defaults to now.

    Returns:
        DataFrame with columns user_id, product_id, type, timestamp,
        search_query and rating, sorted by timestamp.

    Raises:
        ValueError: If any numeric parameter is non-positive or if
            start_date is not before end_date.
    """
    if num_users <= 0 or num_products <= 0 or num_interactions <= 0:
        raise ValueError(
            "num_users, num_products, and num_interactions must be positive"
        )

    if end_date is None:
        end_date = datetime.now(timezone.utc).replace(tzinfo=None)
    if start_date is None:
        start_date = end_date - timedelta(days=DEFAULT_DAYS_BACK)

    if start_date >= end_date:
        raise ValueError("start_date must be before end_date")

    kinds = list(INTERACTION_TYPE_WEIGHTS)
    weights = list(INTERACTION_TYPE_WEIGHTS.values())
    days_range = max((end_date - start_date).days, 1)

    records = []
    for _ in range(num_interactions):
        kind = random.choices(kinds, weights=weights)[0]
        timestamp = start_date + timedelta(
            days=random.randrange(days_range),
            seconds=random.randrange(SECONDS_PER_DAY),
        )
        records.append({
            "user_id": random.randint(1, num_users),
            "product_id": random.randint(1, num_products),
            "type": kind,
            "timestamp": min(timestamp, end_date).isoformat(),
            "search_query": random.choice(ADJECTIVES) if kind == "search" else None,
            "rating": random.randint(1, 5) if kind == "purchase" and random.random() < 0.5 else None,
        })

    df = pd.DataFrame(records)
    df = df.sort_values("timestamp").reset_index(drop=True)
    return df


def generate_fake_preferences(
    num_users: int = DEFAULT_NUM_USERS,
    share: float = 0.3,
) -> Dict[str, Dict]:
    """Generate explicit preferences for a random share of users."""
    preferences = {}
    for user_id in range(1, num_users + 1):
        if random.random() >= share:
            continue
        low = random.choice([0, 10, 25, 50])
        preferences[str(user_id)] = {
            "categories": random.sample(list(CATALOG_TREE), k=random.randint(1, 2)),
            "price_range": {"min": low, "max": low + random.choice([50, 100, 250])},
            "brands": random.sample(MANUFACTURERS, k=random.randint(0, 2)),
        }
    return preferences


def main() -> None:
    """Generate all three exports and print a short summary."""
    parser = argparse.ArgumentParser(description="Generate fake StoreRec data")
    parser.add_argument("--output-dir", type=str, default=None)
    parser.add_argument("--num-users", type=int, default=DEFAULT_NUM_USERS)
    parser.add_argument("--num-products", type=int, default=DEFAULT_NUM_PRODUCTS)
    parser.add_argument("--num-interactions", type=int, default=DEFAULT_NUM_INTERACTIONS)
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    print(f"Generating {args.num_interactions} fake interactions...")
    print(f"Users: {args.num_users}, Products: {args.num_products}")

    try:
        products = generate_fake_products(args.num_products)
        interactions = generate_fake_interactions(
            num_users=args.num_users,
            num_products=args.num_products,
            num_interactions=args.num_interactions,
        )
        preferences = generate_fake_preferences(args.num_users)
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = Path(args.output_dir) if args.output_dir else Path(__file__).parent.parent / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    with open(data_dir / "products.json", "w", encoding="utf-8") as f:
        json.dump(products, f, indent=2)
    interactions.to_csv(data_dir / "interactions.csv", index=False)
    with open(data_dir / "preferences.json", "w", encoding="utf-8") as f:
        json.dump(preferences, f, indent=2)

    print("\nData generated successfully!")
    print(f"Saved to: {data_dir}")
    print("\nInteraction preview:")
    print(interactions.head(10))
    print("\nData summary:")
    print(f"  Products: {len(products)}")
    print(f"  Interactions: {len(interactions)}")
    print(f"  Unique users: {interactions['user_id'].nunique()}")
    print(f"  Users with preferences: {len(preferences)}")
    print(f"  By type: {interactions['type'].value_counts().to_dict()}")


if __name__ == "__main__":
    main()
