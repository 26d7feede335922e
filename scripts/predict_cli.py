"""CLI script for getting product recommendations.

Useful for testing and evaluation. Gets recommendations for a user
and prints them to the console.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Tuple

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storerec.recommender.hybrid import (
    FallbackStep,
    HybridRecommender,
    RecommendationMode,
)
from storerec.recommender.models import ScoredRecommendation
from storerec.recommender.utils import check_snapshot_exists, load_raw_data, load_snapshot

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def get_recommendations(
    user_id: int,
    data_dir: str = "data",
    top_n: int = 10,
    mode: RecommendationMode = RecommendationMode.HYBRID,
) -> Tuple[List[ScoredRecommendation], FallbackStep]:
    """Get recommendations for a user.

    Args:
        user_id: User ID to get recommendations for
        data_dir: Directory with a snapshot or raw exports
        top_n: Number of recommendations to return
        mode: hybrid, content or collaborative

    Returns:
        Tuple of (recommendations, cascade step that produced them)
    """
    try:
        if check_snapshot_exists(data_dir):
            catalog, store = load_snapshot(data_dir)
        else:
            catalog, store = load_raw_data(data_dir)
    except FileNotFoundError as e:
        print(f"Error: No data found in {data_dir}", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    recommender = HybridRecommender(catalog, store)
    return recommender.recommend_with_trace(user_id, top_n, mode)


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py 42
  python scripts/predict_cli.py 42 --top-n 5
  python scripts/predict_cli.py 42 --mode collaborative
  python scripts/predict_cli.py 42 --mode hybrid --explain
        """
    )

    parser.add_argument(
        "user_id",
        type=int,
        help="User ID to get recommendations for"
    )

    parser.add_argument(
        "--top-n",
        type=int,
        default=10,
        help="Number of recommendations to return (default: 10)"
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=[mode.value for mode in RecommendationMode],
        default=RecommendationMode.HYBRID.value,
        help="Recommendation mode (default: hybrid)"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing the snapshot or raw exports (default: data)"
    )

    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show scores, sources and the fallback step"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    recommendations, step = get_recommendations(
        user_id=args.user_id,
        data_dir=args.data_dir,
        top_n=args.top_n,
        mode=RecommendationMode(args.mode),
    )

    print(f"\nRecommendations for user {args.user_id} (mode: {args.mode}):")
    print(f"  Top {len(recommendations)} products: {[r.product_id for r in recommendations]}")

    if args.explain:
        print(f"\nProduced by: {step.value}")
        for rank, rec in enumerate(recommendations, start=1):
            sources = "+".join(s.value for s in rec.sources) or rec.source.value
            print(
                f"  {rank:>2}. {rec.product_id:>6}  {rec.score:8.4f}  "
                f"[{sources}]  {rec.product.name}"
            )

    print()


if __name__ == "__main__":
    main()
