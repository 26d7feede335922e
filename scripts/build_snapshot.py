"""Command-line interface for materializing the recommendation input snapshot.

Reads the raw catalog, interaction and preference exports and writes them as
joblib artifacts the API and CLI load at startup. No scores are stored; every
recommendation is computed per request from this snapshot.

Example:
    Build a snapshot from the default data directory:
        $ python scripts/build_snapshot.py data

    Build into a separate directory:
        $ python scripts/build_snapshot.py exports/2024-06-01 \\
            --output-dir data/snapshot
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storerec.recommender.stats import recommendation_stats
from storerec.recommender.utils import load_raw_data, save_snapshot


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Build a joblib snapshot from raw catalog and interaction exports.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Snapshot the exports in data/ next to them
  python scripts/build_snapshot.py data

  # Write the snapshot somewhere else
  python scripts/build_snapshot.py exports --output-dir data

  # Verbose logging
  python scripts/build_snapshot.py data --verbose
        """,
    )

    parser.add_argument(
        "input_dir",
        type=str,
        help="Directory containing products.json (or products.csv), "
        "and optionally interactions.csv and preferences.json",
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory where snapshot artifacts will be saved (default: input_dir)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args()


def validate_input_dir(input_dir: str) -> None:
    """Validate that the input directory exists.

    Raises:
        FileNotFoundError: If the directory does not exist.
        ValueError: If the path is not a directory.
    """
    path = Path(input_dir)
    if not path.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not path.is_dir():
        raise ValueError(f"Path is not a directory: {input_dir}")


def main() -> int:
    """Main entry point for the snapshot script.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    try:
        args = parse_arguments()

        setup_logging(verbose=args.verbose)
        logger = logging.getLogger(__name__)

        validate_input_dir(args.input_dir)
        output_dir = args.output_dir or args.input_dir

        catalog, store = load_raw_data(args.input_dir)
        save_snapshot(catalog, store, output_dir)

        stats = recommendation_stats(catalog, store, top_n=5)
        logger.info("=" * 70)
        logger.info("Snapshot Summary")
        logger.info("=" * 70)
        logger.info(f"Products:       {stats['total_products']}")
        logger.info(f"Users:          {stats['total_users']}")
        logger.info(f"Interactions:   {stats['total_interactions']}")
        for row in stats["top_categories"]:
            logger.info(f"  {row['category']}: {row['count']} products")
        logger.info(f"Snapshot saved to: {Path(output_dir).absolute()}")
        logger.info("=" * 70)
        return 0

    except FileNotFoundError as e:
        logging.error(f"File error: {e}")
        return 1
    except ValueError as e:
        logging.error(f"Validation error: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Snapshot build interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
