"""
CLI entry point for triplet preparation.

This script turns explicit ratings into SRPR training data:
1. Loads ratings (userId, movieId, rating)
2. Builds preference triplets per user from pairs with a clear rating gap
3. Splits triplets into training and validation sets
4. Saves both as CSV plus a metadata JSON

Usage:
    python -m srpr.data.prepare_data
    python -m srpr.data.prepare_data --ratings data/movielens/ratings.csv --max-ratings 100000
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict

import pandas as pd

from .config import DataConfig
from .triplets import load_ratings, ratings_to_triplets, save_triplets, split_triplets

logger = logging.getLogger(__name__)

TRAINING_FILENAME = "training_triplets.csv"
VALIDATION_FILENAME = "validation_triplets.csv"
METADATA_FILENAME = "triplet_config.json"


def prepare_data(config: DataConfig) -> Dict[str, Path]:
    """
    Execute the complete triplet preparation pipeline.

    Args:
        config: Data configuration

    Returns:
        Dict with the paths of the written files
    """
    logger.info("=" * 60)
    logger.info("TRIPLET PREPARATION FOR SRPR")
    logger.info("=" * 60)

    # =========================================================================
    # Stage 1: Load ratings
    # =========================================================================
    logger.info(f"Loading ratings from {config.ratings_path}...")
    ratings = load_ratings(config.ratings_path, max_ratings=config.max_ratings)
    logger.info(
        f"Loaded {len(ratings):,} ratings "
        f"({ratings['user_id'].nunique():,} users, {ratings['movie_id'].nunique():,} movies)"
    )

    # =========================================================================
    # Stage 2: Build triplets
    # =========================================================================
    logger.info(
        f"Building triplets (min gap {config.min_rating_diff}, "
        f"max {config.max_triplets_per_user} per user)..."
    )
    triplets = ratings_to_triplets(
        ratings,
        min_rating_diff=config.min_rating_diff,
        max_triplets_per_user=config.max_triplets_per_user,
        min_ratings_per_user=config.min_ratings_per_user,
        seed=config.seed,
        verbose=True,
    )
    if not triplets:
        raise ValueError(
            "No triplets generated; lower min_rating_diff or min_ratings_per_user"
        )
    logger.info(f"Generated {len(triplets):,} triplets")

    # =========================================================================
    # Stage 3: Split
    # =========================================================================
    train_triplets, val_triplets = split_triplets(
        triplets, val_fraction=config.val_fraction, seed=config.seed
    )
    logger.info(f"Train: {len(train_triplets):,} triplets")
    logger.info(f"Val:   {len(val_triplets):,} triplets")

    # =========================================================================
    # Stage 4: Save outputs
    # =========================================================================
    output_dir = config.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "train": output_dir / TRAINING_FILENAME,
        "val": output_dir / VALIDATION_FILENAME,
        "metadata": output_dir / METADATA_FILENAME,
    }
    save_triplets(train_triplets, paths["train"])
    save_triplets(val_triplets, paths["val"])

    metadata = {
        **config.to_dict(),
        "num_ratings": len(ratings),
        "train_triplets": len(train_triplets),
        "val_triplets": len(val_triplets),
        "created_at": pd.Timestamp.now().isoformat(),
    }
    with open(paths["metadata"], "w") as f:
        json.dump(metadata, f, indent=2)

    logger.info("=" * 60)
    logger.info("Triplet preparation complete!")
    logger.info("=" * 60)
    for name in sorted(output_dir.glob("*")):
        size_kb = name.stat().st_size / 1024
        logger.info(f"  {name.name:30} ({size_kb:,.1f} KB)")

    return paths


def main():
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    defaults = DataConfig()
    parser = argparse.ArgumentParser(description="Generate SRPR preference triplets from ratings")
    parser.add_argument(
        "--ratings",
        type=Path,
        default=defaults.ratings_path,
        help=f"Ratings CSV (default: {defaults.ratings_path})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=defaults.output_dir,
        help=f"Directory for triplet CSVs (default: {defaults.output_dir})",
    )
    parser.add_argument(
        "--max-ratings",
        type=int,
        default=None,
        help="Only read the first N ratings",
    )
    parser.add_argument(
        "--min-ratings-per-user",
        type=int,
        default=defaults.min_ratings_per_user,
        help="Skip users with fewer ratings (default: 5)",
    )
    parser.add_argument(
        "--min-rating-diff",
        type=float,
        default=defaults.min_rating_diff,
        help="Minimum rating gap for a triplet (default: 1.0)",
    )
    parser.add_argument(
        "--max-triplets-per-user",
        type=int,
        default=defaults.max_triplets_per_user,
        help="Cap on triplets per user (default: 50)",
    )
    parser.add_argument(
        "--val-fraction",
        type=float,
        default=defaults.val_fraction,
        help="Fraction held out for validation (default: 0.1)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.seed,
        help="Random seed (default: 42)",
    )

    args = parser.parse_args()

    config = DataConfig(
        ratings_path=args.ratings,
        output_dir=args.output_dir,
        max_ratings=args.max_ratings,
        min_ratings_per_user=args.min_ratings_per_user,
        min_rating_diff=args.min_rating_diff,
        max_triplets_per_user=args.max_triplets_per_user,
        val_fraction=args.val_fraction,
        seed=args.seed,
    )
    prepare_data(config)


if __name__ == "__main__":
    main()
