"""
Preference triplets and their conversion from explicit ratings.

This module provides:
- Triplet: Immutable (user, preferred item, less-preferred item) record
- load_ratings: Read a MovieLens-style ratings CSV
- ratings_to_triplets: Turn each user's rating gaps into ordinal triplets
- split_triplets: Seeded train/validation split
- load_triplets / save_triplets: CSV round trip for generated triplets
"""

import logging
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

logger = logging.getLogger(__name__)

TRIPLET_COLUMNS = ["user_id", "preferred_item_id", "less_preferred_item_id"]

# MovieLens ships camelCase headers; everything downstream uses snake_case
RATING_COLUMN_ALIASES = {"userId": "user_id", "movieId": "movie_id"}


class Triplet(NamedTuple):
    """For user_id, preferred_item_id is ranked above less_preferred_item_id."""

    user_id: int
    preferred_item_id: int
    less_preferred_item_id: int


def load_ratings(path: Path, max_ratings: Optional[int] = None) -> pd.DataFrame:
    """
    Load a ratings CSV into a DataFrame with user_id, movie_id, rating columns.

    Args:
        path: CSV with userId/movieId/rating (or user_id/movie_id/rating) columns
        max_ratings: Only read the first N rows (None = all)

    Returns:
        DataFrame with columns user_id, movie_id, rating

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If required columns are missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ratings file not found: {path}")

    df = pd.read_csv(path, nrows=max_ratings)
    df = df.rename(columns=RATING_COLUMN_ALIASES)

    missing = {"user_id", "movie_id", "rating"} - set(df.columns)
    if missing:
        raise ValueError(f"Ratings file {path} is missing columns: {sorted(missing)}")

    df = df[["user_id", "movie_id", "rating"]].copy()
    df["user_id"] = df["user_id"].astype(int)
    df["movie_id"] = df["movie_id"].astype(int)
    df["rating"] = df["rating"].astype(float)

    logger.info(f"Loaded {len(df):,} ratings from {path}")
    return df


def ratings_to_triplets(
    ratings: pd.DataFrame,
    min_rating_diff: float = 1.0,
    max_triplets_per_user: int = 50,
    min_ratings_per_user: int = 5,
    seed: int = 42,
    verbose: bool = False,
) -> List[Triplet]:
    """
    Convert explicit ratings into preference triplets.

    For every user with at least min_ratings_per_user ratings, each pair of
    rated movies whose ratings differ by at least min_rating_diff yields one
    triplet with the higher-rated movie as the preferred item. Users with
    more than max_triplets_per_user candidate triplets keep a random subset
    drawn from a single seeded generator, so output is reproducible.

    Users are visited in ascending id order; within a user, pairs follow the
    row order of the input.

    Args:
        ratings: DataFrame with user_id, movie_id, rating columns
        min_rating_diff: Minimum rating gap for a pair to count
        max_triplets_per_user: Per-user cap
        min_ratings_per_user: Users below this count are skipped
        seed: Seed for the per-user subsampling
        verbose: Whether to show a progress bar

    Returns:
        List of Triplet
    """
    rng = np.random.default_rng(seed)
    triplets: List[Triplet] = []
    users_with_enough = 0

    groups = ratings.groupby("user_id", sort=True)
    iterator = groups
    if verbose:
        iterator = tqdm(groups, total=groups.ngroups, desc="Building triplets")

    for user_id, user_df in iterator:
        if len(user_df) < min_ratings_per_user:
            continue
        users_with_enough += 1

        movies = user_df["movie_id"].to_numpy()
        scores = user_df["rating"].to_numpy()

        user_triplets = []
        for i in range(len(movies)):
            for j in range(i + 1, len(movies)):
                if abs(scores[i] - scores[j]) < min_rating_diff:
                    continue
                if scores[i] > scores[j]:
                    user_triplets.append(Triplet(int(user_id), int(movies[i]), int(movies[j])))
                else:
                    user_triplets.append(Triplet(int(user_id), int(movies[j]), int(movies[i])))

        if len(user_triplets) > max_triplets_per_user:
            keep = rng.permutation(len(user_triplets))[:max_triplets_per_user]
            user_triplets = [user_triplets[k] for k in keep]

        triplets.extend(user_triplets)

    logger.info(f"Users with >= {min_ratings_per_user} ratings: {users_with_enough:,}")
    logger.info(f"Triplets generated: {len(triplets):,}")
    return triplets


def split_triplets(
    triplets: List[Triplet],
    val_fraction: float = 0.1,
    seed: int = 42,
) -> Tuple[List[Triplet], List[Triplet]]:
    """
    Shuffle triplets with a fixed seed and split into train/validation.

    Args:
        triplets: All triplets
        val_fraction: Fraction assigned to validation
        seed: Shuffle seed

    Returns:
        Tuple of (training_triplets, validation_triplets)
    """
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(triplets))
    shuffled = [triplets[i] for i in order]

    split_point = int(len(shuffled) * (1.0 - val_fraction))
    return shuffled[:split_point], shuffled[split_point:]


def save_triplets(triplets: Iterable[Triplet], path: Path) -> None:
    """Write triplets to CSV with a user_id,preferred_item_id,less_preferred_item_id header."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(list(triplets), columns=TRIPLET_COLUMNS)
    df.to_csv(path, index=False)
    logger.info(f"Saved {len(df):,} triplets to {path}")


def load_triplets(path: Path) -> List[Triplet]:
    """
    Read triplets from a CSV written by save_triplets, preserving row order.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Triplet file not found: {path}")

    df = pd.read_csv(path, dtype=int)
    triplets = [
        Triplet(int(u), int(i), int(j))
        for u, i, j in df[TRIPLET_COLUMNS].itertuples(index=False, name=None)
    ]
    logger.info(f"Loaded {len(triplets):,} triplets from {path}")
    return triplets
