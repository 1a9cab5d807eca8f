"""
Configuration dataclasses for triplet generation.

This module defines configuration for converting explicit ratings
into preference triplets for SRPR training.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..shared_utils.paths import RATINGS_PATH, TRIPLETS_DIR


@dataclass
class DataConfig:
    """
    Configuration for triplet generation.

    Attributes:
        ratings_path: CSV file with user/movie/rating columns
        output_dir: Directory to save training/validation triplet CSVs
        max_ratings: Only read the first N ratings (None = all)
        min_ratings_per_user: Users with fewer ratings are skipped (default: 5)
        min_rating_diff: Minimum rating gap for a pair to become a triplet
            (default: 1.0). Pairs with a smaller gap carry no clear preference.
        max_triplets_per_user: Cap on triplets per user (default: 50)
            Users above the cap keep a seeded random subset.
        val_fraction: Fraction of triplets held out for validation (default: 0.1)
        seed: Random seed for per-user subsampling and the train/val split
    """

    ratings_path: Path = field(default_factory=lambda: RATINGS_PATH)
    output_dir: Path = field(default_factory=lambda: TRIPLETS_DIR)
    max_ratings: Optional[int] = None
    min_ratings_per_user: int = 5
    min_rating_diff: float = 1.0
    max_triplets_per_user: int = 50
    val_fraction: float = 0.1
    seed: int = 42

    def __post_init__(self):
        """Convert string paths to Path objects and validate ranges."""
        if isinstance(self.ratings_path, str):
            self.ratings_path = Path(self.ratings_path)
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        if not 0.0 <= self.val_fraction < 1.0:
            raise ValueError(f"val_fraction must be in [0, 1), got {self.val_fraction}")
        if self.max_triplets_per_user <= 0:
            raise ValueError(
                f"max_triplets_per_user must be positive, got {self.max_triplets_per_user}"
            )

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging."""
        return {
            "ratings_path": str(self.ratings_path),
            "output_dir": str(self.output_dir),
            "max_ratings": self.max_ratings,
            "min_ratings_per_user": self.min_ratings_per_user,
            "min_rating_diff": self.min_rating_diff,
            "max_triplets_per_user": self.max_triplets_per_user,
            "val_fraction": self.val_fraction,
            "seed": self.seed,
        }
