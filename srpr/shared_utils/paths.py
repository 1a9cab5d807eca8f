"""
Centralized path definitions for the SRPR system.

All path constants are defined here to avoid duplication and ensure
consistency across modules.
"""

from pathlib import Path

# Project root (the directory containing srpr/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Raw ratings
DATA_DIR = PROJECT_ROOT / "data"
RATINGS_PATH = DATA_DIR / "movielens" / "ratings.csv"

# Generated triplets
TRIPLETS_DIR = DATA_DIR / "triplets"
TRAINING_TRIPLETS_PATH = TRIPLETS_DIR / "training_triplets.csv"
VALIDATION_TRIPLETS_PATH = TRIPLETS_DIR / "validation_triplets.csv"

# Reports written by the benchmark CLI
RESULTS_DIR = PROJECT_ROOT / "benchmark_results"
