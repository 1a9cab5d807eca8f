"""
Shared utilities for the SRPR system.

This module provides path constants for raw data, generated triplets
and benchmark outputs.
"""

from .paths import (
    PROJECT_ROOT,
    DATA_DIR,
    RATINGS_PATH,
    TRIPLETS_DIR,
    TRAINING_TRIPLETS_PATH,
    VALIDATION_TRIPLETS_PATH,
    RESULTS_DIR,
)

__all__ = [
    "PROJECT_ROOT",
    "DATA_DIR",
    "RATINGS_PATH",
    "TRIPLETS_DIR",
    "TRAINING_TRIPLETS_PATH",
    "VALIDATION_TRIPLETS_PATH",
    "RESULTS_DIR",
]
