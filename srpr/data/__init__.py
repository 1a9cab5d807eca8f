"""
Data module for SRPR.

This module handles:
- Preference triplets (user, preferred item, less-preferred item)
- Triplet generation from explicit ratings
- The in-memory user/item embedding store
"""

from .config import DataConfig
from .store import UnknownEntityError, UserItemStore
from .triplets import (
    Triplet,
    load_ratings,
    load_triplets,
    ratings_to_triplets,
    save_triplets,
    split_triplets,
)

__all__ = [
    "DataConfig",
    "Triplet",
    "UnknownEntityError",
    "UserItemStore",
    "load_ratings",
    "load_triplets",
    "ratings_to_triplets",
    "save_triplets",
    "split_triplets",
]
