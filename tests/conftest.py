"""
PyTest configuration and fixtures for testing
"""

from typing import List

import numpy as np
import pandas as pd
import pytest

from srpr.data import Triplet, UserItemStore
from srpr.hashing import SRPHasher
from srpr.training import TrainingConfig


def pytest_configure(config):
    """Register custom test markers"""
    config.addinivalue_line("markers", "unit: Mark test as unit test")
    config.addinivalue_line("markers", "slow: Mark test as slow running")


@pytest.fixture
def sample_triplets() -> List[Triplet]:
    """Three triplets over two users and five items"""
    return [Triplet(1, 10, 20), Triplet(1, 10, 30), Triplet(2, 40, 50)]


@pytest.fixture
def sample_store(sample_triplets) -> UserItemStore:
    """Store initialized from sample_triplets with d=4, seed=42"""
    store = UserItemStore(dimensions=4, seed=42)
    store.initialize(sample_triplets)
    return store


@pytest.fixture
def sample_hasher() -> SRPHasher:
    """8-bit hasher over 4-dimensional vectors"""
    return SRPHasher(dimensions=4, num_hashes=8, seed=42)


@pytest.fixture
def catalog_triplets() -> List[Triplet]:
    """Random triplets over 20 users and 60 items"""
    rng = np.random.default_rng(7)
    triplets = []
    for user_id in range(1, 21):
        for _ in range(15):
            i, j = rng.choice(np.arange(100, 160), size=2, replace=False)
            triplets.append(Triplet(user_id, int(i), int(j)))
    return triplets


@pytest.fixture
def catalog_store(catalog_triplets) -> UserItemStore:
    """Store with 20 users and up to 60 items in 8 dimensions"""
    store = UserItemStore(dimensions=8, seed=42)
    store.initialize(catalog_triplets)
    return store


@pytest.fixture
def quiet_config() -> TrainingConfig:
    """Small, silent training config without MLflow"""
    return TrainingConfig(
        embedding_dim=4,
        epochs=5,
        learning_rate=0.001,
        regularization=0.0,
        b_lsh_length=8,
        validation_freq=1,
        convergence_tolerance=1e-12,
        verbose=False,
        val_path=None,
    )


@pytest.fixture
def sample_ratings_df() -> pd.DataFrame:
    """Ratings for three users; user 3 has too few ratings to produce triplets"""
    rows = [
        # user 1: five movies, clear preferences
        (1, 100, 5.0), (1, 101, 4.0), (1, 102, 3.0), (1, 103, 1.0), (1, 104, 5.0),
        # user 2: five movies, all ratings within 0.5 of each other
        (2, 100, 3.0), (2, 101, 3.5), (2, 102, 3.0), (2, 103, 3.5), (2, 104, 3.0),
        # user 3: only two movies
        (3, 100, 5.0), (3, 101, 1.0),
    ]
    return pd.DataFrame(rows, columns=["user_id", "movie_id", "rating"])
