"""
In-memory store of user and item embeddings.

The store is the only shared mutable state in the system. The trainer owns it
for writing during a training run; the retrieval harness reads it afterwards
through read-only views.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

import numpy as np

from .triplets import Triplet

logger = logging.getLogger(__name__)


class UnknownEntityError(LookupError):
    """Raised when a user or item id has no embedding in the store."""

    def __init__(self, kind: str, entity_id: int):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Unknown {kind} id: {entity_id}")


class UserItemStore:
    """
    Keyed containers of equal-length embeddings for users (X) and items (Y).

    Embeddings are created once by initialize() from every id referenced by
    the triplets, each entry drawn from Normal(0, init_std). Lookups of ids
    that were never initialized raise UnknownEntityError instead of creating
    an entry.

    Example:
        store = UserItemStore(dimensions=32, seed=42)
        store.initialize(triplets)
        x_u = store.get_user_vector(1)        # mutable, updated in place
        y_i = store.item_vector_view(10)      # read-only
    """

    def __init__(self, dimensions: int, seed: Optional[int] = None, init_std: float = 0.1):
        """
        Args:
            dimensions: Embedding dimension d shared by users and items
            seed: Seed for initialization (None = OS entropy)
            init_std: Standard deviation of the initial normal distribution
        """
        if dimensions <= 0:
            raise ValueError(f"dimensions must be positive, got {dimensions}")

        self.dimensions = dimensions
        self.init_std = init_std
        self._rng = np.random.default_rng(seed)
        self._user_vectors: Dict[int, np.ndarray] = {}
        self._item_vectors: Dict[int, np.ndarray] = {}
        self._initialized = False

    def initialize(self, triplets: Iterable[Triplet]) -> None:
        """
        Create one random embedding per distinct user and item id.

        Ids are initialized in ascending order so a fixed seed gives the
        same embeddings regardless of triplet order.

        Raises:
            RuntimeError: If the store was already initialized
        """
        if self._initialized:
            raise RuntimeError("UserItemStore.initialize() may only be called once")

        user_ids = set()
        item_ids = set()
        for user_id, preferred_id, less_preferred_id in triplets:
            user_ids.add(user_id)
            item_ids.add(preferred_id)
            item_ids.add(less_preferred_id)

        for user_id in sorted(user_ids):
            self._user_vectors[user_id] = self._rng.normal(0.0, self.init_std, self.dimensions)
        for item_id in sorted(item_ids):
            self._item_vectors[item_id] = self._rng.normal(0.0, self.init_std, self.dimensions)

        self._initialized = True
        logger.info(
            f"Initialized {len(self._user_vectors):,} users and "
            f"{len(self._item_vectors):,} items (d={self.dimensions})"
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_user_vector(self, user_id: int) -> np.ndarray:
        """Mutable reference to a user's embedding."""
        try:
            return self._user_vectors[user_id]
        except KeyError:
            raise UnknownEntityError("user", user_id) from None

    def get_item_vector(self, item_id: int) -> np.ndarray:
        """Mutable reference to an item's embedding."""
        try:
            return self._item_vectors[item_id]
        except KeyError:
            raise UnknownEntityError("item", item_id) from None

    def user_vector_view(self, user_id: int) -> np.ndarray:
        """Read-only view of a user's embedding."""
        return _read_only(self.get_user_vector(user_id))

    def item_vector_view(self, item_id: int) -> np.ndarray:
        """Read-only view of an item's embedding."""
        return _read_only(self.get_item_vector(item_id))

    def get_all_item_vectors(self) -> Mapping[int, np.ndarray]:
        """Read-only mapping of item id to embedding, in ascending id order."""
        return MappingProxyType(self._item_vectors)

    def has_user(self, user_id: int) -> bool:
        return user_id in self._user_vectors

    def has_item(self, item_id: int) -> bool:
        return item_id in self._item_vectors

    @property
    def user_ids(self) -> List[int]:
        return list(self._user_vectors)

    @property
    def item_ids(self) -> List[int]:
        return list(self._item_vectors)

    @property
    def num_users(self) -> int:
        return len(self._user_vectors)

    @property
    def num_items(self) -> int:
        return len(self._item_vectors)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def summary(self) -> Dict[str, int]:
        """Counts for logging."""
        return {
            "num_users": self.num_users,
            "num_items": self.num_items,
            "dimensions": self.dimensions,
        }


def _read_only(vector: np.ndarray) -> np.ndarray:
    view = vector.view()
    view.flags.writeable = False
    return view
