"""
Candidate retrieval by exact cosine ranking or SRP Hamming ranking.

Both paths are full-catalog scans:
- Exact: cosine similarity against every item, O(n x d)
- LSH: Hamming distance between SRP codes, O(n x b) after hashing
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from ..data import UserItemStore
from ..hashing import SRPHasher, hamming_distance, hamming_to_similarity
from ..training.objective import cosine_similarity

logger = logging.getLogger(__name__)

EXACT = "exact"
LSH = "lsh"


@dataclass
class Recommendation:
    """
    One ranked item.

    Attributes:
        item_id: Item id
        score: Cosine similarity (exact) or 1 - h/b (LSH)
        rank: 1-based position in the ranking
        hamming_distance: Raw Hamming distance (LSH path only)
    """

    item_id: int
    score: float
    rank: int
    hamming_distance: Optional[int] = None


@dataclass
class RetrievalResult:
    """Ranked recommendations for one user plus the scan's wall-clock time."""

    user_id: int
    method: str
    recommendations: List[Recommendation] = field(default_factory=list)
    retrieval_time_ms: float = 0.0

    @property
    def item_ids(self) -> List[int]:
        return [r.item_id for r in self.recommendations]


class CandidateRetriever:
    """
    Retrieve top-K items for a user from the embedding store.

    Unknown users raise UnknownEntityError: a single-user lookup fails fast
    and names the id. Ties keep catalog (ascending item id) order.

    Example:
        retriever = CandidateRetriever(store, SRPHasher(32, 16, seed=42))
        exact = retriever.exact_search(user_id=1, top_k=10)
        approx = retriever.lsh_search(user_id=1, top_k=10)
    """

    def __init__(self, store: UserItemStore, hasher: SRPHasher):
        """
        Args:
            store: Trained embedding store (read only)
            hasher: SRP hasher applied to user and item embeddings
        """
        self.store = store
        self.hasher = hasher

    def exact_search(self, user_id: int, top_k: int) -> RetrievalResult:
        """
        Rank every item by cosine similarity to the user, descending.

        Args:
            user_id: Query user
            top_k: Number of results (<= 0 returns none)

        Returns:
            RetrievalResult with score = cosine similarity
        """
        start = time.perf_counter()

        user_vector = self.store.user_vector_view(user_id)
        scored = [
            (item_id, cosine_similarity(user_vector, item_vector))
            for item_id, item_vector in self.store.get_all_item_vectors().items()
        ]
        scored.sort(key=lambda pair: pair[1], reverse=True)

        recommendations = [
            Recommendation(item_id=item_id, score=score, rank=rank)
            for rank, (item_id, score) in enumerate(scored[: max(top_k, 0)], start=1)
        ]

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return RetrievalResult(user_id, EXACT, recommendations, elapsed_ms)

    def lsh_search(self, user_id: int, top_k: int) -> RetrievalResult:
        """
        Rank every item by Hamming distance between SRP codes, ascending.

        The user's code is computed once; each item's code is computed from
        its current embedding during the scan.

        Args:
            user_id: Query user
            top_k: Number of results (<= 0 returns none)

        Returns:
            RetrievalResult with score = 1 - h/b and the raw distance
        """
        start = time.perf_counter()

        num_bits = self.hasher.num_hashes
        user_code = self.hasher.generate_code(self.store.user_vector_view(user_id))
        distances = [
            (item_id, hamming_distance(user_code, self.hasher.generate_code(item_vector)))
            for item_id, item_vector in self.store.get_all_item_vectors().items()
        ]
        distances.sort(key=lambda pair: pair[1])

        recommendations = [
            Recommendation(
                item_id=item_id,
                score=hamming_to_similarity(distance, num_bits),
                rank=rank,
                hamming_distance=distance,
            )
            for rank, (item_id, distance) in enumerate(distances[: max(top_k, 0)], start=1)
        ]

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return RetrievalResult(user_id, LSH, recommendations, elapsed_ms)

    def search(self, user_id: int, top_k: int, method: str = LSH) -> RetrievalResult:
        """Dispatch to exact_search or lsh_search by name."""
        if method == EXACT:
            return self.exact_search(user_id, top_k)
        if method == LSH:
            return self.lsh_search(user_id, top_k)
        raise ValueError(f"Unknown retrieval method: {method!r} (expected 'exact' or 'lsh')")

    def recommend(self, user_id: int, top_k: int = 10, method: str = LSH) -> List[Recommendation]:
        """Top-K recommendations without timing information."""
        return self.search(user_id, top_k, method).recommendations
