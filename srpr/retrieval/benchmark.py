"""
Exact vs LSH retrieval benchmark.

Runs both retrieval paths for a set of test users, scores them against a
ground-truth relevant set and reports speedup, accuracy loss and overall
efficiency gain.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

import numpy as np
from tqdm import tqdm

from ..data import Triplet, UnknownEntityError, UserItemStore
from ..hashing import SRPHasher
from .config import BenchmarkConfig
from .metrics import (
    EvaluationMetrics,
    LatencyStats,
    aggregate_metrics,
    evaluate_recommendations,
    ranking_overlap,
)
from .retriever import CandidateRetriever

logger = logging.getLogger(__name__)


@dataclass
class PerformanceComparison:
    """
    Aggregated comparison of the exact and LSH paths.

    Attributes:
        exact_metrics: Mean metrics of the exact path
        lsh_metrics: Mean metrics of the LSH path
        exact_latency: Per-query latency distribution of the exact path
        lsh_latency: Per-query latency distribution of the LSH path
        speedup_factor: exact mean time / LSH mean time
        accuracy_loss: (P_exact - P_lsh) / P_exact
        efficiency_gain: speedup_factor * (1 - accuracy_loss)
        num_bits: Code length of the hasher used
        users_evaluated: Users for which both paths ran
        users_skipped: Users with no embedding in the store
    """

    exact_metrics: EvaluationMetrics = field(default_factory=EvaluationMetrics)
    lsh_metrics: EvaluationMetrics = field(default_factory=EvaluationMetrics)
    exact_latency: LatencyStats = field(default_factory=LatencyStats)
    lsh_latency: LatencyStats = field(default_factory=LatencyStats)
    speedup_factor: float = 0.0
    accuracy_loss: float = 0.0
    efficiency_gain: float = 0.0
    num_bits: int = 0
    users_evaluated: int = 0
    users_skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "exact": self.exact_metrics.to_dict(),
            "lsh": self.lsh_metrics.to_dict(),
            "exact_latency": self.exact_latency.to_dict(),
            "lsh_latency": self.lsh_latency.to_dict(),
            "speedup_factor": self.speedup_factor,
            "accuracy_loss": self.accuracy_loss,
            "efficiency_gain": self.efficiency_gain,
            "num_bits": self.num_bits,
            "users_evaluated": self.users_evaluated,
            "users_skipped": self.users_skipped,
        }


def _speedup(exact_ms: float, lsh_ms: float) -> float:
    if lsh_ms <= 0.0:
        return float("inf") if exact_ms > 0.0 else 1.0
    return exact_ms / lsh_ms


def _accuracy_loss(exact_precision: float, lsh_precision: float) -> float:
    if exact_precision <= 0.0:
        return 0.0
    return (exact_precision - lsh_precision) / exact_precision


class RetrievalBenchmark:
    """
    Benchmark exact cosine retrieval against SRP Hamming retrieval.

    Example:
        benchmark = RetrievalBenchmark(store, SRPHasher(32, 16, seed=42))
        users = benchmark.sample_test_users()
        comparison = benchmark.benchmark_methods(users, top_k=10)
        benchmark.log_comparison(comparison)
    """

    def __init__(
        self,
        store: UserItemStore,
        hasher: SRPHasher,
        config: Optional[BenchmarkConfig] = None,
    ):
        self.store = store
        self.hasher = hasher
        self.config = config or BenchmarkConfig()
        self.retriever = CandidateRetriever(store, hasher)

    def sample_test_users(self, num_users: Optional[int] = None) -> List[int]:
        """Sample up to num_users distinct users from the store, ascending id order."""
        if num_users is None:
            num_users = self.config.num_test_users
        if num_users <= 0:
            return []
        user_ids = self.store.user_ids
        if len(user_ids) <= num_users:
            return list(user_ids)

        rng = np.random.default_rng(self.config.user_sample_seed)
        sampled = rng.choice(len(user_ids), size=num_users, replace=False)
        return sorted(user_ids[i] for i in sampled)

    def benchmark_methods(
        self,
        test_users: Sequence[int],
        top_k: Optional[int] = None,
        ground_truth: Optional[Mapping[int, Set[int]]] = None,
        show_progress: bool = False,
    ) -> PerformanceComparison:
        """
        Run both retrieval paths for every test user and compare them.

        Unknown users are skipped and counted. Without external ground truth,
        each user's exact top-K is the relevant set for both paths.

        Args:
            test_users: Users to query
            top_k: Recommendations per user (default: config.top_k)
            ground_truth: Optional {user_id: relevant item ids}
            show_progress: Show a tqdm progress bar

        Returns:
            PerformanceComparison
        """
        if top_k is None:
            top_k = self.config.top_k

        exact_results: List[EvaluationMetrics] = []
        lsh_results: List[EvaluationMetrics] = []
        exact_times: List[float] = []
        lsh_times: List[float] = []
        skipped = 0

        for user_id in tqdm(test_users, desc="Benchmarking", disable=not show_progress):
            try:
                exact = self.retriever.exact_search(user_id, top_k)
                lsh = self.retriever.lsh_search(user_id, top_k)
            except UnknownEntityError as e:
                logger.warning(f"Skipping user: {e}")
                skipped += 1
                continue

            if ground_truth is None:
                relevant = set(exact.item_ids)
            else:
                relevant = set(ground_truth.get(user_id, ()))

            exact_results.append(
                evaluate_recommendations(exact.recommendations, relevant, exact.retrieval_time_ms)
            )
            lsh_results.append(
                evaluate_recommendations(lsh.recommendations, relevant, lsh.retrieval_time_ms)
            )
            exact_times.append(exact.retrieval_time_ms)
            lsh_times.append(lsh.retrieval_time_ms)

        comparison = PerformanceComparison(
            exact_metrics=aggregate_metrics(exact_results),
            lsh_metrics=aggregate_metrics(lsh_results),
            exact_latency=LatencyStats.from_samples(exact_times),
            lsh_latency=LatencyStats.from_samples(lsh_times),
            num_bits=self.hasher.num_hashes,
            users_evaluated=len(exact_results),
            users_skipped=skipped,
        )

        if exact_results:
            comparison.speedup_factor = _speedup(
                comparison.exact_metrics.avg_retrieval_time_ms,
                comparison.lsh_metrics.avg_retrieval_time_ms,
            )
            comparison.accuracy_loss = _accuracy_loss(
                comparison.exact_metrics.precision_at_k,
                comparison.lsh_metrics.precision_at_k,
            )
            comparison.efficiency_gain = comparison.speedup_factor * (1.0 - comparison.accuracy_loss)
        else:
            logger.warning("No test users could be evaluated")

        if skipped:
            logger.warning(f"Skipped {skipped} of {len(test_users)} test users")

        return comparison

    @staticmethod
    def generate_ground_truth(triplets: Sequence[Triplet]) -> Dict[int, Set[int]]:
        """Relevant items per user: every item appearing as the preferred one."""
        ground_truth: Dict[int, Set[int]] = defaultdict(set)
        for triplet in triplets:
            ground_truth[triplet.user_id].add(triplet.preferred_item_id)
        return dict(ground_truth)

    def similarity_correlation(self, user_id: int, top_k: Optional[int] = None) -> dict:
        """
        Side-by-side exact and LSH rankings for one user.

        Raises UnknownEntityError for an unknown user.

        Returns:
            Dict with per-rank rows (exact item/score, LSH item/score, match)
            and the top-K overlap fraction
        """
        if top_k is None:
            top_k = self.config.top_k
        exact = self.retriever.exact_search(user_id, top_k)
        lsh = self.retriever.lsh_search(user_id, top_k)

        pairs = zip(exact.recommendations, lsh.recommendations)
        rows = [
            {
                "rank": rank,
                "exact_item": ex.item_id,
                "exact_score": ex.score,
                "lsh_item": approx.item_id,
                "lsh_score": approx.score,
                "match": ex.item_id == approx.item_id,
            }
            for rank, (ex, approx) in enumerate(pairs, start=1)
        ]

        return {
            "user_id": user_id,
            "rows": rows,
            "overlap": ranking_overlap(exact.recommendations, lsh.recommendations, top_k),
        }

    def bit_length_analysis(
        self,
        bit_lengths: Optional[Sequence[int]] = None,
        test_users: Optional[Sequence[int]] = None,
        top_k: Optional[int] = None,
    ) -> Dict[int, PerformanceComparison]:
        """
        Benchmark one freshly seeded hasher per code length.

        Returns:
            {num_bits: PerformanceComparison}
        """
        if bit_lengths is None:
            bit_lengths = self.config.bit_lengths
        test_users = test_users if test_users is not None else self.sample_test_users()

        results = {}
        for num_bits in bit_lengths:
            hasher = SRPHasher(self.store.dimensions, num_bits, seed=self.config.hash_seed)
            benchmark = RetrievalBenchmark(self.store, hasher, self.config)
            results[num_bits] = benchmark.benchmark_methods(test_users, top_k)
            logger.info(
                f"  b={num_bits:3d}: P@K={results[num_bits].lsh_metrics.precision_at_k:.4f}, "
                f"speedup={results[num_bits].speedup_factor:.2f}x"
            )
        return results

    def log_comparison(self, comparison: PerformanceComparison) -> None:
        """Log a comparison table."""
        ex, lsh = comparison.exact_metrics, comparison.lsh_metrics

        logger.info("=" * 60)
        logger.info(f"EXACT vs LSH RETRIEVAL (b={comparison.num_bits})")
        logger.info("=" * 60)
        logger.info(f"  Users evaluated: {comparison.users_evaluated} "
                    f"(skipped: {comparison.users_skipped})")
        logger.info(f"  {'Metric':<16} {'Exact':>10} {'LSH':>10}")
        logger.info(f"  {'Precision@K':<16} {ex.precision_at_k:>10.4f} {lsh.precision_at_k:>10.4f}")
        logger.info(f"  {'Recall@K':<16} {ex.recall_at_k:>10.4f} {lsh.recall_at_k:>10.4f}")
        logger.info(f"  {'NDCG@K':<16} {ex.ndcg_at_k:>10.4f} {lsh.ndcg_at_k:>10.4f}")
        logger.info(f"  {'MAP':<16} {ex.map_score:>10.4f} {lsh.map_score:>10.4f}")
        logger.info(
            f"  {'Avg time (ms)':<16} {ex.avg_retrieval_time_ms:>10.3f} "
            f"{lsh.avg_retrieval_time_ms:>10.3f}"
        )
        logger.info(f"  Speedup:         {comparison.speedup_factor:.2f}x")
        logger.info(f"  Accuracy loss:   {comparison.accuracy_loss * 100:.2f}%")
        logger.info(f"  Efficiency gain: {comparison.efficiency_gain:.2f}")
