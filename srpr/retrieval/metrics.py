"""
Information-retrieval metrics for ranked recommendations.

Pure functions for:
- Precision@K, Recall@K, NDCG@K (binary relevance)
- Average precision and MAP
- Aggregation of per-user metrics and latency statistics

Every ranking argument accepts either plain item ids or Recommendation
objects. All metrics return 0.0 when the ranking is empty, the relevant set
is empty, or k <= 0.
"""

from dataclasses import asdict, dataclass
from typing import Any, Collection, Dict, Iterable, List, Optional, Sequence

import numpy as np


def _item_ids(ranking: Iterable[Any]) -> List[int]:
    return [getattr(entry, "item_id", entry) for entry in ranking]


def _hits_in_top_k(ranking: Sequence[Any], ground_truth: Collection[int], k: int) -> int:
    return sum(1 for item_id in _item_ids(ranking[:k]) if item_id in ground_truth)


def precision_at_k(ranking: Sequence[Any], ground_truth: Collection[int], k: int) -> float:
    """
    Precision@K = (# relevant in top-K) / K.

    Args:
        ranking: Ranked item ids or Recommendations, best first
        ground_truth: Relevant item ids
        k: Cut-off

    Returns:
        Precision in [0, 1]
    """
    if not ranking or not ground_truth or k <= 0:
        return 0.0
    return _hits_in_top_k(ranking, set(ground_truth), k) / k


def recall_at_k(ranking: Sequence[Any], ground_truth: Collection[int], k: int) -> float:
    """Recall@K = (# relevant in top-K) / |ground truth|."""
    if not ranking or not ground_truth or k <= 0:
        return 0.0
    relevant = set(ground_truth)
    return _hits_in_top_k(ranking, relevant, k) / len(relevant)


def ndcg_at_k(ranking: Sequence[Any], ground_truth: Collection[int], k: int) -> float:
    """
    NDCG@K with binary relevance.

    DCG = sum over relevant hits at 1-based rank r of 1 / log2(r + 1).
    IDCG places min(K, |ground truth|) hits at ranks 1..n.
    """
    if not ranking or not ground_truth or k <= 0:
        return 0.0

    relevant = set(ground_truth)
    top_k = _item_ids(ranking[:k])
    gains = np.array([1.0 if item_id in relevant else 0.0 for item_id in top_k])
    discounts = np.log2(np.arange(1, len(gains) + 1) + 1)
    dcg = float(np.sum(gains / discounts))

    n_ideal = min(k, len(relevant))
    idcg = float(np.sum(1.0 / np.log2(np.arange(1, n_ideal + 1) + 1)))

    return dcg / idcg if idcg > 0 else 0.0


def average_precision(
    ranking: Sequence[Any],
    ground_truth: Collection[int],
    k: Optional[int] = None,
) -> float:
    """
    Mean of precision@r over the ranks r holding a relevant item.

    Args:
        ranking: Ranked item ids or Recommendations
        ground_truth: Relevant item ids
        k: Optional cut-off (None = whole ranking)
    """
    if not ranking or not ground_truth or (k is not None and k <= 0):
        return 0.0

    relevant = set(ground_truth)
    items = _item_ids(ranking if k is None else ranking[:k])

    hits = 0
    precision_sum = 0.0
    for position, item_id in enumerate(items, start=1):
        if item_id in relevant:
            hits += 1
            precision_sum += hits / position

    return precision_sum / hits if hits else 0.0


def mean_average_precision(
    rankings: Sequence[Sequence[Any]],
    ground_truths: Sequence[Collection[int]],
    k: Optional[int] = None,
) -> float:
    """
    MAP: average_precision averaged over queries; 0.0 for no queries.

    Raises:
        ValueError: If rankings and ground_truths differ in length
    """
    if len(rankings) != len(ground_truths):
        raise ValueError(
            f"Got {len(rankings)} rankings but {len(ground_truths)} ground truth sets"
        )
    if not rankings:
        return 0.0
    scores = [average_precision(r, g, k) for r, g in zip(rankings, ground_truths)]
    return float(np.mean(scores))


def ranking_overlap(ranking_a: Sequence[Any], ranking_b: Sequence[Any], k: int) -> float:
    """Fraction of the top-K of ranking_a also present in the top-K of ranking_b."""
    if k <= 0:
        return 0.0
    shared = set(_item_ids(ranking_a[:k])) & set(_item_ids(ranking_b[:k]))
    return len(shared) / k


@dataclass
class EvaluationMetrics:
    """Quality and latency of one ranking (or the mean of many)."""

    precision_at_k: float = 0.0
    recall_at_k: float = 0.0
    ndcg_at_k: float = 0.0
    map_score: float = 0.0
    avg_retrieval_time_ms: float = 0.0
    avg_similarity_score: float = 0.0
    total_recommendations: int = 0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def evaluate_recommendations(
    recommendations: Sequence[Any],
    ground_truth: Collection[int],
    retrieval_time_ms: float = 0.0,
) -> EvaluationMetrics:
    """
    Score one ranking against a relevant set, using K = len(recommendations).

    Args:
        recommendations: Ranked Recommendations (or item ids)
        ground_truth: Relevant item ids
        retrieval_time_ms: Time taken to produce the ranking

    Returns:
        EvaluationMetrics; quality fields stay 0.0 if either input is empty
    """
    metrics = EvaluationMetrics(
        avg_retrieval_time_ms=retrieval_time_ms,
        total_recommendations=len(recommendations),
    )
    if not recommendations or not ground_truth:
        return metrics

    k = len(recommendations)
    metrics.precision_at_k = precision_at_k(recommendations, ground_truth, k)
    metrics.recall_at_k = recall_at_k(recommendations, ground_truth, k)
    metrics.ndcg_at_k = ndcg_at_k(recommendations, ground_truth, k)
    metrics.map_score = average_precision(recommendations, ground_truth)

    scores = [getattr(r, "score", 0.0) for r in recommendations]
    metrics.avg_similarity_score = float(np.mean(scores))
    return metrics


def aggregate_metrics(metrics_list: Sequence[EvaluationMetrics]) -> EvaluationMetrics:
    """Mean of every field across users; total_recommendations is summed."""
    if not metrics_list:
        return EvaluationMetrics()

    return EvaluationMetrics(
        precision_at_k=float(np.mean([m.precision_at_k for m in metrics_list])),
        recall_at_k=float(np.mean([m.recall_at_k for m in metrics_list])),
        ndcg_at_k=float(np.mean([m.ndcg_at_k for m in metrics_list])),
        map_score=float(np.mean([m.map_score for m in metrics_list])),
        avg_retrieval_time_ms=float(np.mean([m.avg_retrieval_time_ms for m in metrics_list])),
        avg_similarity_score=float(np.mean([m.avg_similarity_score for m in metrics_list])),
        total_recommendations=int(sum(m.total_recommendations for m in metrics_list)),
    )


@dataclass
class LatencyStats:
    """Distribution of per-query retrieval times in milliseconds."""

    mean_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    std_ms: float = 0.0
    count: int = 0

    @classmethod
    def from_samples(cls, samples_ms: Sequence[float]) -> "LatencyStats":
        if len(samples_ms) == 0:
            return cls()
        arr = np.asarray(samples_ms, dtype=np.float64)
        return cls(
            mean_ms=float(arr.mean()),
            min_ms=float(arr.min()),
            max_ms=float(arr.max()),
            std_ms=float(arr.std()),
            count=len(arr),
        )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)
