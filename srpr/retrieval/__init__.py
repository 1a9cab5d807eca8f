"""
Retrieval module for SRPR.

This module provides:
- BenchmarkConfig: Configuration for the retrieval benchmark
- CandidateRetriever: Exact cosine and SRP Hamming top-K retrieval
- Metrics: Precision@K, Recall@K, NDCG@K, MAP and their aggregation
- RetrievalBenchmark: Exact vs LSH comparison with speedup and accuracy loss
"""

from .benchmark import PerformanceComparison, RetrievalBenchmark
from .config import BenchmarkConfig
from .metrics import (
    EvaluationMetrics,
    LatencyStats,
    aggregate_metrics,
    average_precision,
    evaluate_recommendations,
    mean_average_precision,
    ndcg_at_k,
    precision_at_k,
    ranking_overlap,
    recall_at_k,
)
from .retriever import EXACT, LSH, CandidateRetriever, Recommendation, RetrievalResult

__all__ = [
    "BenchmarkConfig",
    "CandidateRetriever",
    "EXACT",
    "LSH",
    "Recommendation",
    "RetrievalResult",
    "EvaluationMetrics",
    "LatencyStats",
    "aggregate_metrics",
    "average_precision",
    "evaluate_recommendations",
    "mean_average_precision",
    "ndcg_at_k",
    "precision_at_k",
    "ranking_overlap",
    "recall_at_k",
    "PerformanceComparison",
    "RetrievalBenchmark",
]
