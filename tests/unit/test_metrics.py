"""
Unit tests for retrieval metrics
"""

import math

import pytest

from srpr.retrieval import (
    EvaluationMetrics,
    LatencyStats,
    Recommendation,
    aggregate_metrics,
    average_precision,
    evaluate_recommendations,
    mean_average_precision,
    ndcg_at_k,
    precision_at_k,
    ranking_overlap,
    recall_at_k,
)

METRICS = [precision_at_k, recall_at_k, ndcg_at_k]


def recs(item_ids, scores=None):
    scores = scores or [1.0] * len(item_ids)
    return [
        Recommendation(item_id=i, score=s, rank=r)
        for r, (i, s) in enumerate(zip(item_ids, scores), start=1)
    ]


class TestBoundaryBehavior:
    """Every metric is exactly 0.0 on degenerate input"""

    @pytest.mark.parametrize("metric", METRICS)
    def test_empty_recommendations(self, metric):
        assert metric([], {1, 2}, 5) == 0.0

    @pytest.mark.parametrize("metric", METRICS)
    def test_empty_ground_truth(self, metric):
        assert metric([1, 2, 3], set(), 3) == 0.0

    @pytest.mark.parametrize("metric", METRICS)
    @pytest.mark.parametrize("k", [0, -1])
    def test_non_positive_k(self, metric, k):
        assert metric([1, 2, 3], {1, 2}, k) == 0.0

    def test_average_precision_boundaries(self):
        assert average_precision([], {1}) == 0.0
        assert average_precision([1], set()) == 0.0
        assert average_precision([1, 2], {1}, k=0) == 0.0
        assert mean_average_precision([], []) == 0.0


class TestPrecisionRecall:
    """Test Precision@K and Recall@K"""

    def test_precision(self):
        assert precision_at_k([1, 2, 3, 4], {1, 3, 9}, 4) == 0.5
        assert precision_at_k([1, 2, 3, 4], {1, 3, 9}, 2) == 0.5
        assert precision_at_k([1, 2, 3, 4], {1, 2, 3, 4}, 4) == 1.0

    def test_precision_divides_by_k(self):
        """A short ranking is not rewarded for its length"""
        assert precision_at_k([1, 2], {1, 2}, 4) == 0.5

    def test_recall(self):
        assert recall_at_k([1, 2, 3, 4], {1, 3, 9, 10}, 4) == 0.5
        assert recall_at_k([1, 2, 3, 4], {1}, 4) == 1.0

    def test_accepts_recommendation_objects(self):
        assert precision_at_k(recs([1, 2, 3]), {2}, 3) == pytest.approx(1 / 3)


class TestNDCG:
    """Test NDCG@K"""

    def test_ideal_case(self):
        """All top-K relevant and |ground truth| >= K gives exactly 1.0"""
        assert ndcg_at_k([1, 2, 3], {1, 2, 3, 4, 5}, 3) == pytest.approx(1.0)
        assert ndcg_at_k(recs([7, 8]), {7, 8}, 2) == pytest.approx(1.0)

    def test_known_value(self):
        # one hit at rank 2, one relevant item -> (1/log2(3)) / (1/log2(2))
        assert ndcg_at_k([5, 1, 6], {1}, 3) == pytest.approx(1 / math.log2(3))

    def test_ideal_uses_min_of_k_and_ground_truth(self):
        # hits at ranks 1 and 3 of 3, ground truth of 2 -> ideal places hits at 1, 2
        dcg = 1.0 + 1 / math.log2(4)
        idcg = 1.0 + 1 / math.log2(3)
        assert ndcg_at_k([1, 9, 2], {1, 2}, 3) == pytest.approx(dcg / idcg)

    def test_order_matters(self):
        good = ndcg_at_k([1, 2, 9, 8], {1, 2}, 4)
        bad = ndcg_at_k([9, 8, 1, 2], {1, 2}, 4)
        assert 0 < bad < good <= 1.0


class TestAveragePrecision:
    """Test AP and MAP"""

    def test_average_precision(self):
        # hits at ranks 1 and 3 -> (1/1 + 2/3) / 2
        assert average_precision([1, 5, 2], {1, 2}) == pytest.approx((1 + 2 / 3) / 2)

    def test_cutoff(self):
        assert average_precision([5, 1, 2], {1, 2}, k=2) == pytest.approx(0.5)

    def test_mean_average_precision(self):
        rankings = [[1, 2, 3], [6, 7]]
        truths = [{1, 2, 3}, {4, 5}]
        assert mean_average_precision(rankings, truths) == pytest.approx(0.5)

    def test_mean_average_precision_length_mismatch(self):
        """Every query needs its own ground truth set"""
        with pytest.raises(ValueError):
            mean_average_precision([[1, 2], [3]], [{1}])
        with pytest.raises(ValueError):
            mean_average_precision([], [{1}])


class TestEvaluation:
    """Test per-ranking evaluation and aggregation"""

    def test_evaluate_uses_ranking_length_as_k(self):
        metrics = evaluate_recommendations(recs([1, 2, 3, 4], [0.9, 0.8, 0.7, 0.6]), {1, 3}, 2.5)

        assert metrics.precision_at_k == 0.5
        assert metrics.recall_at_k == 1.0
        assert metrics.avg_similarity_score == pytest.approx(0.75)
        assert metrics.avg_retrieval_time_ms == 2.5
        assert metrics.total_recommendations == 4

    def test_evaluate_empty_inputs(self):
        metrics = evaluate_recommendations([], {1}, 1.0)
        assert metrics.precision_at_k == 0.0
        assert metrics.avg_retrieval_time_ms == 1.0

        metrics = evaluate_recommendations(recs([1]), set())
        assert metrics.ndcg_at_k == 0.0
        assert metrics.total_recommendations == 1

    def test_aggregate_means(self):
        a = EvaluationMetrics(precision_at_k=1.0, ndcg_at_k=0.5, avg_retrieval_time_ms=2.0,
                              total_recommendations=10)
        b = EvaluationMetrics(precision_at_k=0.5, ndcg_at_k=0.3, avg_retrieval_time_ms=4.0,
                              total_recommendations=10)
        combined = aggregate_metrics([a, b])

        assert combined.precision_at_k == pytest.approx(0.75)
        assert combined.ndcg_at_k == pytest.approx(0.4)
        assert combined.avg_retrieval_time_ms == pytest.approx(3.0)
        assert combined.total_recommendations == 20
        assert aggregate_metrics([]) == EvaluationMetrics()

    def test_latency_stats(self):
        stats = LatencyStats.from_samples([1.0, 2.0, 3.0])
        assert stats.mean_ms == pytest.approx(2.0)
        assert stats.min_ms == 1.0
        assert stats.max_ms == 3.0
        assert stats.count == 3
        assert LatencyStats.from_samples([]).count == 0

    def test_ranking_overlap(self):
        assert ranking_overlap([1, 2, 3, 4], [4, 3, 9, 8], 4) == 0.5
        assert ranking_overlap(recs([1, 2]), recs([1, 2]), 2) == 1.0
        assert ranking_overlap([1], [1], 0) == 0.0
