"""
Unit tests for exact and LSH candidate retrieval
"""

import numpy as np
import pytest

from srpr.data import Triplet, UnknownEntityError, UserItemStore
from srpr.hashing import SRPHasher, hamming_distance
from srpr.retrieval import EXACT, LSH, CandidateRetriever
from srpr.training import cosine_similarity


@pytest.fixture
def retriever(catalog_store):
    return CandidateRetriever(catalog_store, SRPHasher(dimensions=8, num_hashes=16, seed=42))


@pytest.fixture
def tie_store():
    """One user and three items at identical angles"""
    store = UserItemStore(dimensions=2, seed=0)
    store.initialize([Triplet(1, 3, 1), Triplet(1, 2, 1)])
    store.get_user_vector(1)[:] = [1.0, 0.0]
    for item_id in (1, 2, 3):
        store.get_item_vector(item_id)[:] = [1.0, 1.0]
    return store


class TestExactSearch:
    """Test exhaustive cosine ranking"""

    def test_returns_top_k_sorted_by_cosine(self, retriever, catalog_store):
        result = retriever.exact_search(user_id=1, top_k=10)

        assert result.method == EXACT
        assert len(result.recommendations) == 10
        scores = [r.score for r in result.recommendations]
        assert scores == sorted(scores, reverse=True)
        assert [r.rank for r in result.recommendations] == list(range(1, 11))
        assert result.retrieval_time_ms >= 0

    def test_top_item_is_global_best(self, retriever, catalog_store):
        """The first result has the maximum cosine over the whole catalog"""
        user = catalog_store.get_user_vector(3)
        best = max(
            catalog_store.item_ids,
            key=lambda i: cosine_similarity(user, catalog_store.get_item_vector(i)),
        )
        assert retriever.exact_search(3, 5).item_ids[0] == best

    def test_top_k_larger_than_catalog(self, retriever, catalog_store):
        result = retriever.exact_search(1, catalog_store.num_items + 10)
        assert len(result.recommendations) == catalog_store.num_items

    def test_non_positive_top_k(self, retriever):
        assert retriever.exact_search(1, 0).recommendations == []
        assert retriever.exact_search(1, -3).recommendations == []

    def test_ties_keep_id_order(self, tie_store):
        retriever = CandidateRetriever(tie_store, SRPHasher(2, 8, seed=1))
        assert retriever.exact_search(1, 3).item_ids == [1, 2, 3]


class TestLSHSearch:
    """Test Hamming-distance ranking"""

    def test_sorted_by_hamming_distance(self, retriever):
        result = retriever.lsh_search(user_id=2, top_k=15)

        assert result.method == LSH
        distances = [r.hamming_distance for r in result.recommendations]
        assert distances == sorted(distances)
        for rec in result.recommendations:
            assert rec.score == pytest.approx(1.0 - rec.hamming_distance / 16)

    def test_distances_match_hasher(self, retriever, catalog_store):
        hasher = retriever.hasher
        user_code = hasher.generate_code(catalog_store.get_user_vector(4))
        for rec in retriever.lsh_search(4, 5).recommendations:
            item_code = hasher.generate_code(catalog_store.get_item_vector(rec.item_id))
            assert rec.hamming_distance == hamming_distance(user_code, item_code)

    def test_ties_keep_id_order(self, tie_store):
        retriever = CandidateRetriever(tie_store, SRPHasher(2, 8, seed=1))
        assert retriever.lsh_search(1, 3).item_ids == [1, 2, 3]

    def test_identical_hasher_matches_exact_on_aligned_item(self):
        """An item pointing the same way as the user is ranked first by both paths"""
        store = UserItemStore(dimensions=3, seed=0)
        store.initialize([Triplet(1, 10, 20), Triplet(1, 30, 20)])
        store.get_user_vector(1)[:] = [1.0, 2.0, 3.0]
        store.get_item_vector(10)[:] = [-3.0, 0.5, -1.0]
        store.get_item_vector(20)[:] = [-1.0, -2.0, -3.0]
        store.get_item_vector(30)[:] = [2.0, 4.0, 6.0]
        retriever = CandidateRetriever(store, SRPHasher(3, 32, seed=5))

        assert retriever.exact_search(1, 1).item_ids == [30]
        lsh = retriever.lsh_search(1, 3)
        assert lsh.item_ids[0] == 30
        assert lsh.recommendations[0].hamming_distance == 0
        assert lsh.item_ids[-1] == 20


class TestDispatch:
    """Test method dispatch and unknown users"""

    def test_search_dispatch(self, retriever):
        assert retriever.search(1, 5, method=EXACT).method == EXACT
        assert retriever.search(1, 5, method=LSH).method == LSH
        with pytest.raises(ValueError):
            retriever.search(1, 5, method="annoy")

    def test_recommend(self, retriever):
        recs = retriever.recommend(1, top_k=4, method=EXACT)
        assert [r.item_id for r in recs] == retriever.exact_search(1, 4).item_ids

    def test_unknown_user_fails_fast(self, retriever):
        with pytest.raises(UnknownEntityError):
            retriever.exact_search(999, 5)
        with pytest.raises(LookupError):
            retriever.recommend(999)

    def test_search_does_not_modify_store(self, retriever, catalog_store):
        before = {i: catalog_store.get_item_vector(i).copy() for i in catalog_store.item_ids}
        retriever.exact_search(1, 10)
        retriever.lsh_search(1, 10)
        for item_id, vector in before.items():
            np.testing.assert_array_equal(catalog_store.get_item_vector(item_id), vector)
