"""
SRPR: Stochastically Robust Personalized Ranking for LSH retrieval.

This package learns user/item embeddings from preference triplets so that
Sign Random Projection (SRP) codes preserve the ranking signal:
- Vector store: One embedding per user and item id
- SRP hasher: Maps an embedding to a b-bit binary code
- Trainer: Closed-form gradients of the SRP collision-probability objective
- Retrieval: Exact cosine ranking vs Hamming ranking, with IR metrics

Usage:
    # 1. Generate triplets from ratings
    python -m srpr.data.prepare_data --ratings data/movielens/ratings.csv

    # 2. Train embeddings
    python -m srpr.training.train_model --epochs 20 --lr 0.005

    # 3. Compare exact vs LSH retrieval
    python -m srpr.retrieval.run_benchmark --lsh-bits 16 --top-k 10

    # Or from Python
    from srpr.data import UserItemStore
    from srpr.hashing import SRPHasher
    from srpr.training import SRPRTrainer, TrainingConfig
    from srpr.retrieval import CandidateRetriever

    store = UserItemStore(dimensions=32, seed=42)
    store.initialize(triplets)
    stats = SRPRTrainer(store, TrainingConfig(epochs=20)).train(triplets)
    retriever = CandidateRetriever(store, SRPHasher(32, 16, seed=42))
    result = retriever.lsh_search(user_id=1, top_k=10)
"""

__version__ = "1.0.0"
