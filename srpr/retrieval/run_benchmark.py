"""
CLI entry point for the exact vs LSH retrieval benchmark.

Embeddings are not persisted, so the benchmark trains first and then
compares both retrieval paths on the freshly trained store.

Usage:
    # Train with defaults, benchmark 16-bit codes
    python -m srpr.retrieval.run_benchmark

    # Sweep code lengths; the JSON report goes to benchmark_results/report.json
    python -m srpr.retrieval.run_benchmark --bit-sweep 8 16 32 64

    # Score against held-out preferred items instead of the exact top-K
    python -m srpr.retrieval.run_benchmark --ground-truth validation

    # Print one user's recommendations
    python -m srpr.retrieval.run_benchmark --recommend-user 42 --method exact
"""

import argparse
import json
import logging
from pathlib import Path

from ..data import load_triplets
from ..hashing import SRPHasher
from ..shared_utils import RESULTS_DIR
from ..training.train_model import add_training_arguments, config_from_args, run_training
from .benchmark import RetrievalBenchmark
from .config import BenchmarkConfig
from .retriever import EXACT, LSH

logger = logging.getLogger(__name__)

DEFAULT_REPORT_PATH = RESULTS_DIR / "report.json"


def add_benchmark_arguments(parser: argparse.ArgumentParser) -> None:
    """Add benchmark flags to an existing parser."""
    parser.add_argument(
        "--lsh-bits",
        type=int,
        default=16,
        help="Code length of the retrieval hasher (default: 16)",
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=10,
        help="Recommendations per user (default: 10)",
    )
    parser.add_argument(
        "--num-test-users",
        type=int,
        default=50,
        help="Number of users sampled for the benchmark (default: 50)",
    )
    parser.add_argument(
        "--hash-seed",
        type=int,
        default=42,
        help="Seed of the hash family, 0 = non-deterministic (default: 42)",
    )
    parser.add_argument(
        "--ground-truth",
        choices=["exact", "validation"],
        default="exact",
        help="Relevant set: exact top-K or preferred items of validation triplets",
    )
    parser.add_argument(
        "--bit-sweep",
        type=int,
        nargs="+",
        default=None,
        help="Also benchmark these code lengths (e.g. 8 16 32 64)",
    )
    parser.add_argument(
        "--recommend-user",
        type=int,
        default=None,
        help="Print recommendations for this user after benchmarking",
    )
    parser.add_argument(
        "--method",
        choices=[EXACT, LSH],
        default=LSH,
        help="Retrieval method for --recommend-user (default: lsh)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_REPORT_PATH,
        help=f"JSON report path (default: {DEFAULT_REPORT_PATH})",
    )


def main():
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Benchmark exact vs SRP-LSH retrieval")
    add_training_arguments(parser)
    add_benchmark_arguments(parser)
    args = parser.parse_args()

    training_config = config_from_args(args)
    benchmark_config = BenchmarkConfig(
        top_k=args.top_k,
        num_test_users=args.num_test_users,
        lsh_bits=args.lsh_bits,
        hash_seed=args.hash_seed,
    )
    if args.bit_sweep:
        benchmark_config.bit_lengths = args.bit_sweep

    store, stats = run_training(training_config)

    hasher = SRPHasher(store.dimensions, benchmark_config.lsh_bits, seed=benchmark_config.hash_seed)
    benchmark = RetrievalBenchmark(store, hasher, benchmark_config)
    test_users = benchmark.sample_test_users()
    logger.info(f"Benchmarking {len(test_users)} users, top_k={benchmark_config.top_k}")

    ground_truth = None
    if args.ground_truth == "validation":
        val_path = training_config.val_path
        if val_path is None or not val_path.exists():
            parser.error(f"--ground-truth validation needs a validation file, got {val_path}")
        ground_truth = RetrievalBenchmark.generate_ground_truth(load_triplets(val_path))
        test_users = [u for u in test_users if u in ground_truth]

    comparison = benchmark.benchmark_methods(test_users, ground_truth=ground_truth, show_progress=True)
    benchmark.log_comparison(comparison)

    if test_users:
        correlation = benchmark.similarity_correlation(test_users[0])
        logger.info(f"\nSample user {correlation['user_id']}:")
        for row in correlation["rows"][:5]:
            marker = "match" if row["match"] else "diff"
            logger.info(
                f"  {row['rank']:2d}: exact {row['exact_item']:>7} ({row['exact_score']:.4f}) | "
                f"lsh {row['lsh_item']:>7} ({row['lsh_score']:.4f})  {marker}"
            )
        logger.info(f"  Top-{benchmark_config.top_k} overlap: {correlation['overlap']:.2%}")

    report = {
        "training": training_config.to_dict(),
        "training_stats": stats.to_dict(),
        "benchmark": benchmark_config.to_dict(),
        "comparison": comparison.to_dict(),
    }

    if args.bit_sweep:
        logger.info("\nBit-length sweep:")
        sweep = benchmark.bit_length_analysis(test_users=test_users)
        report["bit_sweep"] = {str(bits): c.to_dict() for bits, c in sweep.items()}

    if args.recommend_user is not None:
        recommendations = benchmark.retriever.recommend(
            args.recommend_user, benchmark_config.top_k, method=args.method
        )
        logger.info(f"\nTop-{benchmark_config.top_k} ({args.method}) for user {args.recommend_user}:")
        for rec in recommendations:
            logger.info(f"  {rec.rank:2d}. item {rec.item_id} (score={rec.score:.4f})")

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w") as f:
        json.dump(report, f, indent=2, default=str)
    logger.info(f"Saved report to: {args.output}")


if __name__ == "__main__":
    main()
