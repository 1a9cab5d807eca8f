"""
CLI entry point for SRPR training.

Usage:
    # Train with default config
    python -m srpr.training.train_model

    # Train with custom hyperparameters
    python -m srpr.training.train_model --embedding-dim 64 --lr 0.005 --train-lsh-bits 32

    # Train with YAML config
    python -m srpr.training.train_model --config experiments/baseline.yaml
"""

import argparse
import logging
from pathlib import Path
from typing import Tuple

import yaml

from ..data import UserItemStore, load_triplets
from .config import TrainingConfig
from .trainer import SRPRTrainer, TrainingStats

logger = logging.getLogger(__name__)


def load_config_from_yaml(yaml_path: Path) -> TrainingConfig:
    """Load training config from YAML file."""
    with open(yaml_path) as f:
        config_dict = yaml.safe_load(f) or {}

    # Handle nested structure if present (for experiment configs)
    if "training" in config_dict:
        config_dict = config_dict["training"]

    return TrainingConfig(**config_dict)


def run_training(config: TrainingConfig) -> Tuple[UserItemStore, TrainingStats]:
    """
    Load triplets, initialize the store and train.

    Validation triplets are used only when config.val_path exists. The store
    is initialized from training and validation triplets together so that
    validation loss can be computed for every id.

    Args:
        config: Training configuration

    Returns:
        Tuple of (trained store, training stats)
    """
    train_triplets = load_triplets(config.train_path)

    val_triplets = []
    if config.val_path is not None and config.val_path.exists():
        val_triplets = load_triplets(config.val_path)
    elif config.val_path is not None:
        logger.warning(f"Validation file not found, training without it: {config.val_path}")

    store = UserItemStore(
        dimensions=config.embedding_dim,
        seed=config.seed,
        init_std=config.init_std,
    )
    store.initialize(train_triplets + val_triplets)

    trainer = SRPRTrainer(store, config)
    stats = trainer.train(train_triplets, val_triplets)

    if val_triplets:
        accuracy = trainer.ranking_accuracy(val_triplets)
        logger.info(f"Validation ranking accuracy (dot product): {accuracy:.4f}")

    return store, stats


def add_training_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the training flags shared by the training and benchmark CLIs."""
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--train-file",
        type=Path,
        default=None,
        help="Training triplets CSV (default: data/triplets/training_triplets.csv)",
    )
    parser.add_argument(
        "--val-file",
        type=Path,
        default=None,
        help="Validation triplets CSV (default: data/triplets/validation_triplets.csv)",
    )
    parser.add_argument(
        "--embedding-dim",
        type=int,
        default=None,
        help="Embedding dimension (default: 32)",
    )
    parser.add_argument(
        "--epochs",
        type=int,
        default=None,
        help="Number of epochs (default: 10)",
    )
    parser.add_argument(
        "--lr",
        type=float,
        default=None,
        help="Learning rate (default: 0.01)",
    )
    parser.add_argument(
        "--regularization",
        type=float,
        default=None,
        help="L2 regularization (default: 0.001)",
    )
    parser.add_argument(
        "--train-lsh-bits",
        type=int,
        default=None,
        help="Hash length b used by the training objective (default: 16)",
    )
    parser.add_argument(
        "--validation-freq",
        type=int,
        default=None,
        help="Validate every N epochs (default: 5)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Embedding initialization seed (default: 42)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Disable progress bars and per-epoch logging",
    )
    parser.add_argument(
        "--mlflow-uri",
        type=str,
        default=None,
        help="MLflow tracking URI (disabled if omitted)",
    )
    parser.add_argument(
        "--run-name",
        type=str,
        default=None,
        help="MLflow run name",
    )


def config_from_args(args: argparse.Namespace) -> TrainingConfig:
    """Build a TrainingConfig from YAML (if given) overridden by CLI flags."""
    if args.config:
        config = load_config_from_yaml(args.config)
        logger.info(f"Loaded config from: {args.config}")
    else:
        config = TrainingConfig()

    if args.train_file is not None:
        config.train_path = args.train_file
    if args.val_file is not None:
        config.val_path = args.val_file
    if args.embedding_dim is not None:
        config.embedding_dim = args.embedding_dim
    if args.epochs is not None:
        config.epochs = args.epochs
    if args.lr is not None:
        config.learning_rate = args.lr
    if args.regularization is not None:
        config.regularization = args.regularization
    if args.train_lsh_bits is not None:
        config.b_lsh_length = args.train_lsh_bits
    if args.validation_freq is not None:
        config.validation_freq = args.validation_freq
    if args.seed is not None:
        config.seed = args.seed
    if args.quiet:
        config.verbose = False
    if args.mlflow_uri is not None:
        config.mlflow_tracking_uri = args.mlflow_uri
    if args.run_name is not None:
        config.run_name = args.run_name

    # Re-run validation after overrides
    config.__post_init__()
    return config


def main():
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Train SRPR user/item embeddings")
    add_training_arguments(parser)
    args = parser.parse_args()

    config = config_from_args(args)
    store, stats = run_training(config)

    logger.info("\nFinal Training Stats:")
    logger.info(f"  Users: {store.num_users:,}, Items: {store.num_items:,}")
    logger.info(f"  Epochs run: {stats.num_epochs}")
    logger.info(f"  Final loss: {stats.final_loss:.6f}")
    logger.info(f"  Converged: {stats.converged}")


if __name__ == "__main__":
    main()
