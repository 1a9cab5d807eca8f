"""
Configuration for SRPR training.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..shared_utils.paths import TRAINING_TRIPLETS_PATH, VALIDATION_TRIPLETS_PATH


@dataclass
class TrainingConfig:
    """
    Configuration for SRPR embedding training.

    This config covers:
    - Embedding setup (embedding_dim, init_std, seed)
    - Optimization (epochs, learning_rate, regularization)
    - The SRP probability model (b_lsh_length)
    - Validation and convergence
    - Paths and MLflow tracking

    Attributes:
        # Embeddings
        embedding_dim: Dimension d of user/item embeddings
        init_std: Standard deviation of the initial normal embeddings
        seed: Seed for embedding initialization (None = OS entropy)

        # Optimization
        epochs: Maximum number of passes over the training triplets
        learning_rate: Gradient ascent step size
        regularization: L2 weight decay applied after every update
        b_lsh_length: Code length b assumed by the collision-probability
            objective. Independent of the hasher used at retrieval time.

        # Validation / convergence
        validation_freq: Compute validation loss every N epochs
        convergence_tolerance: Stop once consecutive epoch losses differ
            by less than this
        verbose: Show a per-triplet progress bar

        # Paths
        train_path: CSV of training triplets
        val_path: CSV of validation triplets (optional)

        # MLflow
        mlflow_tracking_uri: Tracking URI; None disables MLflow logging
        mlflow_experiment: MLflow experiment name
        run_name: Optional run name (auto-generated if None)
    """

    # Embeddings
    embedding_dim: int = 32
    init_std: float = 0.1
    seed: Optional[int] = 42

    # Optimization
    epochs: int = 10
    learning_rate: float = 0.01
    regularization: float = 0.001
    b_lsh_length: int = 16

    # Validation / convergence
    validation_freq: int = 5
    convergence_tolerance: float = 1e-6
    verbose: bool = True

    # Paths
    train_path: Path = field(default_factory=lambda: TRAINING_TRIPLETS_PATH)
    val_path: Optional[Path] = field(default_factory=lambda: VALIDATION_TRIPLETS_PATH)

    # MLflow
    mlflow_tracking_uri: Optional[str] = None
    mlflow_experiment: str = "srpr_training"
    run_name: Optional[str] = None

    def __post_init__(self):
        """Convert string paths to Path objects and validate ranges."""
        if isinstance(self.train_path, str):
            self.train_path = Path(self.train_path)
        if isinstance(self.val_path, str):
            self.val_path = Path(self.val_path)

        if self.embedding_dim <= 0:
            raise ValueError(f"embedding_dim must be > 0, got {self.embedding_dim}")
        if self.epochs <= 0:
            raise ValueError(f"epochs must be > 0, got {self.epochs}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if self.b_lsh_length <= 0:
            raise ValueError(f"b_lsh_length must be > 0, got {self.b_lsh_length}")
        if self.regularization < 0:
            raise ValueError(f"regularization must be >= 0, got {self.regularization}")
        if self.validation_freq < 1:
            raise ValueError(f"validation_freq must be >= 1, got {self.validation_freq}")
        if self.convergence_tolerance < 0:
            raise ValueError(
                f"convergence_tolerance must be >= 0, got {self.convergence_tolerance}"
            )

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging."""
        return {
            "embedding_dim": self.embedding_dim,
            "init_std": self.init_std,
            "seed": self.seed,
            "epochs": self.epochs,
            "learning_rate": self.learning_rate,
            "regularization": self.regularization,
            "b_lsh_length": self.b_lsh_length,
            "validation_freq": self.validation_freq,
            "convergence_tolerance": self.convergence_tolerance,
        }
