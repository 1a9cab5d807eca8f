"""
SRPR trainer with optional MLflow experiment tracking.

Implements:
- Per-triplet gradient ascent on the SRP collision-probability objective
- L2 weight decay after every update
- Periodic validation loss
- Convergence detection on consecutive epoch losses
- MLflow logging
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import mlflow
import numpy as np
from tqdm import tqdm

from ..data import Triplet, UnknownEntityError, UserItemStore
from .config import TrainingConfig
from .objective import triplet_gradients, triplet_log_likelihood

logger = logging.getLogger(__name__)


@dataclass
class TrainingStats:
    """
    Outcome of one training run.

    Attributes:
        epoch_losses: Mean per-triplet objective for each completed epoch
        validation_scores: Mean validation objective at each checkpoint
        final_loss: Last epoch loss
        training_time_ms: Wall-clock duration of the run
        total_updates: Number of triplet updates performed
        converged: Whether the run stopped on the convergence criterion
        skipped_triplets: Triplets skipped because an id had no embedding
    """

    epoch_losses: List[float] = field(default_factory=list)
    validation_scores: List[float] = field(default_factory=list)
    final_loss: float = 0.0
    training_time_ms: float = 0.0
    total_updates: int = 0
    converged: bool = False
    skipped_triplets: int = 0

    @property
    def num_epochs(self) -> int:
        return len(self.epoch_losses)

    @property
    def improvement(self) -> float:
        """Change in objective from the first to the last epoch."""
        if len(self.epoch_losses) < 2:
            return 0.0
        return self.final_loss - self.epoch_losses[0]

    @property
    def best_validation_score(self) -> Optional[float]:
        """Highest validation objective (the objective is maximized)."""
        if not self.validation_scores:
            return None
        return max(self.validation_scores)

    @property
    def updates_per_second(self) -> float:
        if self.training_time_ms <= 0:
            return 0.0
        return self.total_updates * 1000.0 / self.training_time_ms

    def to_dict(self) -> dict:
        return {
            "epoch_losses": self.epoch_losses,
            "validation_scores": self.validation_scores,
            "final_loss": self.final_loss,
            "training_time_ms": self.training_time_ms,
            "total_updates": self.total_updates,
            "converged": self.converged,
            "skipped_triplets": self.skipped_triplets,
        }


class SRPRTrainer:
    """
    Trainer for SRPR user/item embeddings.

    Each epoch is one pass over the training triplets in input order. For
    every triplet:
    1. Compute closed-form gradients of log Phi(sqrt(b) * gamma)
    2. Gradient ascent: v += lr * grad for the user and both items
    3. Weight decay: v -= lr * reg * v for each of the three vectors
    4. Accumulate the triplet's objective value

    Training stops early once two consecutive epoch losses differ by less
    than config.convergence_tolerance.

    Example:
        store = UserItemStore(dimensions=32, seed=42)
        store.initialize(train_triplets)
        trainer = SRPRTrainer(store, TrainingConfig(epochs=20))
        stats = trainer.train(train_triplets, val_triplets)
    """

    def __init__(self, store: UserItemStore, config: Optional[TrainingConfig] = None):
        """
        Initialize the trainer.

        Args:
            store: Initialized embedding store, updated in place
            config: Training configuration (defaults if None)
        """
        self.store = store
        self.config = config or TrainingConfig()

    # ------------------------------------------------------------------
    # Training loop
    # ------------------------------------------------------------------

    def train(
        self,
        training_triplets: Sequence[Triplet],
        validation_triplets: Optional[Sequence[Triplet]] = None,
    ) -> TrainingStats:
        """
        Run the training loop.

        Args:
            training_triplets: Triplets used for updates, in a stable order
            validation_triplets: Optional held-out triplets for validation loss

        Returns:
            TrainingStats for the run

        Raises:
            ValueError: If training_triplets is empty
        """
        if len(training_triplets) == 0:
            raise ValueError("Cannot train on an empty triplet set")

        validation_triplets = validation_triplets or []
        config = self.config
        stats = TrainingStats()
        log = logger.info if config.verbose else logger.debug

        log("=" * 60)
        log("SRPR TRAINING")
        log("=" * 60)
        log(f"Epochs: {config.epochs}, lr: {config.learning_rate}, "
            f"b: {config.b_lsh_length}, reg: {config.regularization}")
        log(f"Training triplets: {len(training_triplets):,}")
        log(f"Validation triplets: {len(validation_triplets):,}")

        tracking = config.mlflow_tracking_uri is not None

        start_time = time.perf_counter()
        try:
            if tracking:
                self._setup_mlflow()

            for epoch in range(config.epochs):
                epoch_start = time.perf_counter()
                epoch_loss, updates, skipped = self._train_epoch(training_triplets, epoch)
                epoch_ms = (time.perf_counter() - epoch_start) * 1000.0

                stats.epoch_losses.append(epoch_loss)
                stats.total_updates += updates
                stats.skipped_triplets += skipped

                message = (
                    f"Epoch {epoch + 1:3d}/{config.epochs} | Loss: {epoch_loss:.6f} "
                    f"| Time: {epoch_ms:.0f}ms"
                )
                if tracking:
                    mlflow.log_metric("train_loss", epoch_loss, step=epoch)

                if validation_triplets and (epoch + 1) % config.validation_freq == 0:
                    val_loss = self.calculate_total_loss(validation_triplets)
                    stats.validation_scores.append(val_loss)
                    message += f" | Val Loss: {val_loss:.6f}"
                    if tracking:
                        mlflow.log_metric("val_loss", val_loss, step=epoch)

                log(message)

                if self._check_convergence(stats.epoch_losses):
                    log(f"Convergence detected at epoch {epoch + 1}")
                    stats.converged = True
                    break

            stats.final_loss = stats.epoch_losses[-1]
            stats.training_time_ms = (time.perf_counter() - start_time) * 1000.0

            if tracking:
                self._log_final_results(stats)
        finally:
            if tracking:
                mlflow.end_run()

        if config.verbose:
            self.log_summary(stats)

        return stats

    def _train_epoch(self, triplets: Sequence[Triplet], epoch: int):
        """Train for one epoch; return (mean objective, updates, skipped)."""
        total = 0.0
        updates = 0
        skipped = 0

        pbar = tqdm(
            triplets,
            desc=f"Epoch {epoch + 1}/{self.config.epochs}",
            disable=not self.config.verbose,
            leave=False,
        )
        for triplet in pbar:
            try:
                self._update_triplet(triplet)
                total += self.evaluate_triplet(triplet)
            except UnknownEntityError as e:
                logger.debug(f"Skipping triplet {tuple(triplet)}: {e}")
                skipped += 1
                continue
            updates += 1

        if skipped:
            logger.warning(f"Epoch {epoch + 1}: skipped {skipped:,} triplets with unknown ids")

        if updates == 0:
            return float("nan"), 0, skipped
        return total / updates, updates, skipped

    def _update_triplet(self, triplet: Triplet) -> None:
        """Gradient ascent step followed by weight decay, all in place."""
        user_id, preferred_id, less_preferred_id = triplet
        x_u = self.store.get_user_vector(user_id)
        y_i = self.store.get_item_vector(preferred_id)
        y_j = self.store.get_item_vector(less_preferred_id)

        lr = self.config.learning_rate
        grads = triplet_gradients(x_u, y_i, y_j, self.config.b_lsh_length)

        x_u += lr * grads.user
        y_i += lr * grads.preferred
        y_j += lr * grads.less_preferred

        decay = lr * self.config.regularization
        for vector in (x_u, y_i, y_j):
            vector -= decay * vector

    def _check_convergence(self, losses: List[float]) -> bool:
        if len(losses) < 2:
            return False
        return abs(losses[-1] - losses[-2]) < self.config.convergence_tolerance

    # ------------------------------------------------------------------
    # Evaluation helpers
    # ------------------------------------------------------------------

    def evaluate_triplet(self, triplet: Triplet) -> float:
        """
        Objective value of one triplet under the current embeddings.

        Raises:
            UnknownEntityError: If any id has no embedding
        """
        user_id, preferred_id, less_preferred_id = triplet
        return triplet_log_likelihood(
            self.store.get_user_vector(user_id),
            self.store.get_item_vector(preferred_id),
            self.store.get_item_vector(less_preferred_id),
            self.config.b_lsh_length,
        )

    def calculate_total_loss(self, triplets: Sequence[Triplet]) -> float:
        """
        Mean objective over triplets, skipping those with unknown ids.

        Returns NaN when no triplet could be evaluated.
        """
        total = 0.0
        evaluated = 0
        for triplet in triplets:
            try:
                total += self.evaluate_triplet(triplet)
            except UnknownEntityError:
                continue
            evaluated += 1

        if evaluated < len(triplets):
            logger.debug(f"Loss skipped {len(triplets) - evaluated:,} triplets with unknown ids")
        return total / evaluated if evaluated else float("nan")

    def gradient_norms(self, triplets: Sequence[Triplet]) -> List[float]:
        """
        L2 norms of the user, preferred and less-preferred gradients.

        Returns three values per evaluable triplet, in that order.
        """
        norms: List[float] = []
        for user_id, preferred_id, less_preferred_id in triplets:
            try:
                grads = triplet_gradients(
                    self.store.get_user_vector(user_id),
                    self.store.get_item_vector(preferred_id),
                    self.store.get_item_vector(less_preferred_id),
                    self.config.b_lsh_length,
                )
            except UnknownEntityError:
                continue
            norms.extend(float(np.linalg.norm(g)) for g in grads)
        return norms

    def ranking_accuracy(self, triplets: Sequence[Triplet]) -> float:
        """
        Fraction of triplets where dot(x_u, y_i) > dot(x_u, y_j).

        Triplets with unknown ids are ignored; 0.0 if none can be scored.
        """
        correct = 0
        total = 0
        for user_id, preferred_id, less_preferred_id in triplets:
            try:
                x_u = self.store.get_user_vector(user_id)
                score_i = float(np.dot(x_u, self.store.get_item_vector(preferred_id)))
                score_j = float(np.dot(x_u, self.store.get_item_vector(less_preferred_id)))
            except UnknownEntityError:
                continue
            if score_i > score_j:
                correct += 1
            total += 1
        return correct / total if total else 0.0

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def log_summary(self, stats: TrainingStats) -> None:
        """Log a summary of a finished run."""
        logger.info("Training summary:")
        logger.info(f"  Final loss:      {stats.final_loss:.6f}")
        logger.info(f"  Total time:      {stats.training_time_ms:.0f} ms")
        logger.info(f"  Total updates:   {stats.total_updates:,}")
        logger.info(f"  Converged:       {stats.converged}")
        if stats.num_epochs >= 2:
            logger.info(f"  Improvement:     {stats.improvement:+.6f}")
        if stats.best_validation_score is not None:
            logger.info(f"  Best val loss:   {stats.best_validation_score:.6f}")
        if stats.skipped_triplets:
            logger.info(f"  Skipped:         {stats.skipped_triplets:,}")
        logger.info(f"  Speed:           {stats.updates_per_second:,.0f} updates/s")

    def _setup_mlflow(self) -> None:
        """Setup MLflow experiment tracking."""
        mlflow.set_tracking_uri(self.config.mlflow_tracking_uri)
        mlflow.set_experiment(self.config.mlflow_experiment)

        run_name = (
            self.config.run_name
            or f"d{self.config.embedding_dim}_b{self.config.b_lsh_length}_lr{self.config.learning_rate}"
        )
        mlflow.start_run(run_name=run_name)
        mlflow.log_params(self.config.to_dict())
        logger.info(f"MLflow run started: {run_name}")

    def _log_final_results(self, stats: TrainingStats) -> None:
        """Log final run metrics to MLflow."""
        metrics: Dict[str, float] = {
            "final_loss": stats.final_loss,
            "training_time_ms": stats.training_time_ms,
            "total_updates": float(stats.total_updates),
            "converged": float(stats.converged),
            "skipped_triplets": float(stats.skipped_triplets),
        }
        if stats.best_validation_score is not None and not math.isnan(stats.best_validation_score):
            metrics["best_val_loss"] = stats.best_validation_score
        mlflow.log_metrics(metrics)
