"""
Training module for SRPR embeddings.

This module provides:
- TrainingConfig: Configuration for training
- Objective: Collision probability, separation statistic and their gradients
- SRPRTrainer: Gradient ascent loop with validation and convergence detection
- TrainingStats: Per-run statistics
"""

from .config import TrainingConfig
from .objective import (
    TripletGradients,
    collision_probability,
    collision_probability_gradients,
    cosine_similarity,
    normal_cdf,
    normal_pdf,
    separation_statistic,
    separation_statistic_gradients,
    triplet_gradients,
    triplet_log_likelihood,
)
from .trainer import SRPRTrainer, TrainingStats

__all__ = [
    "TrainingConfig",
    "TripletGradients",
    "collision_probability",
    "collision_probability_gradients",
    "cosine_similarity",
    "normal_cdf",
    "normal_pdf",
    "separation_statistic",
    "separation_statistic_gradients",
    "triplet_gradients",
    "triplet_log_likelihood",
    "SRPRTrainer",
    "TrainingStats",
]
