"""
SRPR objective and its closed-form gradients.

For a triplet (u, i, j) the objective is built in three layers:

1. Collision probability under SRP:
       p(x, y) = 1 - arccos(cos_sim(x, y)) / pi
2. Separation statistic between the two collision probabilities:
       gamma = (p_uj - p_ui) / sqrt(p_ui (1 - p_ui) + p_uj (1 - p_uj))
3. Log-likelihood under a normal approximation with b hash bits:
       log Phi(sqrt(b) * gamma)

Gradients are assembled by hand with the chain rule:

    d/dv log Phi(s) = Phi'(s) / Phi(s) * sqrt(b) * (dgamma/dp_ui * dp_ui/dv
                                                  + dgamma/dp_uj * dp_uj/dv)

Every function here is pure; the trainer composes them per triplet.
"""

import math
from typing import NamedTuple, Tuple

import numpy as np

# Norms below this are treated as zero vectors
NORM_EPSILON = 1e-12
# Probabilities are clamped to [PROB_EPSILON, 1 - PROB_EPSILON]
PROB_EPSILON = 1e-12
# Standard deviations below this give a neutral separation statistic
SIGMA_EPSILON = 1e-12
# Phi values below this are saturated: no gradient step
PHI_EPSILON = 1e-12
# Added inside the log to keep the objective finite
LOG_EPSILON = 1e-12


class TripletGradients(NamedTuple):
    """Gradients of one triplet's objective w.r.t. its three embeddings."""

    user: np.ndarray
    preferred: np.ndarray
    less_preferred: np.ndarray


def normal_cdf(x: float) -> float:
    """Standard normal CDF Phi(x)."""
    return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))


def normal_pdf(x: float) -> float:
    """Standard normal density Phi'(x)."""
    return math.exp(-0.5 * x * x) / math.sqrt(2.0 * math.pi)


def cosine_similarity(v1: np.ndarray, v2: np.ndarray) -> float:
    """Cosine similarity; 0.0 when either vector has (numerically) zero norm."""
    n1 = float(np.linalg.norm(v1))
    n2 = float(np.linalg.norm(v2))
    if n1 < NORM_EPSILON or n2 < NORM_EPSILON:
        return 0.0
    return float(np.dot(v1, v2)) / (n1 * n2)


def collision_probability(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    Probability that one SRP hash function gives v1 and v2 the same bit.

    p = 1 - arccos(clamp(cos_sim, -1, 1)) / pi

    Returns the neutral value 0.5 if either vector has a near-zero norm.
    """
    n1 = float(np.linalg.norm(v1))
    n2 = float(np.linalg.norm(v2))
    if n1 < NORM_EPSILON or n2 < NORM_EPSILON:
        return 0.5

    cos_sim = float(np.dot(v1, v2)) / (n1 * n2)
    cos_sim = max(-1.0, min(1.0, cos_sim))
    return 1.0 - math.acos(cos_sim) / math.pi


def _clamp_probability(p: float) -> float:
    return max(PROB_EPSILON, min(1.0 - PROB_EPSILON, p))


def separation_statistic(p_i: float, p_j: float) -> float:
    """
    Normalized gap gamma between two collision probabilities.

    gamma = (p_j - p_i) / sqrt(p_i (1 - p_i) + p_j (1 - p_j))

    Both probabilities are clamped away from {0, 1}. A combined standard
    deviation below SIGMA_EPSILON yields 0.0.
    """
    p_i = _clamp_probability(p_i)
    p_j = _clamp_probability(p_j)

    sigma = math.sqrt(p_i * (1.0 - p_i) + p_j * (1.0 - p_j))
    if sigma < SIGMA_EPSILON:
        return 0.0
    return (p_j - p_i) / sigma


def separation_statistic_gradients(p_i: float, p_j: float) -> Tuple[float, float]:
    """
    Partial derivatives (dgamma/dp_i, dgamma/dp_j) of separation_statistic.

    With n = p_j - p_i and sigma^2 = p_i(1-p_i) + p_j(1-p_j):
        dgamma/dp_i = (-sigma - n (1 - 2 p_i) / (2 sigma)) / sigma^2
        dgamma/dp_j = ( sigma - n (1 - 2 p_j) / (2 sigma)) / sigma^2
    """
    p_i = _clamp_probability(p_i)
    p_j = _clamp_probability(p_j)

    sigma = math.sqrt(p_i * (1.0 - p_i) + p_j * (1.0 - p_j))
    if sigma < SIGMA_EPSILON:
        return 0.0, 0.0

    numerator = p_j - p_i
    sigma_sq = sigma * sigma
    d_pi = (-sigma - numerator * (1.0 - 2.0 * p_i) / (2.0 * sigma)) / sigma_sq
    d_pj = (sigma - numerator * (1.0 - 2.0 * p_j) / (2.0 * sigma)) / sigma_sq
    return d_pi, d_pj


def collision_probability_gradients(
    v1: np.ndarray, v2: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gradients (dp/dv1, dp/dv2) of collision_probability.

    dp/dcos = 1 / (pi * sin(theta)), and
        dcos/dv1 = v2 / (|v1| |v2|) - cos * v1 / |v1|^2
        dcos/dv2 = v1 / (|v1| |v2|) - cos * v2 / |v2|^2

    Both gradients are zero if either norm is degenerate or the vectors are
    (anti)parallel, where arccos is not differentiable.
    """
    zeros = (np.zeros_like(v1, dtype=np.float64), np.zeros_like(v2, dtype=np.float64))

    n1 = float(np.linalg.norm(v1))
    n2 = float(np.linalg.norm(v2))
    if n1 < NORM_EPSILON or n2 < NORM_EPSILON:
        return zeros

    cos_sim = float(np.dot(v1, v2)) / (n1 * n2)
    cos_sim = max(-1.0, min(1.0, cos_sim))

    sin_theta = math.sqrt(1.0 - cos_sim * cos_sim)
    if sin_theta < NORM_EPSILON:
        return zeros

    dp_dcos = 1.0 / (math.pi * sin_theta)
    grad_v1 = dp_dcos * (v2 / (n1 * n2) - cos_sim * v1 / (n1 * n1))
    grad_v2 = dp_dcos * (v1 / (n1 * n2) - cos_sim * v2 / (n2 * n2))
    return grad_v1, grad_v2


def triplet_log_likelihood(
    x_u: np.ndarray,
    y_i: np.ndarray,
    y_j: np.ndarray,
    b: int,
) -> float:
    """
    Objective value log Phi(sqrt(b) * gamma) for one triplet.

    Args:
        x_u: User embedding
        y_i: Preferred item embedding
        y_j: Less-preferred item embedding
        b: Hash length assumed by the probability model

    Returns:
        Log-likelihood (<= 0); LOG_EPSILON keeps it finite
    """
    p_ui = collision_probability(x_u, y_i)
    p_uj = collision_probability(x_u, y_j)
    gamma = separation_statistic(p_ui, p_uj)
    return math.log(normal_cdf(math.sqrt(b) * gamma) + LOG_EPSILON)


def triplet_gradients(
    x_u: np.ndarray,
    y_i: np.ndarray,
    y_j: np.ndarray,
    b: int,
) -> TripletGradients:
    """
    Closed-form gradients of triplet_log_likelihood.

    Returns all-zero gradients when Phi(sqrt(b) * gamma) is below
    PHI_EPSILON, i.e. the triplet is saturated.

    Args:
        x_u: User embedding
        y_i: Preferred item embedding
        y_j: Less-preferred item embedding
        b: Hash length assumed by the probability model

    Returns:
        TripletGradients(user, preferred, less_preferred)
    """
    sqrt_b = math.sqrt(b)

    p_ui = collision_probability(x_u, y_i)
    p_uj = collision_probability(x_u, y_j)
    gamma = separation_statistic(p_ui, p_uj)
    dgamma_dpui, dgamma_dpuj = separation_statistic_gradients(p_ui, p_uj)

    s = sqrt_b * gamma
    phi_val = normal_cdf(s)
    if phi_val < PHI_EPSILON:
        return TripletGradients(
            np.zeros_like(x_u, dtype=np.float64),
            np.zeros_like(y_i, dtype=np.float64),
            np.zeros_like(y_j, dtype=np.float64),
        )

    # d log Phi(s) / d gamma
    common = normal_pdf(s) / phi_val * sqrt_b

    dpui_dxu, dpui_dyi = collision_probability_gradients(x_u, y_i)
    dpuj_dxu, dpuj_dyj = collision_probability_gradients(x_u, y_j)

    return TripletGradients(
        user=common * (dgamma_dpui * dpui_dxu + dgamma_dpuj * dpuj_dxu),
        preferred=common * dgamma_dpui * dpui_dyi,
        less_preferred=common * dgamma_dpuj * dpuj_dyj,
    )
