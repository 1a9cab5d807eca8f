"""
Sign Random Projection (SRP) hashing.

Each of the b hash functions is a random hyperplane r_i drawn from a standard
normal distribution. Bit i of a vector's code is 1 when dot(v, r_i) >= 0.
For two vectors separated by angle theta, each bit agrees with probability
1 - theta / pi, so Hamming distance between codes tracks angular distance.
"""

import logging
from typing import Dict, Iterable, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class SRPHasher:
    """
    Fixed SRP hash family mapping d-dimensional vectors to b-bit codes.

    Codes are strings over {"0", "1"} of length num_hashes.

    Vectors whose length differs from `dimensions` (including empty input)
    are not hashed: they receive the all-zero code. Callers relying on the
    code length always being b can therefore hash anything without guarding.

    Example:
        hasher = SRPHasher(dimensions=32, num_hashes=16, seed=42)
        code = hasher.generate_code(store.user_vector_view(1))   # e.g. "0110..."
    """

    def __init__(self, dimensions: int, num_hashes: int, seed: int = 0):
        """
        Args:
            dimensions: Input vector dimension d
            num_hashes: Number of hash functions b (code length)
            seed: 0 draws the hash family from OS entropy; any other value
                makes the family reproducible across constructions
        """
        if dimensions <= 0:
            raise ValueError(f"dimensions must be positive, got {dimensions}")
        if num_hashes <= 0:
            raise ValueError(f"num_hashes must be positive, got {num_hashes}")

        self._dimensions = dimensions
        self._num_hashes = num_hashes
        self.seed = seed

        rng = np.random.default_rng(None if seed == 0 else seed)
        self._random_vectors = rng.standard_normal((num_hashes, dimensions))
        self._random_vectors.flags.writeable = False

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def num_hashes(self) -> int:
        return self._num_hashes

    @property
    def random_vectors(self) -> np.ndarray:
        """The (b, d) hash family. Read-only."""
        return self._random_vectors

    def is_initialized(self) -> bool:
        return self._random_vectors.shape == (self._num_hashes, self._dimensions)

    def generate_code(self, vector: Sequence[float]) -> str:
        """
        Hash a vector into a b-bit code.

        Args:
            vector: Real vector of length `dimensions`

        Returns:
            String of num_hashes characters, each "0" or "1"
        """
        vec = np.asarray(vector, dtype=np.float64)
        if not self.is_initialized() or vec.ndim != 1 or vec.shape[0] != self._dimensions:
            return self._fallback_code(vec)

        projections = self._random_vectors @ vec
        return "".join("1" if p >= 0.0 else "0" for p in projections)

    def generate_codes(self, vectors: Iterable[Sequence[float]]) -> List[str]:
        """Hash several vectors; same rules as generate_code."""
        return [self.generate_code(v) for v in vectors]

    def _fallback_code(self, vec: np.ndarray) -> str:
        # Degraded mode: a vector of the wrong shape hashes to all zeros
        logger.debug(
            f"SRP fallback code for input of shape {vec.shape} "
            f"(expected ({self._dimensions},))"
        )
        return "0" * self._num_hashes

    def describe(self) -> Dict:
        """Summary of the hash family for logging."""
        first = self._random_vectors[0]
        return {
            "dimensions": self._dimensions,
            "num_hashes": self._num_hashes,
            "initialized": self.is_initialized(),
            "first_vector_mean": float(first.mean()),
            "first_vector_std": float(first.std()),
        }


def hamming_distance(code1: str, code2: str) -> int:
    """
    Number of positions at which two codes differ.

    Raises:
        ValueError: If the codes have different lengths
    """
    if len(code1) != len(code2):
        raise ValueError(
            f"Cannot compare codes of different lengths ({len(code1)} vs {len(code2)})"
        )
    return sum(a != b for a, b in zip(code1, code2))


def hamming_to_similarity(distance: int, num_bits: int) -> float:
    """Approximate similarity 1 - h/b for a Hamming distance over num_bits bits."""
    return 1.0 - distance / num_bits
