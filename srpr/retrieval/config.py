"""
Configuration for the exact vs LSH retrieval benchmark.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class BenchmarkConfig:
    """
    Configuration for the retrieval benchmark.

    Both retrieval paths scan the whole catalog; there is no index structure
    to tune. What varies is the code length and how many users are sampled.

    Attributes:
        top_k: Number of recommendations per user (default: 10)
        num_test_users: Users sampled for the benchmark (default: 50)
        lsh_bits: Code length b of the retrieval hasher (default: 16)
            Independent of the b_lsh_length used during training.
        hash_seed: Seed for the hash family (0 = non-deterministic)
        bit_lengths: Code lengths compared by the bit-length sweep
        user_sample_seed: Seed for sampling test users
    """

    top_k: int = 10
    num_test_users: int = 50
    lsh_bits: int = 16
    hash_seed: int = 42
    bit_lengths: List[int] = field(default_factory=lambda: [8, 16, 32, 64])
    user_sample_seed: int = 42

    def __post_init__(self):
        if self.top_k <= 0:
            raise ValueError(f"top_k must be > 0, got {self.top_k}")
        if self.num_test_users <= 0:
            raise ValueError(f"num_test_users must be > 0, got {self.num_test_users}")
        if self.lsh_bits <= 0:
            raise ValueError(f"lsh_bits must be > 0, got {self.lsh_bits}")

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging."""
        return {
            "top_k": self.top_k,
            "num_test_users": self.num_test_users,
            "lsh_bits": self.lsh_bits,
            "hash_seed": self.hash_seed,
            "bit_lengths": self.bit_lengths,
            "user_sample_seed": self.user_sample_seed,
        }
