"""
Hashing module for SRPR.

This module provides:
- SRPHasher: Sign Random Projection hash family producing b-bit codes
- hamming_distance: Bit disagreement count between two codes
- hamming_to_similarity: Linear 1 - h/b similarity score
"""

from .srp import SRPHasher, hamming_distance, hamming_to_similarity

__all__ = [
    "SRPHasher",
    "hamming_distance",
    "hamming_to_similarity",
]
