"""
PrepCoach Interview API - Cosine Similarity

NumPy cosine similarity that tolerates legacy rows with missing or
placeholder embeddings.
"""

from typing import Optional, Sequence

import numpy as np


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity between two vectors.

    Returns 0.0 instead of raising when either vector is missing, the lengths
    differ, or either vector has zero magnitude.
    """
    if a is None or b is None:
        return 0.0

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    if vec_a.ndim != 1 or vec_a.shape != vec_b.shape or vec_a.size == 0:
        return 0.0

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def is_embedded(vector: Optional[Sequence[float]], dimensions: int) -> bool:
    """True when the vector has the configured length and is not all zeros."""
    if vector is None or len(vector) != dimensions:
        return False
    return bool(np.any(np.asarray(vector, dtype=np.float64)))
