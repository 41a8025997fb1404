from __future__ import annotations

import numpy as np

DEFAULT_DRAWS = 6


def gaussian_rand(rng: np.random.Generator, draws: int = DEFAULT_DRAWS) -> float:
    """Bell-shaped value in [0, 1] centred on 0.5 (mean of uniform draws)."""
    if draws < 1:
        raise ValueError(f"draws must be positive, got {draws}")
    return float(np.mean(rng.random(draws)))


def random_delta(rng: np.random.Generator, draws: int = DEFAULT_DRAWS) -> float:
    """:func:`gaussian_rand` rescaled to [-1, 1]."""
    return (gaussian_rand(rng, draws) - 0.5) * 2.0
