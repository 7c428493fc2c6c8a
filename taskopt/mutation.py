"""
Mutation operators.
"""

from typing import Optional, Tuple

import numpy as np

from .data_models import Individual


def uniform_reset_mutation(
    individual: Individual,
    worker_count: int,
    mutation_rate: float,
    rng: np.random.Generator,
    window: Optional[Tuple[int, int]] = None
) -> int:
    """
    Reset genes to fresh random worker indices.

    Every gene is independently replaced with probability mutation_rate.
    The replacement is uniform over [0, worker_count), or over the
    inclusive window when one is given (see population.datacenter_window).

    Args:
        individual: Individual to mutate in place
        worker_count: Gene domain size
        mutation_rate: Per-gene mutation probability
        rng: Random number generator
        window: Optional inclusive (low, high) worker range

    Returns:
        Number of genes that were redrawn
    """
    low, high = window if window is not None else (0, worker_count - 1)

    mutated = 0
    for i in range(len(individual)):
        if rng.random() < mutation_rate:
            individual.genes[i] = int(rng.integers(low, high + 1))
            mutated += 1

    if mutated:
        individual.fitness = None
    return mutated
