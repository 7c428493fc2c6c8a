"""
Crossover operators.
"""

from typing import Tuple

import numpy as np

from .data_models import Individual
from .exceptions import DimensionMismatchError


def single_point_crossover(
    parent_a: Individual,
    parent_b: Individual,
    crossover_rate: float,
    rng: np.random.Generator
) -> Tuple[Individual, Individual]:
    """
    Classic single-point crossover.

    With probability crossover_rate a point is drawn uniformly in
    [0, length); child A takes parent A's genes before the point and parent
    B's from the point on, child B the reverse. Otherwise the children are
    verbatim copies of the parents.

    Args:
        parent_a: First parent
        parent_b: Second parent
        crossover_rate: Probability of recombining
        rng: Random number generator

    Returns:
        Tuple of two unevaluated children

    Raises:
        DimensionMismatchError: If the parents differ in length
    """
    if len(parent_a) != len(parent_b):
        raise DimensionMismatchError(
            f"Parents differ in length: {len(parent_a)} vs {len(parent_b)}"
        )

    child_a = Individual(genes=list(parent_a.genes), id=parent_a.id)
    child_b = Individual(genes=list(parent_b.genes), id=parent_b.id)

    if rng.random() < crossover_rate:
        point = int(rng.integers(0, len(parent_a)))
        child_a.genes = parent_a.genes[:point] + parent_b.genes[point:]
        child_b.genes = parent_b.genes[:point] + parent_a.genes[point:]

    return child_a, child_b
