"""
Parent selection operators.
"""

from typing import Sequence, Tuple

import numpy as np

from .data_models import Individual
from .exceptions import InvalidInputError
from .fitness import FitnessEvaluator

TOURNAMENT_SIZE = 3


def tournament_select(
    population: Sequence[Individual],
    evaluator: FitnessEvaluator,
    rng: np.random.Generator,
    tournament_size: int = TOURNAMENT_SIZE
) -> Individual:
    """
    Pick one parent by tournament.

    Draws tournament_size individuals uniformly at random with replacement
    and returns the best under the evaluator's comparator. The earliest
    drawn contender wins ties.

    Args:
        population: Evaluated individuals to choose from
        evaluator: Provides the comparison direction
        rng: Random number generator
        tournament_size: Number of contenders

    Returns:
        The winning individual (not a copy)
    """
    if len(population) == 0:
        raise InvalidInputError("Cannot select from an empty population")

    indices = rng.integers(0, len(population), size=tournament_size)
    return evaluator.best(population[int(i)] for i in indices)


def select_parents(
    population: Sequence[Individual],
    evaluator: FitnessEvaluator,
    rng: np.random.Generator,
    tournament_size: int = TOURNAMENT_SIZE
) -> Tuple[Individual, Individual]:
    """
    Run two independent tournaments.

    The same individual may win both.
    """
    parent_a = tournament_select(population, evaluator, rng, tournament_size)
    parent_b = tournament_select(population, evaluator, rng, tournament_size)
    return parent_a, parent_b
