"""
Population management.

Random initialisation, opposition-based counterparts and the one-time
merge-and-truncate step used when opposition-based learning is enabled.
"""

from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .data_models import Individual
from .exceptions import InvalidInputError, PopulationFullError
from .fitness import FitnessEvaluator

DATACENTER_SIZE = 9


class Population:
    """
    Ordered, fixed-capacity collection of individuals.

    Args:
        individuals: Initial members
        capacity: Maximum size (defaults to the number of initial members)
    """

    def __init__(self, individuals: Iterable[Individual] = (), capacity: Optional[int] = None):
        self.individuals: List[Individual] = list(individuals)
        self.capacity = capacity if capacity is not None else len(self.individuals)
        if len(self.individuals) > self.capacity:
            raise PopulationFullError(
                f"{len(self.individuals)} individuals exceed capacity {self.capacity}"
            )

    def __len__(self) -> int:
        return len(self.individuals)

    def __iter__(self) -> Iterator[Individual]:
        return iter(self.individuals)

    def __getitem__(self, index: int) -> Individual:
        return self.individuals[index]

    def __setitem__(self, index: int, individual: Individual) -> None:
        self.individuals[index] = individual

    @property
    def is_full(self) -> bool:
        return len(self.individuals) >= self.capacity

    def append(self, individual: Individual) -> None:
        if self.is_full:
            raise PopulationFullError(f"Population is at capacity ({self.capacity})")
        self.individuals.append(individual)

    def sort(self, evaluator: FitnessEvaluator) -> None:
        """Sort best first under the evaluator's comparator."""
        evaluator.sort(self.individuals)

    def best(self, evaluator: FitnessEvaluator) -> Individual:
        return evaluator.best(self.individuals)


def initialize_random(
    size: int,
    task_count: int,
    worker_count: int,
    rng: np.random.Generator
) -> Population:
    """
    Create a population of random assignments.

    Args:
        size: Number of individuals
        task_count: Genes per individual
        worker_count: Gene domain size; genes are uniform in [0, worker_count)
        rng: Random number generator

    Returns:
        Population of unevaluated individuals
    """
    if size <= 0:
        raise InvalidInputError(f"Population size must be positive, got {size}")

    return Population(
        (Individual.with_length(task_count, worker_count, rng, id=i) for i in range(size)),
        capacity=size,
    )


def opposite_genes(genes: List[int], worker_count: int) -> List[int]:
    return [(worker_count - 1) - g for g in genes]


def build_opposition_set(population: Population, worker_count: int) -> Population:
    """
    Mirror every individual across the worker range.

    Gene i of the opposite individual is (worker_count - 1) - gene i of the
    source individual.

    Args:
        population: Source population
        worker_count: Gene domain size

    Returns:
        New population of unevaluated opposite individuals
    """
    offset = len(population)
    return Population(
        (
            Individual(genes=opposite_genes(ind.genes, worker_count), id=offset + i)
            for i, ind in enumerate(population)
        ),
        capacity=population.capacity,
    )


def merge_and_truncate(
    primary: Population,
    opposite: Population,
    keep_size: int,
    evaluator: FitnessEvaluator
) -> Population:
    """
    Merge two populations and keep the best members.

    Every member of both populations is (re)evaluated; ties keep the
    earlier member, so primary individuals win against equal opposites.

    Args:
        primary: Original population
        opposite: Opposition set
        keep_size: Number of individuals to keep
        evaluator: Fitness evaluator providing scores and ordering

    Returns:
        New population of capacity keep_size
    """
    # Capacity is doubled only while both sets are held together
    merged = Population(primary.individuals + opposite.individuals,
                        capacity=primary.capacity + opposite.capacity)
    evaluator.evaluate_all(merged)
    merged.sort(evaluator)
    return Population(merged.individuals[:keep_size], capacity=keep_size)


def initialize_population(
    size: int,
    task_count: int,
    worker_count: int,
    evaluator: FitnessEvaluator,
    rng: np.random.Generator,
    use_opposition: bool = False
) -> Population:
    """
    Create and evaluate a starting population.

    With use_opposition, the random population is merged with its
    opposition set and truncated back to size.
    """
    population = initialize_random(size, task_count, worker_count, rng)
    if use_opposition:
        opposite = build_opposition_set(population, worker_count)
        return merge_and_truncate(population, opposite, size, evaluator)
    evaluator.evaluate_all(population)
    return population


def datacenter_window(
    datacenter: int,
    worker_count: int,
    size: int = DATACENTER_SIZE
) -> Tuple[int, int]:
    """
    Inclusive worker index range belonging to one datacenter partition.

    Datacenters are numbered from 1 and own `size` consecutive workers. The
    window is clamped into [0, worker_count - 1], so with a single
    datacenter it covers the whole worker range of a small pool.

    Raises:
        InvalidInputError: If the datacenter has no workers in range
    """
    if datacenter < 1:
        raise InvalidInputError(f"Datacenter numbers start at 1, got {datacenter}")

    low = (datacenter - 1) * size
    high = min(datacenter * size, worker_count) - 1
    if low > high:
        raise InvalidInputError(
            f"Datacenter {datacenter} has no workers among {worker_count}"
        )
    return low, high
