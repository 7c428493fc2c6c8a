"""
Generational genetic algorithm driver.

Elitist generational loop:

    Init -> {Evaluate -> Select/Crossover/Mutate -> Evaluate offspring -> Replace}
         x iterations -> best-ever individual

The single best individual of each generation is cloned unchanged into the
next one, and a best-ever individual is tracked across all generations, so
the reported best fitness never regresses.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .crossover import single_point_crossover
from .data_models import OptimizationResult
from .driver_interface import DriverConfig, OptimizerDriver, require_positive_int, require_probability
from .fitness import FitnessEvaluator
from .mutation import uniform_reset_mutation
from .population import Population, datacenter_window, initialize_population
from .selection import select_parents

logger = logging.getLogger(__name__)


@dataclass
class GAConfig(DriverConfig):
    """
    Genetic algorithm settings.

    Attributes:
        include_idle_workers: Off by default, so load_balance compares only
            the workers that received tasks
        crossover_rate: Probability that a parent pair is recombined
        mutation_rate: Per-gene mutation probability
        datacenter: When set, mutation draws replacements only inside this
            datacenter's partition window (see population.datacenter_window)
    """
    population_size: int = 10
    iterations: int = 5
    fitness: str = "load_balance"
    include_idle_workers: bool = False
    crossover_rate: float = 0.8
    mutation_rate: float = 0.1
    datacenter: Optional[int] = None

    def validate(self) -> None:
        super().validate()
        require_probability("crossover_rate", self.crossover_rate)
        require_probability("mutation_rate", self.mutation_rate)
        if self.datacenter is not None:
            require_positive_int("datacenter", self.datacenter)


class GeneticAlgorithm(OptimizerDriver):
    """Elitist generational GA with tournament selection."""

    name = "ga"
    config_class = GAConfig

    def _search(self, task_count: int, worker_count: int, evaluator: FitnessEvaluator) -> OptimizationResult:
        config = self.config
        window = None
        if config.datacenter is not None:
            window = datacenter_window(config.datacenter, worker_count)

        population = initialize_population(
            config.population_size, task_count, worker_count, evaluator, self.rng,
            use_opposition=config.use_opposition,
        )
        population.sort(evaluator)
        best_ever = population[0].clone()
        history = [best_ever.require_fitness()]

        for generation in range(config.iterations):
            next_generation = Population(capacity=config.population_size)

            # Elitism: carry the current best forward untouched
            next_generation.append(population[0].clone())

            while not next_generation.is_full:
                parent_a, parent_b = select_parents(population, evaluator, self.rng)
                child_a, child_b = single_point_crossover(
                    parent_a, parent_b, config.crossover_rate, self.rng
                )
                for child in (child_a, child_b):
                    uniform_reset_mutation(child, worker_count, config.mutation_rate, self.rng, window)
                    evaluator.evaluate(child)

                next_generation.append(child_a)
                if not next_generation.is_full:
                    next_generation.append(child_b)

            population = next_generation
            population.sort(evaluator)

            if evaluator.is_better(population[0], best_ever):
                best_ever = population[0].clone()
            history.append(best_ever.require_fitness())

            logger.debug("ga generation %d/%d: best %.6f",
                         generation + 1, config.iterations, best_ever.fitness)

        return OptimizationResult(
            assignment=list(best_ever.genes),
            best_fitness=best_ever.require_fitness(),
            convention=evaluator.convention.value,
            driver=self.name,
            history=history,
            evaluations=evaluator.evaluations,
        )
