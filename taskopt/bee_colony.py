"""
Artificial bee colony (ABC) driver.

Food sources are candidate assignments. Each iteration runs:

- employed phase: every source tries a neighbour move and keeps it if better
- onlooker phase: sources are revisited in proportion to their quality
- scout phase: sources that failed to improve for more than `limit`
  consecutive trials are abandoned and replaced with random assignments

Shares the call contract of the other drivers; by default it scores with
the worker-specific cost model, so worker specifications are required.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from .data_models import Individual, OptimizationResult
from .driver_interface import DriverConfig, OptimizerDriver, require_positive_int
from .fitness import FitnessEvaluator
from .population import Population, initialize_population

logger = logging.getLogger(__name__)


@dataclass
class ABCConfig(DriverConfig):
    """
    Bee colony settings.

    Attributes:
        population_size: Number of food sources (one employed bee each)
        limit: Failed trials after which a source is abandoned
    """
    population_size: int = 20
    iterations: int = 5
    fitness: str = "cost"
    cost_model: str = "worker"
    limit: int = 5

    def validate(self) -> None:
        super().validate()
        require_positive_int("limit", self.limit)


class BeeColonyOptimizer(OptimizerDriver):
    """Discrete artificial bee colony over worker indices."""

    name = "abc"
    config_class = ABCConfig

    def neighbour(self, sources: Population, index: int, worker_count: int) -> Individual:
        """
        Perturb one random gene of a source toward or away from a partner.

        v_j = round(x_j + phi * (x_j - partner_j)) with phi uniform in
        [-1, 1], clamped to the worker range. When that leaves the gene
        unchanged a fresh random worker is drawn instead.
        """
        source = sources[index]
        if len(sources) > 1:
            partner_index = int(self.rng.integers(0, len(sources) - 1))
            if partner_index >= index:
                partner_index += 1
        else:
            partner_index = index
        partner = sources[partner_index]

        j = int(self.rng.integers(0, len(source)))
        phi = self.rng.uniform(-1.0, 1.0)
        value = int(np.clip(np.floor(source.genes[j] + phi * (source.genes[j] - partner.genes[j]) + 0.5),
                            0, worker_count - 1))
        if value == source.genes[j] and worker_count > 1:
            value = int(self.rng.integers(0, worker_count))

        genes = list(source.genes)
        genes[j] = value
        return Individual(genes=genes, id=source.id)

    def _try_improve(
        self,
        sources: Population,
        index: int,
        trials: List[int],
        worker_count: int,
        evaluator: FitnessEvaluator
    ) -> None:
        candidate = self.neighbour(sources, index, worker_count)
        evaluator.evaluate(candidate)
        if evaluator.is_better(candidate, sources[index]):
            sources[index] = candidate
            trials[index] = 0
        else:
            trials[index] += 1

    def selection_probabilities(self, sources: Population, evaluator: FitnessEvaluator) -> np.ndarray:
        """
        Onlooker probabilities proportional to source quality.

        Quality is 1/(1 + fitness) for minimizing conventions and the
        fitness itself for maximizing ones.
        """
        fitness = np.array([s.require_fitness() for s in sources], dtype=float)
        if evaluator.comparator.higher_is_better:
            quality = fitness
        else:
            quality = 1.0 / (1.0 + fitness)
        total = quality.sum()
        if total <= 0:
            return np.full(len(sources), 1.0 / len(sources))
        return quality / total

    def _search(self, task_count: int, worker_count: int, evaluator: FitnessEvaluator) -> OptimizationResult:
        config = self.config
        sources = initialize_population(
            config.population_size, task_count, worker_count, evaluator, self.rng,
            use_opposition=config.use_opposition,
        )
        trials = [0] * len(sources)
        best_ever = sources.best(evaluator).clone()
        history = [best_ever.require_fitness()]

        for iteration in range(config.iterations):
            # Employed bee phase
            for i in range(len(sources)):
                self._try_improve(sources, i, trials, worker_count, evaluator)

            # Onlooker bee phase
            probabilities = self.selection_probabilities(sources, evaluator)
            for _ in range(len(sources)):
                i = int(self.rng.choice(len(sources), p=probabilities))
                self._try_improve(sources, i, trials, worker_count, evaluator)

            current_best = sources.best(evaluator)
            if evaluator.is_better(current_best, best_ever):
                best_ever = current_best.clone()

            # Scout bee phase
            scouts = 0
            for i in range(len(sources)):
                if trials[i] > config.limit:
                    scout = Individual.with_length(task_count, worker_count, self.rng, id=sources[i].id)
                    evaluator.evaluate(scout)
                    sources[i] = scout
                    trials[i] = 0
                    scouts += 1

            current_best = sources.best(evaluator)
            if evaluator.is_better(current_best, best_ever):
                best_ever = current_best.clone()
            history.append(best_ever.require_fitness())

            logger.debug("abc iteration %d/%d: %d scouts, best %.6f",
                         iteration + 1, config.iterations, scouts, best_ever.fitness)

        return OptimizationResult(
            assignment=list(best_ever.genes),
            best_fitness=best_ever.require_fitness(),
            convention=evaluator.convention.value,
            driver=self.name,
            history=history,
            evaluations=evaluator.evaluations,
        )
