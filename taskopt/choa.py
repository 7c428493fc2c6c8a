"""
Chimp optimization (ChOA) swarm driver.

Four leaders, ranked best to worst as Attacker, Barrier, Chaser and Driver,
are tracked separately from the population and survive across iterations.
Every iteration each chimp proposes a new position pulled toward a blend of
the four leaders, with group-specific coefficient schedules, and keeps it
only if it strictly improves its fitness.

Leader ranking defaults to the order-dependent single pass over the
population. It is not a true top-4 selection: an individual only competes
for the first slot it qualifies for, in population order. The "top4" mode
replaces it with a stable best-four selection when exact parity with that
behaviour is not needed.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from .data_models import Individual, OptimizationResult
from .driver_interface import DriverConfig, OptimizerDriver
from .exceptions import ConfigValidationError
from .fitness import FitnessEvaluator
from .population import Population, initialize_population

logger = logging.getLogger(__name__)

LEADER_NAMES = ("attacker", "barrier", "chaser", "driver")
CHAOS_MODES = ("constant", "iterative")
LEADER_RANKINGS = ("single_pass", "top4")


@dataclass
class ChOAConfig(DriverConfig):
    """
    Chimp swarm settings.

    Attributes:
        chaos: "constant" reproduces the fixed chaotic multiplier (0.85);
            "iterative" evolves the map between calls
        leader_ranking: "single_pass" or "top4"
    """
    population_size: int = 80
    iterations: int = 5
    use_opposition: bool = True
    fitness: str = "cost"
    chaos: str = "constant"
    leader_ranking: str = "single_pass"

    def validate(self) -> None:
        super().validate()
        if self.chaos not in CHAOS_MODES:
            raise ConfigValidationError(
                f"Invalid chaos mode: '{self.chaos}'. Must be one of: {', '.join(CHAOS_MODES)}"
            )
        if self.leader_ranking not in LEADER_RANKINGS:
            raise ConfigValidationError(
                f"Invalid leader ranking: '{self.leader_ranking}'. "
                f"Must be one of: {', '.join(LEADER_RANKINGS)}"
            )


class Coefficients(NamedTuple):
    """
    Per-iteration update coefficients.

    Attributes:
        f: Global decay, linear from 2 toward 0
        groups: (C1, C2) scaling pair for each of the four leader groups
    """
    f: float
    groups: Tuple[Tuple[float, float], ...]


def update_coefficients(iteration: int, iterations: int) -> Coefficients:
    """
    Compute f and the four group coefficient pairs for one iteration.

    Group 1 follows a cube-root schedule, group 2 mixes cube-root and
    cubic, group 3 mixes cubic and cube-root, group 4 is cubic.
    """
    f = 2 - iteration * (2.0 / iterations)

    root = 2 * iteration ** (1.0 / 3) / iterations ** (1.0 / 3)
    cube = 2 * iteration ** 3 / iterations ** 3

    c1_g1 = 1.95 - root
    c2_g1 = root + 0.5
    c1_g2 = c1_g1
    c2_g2 = cube + 0.5
    c1_g3 = -cube + 2.5
    c2_g3 = c2_g1
    c1_g4 = c1_g3
    c2_g4 = c2_g2

    return Coefficients(f, ((c1_g1, c2_g1), (c1_g2, c2_g2), (c1_g3, c2_g3), (c1_g4, c2_g4)))


class ChaoticMap:
    """
    Iterative chaotic map x <- sin(a*pi/x), rescaled to (x + 1) / 2.

    In "constant" mode every call returns the value of the seed point,
    (0.7 + 1) / 2 = 0.85, which is the multiplier the swarm has always used.
    "iterative" mode advances the map on each call from `start`. It cannot
    start from x0 when a/x0 is an integer: the map then collapses to 0.
    """

    def __init__(self, mode: str = "constant", x0: float = 0.7, a: float = 0.7, start: float = 0.3):
        self.mode = mode
        self.x0 = x0
        self.a = a
        self.start = start
        self.x = start

    def __call__(self) -> float:
        if self.mode == "constant":
            return (self.x0 + 1) / 2

        if abs(self.x) < 1e-12:
            # sin(a*pi/x) is undefined at 0
            self.x = self.start
        self.x = math.sin(self.a * math.pi / self.x)
        return (self.x + 1) / 2


def round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


class LeaderSet:
    """
    The four ranked leaders.

    Slots start empty with the worst-possible sentinel fitness so that any
    evaluated individual supersedes them.
    """

    def __init__(self, evaluator: FitnessEvaluator):
        self.evaluator = evaluator
        worst = evaluator.worst_fitness
        self.slots: List[Individual] = [Individual(genes=[], fitness=worst) for _ in LEADER_NAMES]

    @property
    def attacker(self) -> Individual:
        return self.slots[0]

    @property
    def barrier(self) -> Individual:
        return self.slots[1]

    @property
    def chaser(self) -> Individual:
        return self.slots[2]

    @property
    def driver(self) -> Individual:
        return self.slots[3]

    def update_single_pass(self, population: Population) -> None:
        """
        Classify the population into leader slots in one ordered pass.

        Each individual is tested against the slots top-down: strictly better
        than the Attacker replaces it; otherwise strictly worse than every
        slot above and strictly better than the current one replaces that
        slot. Displaced leaders are not shifted down.
        """
        comparator = self.evaluator.comparator
        for individual in population:
            fitness = individual.require_fitness()
            for rank, slot in enumerate(self.slots):
                above = self.slots[:rank]
                if all(comparator.is_worse(fitness, leader.fitness) for leader in above) \
                        and comparator.is_better(fitness, slot.fitness):
                    self.slots[rank] = individual.clone()
                    break

    def update_top4(self, population: Population) -> None:
        """Replace the slots with the four best distinct individuals seen so far."""
        candidates = [s for s in self.slots if s.genes] + [ind.clone() for ind in population]
        self.evaluator.sort(candidates)

        chosen: List[Individual] = []
        seen = set()
        for candidate in candidates:
            key = tuple(candidate.genes)
            if key in seen:
                continue
            seen.add(key)
            chosen.append(candidate)
            if len(chosen) == len(LEADER_NAMES):
                break

        worst = self.evaluator.worst_fitness
        while len(chosen) < len(LEADER_NAMES):
            chosen.append(Individual(genes=[], fitness=worst))
        self.slots = chosen

    def attraction_points(self) -> List[Individual]:
        """
        Leaders used for the position update.

        A slot still empty borrows the nearest better leader, so a
        population that never fills all four ranks still moves.
        """
        points: List[Individual] = []
        for slot in self.slots:
            if slot.genes:
                points.append(slot)
            elif points:
                points.append(points[-1])
            else:
                raise RuntimeError("Leader update ran before any individual was evaluated")
        return points


class ChimpOptimizer(OptimizerDriver):
    """Four-leader chimp swarm with greedy acceptance."""

    name = "choa"
    config_class = ChOAConfig

    def __init__(self, config=None, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        super().__init__(config, seed=seed, rng=rng)
        self.chaos = ChaoticMap(self.config.chaos)

    def _rank(self, leaders: LeaderSet, population: Population) -> None:
        if self.config.leader_ranking == "top4":
            leaders.update_top4(population)
        else:
            leaders.update_single_pass(population)

    def propose(
        self,
        chimp: Individual,
        leaders: List[Individual],
        coefficients: Coefficients,
        chaos_value: float,
        worker_count: int
    ) -> List[int]:
        """
        Compute one chimp's proposed position.

        For every gene and leader k: A = 2*f*r1 - f, C = 2*r2 with r1, r2
        scaled by the group's (C1, C2); D = |C*leader - m*current|;
        X = leader - A*D. The mean of the four X is rounded half up and
        clamped into [0, worker_count - 1].
        """
        f = coefficients.f
        current = np.asarray(chimp.genes, dtype=float)
        draws = self.rng.random((len(leaders), 2, len(current)))

        total = np.zeros(len(current))
        for k, leader in enumerate(leaders):
            c1, c2 = coefficients.groups[k]
            a = 2 * f * (c1 * draws[k, 0]) - f
            c = 2 * (c2 * draws[k, 1])
            position = np.asarray(leader.genes, dtype=float)
            distance = np.abs(c * position - chaos_value * current)
            total += position - a * distance

        proposed = np.clip(round_half_up(total / len(leaders)), 0, worker_count - 1)
        return proposed.astype(int).tolist()

    def update_positions(
        self,
        population: Population,
        leaders: LeaderSet,
        coefficients: Coefficients,
        worker_count: int,
        evaluator: FitnessEvaluator
    ) -> int:
        """
        Move every chimp, accepting only strict improvements.

        Returns:
            Number of accepted moves
        """
        chaos_value = self.chaos()
        points = leaders.attraction_points()

        accepted = 0
        for chimp in population:
            candidate = Individual(genes=self.propose(chimp, points, coefficients, chaos_value, worker_count))
            evaluator.evaluate(candidate)
            if evaluator.is_better(candidate, chimp):
                chimp.genes = candidate.genes
                chimp.fitness = candidate.fitness
                accepted += 1
        return accepted

    def _search(self, task_count: int, worker_count: int, evaluator: FitnessEvaluator) -> OptimizationResult:
        config = self.config
        population = initialize_population(
            config.population_size, task_count, worker_count, evaluator, self.rng,
            use_opposition=config.use_opposition,
        )

        leaders = LeaderSet(evaluator)
        self._rank(leaders, population)
        history = [leaders.attacker.require_fitness()]

        for iteration in range(config.iterations):
            coefficients = update_coefficients(iteration, config.iterations)
            accepted = self.update_positions(population, leaders, coefficients, worker_count, evaluator)
            self._rank(leaders, population)
            history.append(leaders.attacker.require_fitness())

            logger.debug("choa iteration %d/%d: %d moves accepted, attacker %.6f",
                         iteration + 1, config.iterations, accepted, leaders.attacker.fitness)

        return OptimizationResult(
            assignment=list(leaders.attacker.genes),
            best_fitness=leaders.attacker.require_fitness(),
            convention=evaluator.convention.value,
            driver=self.name,
            history=history,
            evaluations=evaluator.evaluations,
        )
