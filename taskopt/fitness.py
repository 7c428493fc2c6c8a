"""
Fitness evaluation for task assignments.

Three scoring conventions coexist and are never interchangeable:

- cost: makespan + total cost, lower is better
- inverse: 1/(makespan+1) + 1/(total_cost+0.1), higher is better
- load_balance: 1/(max_count - min_count + 1) over per-worker task counts,
  higher is better

Each FitnessEvaluator is bound to exactly one convention and owns the
Comparator that every ranking operator must go through.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .data_models import Individual, Task, WorkerSpec
from .exceptions import ConfigValidationError, DimensionMismatchError, GeneIndexError, InvalidInputError

# Processing demand per weight tier
WEIGHT_TO_MIPS = {
    "light": 400,
    "medium": 500,
    "heavy": 600,
    "ringan": 400,
    "sedang": 500,
    "berat": 600,
}
DEFAULT_MIPS = 500

CLOUDLET_LENGTH = 10000
COST_PER_MIPS = 0.5
COST_PER_RAM = 0.05
RAM_USAGE = 512
COST_PER_BW = 0.1
BANDWIDTH_USAGE = 1000


class FitnessConvention(str, Enum):
    COST = "cost"
    INVERSE = "inverse"
    LOAD_BALANCE = "load_balance"


class CostModel(str, Enum):
    # Execution time from the task tier only, flat processing price
    FIXED = "fixed"
    # Execution time and processing price from the assigned worker's spec.
    # Execution time is (10000 * demand / 500) / mips: the cloudlet length is
    # scaled by the task tier, unlike the unscaled 10000 / mips.
    WORKER = "worker"


def parse_convention(value) -> FitnessConvention:
    try:
        return FitnessConvention(value)
    except ValueError:
        valid = ", ".join(c.value for c in FitnessConvention)
        raise ConfigValidationError(f"Unknown fitness convention: '{value}'. Must be one of: {valid}")


def parse_cost_model(value) -> CostModel:
    try:
        return CostModel(value)
    except ValueError:
        valid = ", ".join(c.value for c in CostModel)
        raise ConfigValidationError(f"Unknown cost model: '{value}'. Must be one of: {valid}")


def task_demand(task: Task) -> int:
    """Processing demand for a task's weight tier (DEFAULT_MIPS if unknown)."""
    return WEIGHT_TO_MIPS.get(str(task.weight).lower(), DEFAULT_MIPS)


@dataclass(frozen=True)
class Comparator:
    """
    Direction of fitness comparison.

    Attributes:
        higher_is_better: True for maximizing conventions, False for minimizing
    """
    higher_is_better: bool

    @property
    def worst(self) -> float:
        """Sentinel that every real fitness value improves on."""
        return -math.inf if self.higher_is_better else math.inf

    def is_better(self, a: float, b: float) -> bool:
        """Strict improvement of a over b."""
        return a > b if self.higher_is_better else a < b

    def is_worse(self, a: float, b: float) -> bool:
        return self.is_better(b, a)

    def sort_key(self, fitness: float) -> float:
        """Key that orders best first under an ascending sort."""
        return -fitness if self.higher_is_better else fitness


MINIMIZE = Comparator(higher_is_better=False)
MAXIMIZE = Comparator(higher_is_better=True)


@dataclass
class WorkloadSummary:
    """
    Per-worker accumulation for one assignment.

    Attributes:
        loads: Total execution time per worker
        costs: Total monetary cost per worker
        counts: Number of tasks per worker
        makespan: Largest load among workers that received tasks
        total_cost: Sum of all worker costs
    """
    loads: List[float]
    costs: List[float]
    counts: List[int]
    makespan: float
    total_cost: float


class FitnessEvaluator:
    """
    Scores individuals against a fixed task list and worker pool.

    Args:
        tasks: Ordered task list (one per gene)
        worker_count: Number of workers (gene domain size)
        worker_specs: Worker specifications, required for the worker cost model
        convention: Fitness convention to score under
        cost_model: How execution time and processing cost are derived
        include_idle_workers: For load_balance, count workers without tasks
            as load 0 (False leaves them out of the max/min)
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        worker_count: int,
        worker_specs: Optional[Sequence[WorkerSpec]] = None,
        convention=FitnessConvention.COST,
        cost_model=CostModel.FIXED,
        include_idle_workers: bool = True
    ):
        self.tasks = [Task.from_value(t, i) for i, t in enumerate(tasks)]
        self.worker_count = worker_count
        self.worker_specs = list(worker_specs) if worker_specs is not None else None
        self.convention = parse_convention(convention)
        self.cost_model = parse_cost_model(cost_model)
        self.include_idle_workers = include_idle_workers
        self.evaluations = 0

        if self.cost_model is CostModel.WORKER and not self.worker_specs:
            raise InvalidInputError("The 'worker' cost model requires worker specifications")

        if self.convention is FitnessConvention.COST:
            self.comparator = MINIMIZE
        else:
            self.comparator = MAXIMIZE

        # Per-task terms that do not depend on the assignment
        self._demands = [task_demand(t) for t in self.tasks]
        self._fixed_cost = RAM_USAGE * COST_PER_RAM + BANDWIDTH_USAGE * COST_PER_BW

    def _exec_time(self, task_index: int, worker: int) -> float:
        demand = self._demands[task_index]
        if self.cost_model is CostModel.WORKER:
            length = CLOUDLET_LENGTH * demand / DEFAULT_MIPS
            return length / self.worker_specs[worker].mips
        return CLOUDLET_LENGTH / demand

    def _processing_price(self, worker: int) -> float:
        if self.cost_model is CostModel.WORKER:
            return self.worker_specs[worker].cost_per_mips
        return COST_PER_MIPS

    def check_genes(self, genes: Sequence[int]) -> None:
        """Reject gene sequences that do not describe a full assignment."""
        if len(genes) != len(self.tasks):
            raise DimensionMismatchError(
                f"Expected {len(self.tasks)} genes (one per task), got {len(genes)}"
            )
        for i, worker in enumerate(genes):
            if not 0 <= worker < self.worker_count:
                raise GeneIndexError(
                    f"Gene {i} assigns worker {worker}, outside [0, {self.worker_count})"
                )

    def workload(self, genes: Sequence[int]) -> WorkloadSummary:
        """
        Accumulate execution time, cost and task count per worker.

        Args:
            genes: Worker index per task

        Returns:
            WorkloadSummary for the assignment

        Raises:
            DimensionMismatchError: If there is not exactly one gene per task
            GeneIndexError: If a gene is outside [0, worker_count)
        """
        self.check_genes(genes)
        loads = [0.0] * self.worker_count
        costs = [0.0] * self.worker_count
        counts = [0] * self.worker_count

        for i, worker in enumerate(genes):
            exec_time = self._exec_time(i, worker)
            loads[worker] += exec_time
            costs[worker] += exec_time * self._processing_price(worker) + self._fixed_cost
            counts[worker] += 1

        busy = [load for load, count in zip(loads, counts) if count > 0]
        makespan = max(busy) if busy else 0.0
        return WorkloadSummary(
            loads=loads,
            costs=costs,
            counts=counts,
            makespan=makespan,
            total_cost=sum(costs),
        )

    def score(self, genes: Sequence[int]) -> float:
        """
        Fitness of a gene sequence under this evaluator's convention.

        Raises:
            DimensionMismatchError: If there is not exactly one gene per task
            GeneIndexError: If a gene is outside [0, worker_count)
        """
        self.check_genes(genes)
        self.evaluations += 1

        if self.convention is FitnessConvention.LOAD_BALANCE:
            counts = [0] * self.worker_count
            for worker in genes:
                counts[worker] += 1
            if not self.include_idle_workers:
                counts = [c for c in counts if c > 0]
            if not counts:
                return 1.0
            return 1.0 / (max(counts) - min(counts) + 1)

        summary = self.workload(genes)
        if self.convention is FitnessConvention.COST:
            return summary.makespan + summary.total_cost
        return 1.0 / (summary.makespan + 1) + 1.0 / (summary.total_cost + 0.1)

    def evaluate(self, individual: Individual) -> float:
        """Compute and store an individual's fitness."""
        individual.fitness = self.score(individual.genes)
        return individual.fitness

    def evaluate_all(self, individuals: Iterable[Individual]) -> None:
        for individual in individuals:
            self.evaluate(individual)

    def is_better(self, a: Individual, b: Individual) -> bool:
        """True if a strictly improves on b (both must be evaluated)."""
        return self.comparator.is_better(a.require_fitness(), b.require_fitness())

    def sort(self, individuals: List[Individual]) -> None:
        """Stable in-place sort, best individual first."""
        individuals.sort(key=lambda ind: self.comparator.sort_key(ind.require_fitness()))

    def best(self, individuals: Iterable[Individual]) -> Individual:
        """Best individual; the earliest one wins ties."""
        best = None
        for individual in individuals:
            if best is None or self.is_better(individual, best):
                best = individual
        if best is None:
            raise InvalidInputError("Cannot pick the best of an empty collection")
        return best

    @property
    def worst_fitness(self) -> float:
        return self.comparator.worst
