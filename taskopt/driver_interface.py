"""
Shared call contract for optimization drivers.

Every driver (GA, chimp swarm, bee colony) is called the same way:

    run(task_count, worker_count, tasks, worker_specs) -> assignment

Inputs are validated before any population work begins, and the returned
vector is checked against the declared dimensions before it leaves the
driver, so drivers are interchangeable from the broker's point of view.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from typing import Any, List, Optional, Tuple

import numpy as np

from .data_models import OptimizationResult, Task, WorkerSpec
from .exceptions import ConfigValidationError, DimensionMismatchError, InvalidInputError
from .fitness import CostModel, FitnessEvaluator, parse_convention, parse_cost_model

logger = logging.getLogger(__name__)


@dataclass
class DriverConfig:
    """
    Settings common to every driver.

    Attributes:
        population_size: Number of individuals (food sources for the bee colony)
        iterations: Fixed iteration budget, no early stopping
        use_opposition: Merge the initial population with its opposition set
        fitness: Fitness convention name ("cost", "inverse", "load_balance")
        cost_model: "fixed" (tier-based) or "worker" (uses worker specs)
        include_idle_workers: Count task-less workers in load_balance scoring
    """
    population_size: int = 10
    iterations: int = 5
    use_opposition: bool = False
    fitness: str = "cost"
    cost_model: str = "fixed"
    include_idle_workers: bool = True

    def validate(self) -> None:
        """
        Check field values.

        Raises:
            ConfigValidationError: If any value is out of range
        """
        require_positive_int("population_size", self.population_size)
        if not isinstance(self.iterations, int) or isinstance(self.iterations, bool) or self.iterations < 0:
            raise ConfigValidationError(
                f"'iterations' must be a non-negative integer, got: {self.iterations}"
            )
        self.fitness = parse_convention(self.fitness).value
        self.cost_model = parse_cost_model(self.cost_model).value

    @classmethod
    def from_dict(cls, data: Optional[Any] = None):
        """
        Build a validated config from a mapping (e.g. a YAML section).

        Args:
            data: Mapping of field overrides, an existing config, or None

        Returns:
            Config instance

        Raises:
            ConfigValidationError: On unknown keys or invalid values
        """
        if data is None:
            config = cls()
        elif isinstance(data, cls):
            config = data
        elif isinstance(data, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = sorted(set(data) - known)
            if unknown:
                raise ConfigValidationError(
                    f"Unknown {cls.__name__} field(s): {', '.join(unknown)}"
                )
            config = cls(**data)
        else:
            raise ConfigValidationError(
                f"{cls.__name__} must be a mapping, got {type(data).__name__}"
            )
        config.validate()
        return config


def require_positive_int(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigValidationError(f"'{name}' must be a positive integer, got: {value}")


def require_probability(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        raise ConfigValidationError(f"'{name}' must be a probability in [0, 1], got: {value}")


def validate_driver_inputs(
    task_count: Any,
    worker_count: Any,
    tasks: Any,
    worker_specs: Any = None
) -> Tuple[List[Task], Optional[List[WorkerSpec]]]:
    """
    Validate and normalise driver inputs.

    Args:
        task_count: Declared number of tasks
        worker_count: Declared number of workers
        tasks: Ordered task collection
        worker_specs: Optional ordered worker specification collection

    Returns:
        Tuple of (tasks, worker_specs) as model objects

    Raises:
        InvalidInputError: Missing, empty or wrong-shaped inputs
        DimensionMismatchError: Declared counts disagreeing with collections
    """
    if tasks is None:
        raise InvalidInputError("'tasks' is required")
    if isinstance(tasks, (str, bytes, Mapping)) or not isinstance(tasks, Sequence):
        raise InvalidInputError(f"'tasks' must be a sequence, got {type(tasks).__name__}")
    if len(tasks) == 0:
        raise InvalidInputError("'tasks' must not be empty")

    for name, value in (("task_count", task_count), ("worker_count", worker_count)):
        if not isinstance(value, (int, np.integer)) or isinstance(value, bool) or value <= 0:
            raise InvalidInputError(f"'{name}' must be a positive integer, got: {value}")

    if len(tasks) != task_count:
        raise DimensionMismatchError(
            f"task_count is {task_count} but {len(tasks)} tasks were supplied"
        )

    task_models = [Task.from_value(t, i) for i, t in enumerate(tasks)]

    spec_models = None
    if worker_specs is not None:
        if isinstance(worker_specs, (str, bytes, Mapping)) or not isinstance(worker_specs, Sequence):
            raise InvalidInputError(
                f"'worker_specs' must be a sequence, got {type(worker_specs).__name__}"
            )
        if len(worker_specs) != worker_count:
            raise DimensionMismatchError(
                f"worker_count is {worker_count} but {len(worker_specs)} worker specs were supplied"
            )
        spec_models = [WorkerSpec.from_value(w, i) for i, w in enumerate(worker_specs)]

    return task_models, spec_models


def check_assignment(assignment: Sequence[int], task_count: int, worker_count: int) -> None:
    """
    Verify an assignment vector's shape and range.

    Raises:
        DimensionMismatchError: If the length is not task_count
        InvalidInputError: If an entry is outside [0, worker_count)
    """
    if len(assignment) != task_count:
        raise DimensionMismatchError(
            f"Assignment has {len(assignment)} entries, expected {task_count}"
        )
    for i, worker in enumerate(assignment):
        if not 0 <= worker < worker_count:
            raise InvalidInputError(
                f"Assignment entry {i} is {worker}, outside [0, {worker_count})"
            )


class OptimizerDriver:
    """
    Base class implementing the driver call contract.

    Subclasses set `name` and `config_class` and implement `_search`.

    Args:
        config: Driver config instance or mapping of overrides
        seed: Seed for a fresh numpy Generator
        rng: Explicit Generator (takes precedence over seed)
    """

    name = "base"
    config_class = DriverConfig

    def __init__(self, config=None, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        self.config = self.config_class.from_dict(config)
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def make_evaluator(
        self,
        tasks: List[Task],
        worker_count: int,
        worker_specs: Optional[List[WorkerSpec]]
    ) -> FitnessEvaluator:
        cost_model = parse_cost_model(self.config.cost_model)
        if cost_model is CostModel.WORKER and worker_specs is None:
            raise InvalidInputError(
                f"Driver '{self.name}' uses the worker cost model and needs worker specifications"
            )
        return FitnessEvaluator(
            tasks,
            worker_count,
            worker_specs=worker_specs,
            convention=self.config.fitness,
            cost_model=cost_model,
            include_idle_workers=self.config.include_idle_workers,
        )

    def run(self, task_count: int, worker_count: int, tasks, worker_specs=None) -> List[int]:
        """
        Compute an assignment vector.

        Returns:
            List of length task_count with entries in [0, worker_count)
        """
        return self.optimize(task_count, worker_count, tasks, worker_specs).assignment

    def optimize(self, task_count: int, worker_count: int, tasks, worker_specs=None) -> OptimizationResult:
        """Like run, but returns the full OptimizationResult."""
        task_models, spec_models = validate_driver_inputs(task_count, worker_count, tasks, worker_specs)
        evaluator = self.make_evaluator(task_models, int(worker_count), spec_models)

        logger.debug(
            "Running %s on %d tasks x %d workers (%s)",
            self.name, task_count, worker_count, self.config,
        )
        result = self._search(int(task_count), int(worker_count), evaluator)
        check_assignment(result.assignment, task_count, worker_count)
        logger.debug("%s finished: best fitness %.6f after %d evaluations",
                     self.name, result.best_fitness, result.evaluations)
        return result

    def _search(self, task_count: int, worker_count: int, evaluator: FitnessEvaluator) -> OptimizationResult:
        raise NotImplementedError
