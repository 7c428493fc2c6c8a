"""
Driver registry.

Maps driver names to their implementations so callers (CLI, broker
sessions) can pick an optimizer by name.
"""

from typing import Any, Dict, List, Optional, Type

import numpy as np

from .bee_colony import BeeColonyOptimizer
from .choa import ChimpOptimizer
from .driver_interface import OptimizerDriver
from .exceptions import InvalidInputError
from .ga import GeneticAlgorithm

DRIVERS: Dict[str, Type[OptimizerDriver]] = {
    GeneticAlgorithm.name: GeneticAlgorithm,
    ChimpOptimizer.name: ChimpOptimizer,
    BeeColonyOptimizer.name: BeeColonyOptimizer,
}


def create_driver(
    name: str,
    config: Optional[Any] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None
) -> OptimizerDriver:
    """
    Instantiate a driver by name.

    Args:
        name: One of DRIVERS ("ga", "choa", "abc")
        config: Driver config instance or mapping of overrides
        seed: Seed for the driver's random generator
        rng: Explicit generator (takes precedence over seed)

    Raises:
        InvalidInputError: If the name is unknown
        ConfigValidationError: If the config is invalid
    """
    try:
        driver_class = DRIVERS[name]
    except KeyError:
        raise InvalidInputError(
            f"Unknown driver: '{name}'. Must be one of: {', '.join(sorted(DRIVERS))}"
        )
    return driver_class(config, seed=seed, rng=rng)


def run_driver(
    name: str,
    task_count: int,
    worker_count: int,
    tasks,
    worker_specs=None,
    config: Optional[Any] = None,
    seed: Optional[int] = None
) -> List[int]:
    """Create a driver and return its assignment vector in one call."""
    return create_driver(name, config, seed=seed).run(task_count, worker_count, tasks, worker_specs)
