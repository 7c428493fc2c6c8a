"""
Data models for the task assignment optimizer.

Core data structures representing tasks, worker specifications, candidate
assignments (individuals) and optimization results.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np

from .exceptions import (
    DimensionMismatchError,
    GeneIndexError,
    InvalidInputError,
    UnevaluatedFitnessError,
)


@dataclass(frozen=True)
class Task:
    """
    A compute task waiting to be assigned.

    Attributes:
        name: Human readable task name
        weight: Processing-weight tier ("light", "medium", "heavy" or the
            "ringan", "sedang", "berat" labels found in older task files)
        type: Optional task type forwarded to the worker
    """
    name: str
    weight: str
    type: Optional[str] = None

    @classmethod
    def from_value(cls, value: Union["Task", Mapping[str, Any], str], index: int = 0) -> "Task":
        """
        Coerce a task description into a Task.

        Args:
            value: Task, dict with at least a 'weight' key, or a bare weight label
            index: Position in the task list (used for default names)

        Returns:
            Task instance

        Raises:
            InvalidInputError: If the value has no weight information
        """
        if isinstance(value, Task):
            return value
        if isinstance(value, str):
            return cls(name=f"task_{index}", weight=value)
        if isinstance(value, Mapping):
            if "weight" not in value:
                raise InvalidInputError(f"Task at index {index} has no 'weight' field")
            return cls(
                name=str(value.get("name", f"task_{index}")),
                weight=str(value["weight"]),
                type=value.get("type"),
            )
        raise InvalidInputError(
            f"Task at index {index} must be a mapping or weight label, got {type(value).__name__}"
        )

    def to_dict(self) -> dict[str, Any]:
        data = {"name": self.name, "weight": self.weight}
        if self.type is not None:
            data["type"] = self.type
        return data


@dataclass(frozen=True)
class WorkerSpec:
    """
    Static description of one worker (VM) the broker can dispatch to.

    Attributes:
        id: Worker index
        url: Base URL of the worker's HTTP endpoint
        host: Physical host name
        cpu: Number of virtual CPUs
        mips: Relative processing rate
        ram: Memory capacity in MB
        bw: Bandwidth
        cost_per_mips: Monetary cost per unit of processing
    """
    id: int
    mips: float
    cost_per_mips: float
    url: str = ""
    host: str = ""
    cpu: int = 1
    ram: float = 512
    bw: float = 1000

    @classmethod
    def from_value(cls, value: Union["WorkerSpec", Mapping[str, Any]], index: int = 0) -> "WorkerSpec":
        """
        Coerce a worker description into a WorkerSpec.

        Accepts both snake_case keys and the camelCase 'costPerMips' key.

        Raises:
            InvalidInputError: If required fields are missing or invalid
        """
        if isinstance(value, WorkerSpec):
            spec = value
        elif isinstance(value, Mapping):
            if "mips" not in value:
                raise InvalidInputError(f"Worker spec at index {index} has no 'mips' field")
            cost = value.get("cost_per_mips", value.get("costPerMips"))
            if cost is None:
                raise InvalidInputError(f"Worker spec at index {index} has no cost per mips")
            try:
                spec = cls(
                    id=int(value.get("id", index)),
                    mips=float(value["mips"]),
                    cost_per_mips=float(cost),
                    url=str(value.get("url", "")),
                    host=str(value.get("host", "")),
                    cpu=int(value.get("cpu", 1)),
                    ram=float(value.get("ram", 512)),
                    bw=float(value.get("bw", 1000)),
                )
            except (TypeError, ValueError) as e:
                raise InvalidInputError(f"Worker spec at index {index} is malformed: {e}") from e
        else:
            raise InvalidInputError(
                f"Worker spec at index {index} must be a mapping, got {type(value).__name__}"
            )

        if spec.mips <= 0:
            raise InvalidInputError(f"Worker spec at index {index} must have positive mips, got {spec.mips}")
        return spec

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "host": self.host,
            "cpu": self.cpu,
            "mips": self.mips,
            "ram": self.ram,
            "bw": self.bw,
            "cost_per_mips": self.cost_per_mips,
        }


@dataclass
class Individual:
    """
    One candidate task-to-worker assignment (a chromosome).

    Gene i holds the worker index assigned to task i. Fitness is None until
    the individual is evaluated and is reset to None whenever a gene changes.

    Attributes:
        genes: Worker index per task
        fitness: Score under the active fitness convention (None = unevaluated)
        id: Identifier inside its population (-1 when detached)
        velocity: Optional per-gene velocity, kept only for compatibility with
            the {position, velocity, fitness} swarm population format
    """
    genes: list[int]
    fitness: Optional[float] = None
    id: int = -1
    velocity: Optional[list[float]] = None

    def __post_init__(self):
        """Store genes as a plain list of ints."""
        self.genes = [int(g) for g in self.genes]
        if self.velocity is not None:
            self.velocity = [float(v) for v in self.velocity]

    @classmethod
    def with_length(
        cls,
        length: int,
        worker_count: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        id: int = -1
    ) -> "Individual":
        """
        Create an individual of the given length.

        Args:
            length: Number of genes (tasks)
            worker_count: If given together with rng, genes are drawn
                uniformly from [0, worker_count); otherwise all genes are 0
            rng: Random number generator
            id: Identifier for the new individual

        Returns:
            New unevaluated Individual
        """
        if worker_count is not None and rng is not None:
            genes = rng.integers(0, worker_count, size=length).tolist()
        else:
            genes = [0] * length
        return cls(genes=genes, id=id)

    def __len__(self) -> int:
        return len(self.genes)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.genes):
            raise GeneIndexError(
                f"Gene index {index} out of range for chromosome of length {len(self.genes)}"
            )

    def get_gene(self, index: int) -> int:
        self._check_index(index)
        return self.genes[index]

    def set_gene(self, index: int, value: int) -> None:
        self._check_index(index)
        self.genes[index] = int(value)
        self.fitness = None

    def set_genes(self, genes: Sequence[int]) -> None:
        """
        Replace the whole gene sequence.

        Raises:
            DimensionMismatchError: If the new sequence has a different length
        """
        if len(genes) != len(self.genes):
            raise DimensionMismatchError(
                f"Expected {len(self.genes)} genes, got {len(genes)}"
            )
        self.genes = [int(g) for g in genes]
        self.fitness = None

    @property
    def is_evaluated(self) -> bool:
        return self.fitness is not None

    def require_fitness(self) -> float:
        """
        Return the fitness, failing if the individual has not been evaluated.

        Raises:
            UnevaluatedFitnessError: If fitness is None
        """
        if self.fitness is None:
            raise UnevaluatedFitnessError(
                f"Individual {self.id} has not been evaluated since its last change"
            )
        return self.fitness

    def clone(self) -> "Individual":
        """
        Create a deep copy of this individual.

        Returns:
            New Individual sharing no mutable state with this one
        """
        return Individual(
            genes=list(self.genes),
            fitness=self.fitness,
            id=self.id,
            velocity=list(self.velocity) if self.velocity is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the {position, velocity, fitness} population format."""
        return {
            "position": list(self.genes),
            "velocity": list(self.velocity) if self.velocity is not None else [0.0] * len(self.genes),
            "fitness": self.fitness,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], id: int = -1) -> "Individual":
        """
        Create an individual from the {position, velocity, fitness} format.

        The keys 'genes' and 'chromosome' are accepted in place of 'position'.
        """
        for key in ("position", "genes", "chromosome"):
            if key in data:
                genes = data[key]
                break
        else:
            raise InvalidInputError("Individual data has no 'position' field")
        return cls(
            genes=list(genes),
            fitness=data.get("fitness"),
            id=id,
            velocity=data.get("velocity"),
        )


@dataclass
class OptimizationResult:
    """
    Outcome of one driver run.

    Attributes:
        assignment: Worker index per task (the best individual's genes)
        best_fitness: Fitness of the returned assignment
        convention: Name of the fitness convention the score was computed under
        driver: Name of the driver that produced the result
        history: Best-known fitness after initialisation and after each iteration
        evaluations: Number of fitness evaluations performed
    """
    assignment: list[int]
    best_fitness: float
    convention: str
    driver: str
    history: list[float] = field(default_factory=list)
    evaluations: int = 0

    def tasks_per_worker(self, worker_count: int) -> list[int]:
        """Count how many tasks each worker received."""
        counts = [0] * worker_count
        for worker in self.assignment:
            counts[worker] += 1
        return counts
