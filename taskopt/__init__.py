"""
Task assignment optimizer

This package computes a task-to-worker assignment for a fixed batch of
compute tasks over heterogeneous workers, optimizing makespan, monetary
cost and load imbalance with population-based metaheuristics.

Key Features:
- Explicit fitness conventions (cost, inverse, load_balance), never mixed
- Opposition-based population initialisation
- Three interchangeable drivers sharing one call contract
- Session-scoped broker for sequential dispatch and summary statistics

Modules:
- data_models: Core data structures (Task, WorkerSpec, Individual, OptimizationResult)
- fitness: Fitness evaluator and comparators
- population: Population manager and opposition-based learning
- selection, crossover, mutation: Genetic operators
- ga: Generational genetic algorithm driver
- choa: Four-leader chimp swarm driver
- bee_colony: Artificial bee colony driver
- driver_interface, drivers: Shared call contract and driver registry
- broker: Broker session, HTTP transport and session statistics
- io_utils: Task/worker loading, assignment CSV, convergence logging
- cli, orchestration: YAML-driven run modes
"""

__version__ = "0.1.0"
__author__ = "Task Scheduling Team"

from .data_models import Task, WorkerSpec, Individual, OptimizationResult
from .fitness import FitnessConvention, CostModel, FitnessEvaluator
from .drivers import DRIVERS, create_driver, run_driver
from .ga import GeneticAlgorithm, GAConfig
from .choa import ChimpOptimizer, ChOAConfig
from .bee_colony import BeeColonyOptimizer, ABCConfig

__all__ = [
    "Task",
    "WorkerSpec",
    "Individual",
    "OptimizationResult",
    "FitnessConvention",
    "CostModel",
    "FitnessEvaluator",
    "DRIVERS",
    "create_driver",
    "run_driver",
    "GeneticAlgorithm",
    "GAConfig",
    "ChimpOptimizer",
    "ChOAConfig",
    "BeeColonyOptimizer",
    "ABCConfig",
]
