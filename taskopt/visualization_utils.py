"""
Visualization utilities for optimizer runs.

Convergence curves and per-worker task distributions, saved as PNG files.
"""

from pathlib import Path
from typing import Sequence, Tuple, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .data_models import OptimizationResult, Task
from .fitness import task_demand


def plot_convergence(
    result: OptimizationResult,
    output_path: Union[str, Path],
    figsize: Tuple[int, int] = (8, 5)
) -> Path:
    """
    Plot best-known fitness against iteration.

    Args:
        result: Driver result carrying the fitness history
        output_path: Path to save PNG file
        figsize: Figure size (width, height) in inches

    Returns:
        Path to the saved plot
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(range(len(result.history)), result.history, marker='o', linewidth=2)
    ax.set_xlabel('Iteration')
    ax.set_ylabel(f'Best fitness ({result.convention})')
    ax.set_title(f'{result.driver.upper()} convergence')
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def plot_worker_distribution(
    assignment: Sequence[int],
    tasks: Sequence[Task],
    worker_count: int,
    output_path: Union[str, Path],
    figsize: Tuple[int, int] = (10, 5)
) -> Path:
    """
    Bar charts of task count and summed processing demand per worker.

    Args:
        assignment: Worker index per task
        tasks: Task list matching the assignment
        worker_count: Number of workers
        output_path: Path to save PNG file
        figsize: Figure size (width, height) in inches

    Returns:
        Path to the saved plot
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    counts = [0] * worker_count
    demand = [0] * worker_count
    for task, worker in zip(tasks, assignment):
        counts[worker] += 1
        demand[worker] += task_demand(task)

    workers = list(range(worker_count))
    fig, (ax_count, ax_demand) = plt.subplots(1, 2, figsize=figsize)

    ax_count.bar(workers, counts, color='steelblue')
    ax_count.set_xlabel('Worker')
    ax_count.set_ylabel('Tasks')
    ax_count.set_title('Tasks per worker')
    ax_count.set_xticks(workers)

    ax_demand.bar(workers, demand, color='darkorange')
    ax_demand.set_xlabel('Worker')
    ax_demand.set_ylabel('Processing demand')
    ax_demand.set_title('Demand per worker')
    ax_demand.set_xticks(workers)

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
