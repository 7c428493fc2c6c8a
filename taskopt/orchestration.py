"""
Orchestration module for the task assignment optimizer.

Implements the optimize and dispatch run workflows.
"""

from typing import Any, Dict, List, Optional, Tuple
from pathlib import Path
import numpy as np

from .broker import BrokerSession, print_session_report, SessionSummary
from .data_models import OptimizationResult, Task, WorkerSpec
from .drivers import create_driver
from .io_utils import (
    load_tasks,
    load_worker_specs,
    save_assignment_csv,
    save_convergence_log
)


def _resolve_seed(run_config: Dict) -> int:
    seed = run_config.get('random_seed')
    if seed is None:
        seed = int(np.random.randint(0, 2**31))
    print(f"Random seed: {seed}")
    return seed


def _load_inputs(run_config: Dict) -> Tuple[List[Task], Optional[List[WorkerSpec]]]:
    input_config = run_config['input']

    print(f"Loading tasks from: {input_config['tasks']}")
    tasks = load_tasks(input_config['tasks'])
    print(f"Loaded {len(tasks)} tasks")

    workers = None
    if 'workers' in input_config:
        print(f"Loading worker specs from: {input_config['workers']}")
        workers = load_worker_specs(input_config['workers'])
        print(f"Loaded {len(workers)} workers")
        for spec in workers:
            print(f"  Worker {spec.id}: host={spec.host}, cpu={spec.cpu}, "
                  f"ram={spec.ram:g}MB, mips={spec.mips:g}, cost/mips={spec.cost_per_mips:g}")

    return tasks, workers


def _prepare_output(run_config: Dict) -> Tuple[Path, bool]:
    output_root = Path(run_config['output']['root'])
    overwrite = run_config['output'].get('overwrite', False)

    if output_root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    output_root.mkdir(parents=True, exist_ok=overwrite)
    print(f"Output directory: {output_root}\n")
    return output_root, overwrite


def run_optimize_mode(run_config: Dict[str, Any]) -> OptimizationResult:
    """
    Compute an assignment with the configured driver and save it.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Setup RNG seed (run_config['random_seed'] or a fresh one)
        2. Load tasks and optional worker specs
        3. Create output directory: run_config['output']['root']
        4. Run the driver once
        5. Save assignment.csv and convergence_log.csv
        6. Optionally save convergence and distribution plots
        7. Print summary report

    Returns:
        OptimizationResult of the run
    """
    print("=" * 70)
    print("OPTIMIZE MODE")
    print("=" * 70)

    seed = _resolve_seed(run_config)
    tasks, workers = _load_inputs(run_config)
    worker_count = len(workers) if workers is not None else run_config['input'].get('worker_count')
    if worker_count is None:
        raise ValueError("Specify 'input.workers' or 'input.worker_count'")

    output_root, overwrite = _prepare_output(run_config)

    driver_name = run_config['driver']
    driver = create_driver(driver_name, run_config.get('driver_config') or {}, seed=seed)
    print(f"Running {driver_name} with {driver.config}")
    result = driver.optimize(len(tasks), worker_count, tasks, workers)

    assignment_path = save_assignment_csv(
        result.assignment, tasks, workers, output_root / 'assignment.csv', overwrite=overwrite
    )
    log_path = save_convergence_log(result, output_root / 'convergence_log.csv', seed=seed)

    if run_config['output'].get('plots', False):
        from .visualization_utils import plot_convergence, plot_worker_distribution
        plot_path = plot_convergence(result, output_root / 'convergence.png')
        print(f"  Saved plot: {plot_path}")
        plot_path = plot_worker_distribution(
            result.assignment, tasks, worker_count, output_root / 'distribution.png'
        )
        print(f"  Saved plot: {plot_path}")

    # Print summary
    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Driver: {result.driver}")
    print(f"Fitness ({result.convention}): {result.best_fitness:.6f}")
    print(f"Evaluations: {result.evaluations}")
    print(f"Tasks per worker: {result.tasks_per_worker(worker_count)}")
    print(f"Assignment: {result.assignment}")
    print(f"Assignment file: {assignment_path}")
    print(f"Convergence log: {log_path}")

    return result


def run_dispatch_mode(run_config: Dict[str, Any]) -> SessionSummary:
    """
    Plan an assignment and dispatch every task to its worker over HTTP.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Setup RNG seed
        2. Load tasks and worker specs
        3. Open a BrokerSession (HTTP transport, closed on exit)
        4. Dispatch all tasks sequentially, logging failures
        5. Save the assignment and print the session report

    Returns:
        SessionSummary of the session
    """
    print("=" * 70)
    print("DISPATCH MODE")
    print("=" * 70)

    seed = _resolve_seed(run_config)
    tasks, workers = _load_inputs(run_config)
    output_root, overwrite = _prepare_output(run_config)

    with BrokerSession(
        tasks,
        workers,
        driver=run_config['driver'],
        driver_config=run_config.get('driver_config') or {},
        seed=seed,
    ) as session:
        assignment = session.plan()
        print(f"Assignment: {assignment}\n")
        save_assignment_csv(assignment, tasks, workers, output_root / 'assignment.csv', overwrite=overwrite)

        print(f"Dispatching {session.total_tasks} tasks...")
        session.dispatch_all()
        if session.failures:
            print(f"  Failed tasks: {session.failures}")

        summary = session.summary()

    print()
    print_session_report(summary, run_config['driver'])
    return summary
