"""
I/O utilities for the task assignment optimizer.

Handles task and worker specification loading (JSON or YAML), assignment
CSV serialization and convergence logging.
"""

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import yaml

from .data_models import OptimizationResult, Task, WorkerSpec
from .exceptions import InvalidInputError


def _load_structured(path: Union[str, Path]) -> Any:
    """Load a JSON or YAML document, chosen by file extension."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r') as f:
        if path.suffix.lower() == '.json':
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"Invalid JSON in {path}: {e}")
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidInputError(f"Invalid YAML in {path}: {e}")


def load_tasks(path: Union[str, Path]) -> List[Task]:
    """
    Load a task list.

    File format (JSON shown, YAML equivalent accepted):
        [
          {"name": "task_1", "type": "cpu", "weight": "berat"},
          {"name": "task_2", "type": "cpu", "weight": "ringan"},
          ...
        ]

    A top-level mapping with a 'tasks' key is also accepted.

    Args:
        path: Path to the task file

    Returns:
        List of Task objects in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInputError: If the content is not a list of tasks
    """
    data = _load_structured(path)
    if isinstance(data, dict):
        data = data.get('tasks')
    if not isinstance(data, list):
        raise InvalidInputError(f"Expected a list of tasks in {path}")
    return [Task.from_value(item, i) for i, item in enumerate(data)]


def load_worker_specs(path: Union[str, Path]) -> List[WorkerSpec]:
    """
    Load worker specifications.

    File format (YAML shown, JSON equivalent accepted):
        workers:
          - {id: 0, url: "http://192.168.56.11:31001", host: host2,
             cpu: 1, mips: 400, ram: 512, bw: 1000, cost_per_mips: 0.4}
          ...

    A bare top-level list is also accepted.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInputError: If the content is not a list of worker specs
    """
    data = _load_structured(path)
    if isinstance(data, dict):
        data = data.get('workers')
    if not isinstance(data, list):
        raise InvalidInputError(f"Expected a list of worker specs in {path}")
    return [WorkerSpec.from_value(item, i) for i, item in enumerate(data)]


def save_assignment_csv(
    assignment: Sequence[int],
    tasks: Sequence[Task],
    workers: Optional[Sequence[WorkerSpec]],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save an assignment vector to CSV.

    CSV format:
        task_index,task_name,weight,worker_index,worker_url
        0,task_1,berat,3,http://192.168.56.12:31002
        ...

    Args:
        assignment: Worker index per task
        tasks: Task list matching the assignment
        workers: Optional worker specs for the URL column
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['task_index', 'task_name', 'weight', 'worker_index', 'worker_url'])
        for i, (task, worker) in enumerate(zip(tasks, assignment)):
            url = workers[worker].url if workers else ''
            writer.writerow([i, task.name, task.weight, worker, url])

    return output_path


def load_assignment_csv(csv_path: Union[str, Path]) -> List[int]:
    """
    Load the worker column of an assignment CSV written by save_assignment_csv.

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If CSV format is invalid
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_path, 'r') as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or not all(col in reader.fieldnames for col in ['task_index', 'worker_index']):
            raise ValueError(f"Invalid CSV format in {csv_path}. Expected columns: task_index,worker_index")
        rows = sorted(reader, key=lambda row: int(row['task_index']))

    return [int(row['worker_index']) for row in rows]


def save_convergence_log(
    result: OptimizationResult,
    output_path: Union[str, Path],
    seed: Optional[int] = None
) -> Path:
    """
    Write a driver's best-fitness history to CSV.

    CSV format:
        iteration,best_fitness,driver,convention,seed,timestamp
        0,412.5,choa,cost,42,2024-01-01T12:00:00
        ...

    Iteration 0 is the evaluated initial population.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().isoformat()

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['iteration', 'best_fitness', 'driver', 'convention', 'seed', 'timestamp'])
        for iteration, fitness in enumerate(result.history):
            writer.writerow([
                iteration,
                fitness,
                result.driver,
                result.convention,
                '' if seed is None else seed,
                timestamp,
            ])

    return output_path
