"""
Broker session: runs an optimizer once and dispatches tasks sequentially.

A BrokerSession owns everything one scheduling session needs (cached
assignment, dispatch cursor, timing records, per-worker accumulators) and
can be reset to start over. Dispatch is strictly sequential: one blocking
transport call per task, no retries, no timeout. A failed call surfaces as
a DispatchError for that task and the session moves on to the next one.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx

from .data_models import Task, WorkerSpec
from .driver_interface import check_assignment, validate_driver_inputs
from .drivers import create_driver
from .exceptions import DispatchError, InvalidInputError, SessionExhaustedError

logger = logging.getLogger(__name__)

Transport = Callable[[WorkerSpec, Task], Mapping[str, Any]]

# Energy model: idle draw per second plus workload scaled by memory size
ENERGY_BASE_PER_SECOND = 0.1
ENERGY_WORKLOAD_FACTOR = 0.2
ENERGY_REFERENCE_RAM = 512


class HttpTransport:
    """
    Posts one task to a worker's execute endpoint and waits for the reply.

    Args:
        client: Optional preconfigured httpx.Client
        endpoint: Path appended to the worker URL
    """

    def __init__(self, client: Optional[httpx.Client] = None, endpoint: str = "/api/execute"):
        self.client = client if client is not None else httpx.Client(timeout=None)
        self.endpoint = endpoint

    def __call__(self, worker: WorkerSpec, task: Task) -> Mapping[str, Any]:
        payload = {
            "task": task.weight,
            "type": task.type,
            "workerSpec": {
                "host": worker.host,
                "cpu": worker.cpu,
                "mips": worker.mips,
                "ram": worker.ram,
                "bw": worker.bw,
            },
        }
        response = self.client.post(f"{worker.url}{self.endpoint}", json=payload)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self.client.close()


@dataclass
class DispatchRecord:
    """
    Outcome of one dispatched task.

    Times are in milliseconds as reported by the worker.
    """
    task_index: int
    task_name: str
    weight: str
    worker_index: int
    worker_url: str
    start_time: float
    finish_time: float
    execution_time: float
    cost: float
    response: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class SessionSummary:
    """
    Aggregate statistics for a broker session.

    Attributes:
        total_tasks: Tasks in the session
        completed_tasks: Tasks that were dispatched successfully
        makespan_seconds: Wall-clock time from first dispatch to last completion
        throughput: Completed tasks per second
        avg_start_time: Mean worker-reported start time (ms)
        avg_finish_time: Mean worker-reported finish time (ms)
        avg_execution_time: Mean worker-reported execution time (ms)
        imbalance_degree: (Tmax - Tmin) / Tavg over per-worker execution totals
        total_cost: Sum of per-task costs
        avg_waiting_time: Mean of (start time - session start) (ms)
        resource_utilization: Mean over hosts of reported average CPU usage
        energy_estimate: Simple memory-weighted energy estimate
    """
    total_tasks: int
    completed_tasks: int
    makespan_seconds: float
    throughput: float
    avg_start_time: float
    avg_finish_time: float
    avg_execution_time: float
    imbalance_degree: float
    total_cost: float
    avg_waiting_time: float
    resource_utilization: float
    energy_estimate: float


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _safe_len(values: Any) -> int:
    # Shape errors are reported by validate_driver_inputs
    try:
        return len(values)
    except TypeError:
        return 0


class BrokerSession:
    """
    One scheduling session.

    Args:
        tasks: Ordered task list
        workers: Worker specifications, indexed by assignment entries
        driver: Optimizer name ("ga", "choa", "abc")
        driver_config: Driver config overrides
        transport: Callable(worker, task) -> response mapping; defaults to HttpTransport
        seed: Seed for the optimizer's random generator
        clock: Returns the current time in seconds
    """

    def __init__(
        self,
        tasks: Sequence[Any],
        workers: Sequence[Any],
        driver: str = "choa",
        driver_config: Optional[Any] = None,
        transport: Optional[Transport] = None,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.time
    ):
        if workers is None:
            raise InvalidInputError("'workers' is required for dispatch")
        task_models, worker_models = validate_driver_inputs(
            _safe_len(tasks), _safe_len(workers), tasks, workers
        )
        self.tasks: List[Task] = task_models
        self.workers: List[WorkerSpec] = worker_models
        self.driver = driver
        self.driver_config = driver_config
        self._owns_transport = transport is None
        self.transport = transport if transport is not None else HttpTransport()
        self.seed = seed
        self.clock = clock
        self.reset()

    def close(self) -> None:
        """Close the HTTP transport if this session created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "BrokerSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def reset(self) -> None:
        """Forget the cached assignment and all dispatch records."""
        self.assignment: Optional[List[int]] = None
        self.current_index = 0
        self.records: List[DispatchRecord] = []
        self.failures: List[int] = []
        self.execution_by_worker: Dict[int, float] = {}
        self.cpu_reports: List[Dict[str, Any]] = []
        self.session_start: Optional[float] = None
        self.session_end: Optional[float] = None

    @property
    def total_tasks(self) -> int:
        return len(self.tasks)

    @property
    def completed_tasks(self) -> int:
        return len(self.records)

    @property
    def is_finished(self) -> bool:
        return self.current_index >= self.total_tasks

    def plan(self) -> List[int]:
        """
        Run the optimizer once per session and cache its assignment.

        Subsequent calls return the cached vector until reset().
        """
        if self.assignment is None:
            driver = create_driver(self.driver, self.driver_config, seed=self.seed)
            logger.info("Running %s for %d tasks on %d workers",
                        self.driver, self.total_tasks, len(self.workers))
            assignment = driver.run(self.total_tasks, len(self.workers), self.tasks, self.workers)
            check_assignment(assignment, self.total_tasks, len(self.workers))
            self.assignment = assignment
        return self.assignment

    def dispatch_next(self) -> DispatchRecord:
        """
        Send the next task to its assigned worker and record the result.

        Raises:
            SessionExhaustedError: If every task has already been dispatched
            DispatchError: If the transport call failed or the reply could not be
                read (the task is not retried)
        """
        assignment = self.plan()
        if self.is_finished:
            raise SessionExhaustedError(f"All {self.total_tasks} tasks have been dispatched")

        index = self.current_index
        task = self.tasks[index]
        worker_index = assignment[index]
        worker = self.workers[worker_index]
        self.current_index += 1

        if self.session_start is None:
            self.session_start = self.clock()

        try:
            response = self.transport(worker, task)
            if not isinstance(response, Mapping):
                raise TypeError(f"expected a JSON object, got {type(response).__name__}")
            result = response.get("result") or {}
            if not isinstance(result, Mapping):
                raise TypeError(f"'result' must be an object, got {type(result).__name__}")
            start_time = float(result.get("start_time") or 0)
            finish_time = float(result.get("finish_time") or 0)
            execution_time = float(result.get("execution_time") or 0)
        except Exception as e:
            self.failures.append(index)
            raise DispatchError(
                f"Failed to send task {index} ({task.name}) to worker {worker_index} ({worker.url}): {e}"
            ) from e

        cost = execution_time / 1000 * worker.cost_per_mips

        record = DispatchRecord(
            task_index=index,
            task_name=task.name,
            weight=task.weight,
            worker_index=worker_index,
            worker_url=worker.url,
            start_time=start_time,
            finish_time=finish_time,
            execution_time=execution_time,
            cost=cost,
            response=response,
        )
        self.records.append(record)
        self.execution_by_worker[worker_index] = self.execution_by_worker.get(worker_index, 0.0) + execution_time

        logger.info("Task %d/%d completed on worker %d", self.completed_tasks, self.total_tasks, worker_index)
        if self.completed_tasks == self.total_tasks:
            self.session_end = self.clock()
        return record

    def dispatch_all(self, stop_on_error: bool = False) -> List[DispatchRecord]:
        """
        Dispatch every remaining task in order.

        Failed tasks are logged and skipped unless stop_on_error is set.
        """
        records = []
        while not self.is_finished:
            try:
                records.append(self.dispatch_next())
            except DispatchError as e:
                if stop_on_error:
                    raise
                logger.warning("%s", e)
        if self.session_end is None:
            self.session_end = self.clock()
        return records

    def report_cpu_usage(self, host: str, avg_cpu: float) -> None:
        self.cpu_reports.append({"time": self.clock(), "host": host, "avg_cpu": float(avg_cpu)})

    def summary(self) -> SessionSummary:
        """Compute aggregate statistics over the records collected so far."""
        records = self.records
        completed = len(records)

        if self.session_start is not None:
            end = self.session_end if self.session_end is not None else self.clock()
            makespan = max(end - self.session_start, 0.0)
        else:
            makespan = 0.0
        throughput = completed / makespan if makespan > 0 else 0.0

        totals = list(self.execution_by_worker.values())
        t_avg = _mean(totals)
        imbalance = (max(totals) - min(totals)) / t_avg if totals and t_avg > 0 else 0.0

        session_start_ms = (self.session_start or 0.0) * 1000
        waiting = [r.start_time - session_start_ms for r in records]

        by_host: Dict[str, List[float]] = {}
        for report in self.cpu_reports:
            by_host.setdefault(report["host"], []).append(report["avg_cpu"])
        utilization = _mean([_mean(values) for values in by_host.values()])

        energy = 0.0
        for index, worker in enumerate(self.workers):
            workload = self.execution_by_worker.get(index, 0.0)
            energy += (ENERGY_BASE_PER_SECOND * makespan
                       + workload / 1000 * (worker.ram / ENERGY_REFERENCE_RAM) * ENERGY_WORKLOAD_FACTOR)

        return SessionSummary(
            total_tasks=self.total_tasks,
            completed_tasks=completed,
            makespan_seconds=makespan,
            throughput=throughput,
            avg_start_time=_mean([r.start_time for r in records]),
            avg_finish_time=_mean([r.finish_time for r in records]),
            avg_execution_time=_mean([r.execution_time for r in records]),
            imbalance_degree=imbalance,
            total_cost=sum(r.cost for r in records),
            avg_waiting_time=_mean(waiting),
            resource_utilization=utilization,
            energy_estimate=energy,
        )


def print_session_report(summary: SessionSummary, driver: str = "") -> None:
    """Print a session summary in the CLI report style."""
    title = f"RESULTS FOR {driver.upper()}" if driver else "RESULTS"
    print("=" * 70)
    print(title)
    print("=" * 70)
    print(f"Tasks completed: {summary.completed_tasks}/{summary.total_tasks}")
    print(f"Makespan: {summary.makespan_seconds:.2f} s")
    print(f"Throughput: {summary.throughput:.2f} tasks/s")
    print(f"Average start time: {summary.avg_start_time:.2f} ms")
    print(f"Average finish time: {summary.avg_finish_time:.2f} ms")
    print(f"Average execution time: {summary.avg_execution_time:.2f} ms")
    print(f"Average waiting time: {summary.avg_waiting_time:.2f} ms")
    print(f"Imbalance degree: {summary.imbalance_degree:.3f}")
    print(f"Total cost: ${summary.total_cost:.2f}")
    print(f"Resource utilization: {summary.resource_utilization:.4f}%")
    print(f"Estimated energy consumption: {summary.energy_estimate:.2f} kWh")
