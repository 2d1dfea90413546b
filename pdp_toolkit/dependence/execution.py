# pdp_toolkit/dependence/execution.py
"""Scheduling of grid point evaluations.

Grid points are independent, so they can run one after another or on a
worker pool. Every strategy returns results in input order, whatever the
completion order, and aborts on the first failure without returning
partial results.

Tasks are expected to report their own failures as ``PDPError``
subclasses (the evaluator does). Any other exception surfacing from a
worker pool is an infrastructure problem (dead worker, unpicklable task,
pool that cannot start) and is raised as ``ResourceError``.
"""

import os
from abc import ABC, abstractmethod
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from joblib import Parallel, delayed

from ..config.dependence_config import ExecutionConfig, VALID_BACKENDS
from ..utils.logger import get_logger
from ..utils.exceptions import (
    ConfigurationError,
    PDPError,
    ResourceError,
    handle_and_reraise,
    validate_parameter,
    create_error_context
)

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]
Task = Tuple[Any, ...]


class ProgressReporter:
    """Progress callback that logs percentage complete.

    Logs at INFO whenever another ``step`` percent of the grid is done,
    and always at completion.

    Example:
        >>> compute_dependence(model, X, ["age"], execution=ExecutionConfig(progress=ProgressReporter()))
    """

    def __init__(self, task: str = "dependence", step: int = 10, enabled: bool = True) -> None:
        self.task = task
        self.step = step
        self.enabled = enabled
        self._last_logged = -1

    def __call__(self, completed: int, total: int) -> None:
        if not self.enabled or total <= 0:
            return

        percent = int(100 * completed / total)
        bucket = percent // self.step
        if completed <= 1:
            # a new run
            self._last_logged = -1
        if completed == total or bucket > self._last_logged:
            self._last_logged = bucket
            logger.info(f"[Progress] {self.task}: {completed}/{total} grid points ({percent}%)")


class ExecutionStrategy(ABC):
    """Runs ``func(*task)`` for every task and returns the results in order."""

    @abstractmethod
    def run(
        self,
        func: Callable[..., Any],
        tasks: Sequence[Task],
        progress: Optional[ProgressCallback] = None
    ) -> List[Any]:
        """Evaluate all tasks.

        Args:
            func: Callable applied to each task's positional arguments
            tasks: Argument tuples, one per grid point
            progress: Optional ``progress(completed, total)`` callback,
                called once per finished task from the calling thread

        Returns:
            Results in the order of ``tasks``
        """
        pass


class SequentialStrategy(ExecutionStrategy):
    """Single loop in the calling thread."""

    def run(
        self,
        func: Callable[..., Any],
        tasks: Sequence[Task],
        progress: Optional[ProgressCallback] = None
    ) -> List[Any]:
        total = len(tasks)
        results = []
        for completed, task in enumerate(tasks, start=1):
            results.append(func(*task))
            if progress is not None:
                progress(completed, total)
        return results

    def __repr__(self) -> str:
        return "SequentialStrategy()"


class ParallelStrategy(ExecutionStrategy):
    """Worker pool execution.

    Backends:
        processes: ``concurrent.futures.ProcessPoolExecutor``; model, data
            and prediction function must be picklable
        threads: ``concurrent.futures.ThreadPoolExecutor``; useful when the
            model releases the GIL or for unpicklable prediction functions
        loky: ``joblib.Parallel`` with the loky backend (cloudpickle, so
            lambdas and closures work)

    Args:
        n_workers: Pool size; defaults to the number of CPUs
        backend: One of 'processes', 'threads' or 'loky'
    """

    def __init__(self, n_workers: Optional[int] = None, backend: str = "processes") -> None:
        validate_parameter("n_workers", n_workers, min_value=1)
        validate_parameter("backend", backend, valid_values=list(VALID_BACKENDS))
        self.n_workers = n_workers
        self.backend = backend

    def _resolve_workers(self, n_tasks: int) -> int:
        cpu = os.cpu_count() or 1
        workers = self.n_workers if self.n_workers is not None else cpu
        return max(1, min(workers, n_tasks))

    def run(
        self,
        func: Callable[..., Any],
        tasks: Sequence[Task],
        progress: Optional[ProgressCallback] = None
    ) -> List[Any]:
        tasks = list(tasks)
        if not tasks:
            return []

        workers = self._resolve_workers(len(tasks))
        logger.debug(f"Running {len(tasks)} tasks on {workers} {self.backend} workers")

        if self.backend == "loky":
            return self._run_joblib(func, tasks, workers, progress)
        return self._run_futures(func, tasks, workers, progress)

    def _create_pool(self, workers: int):
        pool_class = ProcessPoolExecutor if self.backend == "processes" else ThreadPoolExecutor
        try:
            return pool_class(max_workers=workers)
        except (OSError, ValueError, NotImplementedError, ImportError) as e:
            handle_and_reraise(
                e, ResourceError,
                f"Cannot create a {self.backend} pool with {workers} workers",
                error_code="POOL_CREATION_FAILED",
                context=create_error_context(backend=self.backend, n_workers=workers)
            )

    def _run_futures(
        self,
        func: Callable[..., Any],
        tasks: List[Task],
        workers: int,
        progress: Optional[ProgressCallback]
    ) -> List[Any]:
        total = len(tasks)
        results: List[Any] = [None] * total
        pool = self._create_pool(workers)

        try:
            futures = {pool.submit(func, *task): position for position, task in enumerate(tasks)}
            for completed, future in enumerate(as_completed(futures), start=1):
                results[futures[future]] = future.result()
                if progress is not None:
                    progress(completed, total)
        except Exception as e:
            # fail fast: queued tasks are dropped, running ones are awaited
            pool.shutdown(wait=True, cancel_futures=True)
            self._reraise(e)
        else:
            pool.shutdown(wait=True)

        return results

    def _run_joblib(
        self,
        func: Callable[..., Any],
        tasks: List[Task],
        workers: int,
        progress: Optional[ProgressCallback]
    ) -> List[Any]:
        total = len(tasks)
        results = []

        try:
            outputs = Parallel(n_jobs=workers, backend="loky", return_as="generator")(
                delayed(func)(*task) for task in tasks
            )
            for completed, output in enumerate(outputs, start=1):
                results.append(output)
                if progress is not None:
                    progress(completed, total)
        except Exception as e:
            self._reraise(e)

        return results

    def _reraise(self, exception: Exception) -> None:
        handle_and_reraise(
            exception, ResourceError,
            f"Parallel execution failed on the {self.backend} backend",
            error_code="PARALLEL_EXECUTION_FAILED",
            context=create_error_context(backend=self.backend, n_workers=self.n_workers)
        )

    def __repr__(self) -> str:
        return f"ParallelStrategy(n_workers={self.n_workers}, backend={self.backend!r})"


ExecutionLike = Union[ExecutionConfig, ExecutionStrategy, Mapping[str, Any], None]


def resolve_strategy(execution: ExecutionLike) -> ExecutionStrategy:
    """Turn an ``ExecutionConfig`` (or mapping, or nothing) into a strategy."""
    if execution is None:
        return SequentialStrategy()
    if isinstance(execution, ExecutionStrategy):
        return execution
    if isinstance(execution, Mapping):
        execution = ExecutionConfig.from_dict(execution)
    if not isinstance(execution, ExecutionConfig):
        raise ConfigurationError(
            f"Unsupported execution setting: {execution!r}",
            error_code="EXECUTION_INVALID",
            context={"type": type(execution).__name__}
        )

    if execution.mode == "sequential":
        return SequentialStrategy()
    return ParallelStrategy(n_workers=execution.n_workers, backend=execution.backend)


def resolve_progress(execution: ExecutionLike) -> Optional[ProgressCallback]:
    """Progress callback configured by ``execution``, if any."""
    if isinstance(execution, Mapping):
        execution = ExecutionConfig.from_dict(execution)
    if not isinstance(execution, ExecutionConfig):
        return None
    if execution.progress is True:
        return ProgressReporter()
    if callable(execution.progress):
        return execution.progress
    return None
