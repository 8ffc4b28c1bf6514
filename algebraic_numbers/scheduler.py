"""Fan polynomial work out to a process pool and gather the roots back."""

from __future__ import annotations

import multiprocessing
import os
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .polynomials import PolynomialEnumerator, WorkItem
from .roots import DEFAULT_SETTINGS, RootFinderSettings, find_roots

WORK_QUEUE_CAPACITY = 1000
RESULT_QUEUE_CAPACITY = 1000
_PUT_POLL_SECONDS = 0.1

ProgressCallback = Callable[[int, int], None]


class SchedulerError(RuntimeError):
    """Raised when a worker process exits abnormally."""


@dataclass(frozen=True)
class RootPoint:
    """A root together with the polynomial metadata used for rendering."""

    value: complex
    height: int
    degree: int
    leading_magnitude: int


@dataclass(frozen=True)
class GenerationStats:
    polynomials: int
    roots: int
    workers: int


@dataclass(frozen=True)
class GenerationResult:
    """Every root point of one generation pass plus summary counters."""

    points: list[RootPoint]
    stats: GenerationStats


def solve_work_item(
    item: WorkItem,
    rng: np.random.Generator,
    settings: RootFinderSettings = DEFAULT_SETTINGS,
) -> list[RootPoint]:
    """Find the roots of ``item`` and tag each with its metadata."""

    roots = find_roots(item.coefficients, item.degree, rng, settings)
    return [
        RootPoint(
            value=root,
            height=item.height,
            degree=item.degree,
            leading_magnitude=item.leading_magnitude,
        )
        for root in roots
    ]


def _worker_main(work_queue, result_queue, seed_sequence: np.random.SeedSequence, settings: RootFinderSettings) -> None:
    rng = np.random.default_rng(seed_sequence)
    while True:
        item = work_queue.get()
        if item is None:
            return
        result_queue.put(solve_work_item(item, rng, settings))


def _produce(
    enumerator: PolynomialEnumerator,
    work_queue,
    workers: int,
    stop: threading.Event,
    progress: Optional[ProgressCallback],
) -> None:
    def put(item: Optional[WorkItem]) -> bool:
        while True:
            try:
                work_queue.put(item, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                if stop.is_set():
                    return False

    current_height = None
    try:
        for item in enumerator:
            if progress is not None and item.height != current_height:
                current_height = item.height
                progress(current_height, enumerator.max_height)
            if not put(item):
                return
    finally:
        # One stop sentinel per worker, even if enumeration failed.
        for _ in range(workers):
            if not put(None):
                break


def _coordinate(processes: list, result_queue, stop: threading.Event) -> None:
    for process in processes:
        process.join()
    stop.set()
    result_queue.put(None)


def default_worker_count() -> int:
    """Number of CPUs this process may run on."""

    if hasattr(os, "sched_getaffinity"):
        return max(1, len(os.sched_getaffinity(0)))
    return os.cpu_count() or 1


def run_generation(
    max_height: int,
    *,
    workers: Optional[int] = None,
    seed: Optional[int] = None,
    settings: RootFinderSettings = DEFAULT_SETTINGS,
    progress: Optional[ProgressCallback] = None,
    context=None,
) -> GenerationResult:
    """Compute all root points for heights ``2..max_height`` on a worker pool.

    A producer thread feeds the bounded work queue, ``workers`` processes each
    solve items with their own random generator, and a coordinator thread
    closes the result stream once every worker has exited. Arrival order is
    arbitrary.
    """

    enumerator = PolynomialEnumerator(max_height)
    workers = default_worker_count() if workers is None else max(1, int(workers))
    ctx = context if context is not None else multiprocessing.get_context()

    work_queue = ctx.Queue(WORK_QUEUE_CAPACITY)
    result_queue = ctx.Queue(RESULT_QUEUE_CAPACITY)
    seeds = np.random.SeedSequence(seed).spawn(workers)

    processes = [
        ctx.Process(
            target=_worker_main,
            args=(work_queue, result_queue, seeds[index], settings),
            name=f"root-worker-{index}",
            daemon=True,
        )
        for index in range(workers)
    ]
    for process in processes:
        process.start()

    stop = threading.Event()
    producer = threading.Thread(
        target=_produce,
        args=(enumerator, work_queue, workers, stop, progress),
        name="polynomial-producer",
        daemon=True,
    )
    coordinator = threading.Thread(
        target=_coordinate,
        args=(processes, result_queue, stop),
        name="root-coordinator",
        daemon=True,
    )
    producer.start()
    coordinator.start()

    points: list[RootPoint] = []
    polynomials = 0
    while True:
        batch = result_queue.get()
        if batch is None:
            break
        polynomials += 1
        points.extend(batch)

    coordinator.join()
    producer.join()

    failed = [process.name for process in processes if process.exitcode != 0]
    if failed:
        # Unconsumed items must not hold up interpreter exit.
        work_queue.cancel_join_thread()
    work_queue.close()
    result_queue.close()
    if failed:
        raise SchedulerError(f"Worker processes exited abnormally: {', '.join(failed)}")

    return GenerationResult(
        points=points,
        stats=GenerationStats(polynomials=polynomials, roots=len(points), workers=workers),
    )


def generate_sequential(
    max_height: int,
    *,
    seed: Optional[int] = None,
    settings: RootFinderSettings = DEFAULT_SETTINGS,
    progress: Optional[ProgressCallback] = None,
) -> GenerationResult:
    """Single-threaded counterpart of :func:`run_generation`."""

    enumerator = PolynomialEnumerator(max_height)
    rng = np.random.default_rng(seed)

    points: list[RootPoint] = []
    polynomials = 0
    current_height = None
    for item in enumerator:
        if progress is not None and item.height != current_height:
            current_height = item.height
            progress(current_height, max_height)
        points.extend(solve_work_item(item, rng, settings))
        polynomials += 1

    return GenerationResult(
        points=points,
        stats=GenerationStats(polynomials=polynomials, roots=len(points), workers=1),
    )


def generate(max_height: int, **kwargs) -> list[RootPoint]:
    """Return every root point for heights ``2..max_height``."""

    return run_generation(max_height, **kwargs).points
