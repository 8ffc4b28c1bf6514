import multiprocessing
import os

import numpy as np
import pytest

from algebraic_numbers import (
    ConfigurationError,
    RootPoint,
    SchedulerError,
    WorkItem,
    enumerate_polynomials,
    generate,
    generate_sequential,
    run_generation,
)
from algebraic_numbers import scheduler
from algebraic_numbers.scheduler import default_worker_count, solve_work_item


def _assert_same_multiset(left, right, tol=1e-6):
    assert len(left) == len(right)
    remaining = list(right)
    for point in left:
        match = None
        for candidate in remaining:
            if (
                candidate.height == point.height
                and candidate.degree == point.degree
                and candidate.leading_magnitude == point.leading_magnitude
                and abs(candidate.value - point.value) < tol
            ):
                match = candidate
                break
        assert match is not None, point
        remaining.remove(match)


def test_solve_work_item_tags_roots():
    item = WorkItem(coefficients=(-2 + 0j, 0j, 1 + 0j), height=5, degree=2, leading_magnitude=1)
    points = solve_work_item(item, np.random.default_rng(0))
    assert len(points) == 2
    for point in points:
        assert isinstance(point, RootPoint)
        assert (point.height, point.degree, point.leading_magnitude) == (5, 2, 1)
        assert abs(abs(point.value) - np.sqrt(2)) < 1e-9


def test_sequential_counts_every_polynomial():
    result = generate_sequential(6, seed=1)
    assert result.stats.polynomials == len(list(enumerate_polynomials(6)))
    assert result.stats.roots == len(result.points)
    assert result.stats.workers == 1


def test_parallel_matches_sequential():
    parallel = run_generation(6, workers=2, seed=7)
    sequential = generate_sequential(6, seed=11)

    assert parallel.stats.polynomials == sequential.stats.polynomials
    assert parallel.stats.workers == 2
    _assert_same_multiset(parallel.points, sequential.points)


def test_generate_returns_points():
    points = generate(5, workers=2, seed=3)
    assert points
    assert all(isinstance(point, RootPoint) for point in points)
    assert {point.height for point in points} <= {3, 4, 5}


def test_more_workers_than_items():
    result = run_generation(3, workers=4, seed=0)
    assert result.stats.polynomials == 1
    assert len(result.points) == 1
    assert result.points[0].value == 0


def test_progress_reports_each_height():
    seen = []
    run_generation(5, workers=1, seed=0, progress=lambda h, top: seen.append((h, top)))
    assert seen == [(3, 5), (4, 5), (5, 5)]


def test_sequential_progress_reports_each_height():
    seen = []
    generate_sequential(5, seed=0, progress=lambda h, top: seen.append(h))
    assert seen == [3, 4, 5]


def test_rejects_low_max_height():
    with pytest.raises(ConfigurationError):
        run_generation(1, workers=1)


def _crash_worker(*args):
    os._exit(3)


@pytest.mark.skipif(
    "fork" not in multiprocessing.get_all_start_methods(),
    reason="needs fork so children see the patched worker",
)
def test_worker_crash_raises(monkeypatch):
    monkeypatch.setattr(scheduler, "_worker_main", _crash_worker)
    ctx = multiprocessing.get_context("fork")
    with pytest.raises(SchedulerError, match="root-worker-0"):
        run_generation(14, workers=2, context=ctx)


def test_default_worker_count_follows_affinity(monkeypatch):
    monkeypatch.setattr(os, "sched_getaffinity", lambda pid: {0, 1}, raising=False)
    assert default_worker_count() == 2


def test_default_worker_count_without_affinity(monkeypatch):
    monkeypatch.delattr(os, "sched_getaffinity", raising=False)
    monkeypatch.setattr(os, "cpu_count", lambda: None)
    assert default_worker_count() == 1
