"""Newton-Raphson root finding with deflation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

MACHINE_EPSILON = float(np.finfo(np.float64).eps)


@dataclass(frozen=True)
class RootFinderSettings:
    """Iteration limits and tolerances for :func:`find_roots`.

    A step is accepted as converged once it is smaller than
    ``max(tolerance, relative_tolerance * max(1, |root|))``. Near ``|root| ~ 1``
    the absolute ``tolerance`` is below the float spacing;
    ``relative_tolerance=0`` gives the purely absolute test.
    """

    max_iterations: int = 5000
    tolerance: float = 1e-20
    restart_interval: int = 500
    derivative_floor: float = 1e-15
    relative_tolerance: float = 4 * MACHINE_EPSILON


DEFAULT_SETTINGS = RootFinderSettings()


def evaluate_with_derivative(coefficients: Sequence[complex], z: complex) -> tuple[complex, complex]:
    """Evaluate ``p(z)`` and ``p'(z)`` in a single Horner pass."""

    degree = len(coefficients) - 1
    f = coefficients[degree]
    df = 0j
    for i in range(degree - 1, -1, -1):
        df = df * z + f
        f = f * z + coefficients[i]
    return f, df


def deflate(coefficients: Sequence[complex], root: complex) -> tuple[complex, ...]:
    """Divide the polynomial by ``(x - root)`` and drop the remainder."""

    degree = len(coefficients) - 1
    reduced = [0j] * degree
    reduced[degree - 1] = coefficients[degree]
    for i in range(degree - 2, -1, -1):
        reduced[i] = coefficients[i + 1] + root * reduced[i + 1]
    return tuple(reduced)


def _random_start(rng: np.random.Generator) -> complex:
    return complex(rng.random() * 2 - 1, rng.random() * 2 - 1)


def newton_root(
    coefficients: Sequence[complex],
    rng: np.random.Generator,
    settings: RootFinderSettings = DEFAULT_SETTINGS,
) -> complex | None:
    """Search for a single root, returning ``None`` if the cap is reached."""

    root = _random_start(rng)
    for iteration in range(settings.max_iterations):
        previous = root
        f, df = evaluate_with_derivative(coefficients, root)

        if abs(df) < settings.derivative_floor:
            root = _random_start(rng)
            continue

        root = root - f / df

        step = abs(root - previous)
        if step < max(settings.tolerance, settings.relative_tolerance * max(1.0, abs(root))):
            return root

        if iteration > 0 and iteration % settings.restart_interval == 0:
            root = _random_start(rng)

    return None


def find_roots(
    coefficients: Sequence[complex],
    degree: int,
    rng: np.random.Generator,
    settings: RootFinderSettings = DEFAULT_SETTINGS,
) -> list[complex]:
    """Find up to ``degree`` roots of the polynomial.

    ``coefficients`` are ordered constant term first and ``rng`` is the caller's
    own random source. If a search hits the iteration cap, the roots found so
    far are returned. Pass ``RootFinderSettings(relative_tolerance=0.0)`` to
    accept only steps below the absolute ``tolerance`` of 1e-20.
    """

    roots: list[complex] = []
    current = tuple(complex(c) for c in coefficients[: degree + 1])

    while degree > 1:
        root = newton_root(current, rng, settings)
        if root is None:
            return roots
        roots.append(root)
        current = deflate(current, root)
        degree -= 1

    if degree == 1 and current[1] != 0:
        roots.append(-current[0] / current[1])
    return roots
