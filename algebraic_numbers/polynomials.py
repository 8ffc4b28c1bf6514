"""Enumeration of integer polynomials of bounded height.

A height ``h`` pass walks every bit pattern of length ``h - 1``. Reading the
pattern from its most significant bit, a set bit adds one unit of magnitude to
the current coefficient slot and a clear bit moves on to the next slot, so each
pattern spells out a run of non-negative coefficient magnitudes, constant term
first. Only odd patterns are visited: the last bit read is then always set and
the leading slot can never end up empty.

Every emitted polynomial therefore satisfies ``sum(|a_i|) + degree + 1 == h``,
which keeps separate heights disjoint. Signs are assigned to the non-zero,
non-leading coefficients only; the leading coefficient stays positive because
``p`` and ``-p`` share their roots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .config import MIN_HEIGHT, check_max_height


@dataclass(frozen=True)
class WorkItem:
    """One polynomial plus the metadata carried along with its roots."""

    coefficients: tuple[complex, ...]
    height: int
    degree: int
    leading_magnitude: int


def decode_magnitudes(pattern: int, height: int) -> list[int]:
    """Decode ``pattern`` into coefficient magnitudes, constant term first."""

    magnitudes = [0]
    for bit in range(height - 2, -1, -1):
        if (pattern >> bit) & 1:
            magnitudes[-1] += 1
        else:
            magnitudes.append(0)
    return magnitudes


def _signed_variants(magnitudes: list[int], height: int) -> Iterator[WorkItem]:
    degree = len(magnitudes) - 1
    non_zero = sum(1 for magnitude in magnitudes if magnitude)

    for signs in range(1 << (non_zero - 1)):
        coefficients = []
        sign_bit = 0
        for index, magnitude in enumerate(magnitudes):
            if magnitude == 0 or index == degree:
                coefficients.append(complex(magnitude, 0))
                continue
            value = -magnitude if (signs >> sign_bit) & 1 else magnitude
            coefficients.append(complex(value, 0))
            sign_bit += 1

        yield WorkItem(
            coefficients=tuple(coefficients),
            height=height,
            degree=degree,
            leading_magnitude=magnitudes[degree],
        )


def polynomials_of_height(height: int) -> Iterator[WorkItem]:
    """Yield every polynomial whose encoding uses exactly ``height``."""

    if height < MIN_HEIGHT:
        return
    for pattern in range((1 << (height - 1)) - 1, -1, -2):
        magnitudes = decode_magnitudes(pattern, height)
        if len(magnitudes) < 2:
            # Constant, no roots.
            continue
        yield from _signed_variants(magnitudes, height)


@dataclass(frozen=True)
class PolynomialEnumerator:
    """Restartable stream of work items for heights ``2..max_height``."""

    max_height: int

    def __post_init__(self) -> None:
        check_max_height(self.max_height)

    def heights(self) -> range:
        return range(MIN_HEIGHT, self.max_height + 1)

    def __iter__(self) -> Iterator[WorkItem]:
        for height in self.heights():
            yield from polynomials_of_height(height)


def enumerate_polynomials(max_height: int) -> PolynomialEnumerator:
    """Return an enumerator over all polynomials up to ``max_height``."""

    return PolynomialEnumerator(max_height)
