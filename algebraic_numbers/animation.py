"""Utilities for planning the height-by-height animation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .config import MIN_HEIGHT, check_max_height
from .scheduler import RootPoint

HOLD_UP_TO_HEIGHT = 5
HOLD_EVERY = 5


@dataclass(frozen=True)
class FramePlan:
    """How many consecutive video frames show the points up to ``height``."""

    height: int
    repeats: int


def is_held_height(height: int) -> bool:
    return height <= HOLD_UP_TO_HEIGHT or height % HOLD_EVERY == 0


def plan_height_frames(max_height: int, fps: int) -> list[FramePlan]:
    """Compute one frame per height, holding early and every fifth height longer."""

    check_max_height(max_height)
    hold = max(fps, 0) // 2
    plans = []
    for height in range(MIN_HEIGHT, max_height + 1):
        extra = hold if is_held_height(height) else 0
        plans.append(FramePlan(height=height, repeats=1 + extra))
    return plans


def total_frames(plans: Iterable[FramePlan]) -> int:
    return sum(plan.repeats for plan in plans)


def points_up_to_height(points: Iterable[RootPoint], height: int) -> list[RootPoint]:
    """Select the points a generation with ``max_height=height`` would produce."""

    return [point for point in points if point.height <= height]
