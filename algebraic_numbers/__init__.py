"""Public API for rendering algebraic numbers.

The renderer pulls in TensorFlow, so its names are resolved on first access;
importing the enumeration and root-finding modules (as worker processes do)
stays free of it.
"""

from importlib import import_module

from .config import ConfigurationError, RenderConfig
from .polynomials import PolynomialEnumerator, WorkItem, enumerate_polynomials, polynomials_of_height
from .roots import DEFAULT_SETTINGS, RootFinderSettings, deflate, evaluate_with_derivative, find_roots
from .scheduler import (
    GenerationResult,
    GenerationStats,
    RootPoint,
    SchedulerError,
    generate,
    generate_sequential,
    run_generation,
)
from .animation import FramePlan, plan_height_frames, points_up_to_height

_RENDERER_NAMES = {"blob_radius", "color_for_leading_coefficient", "render"}


def __getattr__(name):
    if name in _RENDERER_NAMES:
        return getattr(import_module(".renderer", __name__), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ConfigurationError",
    "DEFAULT_SETTINGS",
    "FramePlan",
    "GenerationResult",
    "GenerationStats",
    "PolynomialEnumerator",
    "RenderConfig",
    "RootFinderSettings",
    "RootPoint",
    "SchedulerError",
    "WorkItem",
    "blob_radius",
    "color_for_leading_coefficient",
    "deflate",
    "enumerate_polynomials",
    "evaluate_with_derivative",
    "find_roots",
    "generate",
    "generate_sequential",
    "plan_height_frames",
    "points_up_to_height",
    "polynomials_of_height",
    "render",
    "run_generation",
]
