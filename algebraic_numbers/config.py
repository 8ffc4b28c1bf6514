"""Viewport and render configuration."""

from __future__ import annotations

from dataclasses import dataclass

MIN_HEIGHT = 2


class ConfigurationError(ValueError):
    """Raised when run parameters are rejected before any work starts."""


@dataclass(frozen=True)
class RenderConfig:
    """Parameters that describe a single render of the algebraic numbers."""

    width: int = 1200
    height: int = 800
    x_min: float = -2.0
    y_min: float = -2.0
    x_max: float = 2.0
    y_max: float = 2.0
    max_height: int = 15

    @property
    def x_range(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_range(self) -> float:
        return self.y_max - self.y_min

    def validate(self) -> "RenderConfig":
        """Return ``self`` or raise :class:`ConfigurationError`."""

        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Image dimensions must be positive, got {self.width}x{self.height}."
            )
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise ConfigurationError(
                "Invalid rectangle: x_min must be < x_max and y_min must be < y_max."
            )
        check_max_height(self.max_height)
        return self


def check_max_height(max_height: int) -> int:
    if max_height < MIN_HEIGHT:
        raise ConfigurationError(f"max-height must be at least {MIN_HEIGHT}, got {max_height}.")
    return max_height
