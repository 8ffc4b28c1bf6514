"""Rasterize root points into a glow-blended RGB image."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import tensorflow as tf

from .config import RenderConfig
from .scheduler import RootPoint

MIN_RADIUS = 3.0
MAX_RADIUS = 80.0
BASE_RADIUS = 25.0
RADIUS_DECAY = 0.5
INTENSITY_THRESHOLD = 0.005
CHANNEL_MAX = 255

# Upper bound on scatter rows handed to TensorFlow at once.
MAX_SCATTER_ROWS = 1 << 22

WHITE = (255, 255, 255)
LEADING_COEFFICIENT_COLORS = {
    1: (255, 0, 0),
    2: (0, 255, 0),
    3: (0, 0, 255),
    4: (255, 255, 0),
    5: (255, 0, 255),
    6: (0, 255, 255),
    7: (255, 128, 0),
    8: (128, 255, 0),
    9: (255, 0, 128),
    10: (128, 0, 255),
}
_WHITE_KEY = max(LEADING_COEFFICIENT_COLORS) + 1


@dataclass(frozen=True)
class BlobKernel:
    """Pixel offsets and integer RGB contributions of one Gaussian blob."""

    offsets: np.ndarray
    values: np.ndarray


def color_for_leading_coefficient(magnitude: int) -> tuple[int, int, int]:
    return LEADING_COEFFICIENT_COLORS.get(int(magnitude), WHITE)


def blob_radius(height: int, config: RenderConfig) -> float:
    """Blob radius in pixels; simpler polynomials get larger blobs."""

    k1 = BASE_RADIUS * (4.0 / config.x_range)
    radius = k1 * RADIUS_DECAY ** (height - 3)
    return float(min(max(radius, MIN_RADIUS), MAX_RADIUS))


def blob_kernel(radius: float, color: tuple[int, int, int]) -> BlobKernel:
    """Sample the Gaussian around a blob center, keeping visible pixels only."""

    reach = int(radius + 5)
    span = np.arange(-reach, reach + 1, dtype=np.int64)
    dy, dx = np.meshgrid(span, span, indexing="ij")
    dist = np.sqrt((dx * dx + dy * dy).astype(np.float64))
    sigma = radius / 2.5
    intensity = np.exp(-dist * dist / (2 * sigma * sigma))

    visible = intensity > INTENSITY_THRESHOLD
    offsets = np.stack((dy[visible], dx[visible]), axis=1)
    values = np.floor(np.outer(intensity[visible], np.asarray(color, dtype=np.float64)))
    return BlobKernel(offsets=offsets, values=values.astype(np.int32))


def _screen_coordinates(points: list[RootPoint], config: RenderConfig) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    values = np.array([p.value for p in points], dtype=np.complex128)
    heights = np.array([p.height for p in points], dtype=np.int64)
    leading = np.array([p.leading_magnitude for p in points], dtype=np.int64)

    x = values.real
    y = values.imag
    inside = (x >= config.x_min) & (x <= config.x_max) & (y >= config.y_min) & (y <= config.y_max)
    x, y, heights, leading = x[inside], y[inside], heights[inside], leading[inside]

    # Truncation matches integer pixel addressing; coordinates are non-negative here.
    screen_x = np.trunc((x - config.x_min) / config.x_range * config.width).astype(np.int64)
    screen_y = np.trunc((config.y_max - y) / config.y_range * config.height).astype(np.int64)
    return screen_y, screen_x, heights, leading


def _scatter_blobs(canvas: tf.Tensor, centers: np.ndarray, kernel: BlobKernel, shape: tuple[int, int]) -> tf.Tensor:
    rows_per_chunk = max(1, MAX_SCATTER_ROWS // max(len(kernel.offsets), 1))
    height, width = shape

    for start in range(0, len(centers), rows_per_chunk):
        chunk = centers[start:start + rows_per_chunk]
        targets = (chunk[:, None, :] + kernel.offsets[None, :, :]).reshape(-1, 2)
        updates = np.broadcast_to(kernel.values, (len(chunk),) + kernel.values.shape).reshape(-1, 3)

        in_bounds = (
            (targets[:, 0] >= 0)
            & (targets[:, 0] < height)
            & (targets[:, 1] >= 0)
            & (targets[:, 1] < width)
        )
        if not np.any(in_bounds):
            continue

        canvas = tf.tensor_scatter_nd_add(
            canvas,
            tf.convert_to_tensor(targets[in_bounds], dtype=tf.int64),
            tf.convert_to_tensor(updates[in_bounds], dtype=tf.int32),
        )
        canvas = tf.minimum(canvas, CHANNEL_MAX)
    return canvas


def render(points: Iterable[RootPoint], config: RenderConfig, *, device: Optional[str] = None) -> np.ndarray:
    """Render ``points`` into a ``(height, width, 3)`` uint8 pixel buffer.

    Each point inside the viewport (bounds inclusive) adds a Gaussian blob
    colored by its leading coefficient. Contributions are floored to integers
    and summed with saturation at 255, so the result does not depend on the
    order of ``points``.
    """

    config.validate()
    points = list(points)
    shape = (config.height, config.width)

    with tf.device(device if device is not None else "/CPU:0"):
        canvas = tf.zeros(shape + (3,), dtype=tf.int32)
        if not points:
            return canvas.numpy().astype(np.uint8)

        screen_y, screen_x, heights, leading = _screen_coordinates(points, config)
        color_keys = np.minimum(leading, _WHITE_KEY)
        groups = np.unique(np.stack((heights, color_keys), axis=1), axis=0) if heights.size else np.empty((0, 2), dtype=np.int64)

        for height, color_key in groups:
            members = (heights == height) & (color_keys == color_key)
            centers = np.stack((screen_y[members], screen_x[members]), axis=1)
            kernel = blob_kernel(
                blob_radius(int(height), config),
                color_for_leading_coefficient(int(color_key)),
            )
            canvas = _scatter_blobs(canvas, centers, kernel, shape)

        return canvas.numpy().astype(np.uint8)
