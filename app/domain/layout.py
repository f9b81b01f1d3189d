"""
Page layout helpers shared by the page renderer and the API.
"""

import math
from typing import NamedTuple

# A4 portrait, width / height
A4_ASPECT = 210 / 297


class Rect(NamedTuple):
    x: float
    y: float
    width: float
    height: float


ZERO_RECT = Rect(0.0, 0.0, 0.0, 0.0)


def _positive(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def contain_aspect_rect(
    container_width: float,
    container_height: float,
    aspect_width_over_height: float = A4_ASPECT,
) -> Rect:
    """
    Largest rect with the given aspect ratio that fits inside the container,
    centred on both axes (letterboxing).

    Args:
        container_width: Available width
        container_height: Available height
        aspect_width_over_height: Target ratio, A4 portrait by default

    Returns:
        The fitted Rect, or ZERO_RECT when any input is non-finite or not positive
    """
    if not (
        _positive(container_width)
        and _positive(container_height)
        and _positive(aspect_width_over_height)
    ):
        return ZERO_RECT

    if container_width / container_height >= aspect_width_over_height:
        # Container is wider than the target: height constrains
        height = float(container_height)
        width = height * aspect_width_over_height
    else:
        width = float(container_width)
        height = width / aspect_width_over_height

    return Rect(
        x=(container_width - width) / 2,
        y=(container_height - height) / 2,
        width=width,
        height=height,
    )
