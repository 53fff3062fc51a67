"""
Brush rasterization for mask strokes.

Strokes are drawn as chains of round dabs along quadratic curves. Each new
pointer sample adds one curve from the current pen position to the midpoint
of the previous and current sample, using the previous sample as control
point. This keeps strokes smooth at high pointer sampling rates.

Paint and erase both overwrite pixels: erase is painting the preserve value.

Classes:
    StrokeMode: Paint (replace) or erase (preserve)
    Stroke: State of the stroke currently being drawn

Functions:
    quadratic_points: Sample a quadratic Bezier curve
    stamp_dab: Draw one round dab
    draw_path: Draw round dabs along a sampled path
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence

from RS_Libs.constants import MASK_PRESERVE_VALUE, MASK_REPLACE_VALUE
from RS_Libs.ImagingLib.image_models import Point

# Dab spacing as a fraction of brush width
DAB_SPACING = 0.25


class StrokeMode(Enum):
    PAINT = "paint"
    ERASE = "erase"

    @property
    def fill(self) -> tuple:
        value = MASK_REPLACE_VALUE if self is StrokeMode.PAINT else MASK_PRESERVE_VALUE
        return (value, value, value)


@dataclass
class Stroke:
    """Stroke in progress. Only the points needed for the next segment are kept.

    Attributes:
        mode: Paint or erase
        brush_size: On-screen brush diameter in screen pixels
        last_point: Most recent pointer sample (curve control point)
        pen: End of the last drawn curve
    """
    mode: StrokeMode
    brush_size: float
    last_point: Point
    pen: Point

    def __post_init__(self):
        if self.brush_size <= 0:
            raise ValueError(f"brush_size must be > 0, got {self.brush_size}")


def quadratic_points(start: Point, control: Point, end: Point, spacing: float) -> List[Point]:
    """
    Sample a quadratic Bezier curve at roughly even spacing.

    Args:
        start: Curve start
        control: Control point
        end: Curve end
        spacing: Maximum distance between samples

    Returns:
        Points from start to end inclusive
    """
    # Control polygon length bounds the curve length
    length = math.dist(start, control) + math.dist(control, end)
    steps = max(1, int(math.ceil(length / max(spacing, 0.5))))

    points = []
    for i in range(steps + 1):
        t = i / steps
        u = 1.0 - t
        x = u * u * start[0] + 2 * u * t * control[0] + t * t * end[0]
        y = u * u * start[1] + 2 * u * t * control[1] + t * t * end[1]
        points.append((x, y))
    return points


def stamp_dab(draw: Any, point: Point, width: float, fill: Any) -> None:
    """Draw a filled circle of the given diameter centred on point."""
    radius = max(width / 2.0, 0.5)
    x, y = point
    draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=fill)


def draw_path(draw: Any, points: Sequence[Point], width: float, fill: Any) -> None:
    """
    Draw a round-capped, round-joined path through points.

    Args:
        draw: PIL ImageDraw for the mask
        points: Sampled path
        width: Brush width in natural pixels
        fill: Fill value for the mask mode
    """
    if not points:
        return

    if len(points) > 1:
        draw.line(list(points), fill=fill, width=max(1, int(round(width))))

    spacing = max(width * DAB_SPACING, 0.5)
    previous = None
    for point in points:
        if previous is not None:
            gap = math.dist(previous, point)
            # Fill long chords so the dab chain never breaks
            if gap > spacing:
                steps = int(math.ceil(gap / spacing))
                for i in range(1, steps):
                    t = i / steps
                    stamp_dab(draw, (previous[0] + (point[0] - previous[0]) * t,
                                     previous[1] + (point[1] - previous[1]) * t), width, fill)
        stamp_dab(draw, point, width, fill)
        previous = point
