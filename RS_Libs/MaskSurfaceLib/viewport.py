"""
Viewport transform for the mask surface.

The loaded image is fitted into its container (aspect preserved, padded),
then shown under an independent zoom/pan transform. Zoom scales the display
element about its own centre and the pan offset translates it in screen
pixels, so the on-screen bounding box changes with every zoom, pan or resize.

Classes:
    ScreenRect: Axis-aligned rectangle in screen pixels
    ViewportTransform: Zoom/pan state plus the layout it is applied to

Functions:
    fit_display_size: Fit natural dimensions into a container with padding
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from RS_Libs.constants import DISPLAY_PADDING, MAX_ZOOM, MIN_ZOOM
from RS_Libs.ImagingLib.image_models import Point

logger = logging.getLogger(__name__)

SizeF = Tuple[float, float]


def fit_display_size(
    natural_size: SizeF,
    container_size: SizeF,
    padding: float = DISPLAY_PADDING,
) -> SizeF:
    """
    Fit an image into a container preserving its aspect ratio.

    The limiting dimension is the container dimension minus the padding.

    Args:
        natural_size: (width, height) of the image in natural pixels
        container_size: (width, height) of the available viewport
        padding: Margin subtracted from the limiting container dimension

    Returns:
        (display_width, display_height) in screen pixels

    Raises:
        ValueError: If any dimension is not positive
    """
    natural_w, natural_h = natural_size
    container_w, container_h = container_size
    if natural_w <= 0 or natural_h <= 0:
        raise ValueError(f"natural_size must be positive, got {natural_size}")
    if container_w <= 0 or container_h <= 0:
        raise ValueError(f"container_size must be positive, got {container_size}")

    image_aspect = natural_w / natural_h
    container_aspect = container_w / container_h

    if image_aspect > container_aspect:
        display_w = max(container_w - padding, 1.0)
        display_h = display_w / image_aspect
    else:
        display_h = max(container_h - padding, 1.0)
        display_w = display_h * image_aspect

    return display_w, display_h


@dataclass(frozen=True)
class ScreenRect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def normalize(self, x: float, y: float) -> Point:
        """Express a screen point as a fraction of this rectangle."""
        return (x - self.left) / self.width, (y - self.top) / self.height

    def contains(self, x: float, y: float) -> bool:
        norm_x, norm_y = self.normalize(x, y)
        return 0.0 <= norm_x <= 1.0 and 0.0 <= norm_y <= 1.0


@dataclass
class ViewportTransform:
    """Zoom/pan transform mapping screen space to natural image space.

    Attributes:
        natural_size: Image size in natural pixels
        display_size: Fitted, unzoomed on-screen size of the image
        container_origin: Screen position of the container's top-left corner
        container_size: Size of the container the image is centred in
        zoom: Scale factor in [MIN_ZOOM, MAX_ZOOM]
        offset_x: Horizontal pan in screen pixels
        offset_y: Vertical pan in screen pixels
        stroke_scale: Natural pixels per screen pixel at the current zoom,
            refreshed whenever zoom or layout changes
    """
    natural_size: SizeF
    display_size: SizeF
    container_origin: SizeF = (0.0, 0.0)
    container_size: Optional[SizeF] = None
    zoom: float = MIN_ZOOM
    offset_x: float = 0.0
    offset_y: float = 0.0
    stroke_scale: float = field(default=1.0, init=False)

    def __post_init__(self):
        if self.display_size[0] <= 0 or self.display_size[1] <= 0:
            raise ValueError(f"display_size must be positive, got {self.display_size}")
        if not (MIN_ZOOM <= self.zoom <= MAX_ZOOM):
            raise ValueError(f"zoom must be {MIN_ZOOM}-{MAX_ZOOM}, got {self.zoom}")
        if self.container_size is None:
            self.container_size = self.display_size
        self._refresh_stroke_scale()

    @classmethod
    def fitted(
        cls,
        natural_size: SizeF,
        container_size: SizeF,
        container_origin: SizeF = (0.0, 0.0),
        padding: float = DISPLAY_PADDING,
    ) -> "ViewportTransform":
        """Create an identity transform for an image fitted into a container."""
        display_size = fit_display_size(natural_size, container_size, padding)
        return cls(
            natural_size=natural_size,
            display_size=display_size,
            container_origin=container_origin,
            container_size=container_size,
        )

    @property
    def offset(self) -> Point:
        return self.offset_x, self.offset_y

    @property
    def is_identity(self) -> bool:
        return self.zoom == MIN_ZOOM and self.offset == (0.0, 0.0)

    def _refresh_stroke_scale(self) -> None:
        self.stroke_scale = self.natural_size[0] / (self.display_size[0] * self.zoom)

    def reset(self) -> None:
        """Return to zoom 1 with no pan offset."""
        self.zoom = MIN_ZOOM
        self.offset_x = 0.0
        self.offset_y = 0.0
        self._refresh_stroke_scale()

    def relayout(
        self,
        container_size: SizeF,
        container_origin: Optional[SizeF] = None,
        padding: float = DISPLAY_PADDING,
    ) -> None:
        """Refit the display size after the container was resized."""
        self.display_size = fit_display_size(self.natural_size, container_size, padding)
        self.container_size = container_size
        if container_origin is not None:
            self.container_origin = container_origin
        self._refresh_stroke_scale()

    def apply_zoom(self, delta: float) -> float:
        """
        Change zoom by delta, clamped to [MIN_ZOOM, MAX_ZOOM].

        When the requested zoom is at or below MIN_ZOOM the pan offset is
        cleared so the image cannot drift out of an unzoomed view.

        Returns:
            The new zoom factor
        """
        requested = self.zoom + delta
        self.zoom = min(max(requested, MIN_ZOOM), MAX_ZOOM)
        if requested <= MIN_ZOOM:
            self.offset_x = 0.0
            self.offset_y = 0.0
        self._refresh_stroke_scale()
        logger.debug(f"Zoom set to {self.zoom:.2f}")
        return self.zoom

    def pan(self, dx: float, dy: float) -> None:
        self.offset_x += dx
        self.offset_y += dy

    def display_rect(self) -> ScreenRect:
        """
        Current on-screen bounding box of the zoomed/panned image.

        Computed from the live state on every call.
        """
        origin_x, origin_y = self.container_origin
        container_w, container_h = self.container_size
        display_w, display_h = self.display_size

        center_x = origin_x + container_w / 2.0 + self.offset_x
        center_y = origin_y + container_h / 2.0 + self.offset_y
        width = display_w * self.zoom
        height = display_h * self.zoom
        return ScreenRect(center_x - width / 2.0, center_y - height / 2.0, width, height)

    def screen_to_image(self, screen_x: float, screen_y: float) -> Optional[Point]:
        """
        Map a screen point into natural image coordinates.

        Returns:
            (x, y) in natural pixels, or None when the point is off the image
        """
        norm_x, norm_y = self.display_rect().normalize(screen_x, screen_y)
        if norm_x < 0 or norm_x > 1 or norm_y < 0 or norm_y > 1:
            return None
        return norm_x * self.natural_size[0], norm_y * self.natural_size[1]

    def image_to_screen(self, point: Point) -> Point:
        """Map a natural image point to its current screen position."""
        rect = self.display_rect()
        x, y = point
        return (
            rect.left + x / self.natural_size[0] * rect.width,
            rect.top + y / self.natural_size[1] * rect.height,
        )

    def stroke_width(self, brush_size: float) -> float:
        """
        Brush width in natural pixels for an on-screen brush diameter.

        width = (brush_size / zoom) * (natural_width / display_width), so the
        stroke covers exactly brush_size screen pixels at any zoom.
        """
        return brush_size * self.stroke_scale
