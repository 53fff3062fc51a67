"""
Mask Surface.

Owns the drawable mask raster of the loaded image in natural pixel space and
keeps it in sync with pointer gestures made under an independent zoom/pan
transform. The mask is white (255) where pixels should be replaced and black
(0) where they must be preserved.

While an inpainting request is outstanding the surface is locked: new strokes
are ignored and the mask cannot change, so the snapshot handed to the
compositor always matches what was sent to the service.

Example:
    >>> surface = MaskSurface(brush_size=100)
    >>> surface.load(Image.new("RGBA", (400, 300)), container_size=(480, 380))
    >>> surface.begin_stroke((200, 150), StrokeMode.PAINT)
    True
    >>> png_bytes = surface.end_stroke()
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from PIL import Image, ImageDraw

from RS_Libs.constants import (
    DEFAULT_BRUSH_SIZE,
    MASK_MODE,
    MASK_PRESERVE_VALUE,
    MAX_BRUSH_SIZE,
    MIN_BRUSH_SIZE,
)
from RS_Libs.ImagingLib.image_io import decode_image, encode_png
from RS_Libs.ImagingLib.image_models import Point, Size
from RS_Libs.MaskSurfaceLib.brush import Stroke, StrokeMode, draw_path, quadratic_points, stamp_dab
from RS_Libs.MaskSurfaceLib.viewport import SizeF, ViewportTransform

logger = logging.getLogger(__name__)

MaskListener = Callable[[bytes], None]


class ToolMode(Enum):
    BRUSH = "BRUSH"
    ERASER = "ERASER"
    PAN = "PAN"

    @property
    def stroke_mode(self) -> Optional[StrokeMode]:
        if self is ToolMode.BRUSH:
            return StrokeMode.PAINT
        if self is ToolMode.ERASER:
            return StrokeMode.ERASE
        return None


@dataclass
class CursorState:
    """Last pointer position in screen pixels and whether it is over the image."""
    x: float
    y: float
    over_image: bool


class _LoadedState:
    """Per-image state. Created on load and dropped on unload."""

    def __init__(self, natural_size: Size, viewport: ViewportTransform):
        self.natural_size = natural_size
        self.viewport = viewport
        self.mask = Image.new(MASK_MODE, natural_size, (MASK_PRESERVE_VALUE,) * 3)
        self.draw = ImageDraw.Draw(self.mask)
        self.stroke: Optional[Stroke] = None
        self.panning = False
        self.last_pan_point: Optional[Point] = None
        self.cursor: Optional[CursorState] = None


class MaskSurface:
    """Drawable mask surface for one loaded image at a time."""

    def __init__(
        self,
        brush_size: float = DEFAULT_BRUSH_SIZE,
        tool_mode: ToolMode = ToolMode.BRUSH,
        on_mask_updated: Optional[MaskListener] = None,
    ):
        self._state: Optional[_LoadedState] = None
        self._locked = False
        self._brush_size = float(DEFAULT_BRUSH_SIZE)
        self.brush_size = brush_size
        self.tool_mode = tool_mode
        self.on_mask_updated = on_mask_updated

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    def _require_state(self) -> _LoadedState:
        if self._state is None:
            raise RuntimeError("No image loaded on the mask surface")
        return self._state

    def load(
        self,
        image: Any,
        container_size: SizeF,
        container_origin: SizeF = (0.0, 0.0),
    ) -> None:
        """
        Prepare the surface for a newly loaded image.

        Fits the image into the container, resets zoom/pan to identity and
        allocates an all-preserve mask at the image's natural size.

        Args:
            image: PIL Image (or LoadedImage) that was loaded
            container_size: (width, height) of the available viewport
            container_origin: Screen position of the container's top-left corner
        """
        if hasattr(image, "natural_size"):
            natural_size = image.natural_size
        elif hasattr(image, "size"):
            natural_size = image.size
        else:
            raise TypeError(f"Expected PIL Image or LoadedImage, got {type(image)}")

        viewport = ViewportTransform.fitted(natural_size, container_size, container_origin)
        self._state = _LoadedState(natural_size, viewport)
        logger.info(
            f"Mask surface loaded {natural_size[0]}x{natural_size[1]} image, "
            f"display {viewport.display_size[0]:.0f}x{viewport.display_size[1]:.0f}"
        )

    def unload(self) -> None:
        self._state = None

    def resize(self, container_size: SizeF, container_origin: Optional[SizeF] = None) -> None:
        """Refit the display after the container changed size or position."""
        if self._state is None:
            return
        self._state.viewport.relayout(container_size, container_origin)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def viewport(self) -> ViewportTransform:
        return self._require_state().viewport

    @property
    def natural_size(self) -> Size:
        return self._require_state().natural_size

    @property
    def mask(self) -> 'Image.Image':
        """Live mask raster. Use snapshot_mask() for a copy that will not change."""
        return self._require_state().mask

    @property
    def is_drawing(self) -> bool:
        return self._state is not None and self._state.stroke is not None

    @property
    def is_panning(self) -> bool:
        return self._state is not None and self._state.panning

    @property
    def cursor(self) -> Optional[CursorState]:
        return self._state.cursor if self._state else None

    @property
    def brush_size(self) -> float:
        return self._brush_size

    @brush_size.setter
    def brush_size(self, value: float) -> None:
        if not (MIN_BRUSH_SIZE <= value <= MAX_BRUSH_SIZE):
            raise ValueError(f"brush_size must be {MIN_BRUSH_SIZE}-{MAX_BRUSH_SIZE}, got {value}")
        self._brush_size = float(value)

    # ------------------------------------------------------------------
    # Processing lock
    # ------------------------------------------------------------------

    @property
    def is_locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        """Reject strokes and mask changes until unlock(). Drops any open stroke."""
        self._locked = True
        if self._state is not None:
            self._state.stroke = None
            self._state.panning = False
            self._state.last_pan_point = None

    def unlock(self) -> None:
        self._locked = False

    # ------------------------------------------------------------------
    # Coordinate mapping
    # ------------------------------------------------------------------

    def map_pointer_to_image_space(self, screen_x: float, screen_y: float) -> Optional[Point]:
        """
        Map a screen point to natural image coordinates.

        Uses the live bounding box of the zoomed/panned image.

        Returns:
            (x, y) in natural pixels, or None when the pointer is off the image
        """
        if self._state is None:
            return None
        return self._state.viewport.screen_to_image(screen_x, screen_y)

    def image_to_screen(self, point: Point) -> Point:
        return self.viewport.image_to_screen(point)

    # ------------------------------------------------------------------
    # Strokes
    # ------------------------------------------------------------------

    def begin_stroke(
        self,
        point: Point,
        mode: StrokeMode,
        brush_size: Optional[float] = None,
    ) -> bool:
        """
        Start a stroke at a natural-space point and stamp the first dab.

        Args:
            point: Start point in natural pixels
            mode: StrokeMode.PAINT or StrokeMode.ERASE
            brush_size: On-screen brush diameter (defaults to self.brush_size)

        Returns:
            True if a stroke was started, False while locked or unloaded
        """
        if self._locked or self._state is None:
            return False

        state = self._state
        size = self._brush_size if brush_size is None else float(brush_size)
        state.stroke = Stroke(mode=mode, brush_size=size, last_point=point, pen=point)
        stamp_dab(state.draw, point, state.viewport.stroke_width(size), mode.fill)
        logger.debug(f"Began {mode.value} stroke at ({point[0]:.1f}, {point[1]:.1f})")
        return True

    def extend_stroke(self, point: Point) -> bool:
        """
        Draw a smoothed segment towards point.

        The segment is a quadratic curve from the pen position to the
        midpoint of the previous and current point, with the previous point
        as control. Width is recomputed from the current zoom.

        Returns:
            True if a segment was drawn
        """
        if self._locked or self._state is None or self._state.stroke is None:
            return False

        state = self._state
        stroke = state.stroke
        width = state.viewport.stroke_width(stroke.brush_size)
        last = stroke.last_point
        midpoint = ((last[0] + point[0]) / 2.0, (last[1] + point[1]) / 2.0)

        points = quadratic_points(stroke.pen, last, midpoint, spacing=max(width / 4.0, 1.0))
        draw_path(state.draw, points, width, stroke.mode.fill)

        stroke.pen = midpoint
        stroke.last_point = point
        return True

    def end_stroke(self) -> Optional[bytes]:
        """
        Finish the active stroke, export the mask and notify the listener.

        Returns:
            PNG bytes of the mask, or None if no stroke was active
        """
        if self._state is None or self._state.stroke is None:
            return None

        state = self._state
        stroke = state.stroke
        if stroke.pen != stroke.last_point:
            draw_path(
                state.draw,
                [stroke.pen, stroke.last_point],
                state.viewport.stroke_width(stroke.brush_size),
                stroke.mode.fill,
            )
        state.stroke = None

        mask_png = self.export_mask()
        logger.debug(f"Ended {stroke.mode.value} stroke")
        if self.on_mask_updated is not None:
            self.on_mask_updated(mask_png)
        return mask_png

    # ------------------------------------------------------------------
    # Zoom and pan
    # ------------------------------------------------------------------

    def pan(self, dx: float, dy: float) -> bool:
        """Accumulate a pan offset. Only active in PAN tool mode."""
        if self._state is None or self.tool_mode is not ToolMode.PAN:
            return False
        self._state.viewport.pan(dx, dy)
        return True

    def zoom(self, delta: float) -> float:
        """Change zoom by delta within [1, 5]. Returns the new zoom."""
        return self._require_state().viewport.apply_zoom(delta)

    def reset_view(self) -> None:
        self._require_state().viewport.reset()

    # ------------------------------------------------------------------
    # Mask access
    # ------------------------------------------------------------------

    def export_mask(self) -> bytes:
        """Encode the current mask raster as PNG."""
        return encode_png(self._require_state().mask)

    def snapshot_mask(self) -> 'Image.Image':
        """Independent copy of the mask as it is right now."""
        return self._require_state().mask.copy()

    def has_mask_content(self) -> bool:
        """True if any pixel is marked for replacement."""
        return self._require_state().mask.getbbox() is not None

    def clear_mask(self) -> bool:
        """Reset the mask to all-preserve. Ignored while locked."""
        if self._locked or self._state is None:
            return False
        state = self._state
        state.draw.rectangle(
            (0, 0, state.natural_size[0], state.natural_size[1]),
            fill=(MASK_PRESERVE_VALUE,) * 3,
        )
        state.stroke = None
        return True

    def set_mask(self, source: Any) -> bool:
        """
        Replace the mask with an external mask image.

        The source is drawn scaled to natural size over a black background,
        then exported and passed to the listener like a finished stroke.
        Ignored while locked.
        """
        if self._locked or self._state is None:
            return False
        state = self._state
        incoming = decode_image(source)
        if incoming.size != state.natural_size:
            incoming = incoming.resize(state.natural_size, Image.Resampling.BILINEAR)

        background = Image.new("RGBA", state.natural_size, (0, 0, 0, 255))
        flattened = Image.alpha_composite(background, incoming).convert(MASK_MODE)
        state.mask.paste(flattened, (0, 0))
        state.stroke = None

        if self.on_mask_updated is not None:
            self.on_mask_updated(self.export_mask())
        return True

    # ------------------------------------------------------------------
    # Pointer interaction
    # ------------------------------------------------------------------

    def pointer_down(self, screen_x: float, screen_y: float) -> None:
        """Start panning (PAN tool) or drawing (brush/eraser) at a screen point."""
        if self._locked or self._state is None:
            return

        state = self._state
        if self.tool_mode is ToolMode.PAN:
            state.panning = True
            state.last_pan_point = (screen_x, screen_y)
            return

        coords = self.map_pointer_to_image_space(screen_x, screen_y)
        if coords is None:
            return
        self.begin_stroke(coords, self.tool_mode.stroke_mode)

    def pointer_move(self, screen_x: float, screen_y: float) -> None:
        """
        Pan or extend the stroke for a pointer move.

        A move off the image does not extend the stroke, but the stroke stays
        open until pointer_up() or pointer_leave().
        """
        if self._state is None:
            return

        state = self._state
        if state.panning and state.last_pan_point is not None:
            last_x, last_y = state.last_pan_point
            self.pan(screen_x - last_x, screen_y - last_y)
            state.last_pan_point = (screen_x, screen_y)
            return

        coords = self.map_pointer_to_image_space(screen_x, screen_y)
        state.cursor = CursorState(screen_x, screen_y, coords is not None)

        if state.stroke is not None and coords is not None:
            self.extend_stroke(coords)

    def pointer_up(self) -> Optional[bytes]:
        """End the current interaction. Returns the exported mask if a stroke ended."""
        if self._state is None:
            return None
        mask_png = self.end_stroke()
        self._state.panning = False
        self._state.last_pan_point = None
        return mask_png

    def pointer_leave(self) -> Optional[bytes]:
        if self._state is not None:
            self._state.cursor = None
        return self.pointer_up()

    def brush_cursor(self) -> Optional[Tuple[float, float, float]]:
        """
        Screen-space brush cursor as (x, y, diameter), or None when hidden.

        The diameter is always brush_size screen pixels regardless of zoom.
        """
        cursor = self.cursor
        if cursor is None or not cursor.over_image:
            return None
        if self._locked or self.tool_mode is ToolMode.PAN:
            return None
        return cursor.x, cursor.y, self._brush_size
