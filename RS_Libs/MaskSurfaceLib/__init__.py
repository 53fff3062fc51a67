"""
MaskSurfaceLib - Interactive mask drawing

Modules:
    viewport: Display fitting and screen/natural coordinate mapping
    brush: Smoothed stroke rasterization
    mask_surface: Mask raster driven by pointer gestures
"""

from RS_Libs.MaskSurfaceLib.viewport import ScreenRect, ViewportTransform, fit_display_size
from RS_Libs.MaskSurfaceLib.brush import Stroke, StrokeMode, quadratic_points
from RS_Libs.MaskSurfaceLib.mask_surface import CursorState, MaskSurface, ToolMode

__all__ = [
    "ScreenRect",
    "ViewportTransform",
    "fit_display_size",
    "Stroke",
    "StrokeMode",
    "quadratic_points",
    "CursorState",
    "MaskSurface",
    "ToolMode",
]
