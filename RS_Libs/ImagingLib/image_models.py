"""
Image data models for Retouch Studio.

This module defines core data structures used throughout the retouching system.

Classes:
    LoadedImage: A fully decoded working image with its natural dimensions

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
    Size: A (width, height) tuple in pixels
    Point: An (x, y) tuple of float coordinates
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

RgbaColor = Tuple[int, int, int, int]
Size = Tuple[int, int]
Point = Tuple[float, float]


@dataclass(frozen=True)
class LoadedImage:
    image: 'Image.Image'
    source_path: Optional[Path] = None

    @property
    def natural_size(self) -> Size:
        return self.image.size

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height
