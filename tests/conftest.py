"""
Pytest configuration and shared fixtures for Retouch Studio tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import pytest
from PIL import Image

from RS_Libs.ImagingLib.image_io import encode_png
from RS_Libs.MaskSurfaceLib.mask_surface import MaskSurface

# A 480x380 container fits a 400x300 image at exactly 400x300 (80px padding),
# so natural and display pixels coincide at zoom 1.
NATURAL_SIZE = (400, 300)
CONTAINER_SIZE = (480.0, 380.0)


@pytest.fixture
def red_image():
    """Solid red 400x300 RGBA image."""
    return Image.new("RGBA", NATURAL_SIZE, (255, 0, 0, 255))


@pytest.fixture
def blue_image():
    """Solid blue 400x300 RGBA image."""
    return Image.new("RGBA", NATURAL_SIZE, (0, 0, 255, 255))


@pytest.fixture
def blue_png(blue_image):
    """Solid blue 400x300 image encoded as PNG, as returned by the service."""
    return encode_png(blue_image)


@pytest.fixture
def loaded_surface(red_image):
    """Mask surface with the red image loaded at zoom 1."""
    surface = MaskSurface(brush_size=40)
    surface.load(red_image, CONTAINER_SIZE)
    return surface


@pytest.fixture
def temp_output_dir(tmp_path):
    """
    Provide a temporary directory for saved images.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path
