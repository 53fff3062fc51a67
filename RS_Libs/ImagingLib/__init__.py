"""
ImagingLib - Image models, I/O and compositing

This module provides image decoding and encoding, and the surgical
compositor that merges inpainting results into the original image.
"""

from RS_Libs.ImagingLib.image_models import LoadedImage, Point, RgbaColor, Size
from RS_Libs.ImagingLib.image_io import (
    decode_image,
    load_image,
    encode_png,
    to_data_url,
    strip_data_url,
    is_supported_format,
    save_cleaned_image,
)
from RS_Libs.ImagingLib.surgical_compositor import (
    SurgicalCompositor,
    composite_surgical_result,
)

__all__ = [
    "LoadedImage",
    "Point",
    "RgbaColor",
    "Size",
    "decode_image",
    "load_image",
    "encode_png",
    "to_data_url",
    "strip_data_url",
    "is_supported_format",
    "save_cleaned_image",
    "SurgicalCompositor",
    "composite_surgical_result",
]
