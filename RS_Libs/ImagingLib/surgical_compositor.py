"""
Surgical Compositor.

Merges an AI-generated replacement image back into the original so that only
pixels covered by the painted mask change. The mask is turned into a true
alpha channel, the AI result is clipped through it, and the clipped layer is
alpha-composited over the untouched original.

Pixels where the mask is black are byte-identical to the original no matter
what the model returned there.

Example:
    >>> original = Image.new("RGBA", (400, 300), "red")
    >>> ai_result = Image.new("RGBA", (400, 300), "blue")
    >>> mask = Image.new("RGB", (400, 300), "black")
    >>> mask.paste((255, 255, 255), (0, 0, 200, 300))
    >>> result = composite_surgical_result(original, ai_result, mask)
    >>> result.getpixel((10, 10))
    (0, 0, 255, 255)
"""

import logging
from typing import Any

import numpy as np
from PIL import Image

from RS_Libs.constants import WORKING_MODE
from RS_Libs.errors import CompositorError, ImageDecodeError, SurfaceAcquisitionError
from RS_Libs.ImagingLib.image_io import decode_image
from RS_Libs.ImagingLib.image_models import Size

logger = logging.getLogger(__name__)


class SurgicalCompositor:
    """Clips an AI result through a painted mask and layers it on the original."""

    @staticmethod
    def composite(original: Any, ai_result: Any, mask: Any) -> 'Image.Image':
        """
        Composite the masked part of ai_result over original.

        Args:
            original: Source image (PIL Image, bytes, data URL or path)
            ai_result: Replacement image from the inpainting service, any size
            mask: Painted mask, white = replace, black = preserve, any size

        Returns:
            New RGBA PIL Image at the original's exact size

        Raises:
            CompositorError: If an input cannot be decoded or a drawing
                surface cannot be allocated
        """
        base = SurgicalCompositor._decode(original, "original")
        overlay = SurgicalCompositor._decode(ai_result, "AI result")
        mask_image = SurgicalCompositor._decode(mask, "mask")

        size = base.size
        alpha = SurgicalCompositor.derive_alpha_mask(
            SurgicalCompositor._resample(mask_image, size, Image.Resampling.BILINEAR)
        )
        overlay = SurgicalCompositor._resample(overlay, size, Image.Resampling.LANCZOS)
        clipped = SurgicalCompositor.clip_to_alpha(overlay, alpha)

        canvas = SurgicalCompositor._acquire_surface(size)
        canvas.paste(base, (0, 0))
        result = Image.alpha_composite(canvas, clipped)

        logger.info(f"Composited AI result onto {size[0]}x{size[1]} original")
        return result

    @staticmethod
    def derive_alpha_mask(mask: 'Image.Image') -> 'Image.Image':
        """
        Derive a true alpha mask from a painted mask.

        Each pixel's alpha is round((R + G + B) / 3) of the mask's colour
        channels, so a coloured or anti-aliased mask becomes a soft alpha
        rather than a hard threshold. Transparent mask pixels count as black.

        Args:
            mask: PIL Image in any mode

        Returns:
            L-mode PIL Image of the same size
        """
        rgba = mask.convert("RGBA")
        black = SurgicalCompositor._acquire_surface(rgba.size, color=(0, 0, 0, 255))
        flattened = Image.alpha_composite(black, rgba)

        channels = np.asarray(flattened, dtype=np.uint16)[:, :, :3]
        alpha = np.rint(channels.sum(axis=2) / 3.0).astype(np.uint8)
        return Image.fromarray(alpha)

    @staticmethod
    def clip_to_alpha(image: 'Image.Image', alpha: 'Image.Image') -> 'Image.Image':
        """
        Keep image only where alpha is set (destination-in masking).

        new_alpha = image_alpha * alpha / 255. Pixels where alpha is 0 become
        fully transparent.

        Args:
            image: RGBA PIL Image
            alpha: L-mode PIL Image of the same size

        Returns:
            RGBA PIL Image with the clipped alpha channel
        """
        if image.size != alpha.size:
            raise ValueError(f"alpha size {alpha.size} does not match image size {image.size}")

        r, g, b, a = image.convert(WORKING_MODE).split()
        current = np.asarray(a, dtype=np.uint32)
        clip = np.asarray(alpha.convert("L"), dtype=np.uint32)
        new_alpha = ((current * clip + 127) // 255).astype(np.uint8)
        return Image.merge(WORKING_MODE, (r, g, b, Image.fromarray(new_alpha)))

    @staticmethod
    def _decode(source: Any, label: str) -> 'Image.Image':
        try:
            return decode_image(source)
        except ImageDecodeError as e:
            raise CompositorError(f"Failed to decode {label}: {e}") from e

    @staticmethod
    def _resample(image: 'Image.Image', size: Size, resample: Any) -> 'Image.Image':
        if image.size == size:
            return image
        return image.resize(size, resample)

    @staticmethod
    def _acquire_surface(size: Size, color: Any = (0, 0, 0, 0)) -> 'Image.Image':
        try:
            return Image.new(WORKING_MODE, size, color)
        except (MemoryError, ValueError) as e:
            raise SurfaceAcquisitionError(
                f"Could not allocate {size[0]}x{size[1]} drawing surface: {e}"
            ) from e


def composite_surgical_result(original: Any, ai_result: Any, mask: Any) -> 'Image.Image':
    """
    Composite an inpainting result over the original through the mask.

    Args:
        original: Source image
        ai_result: Replacement image from the inpainting service
        mask: Painted mask (white = replace, black = preserve)

    Returns:
        Composited RGBA PIL Image at the original's size

    Raises:
        CompositorError: If any input cannot be decoded or a surface cannot be allocated
    """
    return SurgicalCompositor.composite(original, ai_result, mask)
