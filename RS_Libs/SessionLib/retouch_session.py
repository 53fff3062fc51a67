"""
Retouch Session.

Ties the mask surface, the inpainting service, the surgical compositor and the
edit history together for one editing session.

A removal runs in three steps so a GUI can keep the service call off its
event thread:

1. begin_removal() snapshots the current image and mask and locks the surface.
2. The inpainter is called with the snapshot (any thread).
3. complete_removal() composites and records the result, or fail_removal()
   restores the prior state.

remove_object() performs all three synchronously.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from PIL import Image

from RS_Libs.errors import SystemBusyError
from RS_Libs.HistoryLib.edit_history import EditHistory
from RS_Libs.ImagingLib.image_io import encode_png, load_image, save_cleaned_image
from RS_Libs.ImagingLib.image_models import LoadedImage
from RS_Libs.ImagingLib.surgical_compositor import composite_surgical_result
from RS_Libs.InpaintingLib.retry_policy import Cooldown
from RS_Libs.MaskSurfaceLib.mask_surface import MaskSurface, ToolMode
from RS_Libs.MaskSurfaceLib.viewport import SizeF
from RS_Libs.settings import RetouchSettings

logger = logging.getLogger(__name__)

# (image_png, mask_png) -> encoded replacement image
Inpainter = Callable[[bytes, bytes], bytes]


@dataclass(frozen=True)
class RemovalRequest:
    """Snapshot taken when a removal starts.

    Attributes:
        image: Current image at the moment the request was issued
        image_png: PNG encoding of image sent to the service
        mask_png: PNG mask sent to the service and used for compositing
    """
    image: 'Image.Image'
    image_png: bytes
    mask_png: bytes


class RetouchSession:
    """Editing session for one image at a time."""

    def __init__(
        self,
        inpainter: Inpainter,
        settings: Optional[RetouchSettings] = None,
        surface: Optional[MaskSurface] = None,
        cooldown: Optional[Cooldown] = None,
    ):
        self.settings = settings or RetouchSettings()
        self.inpainter = inpainter
        self.surface = surface or MaskSurface()
        self.surface.on_mask_updated = self.update_mask
        self.cooldown = cooldown or Cooldown(self.settings.cooldown_seconds)
        self.history: EditHistory['Image.Image'] = EditHistory()
        self.loaded: Optional[LoadedImage] = None
        self.mask_png: Optional[bytes] = None
        self.is_processing = False
        self.show_original = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def has_image(self) -> bool:
        return not self.history.is_empty

    @property
    def current_image(self) -> Optional['Image.Image']:
        return self.history.current

    @property
    def original_image(self) -> Optional['Image.Image']:
        return self.history.original

    @property
    def display_image(self) -> Optional['Image.Image']:
        """Image to show: the original while show_original is on, else the current one."""
        if self.show_original and self.original_image is not None:
            return self.original_image
        return self.current_image

    @property
    def has_mask(self) -> bool:
        return self.mask_png is not None

    @property
    def can_remove(self) -> bool:
        return (
            self.has_image
            and self.has_mask
            and not self.is_processing
            and not self.cooldown.active
        )

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo and not self.is_processing

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo and not self.is_processing

    @property
    def tool_mode(self) -> ToolMode:
        return self.surface.tool_mode

    @tool_mode.setter
    def tool_mode(self, mode: ToolMode) -> None:
        self.surface.tool_mode = mode

    @property
    def brush_size(self) -> float:
        return self.surface.brush_size

    @brush_size.setter
    def brush_size(self, size: float) -> None:
        self.surface.brush_size = size

    # ------------------------------------------------------------------
    # Loading and mask updates
    # ------------------------------------------------------------------

    def load(
        self,
        source: Any,
        container_size: SizeF,
        container_origin: SizeF = (0.0, 0.0),
    ) -> LoadedImage:
        """
        Load a new image and start a fresh history.

        Raises:
            ImageDecodeError: If the source cannot be decoded
        """
        loaded = load_image(source)
        self.loaded = loaded
        self.history.reset(loaded.image)
        self.mask_png = None
        self.show_original = False
        self.surface.load(loaded, container_size, container_origin)
        return loaded

    def update_mask(self, mask_png: bytes) -> None:
        """Receive a freshly exported mask from the surface.

        A mask with nothing marked for replacement counts as no mask.
        """
        if self.surface.is_loaded and not self.surface.has_mask_content():
            self.mask_png = None
            return
        self.mask_png = mask_png

    def import_mask(self, source: Any) -> bool:
        """
        Replace the painted mask with a mask image (white = replace).

        Returns:
            False while no image is loaded or a removal is in progress

        Raises:
            ImageDecodeError: If the source cannot be decoded
        """
        if not self.surface.is_loaded:
            return False
        return self.surface.set_mask(source)

    def clear_mask(self) -> None:
        self.mask_png = None
        if self.surface.is_loaded:
            self.surface.clear_mask()

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def begin_removal(self) -> Optional[RemovalRequest]:
        """
        Snapshot image and mask and lock the surface.

        Returns:
            The request to send, or None if a removal cannot start now
        """
        if not self.can_remove:
            return None

        request = RemovalRequest(
            image=self.current_image,
            image_png=encode_png(self.current_image),
            mask_png=self.mask_png,
        )
        self.is_processing = True
        self.surface.lock()
        logger.info("Removal started")
        return request

    def complete_removal(self, request: RemovalRequest, ai_result: Any) -> 'Image.Image':
        """
        Composite the service result and record it as a new confirmed state.

        Raises:
            CompositorError: If the composite cannot be produced; the history
                is left untouched
        """
        try:
            result = composite_surgical_result(request.image, ai_result, request.mask_png)
        except Exception as e:
            self.fail_removal(e)
            raise

        self.history.push(result)
        self.is_processing = False
        self.surface.unlock()
        self.clear_mask()
        self._reset_view()
        logger.info(f"Removal confirmed; history has {len(self.history)} states")
        return result

    def fail_removal(self, error: BaseException) -> None:
        """Unlock after a failed removal, starting the cooldown if the service is busy."""
        self.is_processing = False
        self.surface.unlock()
        if isinstance(error, SystemBusyError):
            self.cooldown.start()
        logger.error(f"Removal failed: {error}")

    def remove_object(self) -> Optional['Image.Image']:
        """
        Remove the masked object synchronously.

        Returns:
            The new current image, or None if no removal could start

        Raises:
            InpaintingError: If the service fails
            CompositorError: If compositing fails
        """
        request = self.begin_removal()
        if request is None:
            return None

        try:
            ai_result = self.inpainter(request.image_png, request.mask_png)
        except Exception as e:
            self.fail_removal(e)
            raise

        return self.complete_removal(request, ai_result)

    # ------------------------------------------------------------------
    # History and saving
    # ------------------------------------------------------------------

    def undo(self) -> Optional['Image.Image']:
        if not self.can_undo:
            return self.current_image
        image = self.history.undo()
        self.clear_mask()
        self._reset_view()
        return image

    def redo(self) -> Optional['Image.Image']:
        if not self.can_redo:
            return self.current_image
        image = self.history.redo()
        self.clear_mask()
        self._reset_view()
        return image

    def _reset_view(self) -> None:
        # a newly shown current image starts at zoom 1 with no pan
        if self.surface.is_loaded:
            self.surface.reset_view()

    def toggle_original(self) -> Optional['Image.Image']:
        self.show_original = not self.show_original
        return self.display_image

    def save(self, output_dir: Optional[Path] = None) -> Optional[Path]:
        """
        Save the current image as a timestamped PNG.

        Returns:
            Path written, or None when no image is loaded
        """
        if self.current_image is None:
            return None
        target = Path(output_dir) if output_dir is not None else self.settings.output_path
        return save_cleaned_image(self.current_image, target)
