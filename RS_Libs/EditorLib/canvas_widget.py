from typing import Any, Optional

from PIL import Image
from PyQt5.QtCore import QPointF, QRectF, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import QWidget

from RS_Libs.constants import (
    CANVAS_BACKGROUND_COLOR,
    MASK_OVERLAY_COLOR,
    MASK_OVERLAY_OPACITY,
    ZOOM_STEP,
)
from RS_Libs.ImagingLib.image_io import encode_png
from RS_Libs.MaskSurfaceLib.mask_surface import ToolMode
from RS_Libs.SessionLib.retouch_session import RetouchSession


def pil_to_pixmap(image: Any) -> QPixmap:
    pixmap = QPixmap()
    pixmap.loadFromData(encode_png(image), "PNG")
    return pixmap


def mask_overlay(mask: Any) -> Any:
    """Green tint whose opacity follows the mask brightness."""
    alpha = mask.convert("L").point(lambda v: int(v * MASK_OVERLAY_OPACITY))
    overlay = Image.new("RGBA", mask.size, MASK_OVERLAY_COLOR)
    overlay.putalpha(alpha)
    return overlay


class RetouchCanvas(QWidget):
    """Shows the working image with its mask and forwards pointer input to the mask surface."""

    maskEdited = pyqtSignal()
    viewChanged = pyqtSignal()

    def __init__(self, session: RetouchSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.processing_message = "Synthesizing pixels..."
        self._image_pixmap: Optional[QPixmap] = None
        self._overlay_pixmap: Optional[QPixmap] = None
        self._shown_image: Optional[Any] = None

        self.setMouseTracking(True)
        self.setMinimumSize(480, 380)

    @property
    def surface(self):
        return self.session.surface

    def container_size(self):
        return float(self.width()), float(self.height())

    def refresh_image(self) -> None:
        image = self.session.display_image
        if image is not self._shown_image:
            self._shown_image = image
            self._image_pixmap = pil_to_pixmap(image) if image is not None else None
        self.refresh_mask()

    def refresh_mask(self) -> None:
        if self.surface.is_loaded and not self.session.show_original:
            self._overlay_pixmap = pil_to_pixmap(mask_overlay(self.surface.mask))
        else:
            self._overlay_pixmap = None
        self.update()

    # Qt events

    def resizeEvent(self, event) -> None:
        self.surface.resize(self.container_size())
        super().resizeEvent(event)

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            return
        self.surface.pointer_down(event.x(), event.y())
        if self.surface.is_drawing:
            self.refresh_mask()

    def mouseMoveEvent(self, event) -> None:
        was_panning = self.surface.is_panning
        self.surface.pointer_move(event.x(), event.y())
        if self.surface.is_drawing:
            self.refresh_mask()
        else:
            if was_panning:
                self.viewChanged.emit()
            self.update()
        self._update_cursor()

    def mouseReleaseEvent(self, event) -> None:
        if self.surface.pointer_up() is not None:
            self.refresh_mask()
            self.maskEdited.emit()
        self._update_cursor()

    def leaveEvent(self, event) -> None:
        if self.surface.pointer_leave() is not None:
            self.refresh_mask()
            self.maskEdited.emit()
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event) -> None:
        if not self.surface.is_loaded:
            return
        delta = ZOOM_STEP if event.angleDelta().y() > 0 else -ZOOM_STEP
        self.surface.zoom(delta)
        self.viewChanged.emit()
        self.update()

    def _update_cursor(self) -> None:
        if self.surface.is_panning:
            self.setCursor(Qt.ClosedHandCursor)
        elif self.session.tool_mode is ToolMode.PAN:
            self.setCursor(Qt.OpenHandCursor)
        elif self.surface.brush_cursor() is not None:
            self.setCursor(Qt.BlankCursor)
        else:
            self.setCursor(Qt.ArrowCursor)

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(CANVAS_BACKGROUND_COLOR))

        if self._image_pixmap is None or not self.surface.is_loaded:
            painter.setPen(QColor("#8a8a8a"))
            painter.drawText(self.rect(), Qt.AlignCenter, "Open an image to begin")
            return

        rect = self.surface.viewport.display_rect()
        target = QRectF(rect.left, rect.top, rect.width, rect.height)

        if self.session.is_processing:
            painter.setOpacity(0.4)
        painter.drawPixmap(target, self._image_pixmap, QRectF(self._image_pixmap.rect()))
        painter.setOpacity(1.0)

        if self._overlay_pixmap is not None and not self.session.is_processing:
            painter.drawPixmap(target, self._overlay_pixmap, QRectF(self._overlay_pixmap.rect()))

        if self.session.is_processing:
            painter.setPen(QColor("#ffffff"))
            painter.drawText(target, Qt.AlignCenter, self.processing_message)
            return

        brush = self.surface.brush_cursor()
        if brush is not None:
            x, y, diameter = brush
            painter.setPen(QPen(QColor(MASK_OVERLAY_COLOR), 2))
            painter.setBrush(QColor(48, 232, 122, 26))
            painter.drawEllipse(QPointF(x, y), diameter / 2.0, diameter / 2.0)
