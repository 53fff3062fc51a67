import logging
from pathlib import Path
from typing import Any, Optional

from PyQt5.QtCore import QThread, QTimer, Qt, pyqtSignal
from PyQt5.QtWidgets import (
    QButtonGroup,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from RS_Libs.constants import (
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    MAX_BRUSH_SIZE,
    MIN_BRUSH_SIZE,
    UPLOAD_FILE_FILTER,
    ZOOM_STEP,
)
from RS_Libs.EditorLib.canvas_widget import RetouchCanvas
from RS_Libs.errors import ImageDecodeError, RetouchError, SystemBusyError
from RS_Libs.InpaintingLib.gemini_service import GeminiInpainter
from RS_Libs.MaskSurfaceLib.mask_surface import ToolMode
from RS_Libs.SessionLib.retouch_session import Inpainter, RemovalRequest, RetouchSession
from RS_Libs.settings import RetouchSettings

logger = logging.getLogger(__name__)


class InpaintWorker(QThread):
    """Runs one inpainting request off the UI thread."""

    succeeded = pyqtSignal(bytes)
    failed = pyqtSignal(object)

    def __init__(self, inpainter: Inpainter, request: RemovalRequest) -> None:
        super().__init__()
        self.inpainter = inpainter
        self.request = request

    def run(self) -> None:
        try:
            result = self.inpainter(self.request.image_png, self.request.mask_png)
        except Exception as e:
            self.failed.emit(e)
            return
        self.succeeded.emit(result)


class RetouchEditorWindow(QMainWindow):
    def __init__(
        self,
        settings: Optional[RetouchSettings] = None,
        inpainter: Optional[Inpainter] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or RetouchSettings.from_env()
        if inpainter is None:
            inpainter = GeminiInpainter(self.settings).remove_object
        self.session = RetouchSession(inpainter, settings=self.settings)
        self._worker: Optional[InpaintWorker] = None
        self._pending: Optional[RemovalRequest] = None

        self.setWindowTitle("Retouch Studio")
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        self._build_ui()
        self._connect_signals()

        self.cooldown_timer = QTimer(self)
        self.cooldown_timer.setInterval(1000)
        self.cooldown_timer.timeout.connect(self.refresh_controls)
        self.cooldown_timer.start()

        self.refresh_controls()

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)

        root = QHBoxLayout(central)
        controls_col = QVBoxLayout()

        self.btn_open = QPushButton("Open Image")
        self.btn_brush = QPushButton("Brush")
        self.btn_eraser = QPushButton("Eraser")
        self.btn_pan = QPushButton("Pan")
        self.tool_group = QButtonGroup(self)
        for button, mode in (
            (self.btn_brush, ToolMode.BRUSH),
            (self.btn_eraser, ToolMode.ERASER),
            (self.btn_pan, ToolMode.PAN),
        ):
            button.setCheckable(True)
            button.setProperty("tool_mode", mode.value)
            self.tool_group.addButton(button)
        self.btn_brush.setChecked(True)

        self.slider_brush = QSlider(Qt.Horizontal)
        self.slider_brush.setRange(MIN_BRUSH_SIZE, MAX_BRUSH_SIZE)
        self.slider_brush.setValue(int(self.session.brush_size))
        self.label_brush = QLabel(f"Brush: {int(self.session.brush_size)} px")

        self.btn_remove = QPushButton("Remove Object")
        self.btn_undo = QPushButton("Undo")
        self.btn_redo = QPushButton("Redo")
        self.btn_show_original = QPushButton("Show Original")
        self.btn_show_original.setCheckable(True)
        self.btn_load_mask = QPushButton("Load Mask")
        self.btn_clear_mask = QPushButton("Clear Mask")
        self.btn_save = QPushButton("Save")

        self.btn_zoom_in = QPushButton("Zoom In")
        self.btn_zoom_out = QPushButton("Zoom Out")
        self.btn_zoom_reset = QPushButton("Reset View")
        self.label_zoom = QLabel("100%")
        self.label_status = QLabel("")
        self.label_status.setWordWrap(True)

        controls_col.addWidget(self.btn_open)
        controls_col.addWidget(QLabel("Tool"))
        controls_col.addWidget(self.btn_brush)
        controls_col.addWidget(self.btn_eraser)
        controls_col.addWidget(self.btn_pan)
        controls_col.addWidget(self.label_brush)
        controls_col.addWidget(self.slider_brush)
        controls_col.addWidget(self.btn_remove)
        controls_col.addWidget(self.btn_load_mask)
        controls_col.addWidget(self.btn_clear_mask)
        controls_col.addWidget(self.btn_undo)
        controls_col.addWidget(self.btn_redo)
        controls_col.addWidget(self.btn_show_original)
        controls_col.addWidget(QLabel("View"))
        controls_col.addWidget(self.btn_zoom_in)
        controls_col.addWidget(self.btn_zoom_out)
        controls_col.addWidget(self.btn_zoom_reset)
        controls_col.addWidget(self.label_zoom)
        controls_col.addStretch(1)
        controls_col.addWidget(self.label_status)
        controls_col.addWidget(self.btn_save)

        self.canvas = RetouchCanvas(self.session)

        root.addLayout(controls_col, stretch=0)
        root.addWidget(self.canvas, stretch=1)

    def _connect_signals(self) -> None:
        self.btn_open.clicked.connect(self.open_image)
        self.tool_group.buttonClicked.connect(self.on_tool_selected)
        self.slider_brush.valueChanged.connect(self.on_brush_size_changed)
        self.btn_remove.clicked.connect(self.remove_object)
        self.btn_load_mask.clicked.connect(self.load_mask)
        self.btn_clear_mask.clicked.connect(self.clear_mask)
        self.btn_undo.clicked.connect(self.undo)
        self.btn_redo.clicked.connect(self.redo)
        self.btn_show_original.toggled.connect(self.on_show_original)
        self.btn_save.clicked.connect(self.save_current)
        self.btn_zoom_in.clicked.connect(lambda: self.zoom(ZOOM_STEP))
        self.btn_zoom_out.clicked.connect(lambda: self.zoom(-ZOOM_STEP))
        self.btn_zoom_reset.clicked.connect(self.reset_view)
        self.canvas.maskEdited.connect(self.refresh_controls)
        self.canvas.viewChanged.connect(self.refresh_controls)

    def open_image(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Image", "", UPLOAD_FILE_FILTER)
        if not file_path:
            return

        try:
            self.session.load(Path(file_path), self.canvas.container_size())
        except ImageDecodeError as e:
            QMessageBox.warning(self, "Open Failed", str(e))
            return

        self.btn_show_original.setChecked(False)
        self.canvas.refresh_image()
        self.refresh_controls()

    def on_tool_selected(self, button: QPushButton) -> None:
        self.session.tool_mode = ToolMode(button.property("tool_mode"))
        self.canvas.update()

    def on_brush_size_changed(self, value: int) -> None:
        self.session.brush_size = value
        self.label_brush.setText(f"Brush: {value} px")

    def on_show_original(self, checked: bool) -> None:
        if self.session.show_original != checked:
            self.session.toggle_original()
        self.canvas.refresh_image()

    def zoom(self, delta: float) -> None:
        if not self.session.surface.is_loaded:
            return
        self.session.surface.zoom(delta)
        self.canvas.update()
        self.refresh_controls()

    def reset_view(self) -> None:
        if not self.session.surface.is_loaded:
            return
        self.session.surface.reset_view()
        self.canvas.update()
        self.refresh_controls()

    def load_mask(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Mask", "", UPLOAD_FILE_FILTER)
        if not file_path:
            return

        try:
            self.session.import_mask(Path(file_path))
        except ImageDecodeError as e:
            QMessageBox.warning(self, "Open Failed", str(e))
            return

        self.canvas.refresh_mask()
        self.refresh_controls()

    def clear_mask(self) -> None:
        self.session.clear_mask()
        self.canvas.refresh_mask()
        self.refresh_controls()

    def remove_object(self) -> None:
        request = self.session.begin_removal()
        if request is None:
            return

        self._pending = request
        self._worker = InpaintWorker(self.session.inpainter, request)
        self._worker.succeeded.connect(self.on_inpaint_succeeded)
        self._worker.failed.connect(self.on_inpaint_failed)
        self._worker.start()
        self.canvas.update()
        self.refresh_controls()

    def on_inpaint_succeeded(self, result: bytes) -> None:
        request, self._pending = self._pending, None
        try:
            self.session.complete_removal(request, result)
        except RetouchError as e:
            logger.exception("Compositing failed")
            QMessageBox.warning(self, "AI Error", str(e))
        self._finish_worker()

    def on_inpaint_failed(self, error: Any) -> None:
        self._pending = None
        self.session.fail_removal(error)
        if isinstance(error, SystemBusyError):
            QMessageBox.warning(
                self,
                "Service Busy",
                f"The API is currently busy. A {self.settings.cooldown_seconds}-second "
                f"cooldown is required to reset your quota.",
            )
        else:
            QMessageBox.warning(self, "AI Error", f"AI Error: {error}")
        self._finish_worker()

    def _finish_worker(self) -> None:
        if self._worker is not None:
            self._worker.wait()
            self._worker.deleteLater()
            self._worker = None
        self.canvas.refresh_image()
        self.refresh_controls()

    def undo(self) -> None:
        self.session.undo()
        self.canvas.refresh_image()
        self.refresh_controls()

    def redo(self) -> None:
        self.session.redo()
        self.canvas.refresh_image()
        self.refresh_controls()

    def save_current(self) -> None:
        if not self.session.has_image:
            return

        folder = QFileDialog.getExistingDirectory(
            self, "Select Save Directory", str(self.settings.output_path)
        )
        if not folder:
            return

        try:
            save_path = self.session.save(Path(folder))
        except OSError as e:
            QMessageBox.warning(self, "Save Failed", str(e))
            return
        QMessageBox.information(self, "Success", f"Image saved to {save_path}")

    def refresh_controls(self) -> None:
        session = self.session
        has_image = session.has_image
        busy = session.is_processing
        remaining = session.cooldown.remaining

        self.btn_remove.setEnabled(session.can_remove)
        self.btn_clear_mask.setEnabled(session.has_mask and not busy)
        self.btn_load_mask.setEnabled(has_image and not busy)
        self.btn_undo.setEnabled(session.can_undo)
        self.btn_redo.setEnabled(session.can_redo)
        self.btn_save.setEnabled(has_image and not busy)
        self.btn_show_original.setEnabled(has_image)
        self.btn_open.setEnabled(not busy)
        for button in (self.btn_zoom_in, self.btn_zoom_out, self.btn_zoom_reset):
            button.setEnabled(has_image)

        if session.surface.is_loaded:
            self.label_zoom.setText(f"{round(session.surface.viewport.zoom * 100)}%")

        if busy:
            self.label_status.setText("Removing object...")
        elif remaining > 0:
            self.label_status.setText(f"Cooldown: {remaining}s")
        else:
            self.label_status.setText("")

    def closeEvent(self, event) -> None:
        if self._worker is not None and self._worker.isRunning():
            logger.info("Waiting for the running removal to finish before closing")
            self._worker.wait()
        self.cooldown_timer.stop()
        super().closeEvent(event)
