"""
Tests for RetouchSession.

Tests cover:
- Load, paint, remove, confirm flow
- Surface locking while the inpainter runs
- Failure handling and the busy cooldown
- Undo/redo, show-original and saving
"""

import pytest
from PIL import Image

from RS_Libs.errors import (
    CompositorError,
    InpaintingError,
    SurfaceAcquisitionError,
    SystemBusyError,
)
from RS_Libs.ImagingLib.image_io import encode_png
from RS_Libs.InpaintingLib.retry_policy import Cooldown
from RS_Libs.MaskSurfaceLib.brush import StrokeMode
from RS_Libs.MaskSurfaceLib.mask_surface import ToolMode
from RS_Libs.SessionLib.retouch_session import RetouchSession

CONTAINER_SIZE = (480.0, 380.0)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class RecordingInpainter:
    """Inpainter that records calls and returns a fixed result or raises."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.on_call = None

    def __call__(self, image_png, mask_png):
        self.calls.append((image_png, mask_png))
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inpainter(blue_png):
    return RecordingInpainter(result=blue_png)


@pytest.fixture
def session(inpainter, red_image, clock):
    session = RetouchSession(inpainter, cooldown=Cooldown(60, clock=clock))
    session.load(red_image, CONTAINER_SIZE)
    return session


def paint_left_blob(session):
    session.surface.begin_stroke((100, 150), StrokeMode.PAINT, brush_size=100)
    session.surface.end_stroke()


def zoom_and_pan(session):
    session.surface.zoom(1.5)
    session.tool_mode = ToolMode.PAN
    session.surface.pan(25, -10)
    session.tool_mode = ToolMode.BRUSH


class TestLoading:
    """Tests for loading images into a session."""

    def test_load_starts_history(self, session):
        assert session.has_image
        assert session.current_image.size == (400, 300)
        assert session.current_image is session.original_image
        assert not session.can_undo
        assert not session.has_mask

    def test_reload_discards_history_and_mask(self, session, red_image):
        paint_left_blob(session)
        session.remove_object()

        session.load(red_image, CONTAINER_SIZE)

        assert len(session.history) == 1
        assert not session.has_mask
        assert not session.surface.has_mask_content()

    def test_stroke_updates_session_mask(self, session):
        paint_left_blob(session)

        assert session.has_mask
        assert session.mask_png.startswith(b"\x89PNG")

    def test_settings_passthrough(self, session):
        session.brush_size = 80
        session.tool_mode = ToolMode.ERASER

        assert session.surface.brush_size == 80
        assert session.surface.tool_mode is ToolMode.ERASER


class TestRemoval:
    """Tests for the removal flow."""

    def test_remove_object_composites_masked_region(self, session, inpainter):
        paint_left_blob(session)

        result = session.remove_object()

        assert len(inpainter.calls) == 1
        assert result.size == (400, 300)
        assert result.getpixel((100, 150)) == BLUE
        assert result.getpixel((350, 150)) == RED
        assert result.getpixel((100, 10)) == RED
        assert session.current_image is result
        assert len(session.history) == 2

    def test_remove_clears_mask_and_unlocks(self, session):
        paint_left_blob(session)

        session.remove_object()

        assert not session.has_mask
        assert not session.surface.has_mask_content()
        assert not session.surface.is_locked
        assert not session.is_processing

    def test_surface_locked_during_service_call(self, session, inpainter):
        observed = {}

        def check_lock():
            observed["locked"] = session.surface.is_locked
            observed["processing"] = session.is_processing
            observed["stroke"] = session.surface.begin_stroke((300, 150), StrokeMode.PAINT)
            observed["can_undo"] = session.can_undo

        inpainter.on_call = check_lock
        paint_left_blob(session)

        result = session.remove_object()

        assert observed == {"locked": True, "processing": True, "stroke": False, "can_undo": False}
        assert result.getpixel((300, 150)) == RED

    def test_request_snapshot_used_for_compositing(self, session, blue_png):
        paint_left_blob(session)
        request = session.begin_removal()

        assert session.begin_removal() is None

        result = session.complete_removal(request, blue_png)

        assert result.getpixel((100, 150)) == BLUE
        assert result.getpixel((300, 150)) == RED

    def test_no_removal_without_mask(self, session, inpainter):
        assert session.remove_object() is None
        assert inpainter.calls == []

    def test_no_removal_without_image(self, inpainter):
        session = RetouchSession(inpainter)

        assert not session.can_remove
        assert session.begin_removal() is None

    def test_service_failure_keeps_state(self, session, inpainter):
        inpainter.error = InpaintingError("AI feedback: nope")
        paint_left_blob(session)

        with pytest.raises(InpaintingError):
            session.remove_object()

        assert len(session.history) == 1
        assert session.has_mask
        assert not session.surface.is_locked
        assert not session.is_processing
        assert not session.cooldown.active

    def test_busy_service_starts_cooldown(self, session, inpainter, clock):
        inpainter.error = SystemBusyError("Rate limit exceeded")
        paint_left_blob(session)

        with pytest.raises(SystemBusyError):
            session.remove_object()

        assert session.cooldown.active
        assert not session.can_remove
        assert session.begin_removal() is None

        clock.now += 60
        assert session.can_remove

    def test_undecodable_result_raises_compositor_error(self, session, inpainter):
        inpainter.result = b"not a png"
        paint_left_blob(session)

        with pytest.raises(CompositorError):
            session.remove_object()

        assert len(session.history) == 1
        assert not session.surface.is_locked

    def test_result_at_other_resolution(self, session, inpainter):
        inpainter.result = encode_png(Image.new("RGBA", (1024, 768), BLUE))
        paint_left_blob(session)

        result = session.remove_object()

        assert result.size == (400, 300)
        assert result.getpixel((100, 150)) == BLUE


class TestHistoryAndSaving:
    """Tests for undo/redo, show-original and saving."""

    def test_undo_redo(self, session):
        original = session.current_image
        paint_left_blob(session)
        edited = session.remove_object()

        assert session.undo() is original
        assert session.can_redo
        assert session.redo() is edited
        assert not session.can_redo

    def test_undo_clears_mask(self, session):
        paint_left_blob(session)
        session.remove_object()
        paint_left_blob(session)

        session.undo()

        assert not session.has_mask
        assert not session.surface.has_mask_content()

    def test_new_removal_clears_redo(self, session):
        paint_left_blob(session)
        session.remove_object()
        session.undo()

        paint_left_blob(session)
        session.remove_object()

        assert not session.can_redo
        assert len(session.history) == 2

    def test_toggle_original(self, session):
        paint_left_blob(session)
        edited = session.remove_object()

        assert session.toggle_original() is session.original_image
        assert session.display_image is session.original_image
        assert session.toggle_original() is edited

    def test_save_writes_current_image(self, session, temp_output_dir):
        paint_left_blob(session)
        session.remove_object()

        path = session.save(temp_output_dir)

        assert path.parent == temp_output_dir
        assert path.name.startswith("cleaned-image-")
        with Image.open(path) as saved:
            assert saved.convert("RGBA").getpixel((100, 150)) == BLUE

    def test_save_without_image(self, inpainter, temp_output_dir):
        assert RetouchSession(inpainter).save(temp_output_dir) is None


class TestMaskGating:
    """Tests for when a mask counts as something to remove."""

    def test_fully_erased_mask_blocks_removal(self, session, inpainter):
        paint_left_blob(session)
        session.surface.begin_stroke((100, 150), StrokeMode.ERASE, brush_size=100)
        session.surface.end_stroke()

        assert not session.has_mask
        assert not session.can_remove
        assert session.remove_object() is None
        assert inpainter.calls == []
        assert len(session.history) == 1

    def test_partially_erased_mask_still_removable(self, session):
        paint_left_blob(session)
        session.surface.begin_stroke((100, 150), StrokeMode.ERASE, brush_size=20)
        session.surface.end_stroke()

        assert session.has_mask
        assert session.can_remove

    def test_import_mask_updates_session_mask(self, session, inpainter):
        mask = Image.new("RGB", (400, 300), "black")
        mask.paste((255, 255, 255), (0, 0, 200, 300))

        assert session.import_mask(mask) is True

        assert session.has_mask
        result = session.remove_object()
        assert result.getpixel((100, 150)) == BLUE
        assert result.getpixel((300, 150)) == RED
        assert inpainter.calls[0][1].startswith(b"\x89PNG")

    def test_import_blank_mask_counts_as_no_mask(self, session):
        paint_left_blob(session)

        session.import_mask(Image.new("RGB", (400, 300), "black"))

        assert not session.has_mask

    def test_import_mask_without_image(self, inpainter):
        assert RetouchSession(inpainter).import_mask(Image.new("RGB", (4, 4), "white")) is False


class TestSurfaceAcquisitionFailure:
    """Tests for running out of memory while compositing."""

    def test_history_and_lock_restored(self, session, inpainter, monkeypatch):
        paint_left_blob(session)

        def no_memory(*args, **kwargs):
            raise MemoryError("out of memory")

        monkeypatch.setattr(Image, "new", no_memory)

        with pytest.raises(SurfaceAcquisitionError):
            session.remove_object()

        monkeypatch.undo()
        assert len(inpainter.calls) == 1
        assert len(session.history) == 1
        assert not session.surface.is_locked
        assert not session.is_processing
        assert session.has_mask


class TestViewReset:
    """Tests that a newly shown current image starts at zoom 1 with no pan."""

    def test_confirmed_edit_resets_view(self, session):
        paint_left_blob(session)
        zoom_and_pan(session)
        assert not session.surface.viewport.is_identity

        session.remove_object()

        assert session.surface.viewport.is_identity

    def test_undo_and_redo_reset_view(self, session):
        paint_left_blob(session)
        session.remove_object()

        zoom_and_pan(session)
        session.undo()
        assert session.surface.viewport.is_identity

        zoom_and_pan(session)
        session.redo()
        assert session.surface.viewport.is_identity

    def test_failed_removal_keeps_view(self, session, inpainter):
        inpainter.error = InpaintingError("AI feedback: nope")
        paint_left_blob(session)
        zoom_and_pan(session)

        with pytest.raises(InpaintingError):
            session.remove_object()

        assert session.surface.viewport.zoom == 2.5
        assert session.surface.viewport.offset == (25.0, -10.0)

    def test_toggle_original_keeps_view(self, session):
        paint_left_blob(session)
        session.remove_object()
        zoom_and_pan(session)

        session.toggle_original()

        assert not session.surface.viewport.is_identity
