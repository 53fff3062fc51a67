"""
Tests for image decoding, encoding and saving.
"""

import base64
from pathlib import Path

import pytest
from PIL import Image

from RS_Libs.errors import ImageDecodeError
from RS_Libs.ImagingLib.image_io import (
    decode_image,
    encode_png,
    is_supported_format,
    load_image,
    save_cleaned_image,
    strip_data_url,
    to_data_url,
)


@pytest.fixture
def small_image():
    return Image.new("RGB", (20, 10), (10, 200, 30))


class TestDecodeImage:
    """Tests for decode_image function."""

    def test_pil_image_converted_to_rgba(self, small_image):
        decoded = decode_image(small_image)

        assert decoded.mode == "RGBA"
        assert decoded.getpixel((0, 0)) == (10, 200, 30, 255)
        assert decoded is not small_image

    def test_png_bytes(self, small_image):
        decoded = decode_image(encode_png(small_image))

        assert decoded.size == (20, 10)
        assert decoded.mode == "RGBA"

    def test_data_url(self, small_image):
        decoded = decode_image(to_data_url(small_image))

        assert decoded.getpixel((5, 5)) == (10, 200, 30, 255)

    def test_file_path(self, small_image, tmp_path):
        path = tmp_path / "photo.jpg"
        small_image.save(path, format="JPEG")

        decoded = decode_image(str(path))

        assert decoded.size == (20, 10)

    def test_garbage_bytes_rejected(self):
        with pytest.raises(ImageDecodeError):
            decode_image(b"definitely not an image")

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(ImageDecodeError):
            decode_image(tmp_path / "missing.png")

    def test_unsupported_type_rejected(self):
        with pytest.raises(ImageDecodeError):
            decode_image(12345)

    def test_non_image_data_url_rejected(self):
        payload = base64.b64encode(b"hello").decode("ascii")

        with pytest.raises(ImageDecodeError):
            decode_image(f"data:text/plain;base64,{payload}")


class TestDataUrls:
    """Tests for data URL helpers."""

    def test_strip_data_url(self):
        mime, payload = strip_data_url("data:image/jpeg;base64,QUJD")

        assert mime == "image/jpeg"
        assert payload == "QUJD"

    def test_strip_rejects_plain_string(self):
        with pytest.raises(ImageDecodeError):
            strip_data_url("image/png;base64,QUJD")

    def test_strip_rejects_non_base64(self):
        with pytest.raises(ImageDecodeError):
            strip_data_url("data:image/png,rawdata")

    def test_to_data_url_prefix(self, small_image):
        assert to_data_url(small_image).startswith("data:image/png;base64,")


class TestLoadImage:
    """Tests for load_image function."""

    def test_records_source_path(self, small_image, tmp_path):
        path = tmp_path / "photo.png"
        small_image.save(path)

        loaded = load_image(path)

        assert loaded.source_path == path
        assert loaded.natural_size == (20, 10)
        assert loaded.width == 20
        assert loaded.height == 10

    def test_in_memory_source_has_no_path(self, small_image):
        assert load_image(to_data_url(small_image)).source_path is None
        assert load_image(small_image).source_path is None


class TestEncoding:
    """Tests for encode_png and format checks."""

    def test_encode_png_signature(self, small_image):
        assert encode_png(small_image).startswith(b"\x89PNG\r\n\x1a\n")

    def test_encode_rejects_non_image(self):
        with pytest.raises(TypeError):
            encode_png("not an image")

    @pytest.mark.parametrize("name,expected", [
        ("a.png", True),
        ("b.JPG", True),
        ("c.webp", True),
        ("d.txt", False),
        ("e", False),
    ])
    def test_is_supported_format(self, name, expected):
        assert is_supported_format(Path(name)) is expected


class TestSaveCleanedImage:
    """Tests for save_cleaned_image function."""

    def test_saves_timestamped_png(self, small_image, temp_output_dir):
        path = save_cleaned_image(small_image, temp_output_dir, timestamp_ms=1700000000000)

        assert path == temp_output_dir / "cleaned-image-1700000000000.png"
        assert path.exists()
        with Image.open(path) as saved:
            assert saved.format == "PNG"
            assert saved.size == (20, 10)

    def test_default_timestamp(self, small_image, temp_output_dir):
        path = save_cleaned_image(small_image, temp_output_dir)

        assert path.name.startswith("cleaned-image-")
        assert path.suffix == ".png"

    def test_missing_directory(self, small_image, tmp_path):
        with pytest.raises(OSError):
            save_cleaned_image(small_image, tmp_path / "nope")

    def test_path_is_file(self, small_image, tmp_path):
        file_path = tmp_path / "file.txt"
        file_path.write_text("x")

        with pytest.raises(OSError):
            save_cleaned_image(small_image, file_path)
