"""
Image decoding, encoding and saving for Retouch Studio.

Working buffers are always re-encoded as PNG so the compositor sees exact
alpha and color values.

Functions:
    decode_image: Decode a PIL Image, bytes, data URL or path into RGBA
    load_image: Decode a source into a LoadedImage
    encode_png: Encode an image as PNG bytes
    to_data_url: Encode an image as a PNG data URL
    strip_data_url: Split a data URL into its MIME type and base64 payload
    is_supported_format: Check a path against the supported upload formats
    save_cleaned_image: Save a result with a timestamped filename
"""

import base64
import binascii
import logging
import time
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from RS_Libs.constants import (
    DEFAULT_OUTPUT_FORMAT,
    OUTPUT_FILE_PREFIX,
    PNG_MIME_TYPE,
    SUPPORTED_STANDARD_IMAGES,
    WORKING_MODE,
)
from RS_Libs.errors import ImageDecodeError
from RS_Libs.ImagingLib.image_models import LoadedImage

logger = logging.getLogger(__name__)

ImageSource = Union['Image.Image', bytes, str, Path]

_DATA_URL_PREFIX = "data:"


def strip_data_url(data_url: str) -> Tuple[str, str]:
    """
    Split a base64 data URL into MIME type and payload.

    Args:
        data_url: String of the form 'data:<mime>;base64,<payload>'

    Returns:
        (mime_type, base64_payload)

    Raises:
        ImageDecodeError: If the string is not a base64 data URL
    """
    if not data_url.startswith(_DATA_URL_PREFIX) or "," not in data_url:
        raise ImageDecodeError("Not a data URL")

    header, payload = data_url.split(",", 1)
    mime_type = header[len(_DATA_URL_PREFIX):].split(";", 1)[0] or PNG_MIME_TYPE
    if ";base64" not in header:
        raise ImageDecodeError(f"Only base64 data URLs are supported, got header '{header}'")
    return mime_type, payload


def _open_bytes(data: bytes) -> 'Image.Image':
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image data: {e}") from e
    return image


def decode_image(source: Any) -> 'Image.Image':
    """
    Decode an image source into a new RGBA PIL Image.

    Args:
        source: PIL Image, raw encoded bytes, base64 data URL, or file path

    Returns:
        Decoded PIL Image in RGBA mode

    Raises:
        ImageDecodeError: If the source cannot be decoded as a raster image
    """
    if hasattr(source, "mode") and hasattr(source, "convert"):
        return source.convert(WORKING_MODE)

    if isinstance(source, (bytes, bytearray)):
        return _open_bytes(bytes(source)).convert(WORKING_MODE)

    if isinstance(source, str) and source.startswith(_DATA_URL_PREFIX):
        _, payload = strip_data_url(source)
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 payload: {e}") from e
        return _open_bytes(data).convert(WORKING_MODE)

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise ImageDecodeError(f"Image file not found: {path}")
        return _open_bytes(path.read_bytes()).convert(WORKING_MODE)

    raise ImageDecodeError(f"Unsupported image source type: {type(source)}")


def load_image(source: ImageSource) -> LoadedImage:
    """
    Fully decode an image source before anything else touches it.

    Args:
        source: PIL Image, raw encoded bytes, base64 data URL, or file path

    Returns:
        LoadedImage holding the decoded RGBA image

    Raises:
        ImageDecodeError: If the source cannot be decoded
    """
    image = decode_image(source)
    source_path = None
    if isinstance(source, Path) or (
        isinstance(source, str) and not source.startswith(_DATA_URL_PREFIX)
    ):
        source_path = Path(source)

    logger.info(f"Loaded image {image.width}x{image.height} from {source_path or 'memory'}")
    return LoadedImage(image=image, source_path=source_path)


def encode_png(image: Any) -> bytes:
    """
    Encode an image as PNG bytes.

    Args:
        image: PIL Image to encode

    Returns:
        PNG-encoded bytes
    """
    if not hasattr(image, "save"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(image: Any) -> str:
    """Encode an image as a base64 PNG data URL."""
    payload = base64.b64encode(encode_png(image)).decode("ascii")
    return f"{_DATA_URL_PREFIX}{PNG_MIME_TYPE};base64,{payload}"


def is_supported_format(file_path: Path) -> bool:
    """
    Check if a file path has a supported upload format.

    Args:
        file_path: Path to the file

    Returns:
        True if file extension is supported
    """
    return Path(file_path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


def save_cleaned_image(
    image: Any,
    output_dir: Path,
    timestamp_ms: Optional[int] = None,
) -> Path:
    """
    Save a cleaned image as PNG with a timestamped filename.

    The file is named 'cleaned-image-<milliseconds>.png'.

    Args:
        image: PIL Image to save
        output_dir: Directory path where the image should be saved
        timestamp_ms: Millisecond timestamp for the filename (defaults to now)

    Returns:
        Path of the written file

    Raises:
        OSError: If directory cannot be accessed or file cannot be written
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        raise OSError(f"Output directory does not exist: {output_dir}")

    if not output_dir.is_dir():
        raise OSError(f"Output path is not a directory: {output_dir}")

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    save_path = output_dir / f"{OUTPUT_FILE_PREFIX}{timestamp_ms}.png"
    image.save(save_path, format=DEFAULT_OUTPUT_FORMAT)
    logger.info(f"Saved cleaned image to {save_path}")
    return save_path
