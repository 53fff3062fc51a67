"""
Exception hierarchy for Retouch Studio.

Classes:
    RetouchError: Base class for every error raised by RS_Libs
    ImageDecodeError: A source could not be decoded as a raster image
    CompositorError: The surgical composite could not be produced
    SurfaceAcquisitionError: A drawing surface could not be allocated
    InpaintingError: The inpainting service returned no usable image
    ApiKeyMissingError: No API key is configured
    InvalidApiKeyError: The service rejected the API key
    SystemBusyError: The service kept rate-limiting after all retries
"""


class RetouchError(Exception):
    """Base class for Retouch Studio errors."""


class ImageDecodeError(RetouchError):
    """Raised when a source is not a decodable raster image."""


class CompositorError(RetouchError):
    """Raised when the surgical composite cannot be produced."""


class SurfaceAcquisitionError(CompositorError):
    """Raised when a drawing surface cannot be allocated."""


class InpaintingError(RetouchError):
    """Raised when the inpainting service returns no usable image."""


class ApiKeyMissingError(InpaintingError):
    """Raised when no API key is configured."""


class InvalidApiKeyError(InpaintingError):
    """Raised when the service rejects the configured API key."""


class SystemBusyError(InpaintingError):
    """Raised when the service is still rate-limiting after all retries."""
