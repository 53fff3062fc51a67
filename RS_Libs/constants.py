"""
Constants and configuration values for Retouch Studio.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the application.
"""

# Viewport constants
DISPLAY_PADDING = 80
MIN_ZOOM = 1.0
MAX_ZOOM = 5.0
ZOOM_STEP = 0.5

# Brush constants
DEFAULT_BRUSH_SIZE = 42
MIN_BRUSH_SIZE = 10
MAX_BRUSH_SIZE = 150

# Mask values
MASK_REPLACE_VALUE = 255
MASK_PRESERVE_VALUE = 0
MASK_MODE = "RGB"

# Working image mode
WORKING_MODE = "RGBA"

# UI constants
DEFAULT_WINDOW_WIDTH = 1400
DEFAULT_WINDOW_HEIGHT = 850
MASK_OVERLAY_COLOR = "#30e87a"
MASK_OVERLAY_OPACITY = 0.6
CANVAS_BACKGROUND_COLOR = "#12181b"

# Inpainting service
DEFAULT_MODEL = "gemini-2.5-flash-image"
PNG_MIME_TYPE = "image/png"
MAX_RETRIES = 2
RATE_LIMIT_WAITS = (5.0, 15.0)
COOLDOWN_SECONDS = 60
RATE_LIMIT_MARKERS = ("429", "Too many requests", "RESOURCE_EXHAUSTED")

INPAINTING_PROMPT = (
    "High-Fidelity Image Inpainting Task:\n"
    "1. You are provided with an 'Original Image' and a 'Binary Selection Mask'.\n"
    "2. The WHITE pixels in the mask indicate the exact object to be removed.\n"
    "3. Your goal: Remove the object and fill the gap by intelligently "
    "synthesizing the surrounding texture, lighting, and patterns.\n"
    "4. The result must be photorealistic and completely seamless.\n"
    "5. Crucial: Do not add any new objects, watermarks, or text.\n"
    "6. Output ONLY the processed image data."
)

# File naming
OUTPUT_FILE_PREFIX = "cleaned-image-"
DEFAULT_OUTPUT_FORMAT = "PNG"

# Environment variables
ENV_API_KEY = "API_KEY"
ENV_GEMINI_API_KEY = "GEMINI_API_KEY"
ENV_MODEL = "RETOUCH_MODEL"
ENV_OUTPUT_DIR = "RETOUCH_OUTPUT_DIR"
ENV_LOG_LEVEL = "RETOUCH_LOG_LEVEL"

# Supported file formats
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp"}
UPLOAD_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp)"
