"""
InpaintingLib - External inpainting service access

Modules:
    retry_policy: Rate-limit retry and cooldown
    gemini_service: Gemini image model client
"""

from RS_Libs.InpaintingLib.retry_policy import Cooldown, call_with_retry, is_rate_limit_error
from RS_Libs.InpaintingLib.gemini_service import GeminiInpainter

__all__ = [
    "Cooldown",
    "call_with_retry",
    "is_rate_limit_error",
    "GeminiInpainter",
]
