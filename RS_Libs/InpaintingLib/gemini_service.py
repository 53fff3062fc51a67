"""
Gemini inpainting client.

Sends the current image and the painted mask to a Gemini image model and
returns the proposed replacement image. The result is a full image, possibly
at a different resolution; merging it back is the compositor's job.

Classes:
    GeminiInpainter: Object-removal client for the Gemini image API
"""

import base64
import logging
import time
from typing import Any, Callable, Optional

from google import genai
from google.genai import types as genai_types

from RS_Libs.constants import INPAINTING_PROMPT, PNG_MIME_TYPE
from RS_Libs.errors import (
    ApiKeyMissingError,
    InpaintingError,
    InvalidApiKeyError,
    SystemBusyError,
)
from RS_Libs.InpaintingLib.retry_policy import call_with_retry, is_rate_limit_error
from RS_Libs.settings import RetouchSettings

logger = logging.getLogger(__name__)


def _is_auth_error(error: BaseException) -> bool:
    for attr in ("code", "status", "status_code"):
        if getattr(error, attr, None) == 401:
            return True
    return "401" in str(error)


class GeminiInpainter:
    """
    Removes masked objects through the Gemini image model.

    Example:
        >>> inpainter = GeminiInpainter(RetouchSettings.from_env())
        >>> result_png = inpainter.remove_object(image_png, mask_png)
    """

    def __init__(
        self,
        settings: RetouchSettings,
        client: Optional[Any] = None,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.settings = settings
        self._client = client
        self._sleep = sleep

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.settings.has_api_key:
                raise ApiKeyMissingError(
                    "API Key not found. Set API_KEY or GEMINI_API_KEY in the environment."
                )
            self._client = genai.Client(api_key=self.settings.api_key)
        return self._client

    def _build_contents(self, image_png: bytes, mask_png: bytes) -> list:
        return [
            genai_types.Part.from_text(text=INPAINTING_PROMPT),
            genai_types.Part.from_bytes(data=image_png, mime_type=PNG_MIME_TYPE),
            genai_types.Part.from_bytes(data=mask_png, mime_type=PNG_MIME_TYPE),
        ]

    def remove_object(self, image_png: bytes, mask_png: bytes) -> bytes:
        """
        Ask the model to remove the masked object.

        Args:
            image_png: Current image as PNG bytes
            mask_png: Mask as PNG bytes, white marks the object

        Returns:
            Encoded bytes of the model's replacement image

        Raises:
            ApiKeyMissingError: No API key configured
            InvalidApiKeyError: The service rejected the key
            SystemBusyError: Still rate-limited after all retries
            InpaintingError: Any other failure or an unusable response
        """
        client = self._get_client()
        contents = self._build_contents(image_png, mask_png)

        def request() -> Any:
            return client.models.generate_content(
                model=self.settings.model,
                contents=contents,
                config=genai_types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )

        try:
            response = call_with_retry(
                request,
                max_retries=self.settings.max_retries,
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error(f"Gemini service error: {e}")
            if _is_auth_error(e):
                raise InvalidApiKeyError("Invalid API Key. Please check your settings.") from e
            if is_rate_limit_error(e):
                raise SystemBusyError(
                    "Rate limit exceeded (Too many requests). Please wait 60 seconds and try again."
                ) from e
            raise InpaintingError(f"Request failed: {e}") from e

        return self._extract_image(response)

    @staticmethod
    def _extract_image(response: Any) -> bytes:
        candidates = getattr(response, "candidates", None) or []
        first = candidates[0] if candidates else None

        finish_reason = getattr(first, "finish_reason", None)
        if finish_reason is not None and getattr(finish_reason, "name", str(finish_reason)) == "SAFETY":
            raise InpaintingError(
                "The AI blocked this request due to safety filters. "
                "Try a different image or selection."
            )

        content = getattr(first, "content", None)
        parts = getattr(content, "parts", None)
        if not parts:
            raise InpaintingError("The AI returned an empty response. The image might be too complex.")

        texts = []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if data:
                if isinstance(data, str):
                    data = base64.b64decode(data)
                logger.info(f"Received {len(data)} bytes of inpainted image")
                return data
            text = getattr(part, "text", None)
            if text:
                texts.append(text)

        if texts:
            raise InpaintingError(f"AI feedback: {''.join(texts)}")

        raise InpaintingError("No image was generated. Try making your mask selection tighter.")
