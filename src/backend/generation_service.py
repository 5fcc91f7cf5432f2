"""Generation service that turns a photo and a haircut description into images."""

from __future__ import annotations

import asyncio
import logging
import os
from io import BytesIO
from typing import Any

import requests
from PIL import Image, UnidentifiedImageError

from core.config import get_gemini_model, get_gemini_timeout
from core.encoding import to_transport
from core.prompts.prompt_templates import front_view, side_and_back_views
from core.schemas import Angle, ImageVariation

logger = logging.getLogger(__name__)

GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
DEFAULT_MIME_TYPE = "image/jpeg"
ANGLE_ORDER = (Angle.SIDE, Angle.BACK)


class ImageGenerationError(Exception):
    """Raised when the image model produces nothing usable."""

    pass


def detect_mime_type(image_data: bytes) -> str:
    """Best-effort media type of an uploaded photo."""
    try:
        with Image.open(BytesIO(image_data)) as image:
            return Image.MIME.get(image.format or "", DEFAULT_MIME_TYPE)
    except (UnidentifiedImageError, OSError):
        return DEFAULT_MIME_TYPE


def _parts(candidate: Any) -> list[dict]:
    if not isinstance(candidate, dict):
        return []
    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    return [p for p in parts or [] if isinstance(p, dict)]


def _inline_images(parts: list[dict]) -> list[str]:
    """Data URLs for every inline image part, in order."""
    images = []
    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict):
            continue
        mime_type = inline.get("mimeType") or inline.get("mime_type")
        data = inline.get("data")
        if mime_type and data:
            images.append(f"data:{mime_type};base64,{data}")
    return images


def _text(parts: list[dict]) -> str:
    return " ".join(p["text"].strip() for p in parts if isinstance(p.get("text"), str)).strip()


def _candidates(payload: Any) -> list:
    if not isinstance(payload, dict):
        raise ImageGenerationError("Unexpected response shape")
    return payload.get("candidates") or []


def parse_front_variations(payload: Any) -> list[ImageVariation]:
    """Every image of every candidate becomes a front view."""
    candidates = _candidates(payload)
    variations = [
        ImageVariation(image=url, angle=Angle.FRONT)
        for candidate in candidates
        for url in _inline_images(_parts(candidate))
    ]
    if variations:
        return variations

    fallback = " ".join(filter(None, (_text(_parts(c)) for c in candidates)))
    if fallback:
        logger.warning("Model returned text instead of a front image")
        return [ImageVariation(image=fallback, angle=Angle.FRONT)]

    logger.error("Model returned zero images for front view")
    raise ImageGenerationError("No images generated")


def parse_angle_variations(payload: Any) -> list[ImageVariation]:
    """The first candidate's first two images become the side and back views."""
    candidates = _candidates(payload)
    if not candidates:
        logger.error("Model returned no candidates for side/back views")
        raise ImageGenerationError("No angle images generated")

    # Later candidates repeat the same views
    parts = _parts(candidates[0])
    variations = [
        ImageVariation(image=url, angle=angle)
        for url, angle in zip(_inline_images(parts), ANGLE_ORDER)
    ]
    if variations:
        return variations

    fallback = _text(parts)
    if fallback:
        logger.warning("Model returned text instead of side/back images")
        return [ImageVariation(image=fallback, angle=Angle.SIDE)]

    logger.error("Model returned zero images for side/back views")
    raise ImageGenerationError("No angle images generated")


class GeminiImageService:
    """Calls the Gemini image model's generateContent endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model or get_gemini_model()
        self.timeout = timeout or get_gemini_timeout()
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return GEMINI_URL.format(model=self.model)

    def _get_api_key(self) -> str:
        api_key = self.api_key or os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ImageGenerationError("GEMINI_API_KEY environment variable not set")
        return api_key

    async def generate_haircut_images(
        self,
        prompt: str,
        image_data: bytes,
        generate_angles: bool = False,
    ) -> list[ImageVariation]:
        """Generate the front view, or the side and back views.

        Args:
            prompt: Haircut description from the user
            image_data: Raw photo bytes
            generate_angles: Generate side/back instead of front

        Returns:
            Variations tagged with their angle

        Raises:
            ImageGenerationError: If the model call fails or yields nothing
        """
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, lambda: self._generate(prompt, image_data, generate_angles)
        )

    def _generate(
        self, prompt: str, image_data: bytes, generate_angles: bool
    ) -> list[ImageVariation]:
        api_key = self._get_api_key()
        text = side_and_back_views(prompt) if generate_angles else front_view(prompt)

        logger.info(
            "Calling %s (generate_angles=%s, prompt_len=%d)",
            self.model,
            generate_angles,
            len(prompt),
        )

        body = {
            "contents": [
                {
                    "parts": [
                        {"text": text},
                        {
                            "inline_data": {
                                "mime_type": detect_mime_type(image_data),
                                "data": to_transport(image_data),
                            }
                        },
                    ]
                }
            ]
        }

        try:
            response = self.session.post(
                self.url,
                headers={"x-goog-api-key": api_key},
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ImageGenerationError(f"Gemini request failed: {e}") from e

        if not response.ok:
            logger.error(
                "Gemini API error %d: %s", response.status_code, response.text[:500]
            )
            raise ImageGenerationError(
                f"Gemini API error: {response.status_code} - {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ImageGenerationError("JSON parse error") from e

        if generate_angles:
            return parse_angle_variations(payload)
        return parse_front_variations(payload)


# Global generation service instance
generation_service = GeminiImageService()
