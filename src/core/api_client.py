"""HTTP client for the haircut generation service."""

from __future__ import annotations

import asyncio
import logging

import requests

from core.config import get_request_timeout, get_service_url
from core.errors import FailureKind
from core.schemas import GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests. Please wait a minute before trying again."
SERVER_ERROR_MESSAGE = "Server error. Please try again."
CONNECTIVITY_MESSAGE = "Connection failed. Please check your internet and try again."
GENERIC_MESSAGE = "Something went wrong. Please try again."


def classify_status(status_code: int) -> tuple[FailureKind, str]:
    """Map a non-2xx HTTP status to a failure kind and user message."""
    if status_code == 429:
        return FailureKind.RATE_LIMITED, RATE_LIMITED_MESSAGE
    if status_code >= 500:
        return FailureKind.SERVER, SERVER_ERROR_MESSAGE
    return FailureKind.UNKNOWN, GENERIC_MESSAGE


class GenerationClient:
    """Posts generation requests and normalises every failure into a response.

    ``generate`` never raises for transport problems: non-2xx statuses,
    network errors and malformed bodies all come back as
    ``GenerationResponse(success=False)`` with a user-facing message.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or get_service_url()).rstrip("/")
        self.timeout = timeout or get_request_timeout()
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/generate"

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Send ``request`` without blocking the event loop."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.generate_sync, request)

    def generate_sync(self, request: GenerationRequest) -> GenerationResponse:
        logger.info(
            "Requesting %s generation (prompt_len=%d, image_chars=%d)",
            "angles" if request.generate_angles else "front",
            len(request.prompt),
            len(request.image_data),
        )

        try:
            response = self.session.post(
                self.endpoint,
                json=request.to_payload(),
                timeout=self.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.warning("Generation service unreachable: %s", e)
            return GenerationResponse.failed(
                CONNECTIVITY_MESSAGE, FailureKind.CONNECTIVITY
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Generation request failed: %s", e)
            return GenerationResponse.failed(GENERIC_MESSAGE)

        if not response.ok:
            kind, message = classify_status(response.status_code)
            logger.warning(
                "Generation service returned HTTP %d (%s)", response.status_code, kind.value
            )
            return GenerationResponse.failed(message, kind)

        try:
            result = GenerationResponse.model_validate(response.json())
        except ValueError as e:
            logger.warning("Malformed response from generation service: %s", e)
            return GenerationResponse.failed(GENERIC_MESSAGE)

        if not result.success:
            return GenerationResponse.failed(result.message, FailureKind.SERVICE)

        return result

    def close(self) -> None:
        self.session.close()
