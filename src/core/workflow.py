"""Generation workflow: upload, optional compression, front view, side/back views.

A :class:`GenerationWorkflow` owns one user's photo and the generated results
for the lifetime of a page session. ``upload_image``, ``generate_front`` and
``generate_angles`` are its only mutators; the current state and the
``has_front_result``/``has_angles`` flags are computed from the stored fields
on every read.

Each request remembers the identity token of the image it was made for. A
response that arrives after a new upload carries a stale token and is dropped.
"""

from __future__ import annotations

import logging
from typing import Protocol

from core.compression import ImageCompressor
from core.config import get_compression_safety_factor, get_compression_threshold_bytes
from core.encoding import to_transport
from core.errors import (
    EmptyResultError,
    FailureKind,
    GenerationError,
    UnsupportedFormatError,
    WorkflowError,
)
from core.schemas import (
    Angle,
    CompressedImage,
    DisplayItem,
    GenerationRequest,
    GenerationResponse,
    ImageVariation,
    PendingItem,
    RequestKind,
    ResultItem,
    SourceImage,
    WorkflowState,
    WorkflowView,
)

logger = logging.getLogger(__name__)

UNSUPPORTED_SUFFIXES = ("heic", "heif")
FRONT_FAILURE_MESSAGE = "Failed to generate reference image"
ANGLES_FAILURE_MESSAGE = "Failed to generate side and back views"


class GenerationBackend(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResponse: ...


class Compressor(Protocol):
    async def compress(self, source: SourceImage, target_bytes: int) -> CompressedImage: ...


def is_unsupported_format(name: str) -> bool:
    """True for HEIC/HEIF file names, which the service cannot read."""
    return name.lower().endswith(UNSUPPORTED_SUFFIXES)


class GenerationWorkflow:
    """State machine sequencing compression and the two generation requests."""

    def __init__(
        self,
        client: GenerationBackend,
        compressor: Compressor | None = None,
        threshold_bytes: int | None = None,
        safety_factor: float | None = None,
    ):
        """Initialize the workflow.

        Args:
            client: Generation service client
            compressor: Compression engine (defaults to ImageCompressor)
            threshold_bytes: Images larger than this are compressed first
            safety_factor: Fraction of the threshold used as the byte budget
        """
        self.client = client
        self.compressor = compressor or ImageCompressor()
        self.threshold_bytes = (
            threshold_bytes
            if threshold_bytes is not None
            else get_compression_threshold_bytes()
        )
        self.safety_factor = (
            safety_factor
            if safety_factor is not None
            else get_compression_safety_factor()
        )

        self._image: SourceImage | None = None
        self._image_token = 0
        self._prepared: SourceImage | CompressedImage | None = None
        self._results: list[ImageVariation] = []
        self._prompt: str | None = None
        self._error: WorkflowError | None = None
        self._in_flight: dict[RequestKind, int] = {}

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def image(self) -> SourceImage | None:
        return self._image

    @property
    def prompt(self) -> str | None:
        return self._prompt

    @property
    def error(self) -> WorkflowError | None:
        return self._error

    @property
    def results(self) -> tuple[ImageVariation, ...]:
        return tuple(self._results)

    @property
    def has_front_result(self) -> bool:
        return any(v.angle is Angle.FRONT for v in self._results)

    @property
    def has_angles(self) -> bool:
        return any(v.angle in (Angle.SIDE, Angle.BACK) for v in self._results)

    @property
    def state(self) -> WorkflowState:
        if self._image is None:
            return WorkflowState.NO_IMAGE
        if self._is_in_flight(RequestKind.FRONT):
            return WorkflowState.GENERATING_FRONT
        if self._is_in_flight(RequestKind.ANGLES):
            return WorkflowState.GENERATING_ANGLES
        if self.has_angles:
            return WorkflowState.ANGLES_READY
        if self.has_front_result:
            return WorkflowState.FRONT_READY
        return WorkflowState.IMAGE_READY

    def display_items(self) -> list[DisplayItem]:
        """Results in display order, plus placeholders for angles in progress."""
        items: list[DisplayItem] = [ResultItem(variation=v) for v in self._results]
        if self._is_in_flight(RequestKind.ANGLES):
            items.extend(PendingItem(angle=angle) for angle in (Angle.SIDE, Angle.BACK))
        return items

    def view(self) -> WorkflowView:
        return WorkflowView(
            state=self.state,
            image=self._image,
            prompt=self._prompt,
            error=self._error.user_message if self._error else None,
            items=self.display_items(),
            has_front_result=self.has_front_result,
            has_angles=self.has_angles,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def upload_image(
        self, data: bytes, name: str, content_type: str | None = None
    ) -> bool:
        """Accept a new photo, discarding everything derived from the old one.

        Returns:
            False when the file is HEIC/HEIF; the error is recorded and the
            upload is not accepted
        """
        if is_unsupported_format(name):
            logger.info("Rejected unsupported upload %s", name)
            self._error = UnsupportedFormatError()
            return False

        self._image = SourceImage(data=data, name=name, content_type=content_type)
        self._image_token += 1
        self._prepared = None
        self._results = []
        self._prompt = None
        self._error = None
        self._in_flight.clear()

        logger.info("Accepted %s (%d bytes)", name, len(data))
        return True

    async def generate_front(self, prompt: str) -> bool:
        """Generate the front view for the current image.

        Only runs from IMAGE_READY. Oversized images are compressed first; a
        compression failure aborts before any request is sent.

        Returns:
            True if a front result was stored
        """
        if self.state is not WorkflowState.IMAGE_READY:
            logger.debug("Ignoring front generation in state %s", self.state.value)
            return False

        image = self._image
        token = self._begin(RequestKind.FRONT)
        try:
            prepared = await self._prepare_for_upload(image)
            response = await self.client.generate(
                GenerationRequest(prompt=prompt, image_data=to_transport(prepared.data))
            )
            variation = self._front_variation(response)
        except WorkflowError as e:
            self._record_failure(RequestKind.FRONT, token, e)
            return False
        finally:
            self._finish(RequestKind.FRONT, token)

        if not self._is_current(token):
            logger.info("Discarding front result for a replaced image")
            return False

        self._results = [variation]
        self._prompt = prompt
        self._prepared = prepared
        return True

    async def generate_angles(self) -> bool:
        """Generate side and back views with the prompt of the front view.

        Only runs from FRONT_READY. The held image is re-encoded as is, never
        compressed again. New variations are appended after the front result.

        Returns:
            True if angle results were added
        """
        if (
            self.state is not WorkflowState.FRONT_READY
            or not self._prompt
            or self._image is None
        ):
            logger.debug("Ignoring angle generation in state %s", self.state.value)
            return False

        held = self._prepared or self._image
        prompt = self._prompt
        token = self._begin(RequestKind.ANGLES)
        try:
            response = await self.client.generate(
                GenerationRequest(
                    prompt=prompt,
                    image_data=to_transport(held.data),
                    generate_angles=True,
                )
            )
            added = self._angle_variations(response)
        except WorkflowError as e:
            self._record_failure(RequestKind.ANGLES, token, e)
            return False
        finally:
            self._finish(RequestKind.ANGLES, token)

        if not self._is_current(token):
            logger.info("Discarding angle results for a replaced image")
            return False

        self._results = [*self._results, *added]
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _prepare_for_upload(
        self, image: SourceImage
    ) -> SourceImage | CompressedImage:
        if image.size <= self.threshold_bytes:
            return image

        budget = int(self.threshold_bytes * self.safety_factor)
        logger.info(
            "%s is %d bytes, compressing to a %d byte budget",
            image.name,
            image.size,
            budget,
        )
        return await self.compressor.compress(image, budget)

    def _front_variation(self, response: GenerationResponse) -> ImageVariation:
        if not response.success:
            raise GenerationError(
                response.message or FRONT_FAILURE_MESSAGE,
                kind=response.failure or FailureKind.SERVICE,
            )
        if not response.variations:
            raise EmptyResultError(response.message or FRONT_FAILURE_MESSAGE)

        first = response.variations[0]
        if first.angle is not Angle.FRONT:
            first = first.model_copy(update={"angle": Angle.FRONT})
        return first

    def _angle_variations(self, response: GenerationResponse) -> list[ImageVariation]:
        if not response.success:
            raise GenerationError(
                response.message or ANGLES_FAILURE_MESSAGE,
                kind=response.failure or FailureKind.SERVICE,
            )

        added = [v for v in response.variations if v.angle is not Angle.FRONT]
        if len(added) != len(response.variations):
            logger.warning(
                "Dropped %d front variation(s) from an angle response",
                len(response.variations) - len(added),
            )
        if not added:
            raise EmptyResultError(response.message or ANGLES_FAILURE_MESSAGE)
        return added

    def _begin(self, kind: RequestKind) -> int:
        self._in_flight[kind] = self._image_token
        self._error = None
        return self._image_token

    def _finish(self, kind: RequestKind, token: int) -> None:
        if self._in_flight.get(kind) == token:
            del self._in_flight[kind]

    def _record_failure(self, kind: RequestKind, token: int, error: WorkflowError) -> None:
        if not self._is_current(token):
            logger.info("Ignoring %s failure for a replaced image: %s", kind.value, error)
            return
        logger.warning("%s generation failed: %s", kind.value.capitalize(), error)
        self._error = error

    def _is_current(self, token: int) -> bool:
        return token == self._image_token

    def _is_in_flight(self, kind: RequestKind) -> bool:
        return self._in_flight.get(kind) == self._image_token
