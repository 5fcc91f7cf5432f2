"""Data models shared by the workflow, the client and the generation service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from core.encoding import is_data_url
from core.errors import FailureKind


# ============================================================================
# Enums
# ============================================================================


class Angle(str, Enum):
    """Viewpoints of a generated reference image."""

    FRONT = "front"
    SIDE = "side"
    BACK = "back"


class WorkflowState(str, Enum):
    """Where the generation workflow currently is."""

    NO_IMAGE = "no_image"
    IMAGE_READY = "image_ready"
    GENERATING_FRONT = "generating_front"
    FRONT_READY = "front_ready"
    GENERATING_ANGLES = "generating_angles"
    ANGLES_READY = "angles_ready"


class RequestKind(str, Enum):
    """Kinds of generation request; one of each may be in flight."""

    FRONT = "front"
    ANGLES = "angles"


# ============================================================================
# Image Models
# ============================================================================


@dataclass(frozen=True)
class SourceImage:
    """The photo selected by the user."""

    data: bytes
    name: str
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CompressionTarget:
    """Encoder parameters for one compression pass."""

    quality: float
    scale: float


@dataclass(frozen=True)
class CompressedImage:
    """Output of the compression engine."""

    data: bytes
    name: str
    content_type: str
    quality: float
    scale: float
    passes: int

    @property
    def size(self) -> int:
        return len(self.data)


# ============================================================================
# Wire Models (generation service contract)
# ============================================================================


class ImageVariation(BaseModel):
    """One generated result: an image data URL or a text fallback."""

    model_config = ConfigDict(frozen=True)

    image: str = Field(
        description="Data URL of the generated image, or a plain-text description"
    )
    angle: Angle = Field(description="Viewpoint of this result")

    @property
    def is_image(self) -> bool:
        return is_data_url(self.image)


class GenerationRequest(BaseModel):
    """Body of a POST to /api/generate."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(description="Haircut description")
    image_data: str = Field(
        alias="imageData", description="Base64 image bytes without a data-URL prefix"
    )
    generate_angles: bool = Field(
        default=False,
        alias="generateAngles",
        description="Request side and back views instead of the front view",
    )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class GenerationResponse(BaseModel):
    """Answer from the generation service."""

    success: bool
    variations: list[ImageVariation] = Field(default_factory=list)
    message: str | None = None
    failure: FailureKind | None = Field(
        default=None,
        exclude=True,
        description="Client-side classification of a failed call",
    )

    @classmethod
    def failed(
        cls, message: str | None, failure: FailureKind = FailureKind.UNKNOWN
    ) -> GenerationResponse:
        return cls(success=False, variations=[], message=message, failure=failure)


# ============================================================================
# Presentation Models
# ============================================================================


class ResultItem(BaseModel):
    """A finished variation to display."""

    kind: Literal["result"] = "result"
    variation: ImageVariation


class PendingItem(BaseModel):
    """Placeholder for an angle that is still being generated."""

    kind: Literal["pending"] = "pending"
    angle: Angle


DisplayItem = Annotated[Union[ResultItem, PendingItem], Field(discriminator="kind")]


@dataclass(frozen=True)
class WorkflowView:
    """Read-only snapshot of the workflow for the presentation layer."""

    state: WorkflowState
    image: SourceImage | None
    prompt: str | None
    error: str | None
    items: list[ResultItem | PendingItem] = field(default_factory=list)
    has_front_result: bool = False
    has_angles: bool = False

    @property
    def can_generate_front(self) -> bool:
        return self.state is WorkflowState.IMAGE_READY

    @property
    def can_generate_angles(self) -> bool:
        return self.state is WorkflowState.FRONT_READY

    @property
    def is_busy(self) -> bool:
        return self.state in (
            WorkflowState.GENERATING_FRONT,
            WorkflowState.GENERATING_ANGLES,
        )
