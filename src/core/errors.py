"""Error taxonomy surfaced by the generation workflow."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Why a generation request failed."""

    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    CONNECTIVITY = "connectivity"
    SERVICE = "service"
    UNKNOWN = "unknown"


class WorkflowError(Exception):
    """Base class for errors shown to the user as the current error."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class UnsupportedFormatError(WorkflowError):
    """Raised for HEIC/HEIF uploads, which the generation service rejects."""

    default_message = "HEIC images are not supported. Please convert to jpg or png"


class CompressionError(WorkflowError):
    """Raised when an image cannot be decoded or re-encoded."""

    default_message = (
        "Failed to compress image. Please try uploading a different image"
    )


class GenerationError(WorkflowError):
    """Raised when the generation service or the transport fails."""

    default_message = "Failed to generate reference image"

    def __init__(
        self,
        message: str | None = None,
        kind: FailureKind = FailureKind.UNKNOWN,
    ):
        super().__init__(message)
        self.kind = kind


class EmptyResultError(GenerationError):
    """The service reported success but returned no variations."""

    def __init__(self, message: str | None = None):
        super().__init__(message, kind=FailureKind.SERVICE)


__all__ = [
    "CompressionError",
    "EmptyResultError",
    "FailureKind",
    "GenerationError",
    "UnsupportedFormatError",
    "WorkflowError",
]
