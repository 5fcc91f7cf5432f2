"""Upload and prompt validation run before input reaches the workflow."""

from __future__ import annotations

from core.config import (
    MEGABYTE,
    get_allowed_image_types,
    get_blocked_prompt_words,
    get_max_image_size_mb,
    get_max_prompt_length,
    get_min_image_size_bytes,
)


class ValidationError(Exception):
    """Raised when an upload or prompt fails validation."""

    pass


def validate_image_file(data: bytes, content_type: str | None) -> None:
    """Validate an uploaded photo.

    Args:
        data: File content bytes
        content_type: Declared MIME type

    Raises:
        ValidationError: If validation fails
    """
    if (content_type or "").lower() not in get_allowed_image_types():
        raise ValidationError("Please select a JPG, PNG, or WebP image file.")

    max_size_mb = get_max_image_size_mb()
    if len(data) > max_size_mb * MEGABYTE:
        raise ValidationError(
            f"File size too large. Please select an image under {max_size_mb}MB."
        )

    # Empty or truncated files
    if len(data) < get_min_image_size_bytes():
        raise ValidationError("File appears to be too small or corrupted.")


def validate_prompt(prompt: str) -> None:
    """Validate a haircut description.

    Raises:
        ValidationError: If the prompt is empty, too long or blocked
    """
    if not prompt.strip():
        raise ValidationError("Please enter a description for your desired haircut.")

    max_length = get_max_prompt_length()
    if len(prompt) > max_length:
        raise ValidationError(
            f"Description is too long. Please keep it under {max_length} characters."
        )

    lowered = prompt.lower()
    for word in get_blocked_prompt_words():
        if word in lowered:
            raise ValidationError(
                "Please use a different description for your haircut."
            )
