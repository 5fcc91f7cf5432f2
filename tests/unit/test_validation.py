"""Unit tests for upload and prompt validation."""

import pytest

from core.validation import ValidationError, validate_image_file, validate_prompt

PHOTO = b"p" * 5000


class TestValidateImageFile:

    @pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png", "image/webp"])
    def test_accepts_supported_types(self, content_type):
        validate_image_file(PHOTO, content_type)

    @pytest.mark.parametrize("content_type", ["image/gif", "image/heic", "application/pdf", None])
    def test_rejects_other_types(self, content_type):
        with pytest.raises(ValidationError, match="JPG, PNG, or WebP"):
            validate_image_file(PHOTO, content_type)

    def test_rejects_files_over_ten_megabytes(self):
        with pytest.raises(ValidationError, match="under 10MB"):
            validate_image_file(b"p" * (10 * 1024 * 1024 + 1), "image/png")

    def test_rejects_tiny_files(self):
        with pytest.raises(ValidationError, match="too small"):
            validate_image_file(b"p" * 999, "image/png")


class TestValidatePrompt:

    def test_accepts_normal_description(self):
        validate_prompt("Low taper fade with a textured crop")

    @pytest.mark.parametrize("prompt", ["", "   ", "\n"])
    def test_rejects_blank(self, prompt):
        with pytest.raises(ValidationError, match="enter a description"):
            validate_prompt(prompt)

    def test_rejects_long_prompt(self):
        with pytest.raises(ValidationError, match="under 500 characters"):
            validate_prompt("a" * 501)

    def test_accepts_prompt_at_limit(self):
        validate_prompt("a" * 500)

    @pytest.mark.parametrize("prompt", ["<script>alert(1)</script>", "JavaScript fade", "css crop"])
    def test_rejects_blocked_words(self, prompt):
        with pytest.raises(ValidationError, match="different description"):
            validate_prompt(prompt)
