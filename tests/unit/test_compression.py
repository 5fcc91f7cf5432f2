"""Unit tests for the byte-budget compression engine."""

import math
from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from core.compression import (
    QUALITY_FLOOR,
    ImageCompressor,
    compress_image,
    jpeg_quality,
    seed_target,
)
from core.errors import CompressionError
from core.schemas import SourceImage


def make_photo(width: int = 640, height: int = 480, mode: str = "RGB") -> bytes:
    """PNG of random noise, which compresses poorly."""
    image = Image.effect_noise((width, height), 64).convert(mode)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class TestSeedTarget:
    """Test the initial quality/scale heuristic."""

    def test_modest_reduction_keeps_dimensions(self):
        target = seed_target(1_000_000, 600_000)
        assert target.scale == 1.0
        assert target.quality == pytest.approx(0.8)

    def test_quality_capped_when_budget_exceeds_source(self):
        target = seed_target(100_000, 500_000)
        assert target.quality == pytest.approx(0.8)
        assert target.scale == 1.0

    def test_large_reduction_also_shrinks_dimensions(self):
        target = seed_target(1_000_000, 200_000)
        assert target.quality == pytest.approx(0.3)
        assert target.scale == pytest.approx(math.sqrt(0.4))

    def test_ratio_of_exactly_half_does_not_resize(self):
        assert seed_target(1_000_000, 500_000).scale == 1.0


class TestJpegQuality:
    """Test mapping of quality factors onto Pillow's scale."""

    def test_maps_to_percent(self):
        assert jpeg_quality(0.8) == 80

    def test_never_below_one(self):
        assert jpeg_quality(0.001) == 1


class TestCompressSearch:
    """Test the quality search with a mocked encoder."""

    @pytest.mark.asyncio
    async def test_two_pass_scenario(self):
        """600 KB then 300 KB against a 450 KB budget means exactly two passes."""
        compressor = ImageCompressor()
        source = SourceImage(data=b"\x00" * 1_000_000, name="photo.png", content_type="image/png")

        with patch.object(compressor, "decode", return_value=MagicMock()), patch.object(
            compressor, "encode", side_effect=[b"x" * 600_000, b"x" * 300_000]
        ) as encode:
            result = await compressor.compress(source, 450_000)

        assert encode.call_count == 2
        assert result.size == 300_000
        assert result.passes == 2

        first_quality = encode.call_args_list[0].args[1]
        second_quality = encode.call_args_list[1].args[1]
        assert first_quality == pytest.approx(0.675)
        assert second_quality == pytest.approx(0.675 * 0.7)

        # Scale is seeded once and reused
        for call in encode.call_args_list:
            assert call.args[2] == pytest.approx(math.sqrt(0.9))

    @pytest.mark.asyncio
    async def test_budget_above_source_still_encodes_once(self):
        compressor = ImageCompressor()
        source = SourceImage(data=b"\x00" * 1000, name="small.png")

        with patch.object(compressor, "decode", return_value=MagicMock()), patch.object(
            compressor, "encode", return_value=b"x" * 900
        ) as encode:
            result = await compressor.compress(source, 5000)

        encode.assert_called_once()
        assert encode.call_args.args[1:] == (pytest.approx(0.8), 1.0)
        assert result.passes == 1

    @pytest.mark.asyncio
    async def test_stops_at_quality_floor_when_budget_unreachable(self):
        """The last output is returned even though it is still over budget."""
        compressor = ImageCompressor()
        source = SourceImage(data=b"\x00" * 1_000_000, name="photo.jpg")

        with patch.object(compressor, "decode", return_value=MagicMock()), patch.object(
            compressor, "encode", return_value=b"x" * 800_000
        ) as encode:
            result = await compressor.compress(source, 450_000)

        assert result.size == 800_000
        assert result.quality <= QUALITY_FLOOR
        # Quality stays above the floor for every pass but the last
        assert all(c.args[1] > QUALITY_FLOOR for c in encode.call_args_list[:-1])
        assert encode.call_count == result.passes

    @pytest.mark.asyncio
    async def test_recompressing_output_does_not_grow_it(self):
        """Output size follows quality * scale^2; a second pass never regresses."""
        compressor = ImageCompressor()

        def decode(data):
            return len(data)

        def encode(raster_size, quality, scale):
            return b"x" * int(raster_size * quality * scale**2 * 1.2)

        with patch.object(compressor, "decode", side_effect=decode), patch.object(
            compressor, "encode", side_effect=encode
        ):
            first = await compressor.compress(
                SourceImage(data=b"\x00" * 1_000_000, name="a.png"), 450_000
            )
            second = await compressor.compress(
                SourceImage(data=first.data, name="a.png"), 450_000
            )

        assert first.size <= 450_000
        assert second.size <= first.size


class TestCompressWithPillow:
    """Test compression end to end on real images."""

    @pytest.mark.asyncio
    async def test_meets_budget_or_reaches_floor(self):
        data = make_photo()
        source = SourceImage(data=data, name="noise.png", content_type="image/png")
        target = len(data) // 8

        result = await compress_image(source, target)

        assert result.size <= target or result.quality <= QUALITY_FLOOR
        assert result.content_type == "image/jpeg"
        assert result.name == "noise.png"

    @pytest.mark.asyncio
    async def test_output_is_resized_by_seed_scale(self):
        data = make_photo(640, 480)
        source = SourceImage(data=data, name="noise.png")

        result = await compress_image(source, len(data) // 8)

        assert result.scale < 1.0
        with Image.open(BytesIO(result.data)) as image:
            assert image.format == "JPEG"
            assert image.size == (int(640 * result.scale), int(480 * result.scale))

    @pytest.mark.asyncio
    async def test_transparent_png_becomes_rgb_jpeg(self):
        data = make_photo(64, 64, mode="RGBA")
        source = SourceImage(data=data, name="alpha.png")

        result = await compress_image(source, len(data) * 10)

        assert result.passes == 1
        assert result.scale == 1.0
        with Image.open(BytesIO(result.data)) as image:
            assert image.mode == "RGB"

    @pytest.mark.asyncio
    async def test_empty_source_fails(self):
        with pytest.raises(CompressionError):
            await compress_image(SourceImage(data=b"", name="empty.jpg"), 1000)

    @pytest.mark.asyncio
    async def test_undecodable_source_fails(self):
        source = SourceImage(data=b"definitely not an image" * 100, name="broken.jpg")
        with pytest.raises(CompressionError):
            await compress_image(source, 1000)

    @pytest.mark.asyncio
    async def test_non_positive_budget_fails(self):
        source = SourceImage(data=make_photo(32, 32), name="tiny.png")
        with pytest.raises(CompressionError):
            await compress_image(source, 0)
