"""Byte-budget image compression.

Images are re-encoded as JPEG with a quality/scale pair seeded from the ratio
between the byte budget and the source size. Only quality is lowered after the
first pass; the scale chosen at seed time is kept for every pass. The search
stops once the output fits the budget or quality reaches the floor, so the
result can still be over budget for images that cannot get that small.
"""

from __future__ import annotations

import asyncio
import logging
import math
from io import BytesIO

from PIL import Image, ImageOps

from core.errors import CompressionError
from core.schemas import CompressedImage, CompressionTarget, SourceImage

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "JPEG"
OUTPUT_CONTENT_TYPE = "image/jpeg"

MAX_SEED_QUALITY = 0.8
SEED_QUALITY_GAIN = 1.5
QUALITY_FLOOR = 0.1
QUALITY_STEP = 0.7
# Below this budget/source ratio pixel dimensions are reduced as well
RESIZE_BELOW_RATIO = 0.5


def seed_target(source_size: int, target_bytes: int) -> CompressionTarget:
    """Initial encoder parameters for a source of ``source_size`` bytes.

    Encoded size grows roughly linearly with quality and with the square of
    the linear scale, so large reductions are split between the two.
    """
    ratio = target_bytes / source_size
    quality = min(MAX_SEED_QUALITY, ratio * SEED_QUALITY_GAIN)
    scale = math.sqrt(ratio * 2) if ratio < RESIZE_BELOW_RATIO else 1.0
    return CompressionTarget(quality=quality, scale=scale)


def jpeg_quality(quality: float) -> int:
    """Map a 0-1 quality factor onto Pillow's 1-100 JPEG scale."""
    return max(1, min(100, round(quality * 100)))


class ImageCompressor:
    """Re-encodes images until they fit a byte budget."""

    async def compress(self, source: SourceImage, target_bytes: int) -> CompressedImage:
        """Compress ``source`` to at most ``target_bytes`` where achievable.

        Decoding and every encode pass run in the default executor.

        Args:
            source: The image to compress
            target_bytes: Byte budget for the output

        Returns:
            The last encoded image, which may exceed the budget when quality
            hit the floor first

        Raises:
            CompressionError: If the image cannot be decoded or encoded
        """
        if target_bytes <= 0:
            logger.warning("Rejecting non-positive byte budget %d", target_bytes)
            raise CompressionError()

        loop = asyncio.get_event_loop()
        image = await loop.run_in_executor(None, self.decode, source.data)

        target = seed_target(source.size, target_bytes)
        quality = target.quality
        data = await loop.run_in_executor(None, self.encode, image, quality, target.scale)
        passes = 1

        while len(data) > target_bytes and quality > QUALITY_FLOOR:
            quality *= QUALITY_STEP
            data = await loop.run_in_executor(
                None, self.encode, image, quality, target.scale
            )
            passes += 1

        if len(data) > target_bytes:
            logger.warning(
                "Compression of %s stopped at quality floor: %d bytes > budget %d",
                source.name,
                len(data),
                target_bytes,
            )
        else:
            logger.info(
                "Compressed %s from %d to %d bytes in %d pass(es) (scale=%.3f, quality=%.3f)",
                source.name,
                source.size,
                len(data),
                passes,
                target.scale,
                quality,
            )

        return CompressedImage(
            data=data,
            name=source.name,
            content_type=OUTPUT_CONTENT_TYPE,
            quality=quality,
            scale=target.scale,
            passes=passes,
        )

    def decode(self, data: bytes) -> Image.Image:
        """Decode image bytes into an RGB raster with EXIF orientation applied."""
        if not data:
            logger.warning("Cannot decode an empty image payload")
            raise CompressionError()

        try:
            image = Image.open(BytesIO(data))
            image.load()
            image = ImageOps.exif_transpose(image)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning("Failed to decode image: %s", e)
            raise CompressionError() from e

        if image.mode != "RGB":
            image = image.convert("RGB")
        return image

    def encode(self, image: Image.Image, quality: float, scale: float) -> bytes:
        """Render ``image`` at ``scale`` and encode it as JPEG at ``quality``."""
        width = max(1, int(image.width * scale))
        height = max(1, int(image.height * scale))

        frame = image
        if (width, height) != image.size:
            frame = image.resize((width, height), Image.Resampling.LANCZOS)

        buffer = BytesIO()
        try:
            frame.save(buffer, format=OUTPUT_FORMAT, quality=jpeg_quality(quality))
        except (OSError, ValueError) as e:
            logger.warning("Failed to encode image: %s", e)
            raise CompressionError() from e
        return buffer.getvalue()


async def compress_image(source: SourceImage, target_bytes: int) -> CompressedImage:
    """Compress with a default :class:`ImageCompressor`."""
    return await ImageCompressor().compress(source, target_bytes)
