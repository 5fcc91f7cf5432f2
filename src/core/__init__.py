"""Core module for Help My Barber: compression, workflow and service client."""

from core.api_client import GenerationClient
from core.compression import ImageCompressor, compress_image
from core.config import (
    DEFAULT_OUTPUT_DIR,
    PROJECT_ROOT,
    PROMPTS_DIR,
    configure_logging,
    get_compression_threshold_bytes,
    get_service_url,
)
from core.workflow import GenerationWorkflow

__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "PROJECT_ROOT",
    "PROMPTS_DIR",
    "GenerationClient",
    "GenerationWorkflow",
    "ImageCompressor",
    "compress_image",
    "configure_logging",
    "get_compression_threshold_bytes",
    "get_service_url",
]
