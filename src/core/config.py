"""Configuration settings for Help My Barber."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

# =============================================================================
# Path Configuration (always relative to project structure)
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_FILE = PROJECT_ROOT / "configs" / "config.yaml"

# Directory paths
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "output"
PROMPTS_DIR = Path(__file__).parent / "prompts"

MEGABYTE = 1024 * 1024


# =============================================================================
# Config Loading
# =============================================================================


def load_config() -> dict[str, Any]:
    """Load configuration from config.yaml."""
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE) as f:
            return yaml.safe_load(f) or {}
    return {}


def get_config(key: str, default: Any = None) -> Any:
    """Get a config value by dot-notation key (e.g., 'api.port')."""
    config = load_config()
    keys = key.split(".")
    value = config
    for k in keys:
        if isinstance(value, dict):
            value = value.get(k)
        else:
            return default
    return value if value is not None else default


def configure_logging(level: str | None = None) -> None:
    """Set up stdlib logging for an entry point."""
    level = level or get_config("logging.level", "INFO")
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=getattr(logging, str(level).upper(), logging.INFO),
    )


# =============================================================================
# Convenience accessors
# =============================================================================


def get_api_host() -> str:
    return get_config("api.host", "127.0.0.1")


def get_api_port() -> int:
    return int(os.getenv("PORT") or get_config("api.port", 3001))


def get_api_base_url() -> str:
    return f"http://localhost:{get_api_port()}"


def get_service_url() -> str:
    """Base URL of the generation service used by the clients."""
    return os.getenv("HELP_MY_BARBER_API_URL") or get_config(
        "client.service_url", get_api_base_url()
    )


def get_request_timeout() -> float:
    return float(get_config("client.timeout_seconds", 120))


def get_compression_threshold_bytes() -> int:
    return int(get_config("compression.threshold_mb", 1) * MEGABYTE)


def get_compression_safety_factor() -> float:
    return float(get_config("compression.safety_factor", 0.9))


def get_allowed_image_types() -> set[str]:
    types = get_config("uploads.allowed_types", [])
    return (
        set(types)
        if types
        else {"image/jpeg", "image/jpg", "image/png", "image/webp"}
    )


def get_max_image_size_mb() -> int:
    return get_config("uploads.max_image_size_mb", 10)


def get_min_image_size_bytes() -> int:
    return get_config("uploads.min_image_size_bytes", 1000)


def get_max_prompt_length() -> int:
    return get_config("prompts.max_length", 500)


def get_blocked_prompt_words() -> list[str]:
    return get_config(
        "prompts.blocked_words",
        ["script", "javascript", "html", "css", "<script", "</script"],
    )


def get_gemini_model() -> str:
    return get_config("gemini.model", "gemini-2.5-flash-image-preview")


def get_gemini_timeout() -> float:
    return float(get_config("gemini.timeout_seconds", 120))


def get_max_body_size_mb() -> int:
    return get_config("api.max_body_size_mb", 3)
